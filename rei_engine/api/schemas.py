from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field

from rei_engine.models.advanced_metrics import ProjectionAssumptions
from rei_engine.models.airbnb_analyzer import AirbnbInputs
from rei_engine.models.development_analyzer import (
    DevelopmentType,
    MarketComparable,
    RenovationScope,
)
from rei_engine.models.financing_optimizer import FinancingProfile, MarketConditions
from rei_engine.models.property_inputs import PropertyInputs


AnalysisName = Literal[
    "risk", "expense_ratio", "acre", "break_even", "tax", "advanced_metrics", "airbnb", "adu", "development"
]
AduType = Literal["basement_suite", "garden_suite", "garage_conversion", "attic_conversion", "laneway_house"]
BasementCondition = Literal["finished", "partial", "walkout", "unfinished", "none"]


class AcreOverrides(BaseModel):
    location_grade: Optional[Literal["A", "B", "C", "D"]] = None
    appreciation_potential: Optional[Literal["High", "Medium", "Low"]] = None


class AduOptions(BaseModel):
    details: Optional[Dict[str, Any]] = None
    adu_type: Optional[AduType] = None
    current_value: Optional[float] = Field(None, gt=0)
    existing_basement: Optional[BasementCondition] = None
    lot_size_sqft: Optional[float] = Field(None, gt=0)
    target_unit_size: float = Field(600, gt=0)
    estimated_monthly_rent: Optional[float] = Field(None, gt=0)
    do_it_yourself: bool = False


class DevelopmentOptions(BaseModel):
    """
    Overrides for the development analysis; the unit mix comes from
    property.units.
    """
    development_type: Optional[DevelopmentType] = None
    renovation_scope: Optional[RenovationScope] = None
    land_cost: Optional[float] = Field(None, ge=0)
    construction_cost_per_sqft: Optional[float] = Field(None, gt=0)
    site_preparation_cost: Optional[float] = Field(None, ge=0)
    permit_costs: Optional[float] = Field(None, ge=0)
    architect_engineer_fees: Optional[float] = Field(None, ge=0)
    comparable_rents: Optional[List[MarketComparable]] = None
    market_vacancy_rate: Optional[float] = Field(None, ge=0, le=100)
    rent_growth_projection: Optional[float] = Field(None, ge=-100, le=100)


class AnalyzeRequest(BaseModel):
    property: PropertyInputs

    # Optional add-ons; the engine default set runs when omitted
    analyses: Optional[List[AnalysisName]] = None
    acre: Optional[AcreOverrides] = None
    employment_income: Optional[float] = Field(None, ge=0)
    projection: Optional[ProjectionAssumptions] = None
    airbnb: Optional[AirbnbInputs] = None
    adu: Optional[AduOptions] = None
    development: Optional[DevelopmentOptions] = None


class CompareRequest(BaseModel):
    deals: List[AnalyzeRequest] = Field(..., min_length=2)


class CMHCRequest(BaseModel):
    purchase_price: float = Field(..., gt=0)
    down_payment_percent: float = Field(..., ge=0, le=100)


class LandTransferTaxRequest(BaseModel):
    purchase_price: float = Field(..., gt=0)
    province: str
    city: Optional[str] = None
    is_first_time_buyer: bool = False


class StressTestRequest(BaseModel):
    mortgage_amount: float = Field(..., gt=0)
    contract_rate: float = Field(..., ge=0)
    amortization_years: int = Field(25, gt=0, le=40)
    gross_annual_income: Optional[float] = Field(None, gt=0)
    monthly_property_tax: float = Field(0.0, ge=0)


class AcreQuickRequest(BaseModel):
    purchase_price: float = Field(..., gt=0)
    monthly_rent: float = Field(..., ge=0)
    province: str
    city: str


class AduCompareRequest(BaseModel):
    purchase_price: float = Field(..., gt=0)
    current_value: Optional[float] = Field(None, gt=0)
    province: str
    city: str
    existing_basement: Optional[BasementCondition] = None
    lot_size_sqft: Optional[float] = Field(None, gt=0)


class MortgageQualificationRequest(BaseModel):
    gross_annual_income: float = Field(..., ge=0)
    monthly_mortgage_payment: float = Field(..., ge=0)
    annual_property_tax: float = Field(0.0, ge=0)
    monthly_heating_cost: float = Field(150.0, ge=0)
    monthly_condo_fees: float = Field(0.0, ge=0)
    other_monthly_debts: float = Field(0.0, ge=0)
    credit_score: int = Field(680, ge=300, le=900)

    # When given, an affordability check for this price is included
    purchase_price: Optional[float] = Field(None, gt=0)
    down_payment_percent: float = Field(20.0, ge=0, le=100)


class FinancingStrategiesRequest(BaseModel):
    property_price: float = Field(..., gt=0)
    profile: FinancingProfile
    market_conditions: MarketConditions = "balanced"


class ScrapeListingRequest(BaseModel):
    url: str


class ApiResponse(BaseModel):
    """
    Loose wrapper around whatever the engine or calculator returned.
    """
    success: bool
    data: Any
