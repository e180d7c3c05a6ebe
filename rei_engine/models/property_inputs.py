"""
property_inputs.py

Validated input record for a single deal. Every analyzer starts from
PropertyInputs or from the DealAnalyzer output built on top of it.

Rates (interest, vacancy, management, maintenance) are in percent.
Expenses are annual unless the field name says monthly.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field, model_validator


Province = Literal["ON", "BC", "AB", "NS", "QC"]
PropertyType = Literal["single_family", "duplex", "triplex", "fourplex", "multi_unit_5plus"]
Strategy = Literal["brrrr", "buy_hold", "fix_flip", "multifamily_development"]
PropertyCondition = Literal["move_in_ready", "cosmetic", "moderate_reno", "heavy_reno", "gut_job"]


class PropertyUnit(BaseModel):
    unit_number: str
    bedrooms: int = Field(..., ge=0)
    rent: float = Field(..., ge=0)
    square_feet: Optional[float] = Field(None, gt=0)


class PropertyInputs(BaseModel):
    # Location
    address: str = ""
    city: str
    province: Province
    postal_code: Optional[str] = None

    # Property details
    property_type: PropertyType = "single_family"
    bedrooms: int = 3
    bathrooms: float = 2
    square_feet: float = Field(1500, ge=0)
    year_built: Optional[int] = None
    lot_size: Optional[float] = None  # acres

    # Financing
    purchase_price: float = Field(..., gt=0)
    down_payment_percent: float = Field(20.0, ge=0, le=100)
    down_payment_amount: Optional[float] = Field(None, ge=0)
    interest_rate: float = Field(5.5, ge=0)
    amortization_years: int = Field(25, gt=0, le=40)

    # Strategy
    strategy: Strategy = "buy_hold"

    # Condition and renovation
    property_condition: PropertyCondition = "move_in_ready"
    renovation_cost: float = Field(0.0, ge=0)
    after_repair_value: Optional[float] = Field(None, gt=0)
    renovation_timeline_months: Optional[int] = None

    # Revenue (monthly)
    monthly_rent: float = Field(..., ge=0)
    units: Optional[List[PropertyUnit]] = None
    other_income: float = Field(0.0, ge=0)
    vacancy_rate: float = Field(5.0, ge=0, le=100)

    # Expenses
    property_tax_annual: float = Field(0.0, ge=0)
    insurance_annual: float = Field(0.0, ge=0)
    property_management_percent: float = Field(0.0, ge=0, le=100)
    maintenance_percent: float = Field(5.0, ge=0, le=100)
    utilities_monthly: float = Field(0.0, ge=0)
    hoa_condo_fees_monthly: float = Field(0.0, ge=0)
    other_expenses_monthly: float = Field(0.0, ge=0)

    # Closing cost overrides
    legal_fees: Optional[float] = Field(None, ge=0)
    inspection_cost: Optional[float] = Field(None, ge=0)
    appraisal_cost: Optional[float] = Field(None, ge=0)

    is_first_time_buyer: bool = False

    # Used for the income side of the stress test and tax estimates
    gross_annual_income: Optional[float] = Field(None, gt=0)

    @model_validator(mode="after")
    def _fill_down_payment_amount(self):
        if self.down_payment_amount is None:
            self.down_payment_amount = self.purchase_price * self.down_payment_percent / 100
        return self

    @property
    def is_multi_unit(self) -> bool:
        return self.property_type != "single_family"
