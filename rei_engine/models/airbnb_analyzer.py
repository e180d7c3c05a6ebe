"""
airbnb_analyzer.py

Short-term rental (Airbnb/VRBO) projection compared against the
long-term rental case from DealAnalyzer.

Revenue: nightly rate x occupied nights + cleaning fees
Expenses: platform fee, cleaning, utilities, supplies, STR management,
          extra insurance, plus the base property tax and insurance
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from rei_engine.logging_config import setup_logger


logger = setup_logger(__name__)

NIGHTS_PER_YEAR = 365

HIGH_REGULATORY_RISK_CITIES = ["Toronto", "Vancouver", "Montreal"]
MEDIUM_REGULATORY_RISK_CITIES = ["Calgary", "Ottawa", "Quebec City"]

PRICING_MULTIPLIERS = {
    "urban": {"weekend": 1.15, "peak": 1.30, "off": 0.90},
    "resort": {"weekend": 1.25, "peak": 1.50, "off": 0.75},
    "suburban": {"weekend": 1.10, "peak": 1.20, "off": 0.95},
}

MONTHS = [
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
]
DAYS_IN_MONTH = [31, 28, 31, 30, 31, 30, 31, 31, 30, 31, 30, 31]

SEASONALITY = {
    "urban": [0.85, 0.85, 0.95, 1.00, 1.10, 1.15, 1.20, 1.10, 1.05, 1.00, 0.90, 0.85],
    "resort": [0.70, 0.70, 0.80, 0.90, 1.00, 1.20, 1.40, 1.40, 1.10, 0.90, 0.80, 1.00],
    "suburban": [0.80, 0.80, 0.90, 1.00, 1.10, 1.20, 1.20, 1.15, 1.05, 0.95, 0.85, 0.90],
}

STR_MARKET_BENCHMARKS: Dict[str, Dict] = {
    "Toronto": {
        "average_adr": 180, "average_occupancy": 65, "average_revenue_per_month": 3510,
        "competition_level": "High", "best_property_types": ["Condo", "Downtown Loft", "Entire Home"],
    },
    "Vancouver": {
        "average_adr": 200, "average_occupancy": 70, "average_revenue_per_month": 4200,
        "competition_level": "High", "best_property_types": ["Condo", "Waterfront", "Mountain View"],
    },
    "Montreal": {
        "average_adr": 140, "average_occupancy": 68, "average_revenue_per_month": 2856,
        "competition_level": "Medium", "best_property_types": ["Old Montreal", "Plateau", "Downtown"],
    },
    "Calgary": {
        "average_adr": 130, "average_occupancy": 60, "average_revenue_per_month": 2340,
        "competition_level": "Medium", "best_property_types": ["Downtown", "Near Stampede", "Beltline"],
    },
    "Quebec City": {
        "average_adr": 150, "average_occupancy": 72, "average_revenue_per_month": 3240,
        "competition_level": "Low", "best_property_types": ["Old Quebec", "Near Chateau", "Historic District"],
    },
    "Ottawa": {
        "average_adr": 135, "average_occupancy": 62, "average_revenue_per_month": 2511,
        "competition_level": "Medium", "best_property_types": ["ByWard Market", "Glebe", "Downtown"],
    },
    "Whistler": {
        "average_adr": 350, "average_occupancy": 75, "average_revenue_per_month": 7875,
        "competition_level": "High", "best_property_types": ["Ski-in/Ski-out", "Village", "Creekside"],
    },
    "Niagara Falls": {
        "average_adr": 160, "average_occupancy": 70, "average_revenue_per_month": 3360,
        "competition_level": "Medium", "best_property_types": ["Near Falls", "Clifton Hill", "Winery"],
    },
}


class AirbnbInputs(BaseModel):
    average_daily_rate: float = Field(..., gt=0)
    occupancy_rate: float = Field(..., ge=0, le=100)
    cleaning_fee_per_booking: float = Field(0.0, ge=0)
    average_length_of_stay: float = Field(3.0, gt=0)
    bookings_per_month: float = Field(..., ge=0)

    cleaning_cost_per_booking: float = Field(0.0, ge=0)
    utilities_included: bool = True
    furnishing_cost: float = Field(0.0, ge=0)
    monthly_utilities: float = Field(0.0, ge=0)
    platform_fees_percent: float = Field(3.0, ge=0, le=100)
    extra_insurance_annual: float = Field(0.0, ge=0)
    supplies_monthly: float = Field(0.0, ge=0)
    management_percent: float = Field(0.0, ge=0, le=100)


def seasonal_variance_risk(occupancy: float) -> str:
    # Higher occupancy means steadier demand
    if occupancy >= 75:
        return "Low"
    if occupancy >= 55:
        return "Medium"
    return "High"


def regulatory_risk(city: str) -> str:
    if city in HIGH_REGULATORY_RISK_CITIES:
        return "High"
    if city in MEDIUM_REGULATORY_RISK_CITIES:
        return "Medium"
    return "Low"


def management_intensity(average_stay: float) -> str:
    # Longer stays mean less turnover
    if average_stay >= 7:
        return "Low"
    if average_stay >= 3:
        return "Medium"
    return "High"


class AirbnbAnalyzer:
    """
    Example:
        base = DealAnalyzer(inputs).analyze()
        AirbnbAnalyzer(base, AirbnbInputs(average_daily_rate=160,
                                          occupancy_rate=68,
                                          bookings_per_month=8)).analyze()
    """

    def __init__(self, base_analysis: Dict, str_inputs: AirbnbInputs):
        self.base = base_analysis
        self.str_inputs = str_inputs

    def analyze(self) -> Dict:
        s = self.str_inputs
        base = self.base
        annual = base["expenses"]["annual"]

        occupied_nights = NIGHTS_PER_YEAR * s.occupancy_rate / 100
        annual_bookings = s.bookings_per_month * 12

        gross_rental_income = s.average_daily_rate * occupied_nights
        cleaning_fees_collected = s.cleaning_fee_per_booking * annual_bookings
        total_gross_revenue = gross_rental_income + cleaning_fees_collected

        platform_fees = total_gross_revenue * s.platform_fees_percent / 100
        cleaning_costs = s.cleaning_cost_per_booking * annual_bookings
        utilities_cost = s.monthly_utilities * 12
        supplies_cost = s.supplies_monthly * 12
        management_fee = total_gross_revenue * s.management_percent / 100

        total_str_expenses = (
            platform_fees
            + cleaning_costs
            + utilities_cost
            + supplies_cost
            + management_fee
            + s.extra_insurance_annual
            + annual["property_tax"]
            + annual["insurance"]
        )

        net_before_mortgage = total_gross_revenue - total_str_expenses
        annual_mortgage = annual["mortgage"]
        net_cash_flow = net_before_mortgage - annual_mortgage

        ltr_annual_net = base["cash_flow"]["annual_net"]
        difference = net_cash_flow - ltr_annual_net
        pct_increase: Optional[float] = None
        if ltr_annual_net != 0:
            pct_increase = difference / abs(ltr_annual_net) * 100

        # Occupancy needed for STR to match the long-term net operating revenue
        ltr_net_revenue = base["revenue"]["annual_gross_income"] - (annual["total"] - annual_mortgage)
        break_even_occupancy = 100.0
        if occupied_nights > 0:
            daily_profit = s.average_daily_rate - total_str_expenses / occupied_nights
            if daily_profit > 0:
                break_even_nights = ltr_net_revenue / daily_profit
                break_even_occupancy = max(0.0, min(break_even_nights / NIGHTS_PER_YEAR * 100, 100.0))

        initial_investment = base["acquisition"]["total_acquisition_cost"] + s.furnishing_cost
        coc = net_cash_flow / initial_investment * 100 if initial_investment > 0 else 0.0

        city = base["property"]["city"]
        logger.debug(f"STR in {city}: net ${net_cash_flow:,.0f}/yr vs LTR ${ltr_annual_net:,.0f}/yr")

        return {
            "gross_rental_income": gross_rental_income,
            "cleaning_fees_collected": cleaning_fees_collected,
            "total_gross_revenue": total_gross_revenue,
            "platform_fees": platform_fees,
            "cleaning_costs": cleaning_costs,
            "utilities_cost": utilities_cost,
            "supplies_cost": supplies_cost,
            "management_fee": management_fee,
            "extra_insurance": s.extra_insurance_annual,
            "total_str_expenses": total_str_expenses,
            "net_revenue_before_mortgage": net_before_mortgage,
            "annual_mortgage_payment": annual_mortgage,
            "net_cash_flow": net_cash_flow,
            "monthly_average_cash_flow": net_cash_flow / 12,
            "occupancy_rate": s.occupancy_rate,
            "average_daily_rate": s.average_daily_rate,
            "revenue_per_available_night": gross_rental_income / NIGHTS_PER_YEAR,
            "annual_bookings": annual_bookings,
            "average_revenue_per_booking": total_gross_revenue / annual_bookings if annual_bookings else 0.0,
            "long_term_annual_cash_flow": ltr_annual_net,
            "str_vs_ltr_cash_flow_difference": difference,
            "str_vs_ltr_percentage_increase": pct_increase,
            "break_even_occupancy": break_even_occupancy,
            "initial_investment": initial_investment,
            "first_year_coc_return": coc,
            "seasonal_variance_risk": seasonal_variance_risk(s.occupancy_rate),
            "regulatory_risk": regulatory_risk(city),
            "management_intensity": management_intensity(s.average_length_of_stay),
        }


def optimal_pricing(base_rate: float, market: str = "urban") -> Dict:
    m = PRICING_MULTIPLIERS[market]
    return {
        "base_rate": base_rate,
        "weekend_rate": base_rate * m["weekend"],
        "peak_season_rate": base_rate * m["peak"],
        "off_season_rate": base_rate * m["off"],
        "last_minute_discount": base_rate * 0.85,
        "weekly_discount_percent": 10,
        "monthly_discount_percent": 20,
        "estimated_average_rate": base_rate * 1.05,
    }


def seasonal_projections(base_adr: float, base_occupancy: float, market: str = "urban") -> List[Dict]:
    rows = []
    for month, days, mult in zip(MONTHS, DAYS_IN_MONTH, SEASONALITY[market]):
        occupancy = min(base_occupancy * mult, 100.0)
        adr = base_adr * mult
        rows.append({
            "month": month,
            "occupancy": occupancy,
            "adr": adr,
            "revenue": adr * days * occupancy / 100,
            "days": days,
        })
    return rows
