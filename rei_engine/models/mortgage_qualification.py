"""
mortgage_qualification.py

Borrower-side qualification using Canadian debt service ratios.

GDS = (mortgage + property tax + heat + 50% condo fees) / gross monthly income
TDS = (GDS housing costs + other debts) / gross monthly income

Lender tiers:
- A-Lender   GDS <= 39, TDS <= 44, credit >= 680
- B-Lender   GDS <= 45, TDS <= 50, credit >= 600
- Private    anything else
- Unqualified credit below 500
"""

from typing import Dict, Optional

from rei_engine.config import settings
from rei_engine.constants.canadian_rates import (
    DEFAULT_MONTHLY_HEATING,
    GDS_LIMIT_PERCENT,
    TDS_LIMIT_PERCENT,
    get_cmhc_premium_rate,
)
from rei_engine.logging_config import setup_logger
from rei_engine.services.loan_calculator import monthly_payment
from rei_engine.services.stress_test import qualifying_rate


logger = setup_logger(__name__)

A_LENDER_MIN_CREDIT = 680
B_LENDER_MIN_CREDIT = 600
MIN_CREDIT = 500
B_LENDER_MAX_GDS = 45.0
B_LENDER_MAX_TDS = 50.0

# Ratio limits used when sizing the maximum mortgage
BORROWING_LIMITS = {
    "A-Lender": (GDS_LIMIT_PERCENT, TDS_LIMIT_PERCENT),
    "B-Lender": (42.0, 50.0),
    "Private": (50.0, 60.0),
}

MAX_BORROWING_ASSUMPTIONS = {
    "property_tax_rate": 1.1,  # % of value per year
    "heating_cost": DEFAULT_MONTHLY_HEATING,
    "condo_fees": 0.0,
}

BISECTION_STEPS = 50


def lender_for_credit(credit_score: int) -> str:
    if credit_score >= A_LENDER_MIN_CREDIT:
        return "A-Lender"
    if credit_score >= B_LENDER_MIN_CREDIT:
        return "B-Lender"
    return "Private"


def max_borrowing_power(
    gross_annual_income: float,
    other_monthly_debts: float,
    credit_score: int,
    down_payment_available: float = 0.0,
    interest_rate: Optional[float] = None,
    amortization_years: Optional[int] = None,
) -> Dict:
    """
    Largest purchase price (20% down) whose housing costs at the stress
    rate fit under the GDS and TDS limits for the borrower's credit tier.
    When the available down payment is under 20% of that price the
    mortgage is grossed up by the CMHC premium.
    """
    interest_rate = settings.default_interest_rate if interest_rate is None else interest_rate
    amortization_years = amortization_years or settings.default_amortization_years

    monthly_income = gross_annual_income / 12
    stress_rate = qualifying_rate(interest_rate)
    lender = lender_for_credit(credit_score)
    max_gds, max_tds = BORROWING_LIMITS[lender]
    tax_rate = MAX_BORROWING_ASSUMPTIONS["property_tax_rate"]
    heating = MAX_BORROWING_ASSUMPTIONS["heating_cost"]

    max_housing = min(monthly_income * max_gds / 100, monthly_income * max_tds / 100 - other_monthly_debts)

    def housing_cost(price: float) -> float:
        return (
            monthly_payment(price * 0.8, stress_rate, amortization_years)
            + price * tax_rate / 100 / 12
            + heating
        )

    low, high = 0.0, max(0.0, max_housing * 300)
    max_price = 0.0
    for _ in range(BISECTION_STEPS):
        mid = (low + high) / 2
        if housing_cost(mid) <= max_housing:
            low = mid
            max_price = mid
        else:
            high = mid

    max_price = (max_price // 1000) * 1000
    max_mortgage = max_price * 0.8

    payment = monthly_payment(max_mortgage, stress_rate, amortization_years)
    housing_at_max = payment + max_price * tax_rate / 100 / 12 + heating
    gds_at_max = housing_at_max / monthly_income * 100 if monthly_income > 0 else 0.0
    tds_at_max = (housing_at_max + other_monthly_debts) / monthly_income * 100 if monthly_income > 0 else 0.0

    down_pct = 20.0
    if 0 < down_payment_available < max_price * 0.2:
        down_pct = down_payment_available / max_price * 100
        if down_pct >= 5:
            max_mortgage *= 1 + get_cmhc_premium_rate(down_pct) / 100

    return {
        "max_mortgage_amount": round(max_mortgage),
        "max_purchase_price": round(max_price),
        "down_payment_percent": round(down_pct, 1),
        "estimated_monthly_payment": round(payment),
        "stress_test_rate": stress_rate,
        "gds_at_max": round(gds_at_max, 1),
        "tds_at_max": round(tds_at_max, 1),
        "lender_type": lender,
        "assumptions": dict(MAX_BORROWING_ASSUMPTIONS),
    }


class MortgageQualification:
    """
    Example:
        MortgageQualification(
            gross_annual_income=110_000,
            monthly_mortgage_payment=2_600,
            annual_property_tax=4_800,
            other_monthly_debts=400,
            credit_score=720,
        ).calculate()
    """

    def __init__(
        self,
        gross_annual_income: float,
        monthly_mortgage_payment: float,
        annual_property_tax: float = 0.0,
        monthly_heating_cost: float = DEFAULT_MONTHLY_HEATING,
        monthly_condo_fees: float = 0.0,
        other_monthly_debts: float = 0.0,
        credit_score: int = A_LENDER_MIN_CREDIT,
    ):
        self.gross_annual_income = gross_annual_income
        self.monthly_mortgage_payment = monthly_mortgage_payment
        self.annual_property_tax = annual_property_tax
        self.monthly_heating_cost = monthly_heating_cost
        self.monthly_condo_fees = monthly_condo_fees
        self.other_monthly_debts = other_monthly_debts
        self.credit_score = credit_score

    def _housing_costs(self) -> float:
        return (
            self.monthly_mortgage_payment
            + self.annual_property_tax / 12
            + self.monthly_heating_cost
            + self.monthly_condo_fees * 0.5
        )

    def calculate(self) -> Dict:
        monthly_income = self.gross_annual_income / 12
        if monthly_income <= 0:
            return {
                "gds_ratio": 0.0,
                "tds_ratio": 0.0,
                "approval_odds": "None",
                "lender_type": "Unqualified",
                "recommendation": "Income must be greater than zero.",
                "qualification_amount": 0,
                "max_purchase_price": 0,
            }

        housing = self._housing_costs()
        gds = housing / monthly_income * 100
        tds = (housing + self.other_monthly_debts) / monthly_income * 100

        if gds <= GDS_LIMIT_PERCENT and tds <= TDS_LIMIT_PERCENT and self.credit_score >= A_LENDER_MIN_CREDIT:
            lender, odds = "A-Lender", "High"
            recommendation = "Excellent profile. You likely qualify for prime rates with major banks."
        elif gds <= B_LENDER_MAX_GDS and tds <= B_LENDER_MAX_TDS and self.credit_score >= B_LENDER_MIN_CREDIT:
            lender, odds = "B-Lender", "Medium"
            recommendation = (
                "You may need an alternative lender (B-Lender) due to ratios or credit score. "
                "Expect higher rates."
            )
        else:
            lender, odds = "Private", "Low"
            recommendation = (
                "Traditional qualification is unlikely. Consider private lending or reducing debts/increasing income."
            )

        if self.credit_score < MIN_CREDIT:
            lender, odds = "Unqualified", "None"
            recommendation = "Credit score is too low for most mortgages. Focus on credit repair."

        borrowing = max_borrowing_power(
            gross_annual_income=self.gross_annual_income,
            other_monthly_debts=self.other_monthly_debts,
            credit_score=self.credit_score,
        )

        logger.debug(f"Qualification: GDS {gds:.1f}% TDS {tds:.1f}% -> {lender}")

        return {
            "gds_ratio": round(gds, 2),
            "tds_ratio": round(tds, 2),
            "approval_odds": odds,
            "lender_type": lender,
            "recommendation": recommendation,
            "qualification_amount": borrowing["max_mortgage_amount"],
            "max_purchase_price": borrowing["max_purchase_price"],
        }


def check_affordability(
    purchase_price: float,
    gross_annual_income: float,
    other_monthly_debts: float,
    credit_score: int,
    down_payment_percent: float = 20.0,
) -> Dict:
    borrowing = max_borrowing_power(
        gross_annual_income=gross_annual_income,
        other_monthly_debts=other_monthly_debts,
        credit_score=credit_score,
        down_payment_available=purchase_price * down_payment_percent / 100,
    )
    max_price = borrowing["max_purchase_price"]
    can_afford = purchase_price <= max_price
    shortfall = max(0.0, purchase_price - max_price)

    if can_afford:
        if max_price - purchase_price > 50_000:
            message = f"You're well within budget. You could afford up to ${max_price:,.0f}."
        else:
            message = "This property is at the top of your budget. Consider negotiating."
    else:
        message = (
            f"This property exceeds your qualification by ${shortfall:,.0f}. You'd need to increase "
            f"income, reduce debt, or find a less expensive property."
        )

    return {
        "can_afford": can_afford,
        "message": message,
        "max_affordable": max_price,
        "shortfall": shortfall,
    }
