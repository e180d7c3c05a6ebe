"""
cmhc_insurance.py

CMHC mortgage default insurance.

- Required when the down payment is under 20%
- Premium is a percentage of the mortgage, by down payment band
- Not available on purchases above $1M (20% down required)
- Minimum 5% down
"""

from typing import Dict

from rei_engine.constants.canadian_rates import (
    CMHC_MAX_INSURABLE_PRICE,
    CMHC_MIN_DOWN_PAYMENT_PERCENT,
    get_cmhc_premium_rate,
)
from rei_engine.constants.market_data import MIN_DOWN_PAYMENT
from rei_engine.exceptions import InsufficientDownPaymentError


class CMHCInsurance:
    """
    Example:
        CMHCInsurance(500_000, 10).calculate()
        -> premium 13,950 (3.10% of 450,000), total mortgage 463,950
    """

    def __init__(self, purchase_price: float, down_payment_percent: float):
        self.purchase_price = purchase_price
        self.down_payment_percent = down_payment_percent

    def _base_mortgage(self) -> float:
        return self.purchase_price * (1 - self.down_payment_percent / 100)

    def calculate(self) -> Dict:
        price = self.purchase_price
        dp = self.down_payment_percent
        mortgage = self._base_mortgage()

        if price > CMHC_MAX_INSURABLE_PRICE and dp < 20:
            return {
                "premium": 0.0,
                "premium_rate": 0.0,
                "insurance_required": False,
                "insurance_available": False,
                "mortgage_amount": mortgage,
                "total_mortgage_with_insurance": mortgage,
                "message": "Properties over $1M require 20% down - CMHC insurance not available",
            }

        if dp >= 20:
            return {
                "premium": 0.0,
                "premium_rate": 0.0,
                "insurance_required": False,
                "insurance_available": True,
                "mortgage_amount": mortgage,
                "total_mortgage_with_insurance": mortgage,
                "message": "No CMHC insurance required with 20%+ down payment",
            }

        if dp < CMHC_MIN_DOWN_PAYMENT_PERCENT:
            raise InsufficientDownPaymentError("Minimum 5% down payment required")

        premium_rate = get_cmhc_premium_rate(dp)
        premium = mortgage * premium_rate / 100

        return {
            "premium": premium,
            "premium_rate": premium_rate,
            "insurance_required": True,
            "insurance_available": True,
            "mortgage_amount": mortgage,
            "total_mortgage_with_insurance": mortgage + premium,
            "message": f"CMHC insurance premium: {premium_rate:.2f}% of mortgage amount",
        }


def validate_down_payment(purchase_price: float, down_payment_percent: float) -> Dict:
    """
    Federal minimum down payment:
    - up to $500K: 5%
    - $500K to $1M: 5% of the first $500K + 10% of the remainder
    - over $1M: 20%
    """
    if purchase_price <= 500_000:
        minimum_required = MIN_DOWN_PAYMENT["first_500k"]
    elif purchase_price <= CMHC_MAX_INSURABLE_PRICE:
        first_portion = 500_000 * MIN_DOWN_PAYMENT["first_500k"] / 100
        second_portion = (purchase_price - 500_000) * MIN_DOWN_PAYMENT["above_500k"] / 100
        minimum_required = (first_portion + second_portion) / purchase_price * 100
    else:
        minimum_required = MIN_DOWN_PAYMENT["over_1m"]

    valid = down_payment_percent >= minimum_required
    message = (
        "Down payment meets requirements"
        if valid
        else f"Minimum {minimum_required:.1f}% down payment required"
    )

    return {
        "valid": valid,
        "minimum_required": minimum_required,
        "message": message,
    }
