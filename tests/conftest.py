"""
Shared fixtures.

The reference deal is a Hamilton single-family rental worked out by hand:

    price 500,000, 20% down, 5% over 25 years -> mortgage 400,000,
    payment ~2,338.36/mo; rent 3,500 with 5% vacancy; property tax 4,800,
    insurance 1,200, maintenance 5% of rent -> net ~311.64/mo,
    NOI 31,800, Ontario LTT 6,475, cash needed 109,025.
"""

from datetime import date

import pytest

from rei_engine.models.deal_analyzer import DealAnalyzer
from rei_engine.models.property_inputs import PropertyInputs


TODAY = date(2026, 1, 1)


@pytest.fixture
def hamilton_property():
    return {
        "address": "12 King St",
        "city": "Hamilton",
        "province": "ON",
        "property_type": "single_family",
        "year_built": 1990,
        "purchase_price": 500_000,
        "down_payment_percent": 20,
        "interest_rate": 5.0,
        "amortization_years": 25,
        "monthly_rent": 3_500,
        "vacancy_rate": 5,
        "property_tax_annual": 4_800,
        "insurance_annual": 1_200,
        "property_management_percent": 0,
        "maintenance_percent": 5,
    }


@pytest.fixture
def toronto_property():
    """Expensive, thin-rent deal that loses money every month."""
    return {
        "address": "88 Queen St W",
        "city": "Toronto",
        "province": "ON",
        "purchase_price": 900_000,
        "down_payment_percent": 20,
        "interest_rate": 5.0,
        "amortization_years": 25,
        "monthly_rent": 3_000,
        "vacancy_rate": 5,
        "property_tax_annual": 6_000,
        "insurance_annual": 1_500,
        "maintenance_percent": 5,
    }


@pytest.fixture
def inputs(hamilton_property):
    return PropertyInputs(**hamilton_property)


@pytest.fixture
def analysis(inputs):
    return DealAnalyzer(inputs).analyze()


@pytest.fixture
def negative_inputs(toronto_property):
    return PropertyInputs(**toronto_property)


@pytest.fixture
def negative_analysis(negative_inputs):
    return DealAnalyzer(negative_inputs).analyze()


class FakeResponse:
    def __init__(self, text: str = "", status_code: int = 200):
        self.text = text
        self.status_code = status_code


class FakeSession:
    """
    Stands in for requests.Session in listing tests. Returns a fixed
    response, or raises `error` when one is given.
    """

    def __init__(self, response: FakeResponse = None, error: Exception = None):
        self.response = response or FakeResponse()
        self.error = error
        self.calls = []

    def get(self, url, headers=None, timeout=None):
        self.calls.append({"url": url, "headers": headers, "timeout": timeout})
        if self.error is not None:
            raise self.error
        return self.response
