"""
market_data.py

Canadian market benchmarks and operating assumptions.

- Cap rates (single-family vs multi-unit) and rent-to-price ratios by city
- Average days on market
- Renovation cost per square foot by property condition
- Minimum down payment tiers
"""

from typing import Dict


MARKET_BENCHMARKS: Dict[str, Dict] = {
    "cap_rates": {
        "Toronto": {"single_family": 3.5, "multi_unit": 4.5},
        "Vancouver": {"single_family": 2.5, "multi_unit": 3.5},
        "Calgary": {"single_family": 5.5, "multi_unit": 6.5},
        "Edmonton": {"single_family": 5.0, "multi_unit": 6.0},
        "Montreal": {"single_family": 4.5, "multi_unit": 5.5},
        "Ottawa": {"single_family": 4.0, "multi_unit": 5.0},
        "Halifax": {"single_family": 5.5, "multi_unit": 6.0},
        "Winnipeg": {"single_family": 6.0, "multi_unit": 7.0},
        "Hamilton": {"single_family": 4.0, "multi_unit": 5.0},
        "London": {"single_family": 4.5, "multi_unit": 5.5},
        "Kitchener": {"single_family": 4.0, "multi_unit": 5.0},
        "Waterloo": {"single_family": 4.0, "multi_unit": 5.0},
        "Mississauga": {"single_family": 3.5, "multi_unit": 4.5},
        "Brampton": {"single_family": 3.5, "multi_unit": 4.5},
        "Surrey": {"single_family": 2.8, "multi_unit": 3.8},
        "Burnaby": {"single_family": 2.5, "multi_unit": 3.5},
        "Richmond": {"single_family": 2.5, "multi_unit": 3.5},
        "default": {"single_family": 5.0, "multi_unit": 6.0},
    },
    # monthly rent as % of purchase price
    "rent_to_price_ratios": {
        "Toronto": 0.35,
        "Vancouver": 0.30,
        "Calgary": 0.55,
        "Edmonton": 0.50,
        "Montreal": 0.55,
        "Ottawa": 0.45,
        "Halifax": 0.50,
        "Winnipeg": 0.60,
        "Hamilton": 0.40,
        "London": 0.50,
        "Kitchener": 0.45,
        "Waterloo": 0.45,
        "Mississauga": 0.35,
        "Brampton": 0.40,
        "Surrey": 0.35,
        "Burnaby": 0.30,
        "Richmond": 0.30,
        "default": 0.50,
    },
    "average_days_on_market": {
        "Toronto": 15,
        "Vancouver": 20,
        "Calgary": 30,
        "Edmonton": 35,
        "Montreal": 45,
        "Ottawa": 25,
        "Halifax": 30,
        "Winnipeg": 40,
        "Hamilton": 20,
        "London": 25,
        "default": 30,
    },
}


def market_key(city: str) -> str:
    """
    Benchmark row for a city; unknown cities use "default".
    """
    city = (city or "").strip()
    for key in MARKET_BENCHMARKS["cap_rates"]:
        if key.lower() == city.lower():
            return key
    return "default"


RENOVATION_COSTS_PER_SF: Dict[str, Dict[str, float]] = {
    "move_in_ready": {"low": 0, "mid": 0, "high": 0},
    "cosmetic": {"low": 15, "mid": 25, "high": 40},
    "moderate_reno": {"low": 40, "mid": 65, "high": 90},
    "heavy_reno": {"low": 100, "mid": 150, "high": 200},
    "gut_job": {"low": 150, "mid": 200, "high": 300},
}

MIN_DOWN_PAYMENT: Dict[str, float] = {
    "first_500k": 5,
    "above_500k": 10,
    "over_1m": 20,
}
