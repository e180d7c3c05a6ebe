"""
canadian_rates.py

Canadian regulatory rates and lookup tables (2024 figures).

- CMHC mortgage default insurance premium bands
- Provincial / municipal land transfer tax brackets
- OSFI B-20 stress test buffer and floor
- Closing cost defaults, BRRRR constants, maintenance budgets
- Federal and provincial personal income tax brackets

Rates are expressed in percent (2.80 means 2.80%). Verify annually.
"""

from datetime import date
from typing import Dict, List, Optional, Tuple


INFINITY = float("inf")

# ----------------------------------------------------------
# CMHC mortgage loan insurance
# ----------------------------------------------------------

# (minimum down payment %, premium % of mortgage), checked top-down
CMHC_PREMIUM_BANDS: List[Tuple[float, float]] = [
    (20.0, 0.00),
    (15.0, 2.80),
    (10.0, 3.10),
    (5.0, 4.00),
]

CMHC_MIN_DOWN_PAYMENT_PERCENT = 5.0
CMHC_MAX_INSURABLE_PRICE = 1_000_000


def get_cmhc_premium_rate(down_payment_percent: float) -> float:
    """
    Premium rate (% of mortgage) for a given down payment percent.
    Anything under 10% falls in the highest band.
    """
    for minimum, rate in CMHC_PREMIUM_BANDS:
        if down_payment_percent >= minimum:
            return rate
    return CMHC_PREMIUM_BANDS[-1][1]


# ----------------------------------------------------------
# Land transfer tax brackets: (upper bound, marginal rate %)
# ----------------------------------------------------------

ONTARIO_LTT_BRACKETS: List[Tuple[float, float]] = [
    (55_000, 0.5),
    (250_000, 1.0),
    (400_000, 1.5),
    (2_000_000, 2.0),
    (INFINITY, 2.5),
]

# Toronto's municipal tax mirrors the provincial schedule
TORONTO_MUNICIPAL_LTT_BRACKETS: List[Tuple[float, float]] = list(ONTARIO_LTT_BRACKETS)

BC_PTT_BRACKETS: List[Tuple[float, float]] = [
    (200_000, 1.0),
    (2_000_000, 2.0),
    (3_000_000, 3.0),
    (INFINITY, 5.0),
]

NOVA_SCOTIA_DTT_BRACKETS: List[Tuple[float, float]] = [
    (30_000, 0.5),
    (60_000, 1.0),
    (INFINITY, 1.5),
]

# Montreal welcome tax used as the Quebec default
QUEBEC_WELCOME_TAX_BRACKETS: List[Tuple[float, float]] = [
    (54_900, 0.5),
    (274_900, 1.0),
    (INFINITY, 1.5),
]

PROVINCIAL_LTT_BRACKETS: Dict[str, List[Tuple[float, float]]] = {
    "ON": ONTARIO_LTT_BRACKETS,
    "BC": BC_PTT_BRACKETS,
    "AB": [],
    "NS": NOVA_SCOTIA_DTT_BRACKETS,
    "QC": QUEBEC_WELCOME_TAX_BRACKETS,
}

SUPPORTED_PROVINCES = tuple(PROVINCIAL_LTT_BRACKETS.keys())

# First-time buyer relief
ONTARIO_FTB_REBATE_MAX = 4_000
TORONTO_FTB_REBATE_MAX = 4_475
NOVA_SCOTIA_FTB_REBATE_MAX = 1_500
BC_FTB_FULL_EXEMPTION_MAX_PRICE = 500_000
BC_FTB_PARTIAL_EXEMPTION_MAX_PRICE = 525_000

ALBERTA_TITLE_REGISTRATION_FEE = 300


def tax_from_brackets(amount: float, brackets: List[Tuple[float, float]]) -> float:
    """
    Marginal tax over a bracket schedule of (upper_bound, rate %).
    """
    tax = 0.0
    lower = 0.0
    for upper, rate in brackets:
        if amount <= lower:
            break
        taxable = min(amount, upper) - lower
        tax += taxable * rate / 100
        lower = upper
    return tax


# ----------------------------------------------------------
# OSFI B-20 stress test
# ----------------------------------------------------------

OSFI_STRESS_TEST_BUFFER = 2.0
OSFI_STRESS_TEST_FLOOR = 5.25

# Ratio limits used when income is known
GDS_LIMIT_PERCENT = 39.0
TDS_LIMIT_PERCENT = 44.0
DEFAULT_MONTHLY_HEATING = 150.0


# ----------------------------------------------------------
# Closing costs and strategy constants
# ----------------------------------------------------------

CLOSING_COSTS: Dict[str, float] = {
    "legal_fees": 1500,
    "inspection": 500,
    "appraisal": 300,
    "title_insurance": 250,
    "home_insurance_first_year": 1200,
}

BRRRR_STRATEGY: Dict[str, float] = {
    "refinance_ltv": 75,
    "holding_period_months": 6,
    "renovation_contingency": 0.15,
}

# % of property value per year, keyed by maximum building age
MAINTENANCE_BUDGETS: List[Tuple[float, float]] = [
    (5, 0.5),
    (15, 1.0),
    (30, 1.5),
    (50, 2.5),
    (INFINITY, 3.5),
]

PROPERTY_MANAGEMENT_FEES: Dict[str, float] = {
    "single_family": 8,
    "multi_family_small": 10,
    "multi_family_large": 6,
    "condo": 10,
}


def get_maintenance_budget(year_built: int, today: Optional[date] = None) -> float:
    """
    Annual maintenance budget (% of value) for a building's age.
    """
    current_year = (today or date.today()).year
    age = current_year - year_built
    for max_age, budget in MAINTENANCE_BUDGETS:
        if age <= max_age:
            return budget
    return MAINTENANCE_BUDGETS[-1][1]


# ----------------------------------------------------------
# Personal income tax brackets (2024)
# ----------------------------------------------------------

FEDERAL_TAX_BRACKETS: List[Tuple[float, float]] = [
    (55_867, 15.0),
    (111_733, 20.5),
    (173_205, 26.0),
    (246_752, 29.0),
    (INFINITY, 33.0),
]

PROVINCIAL_TAX_BRACKETS: Dict[str, List[Tuple[float, float]]] = {
    "ON": [
        (51_446, 5.05),
        (102_894, 9.15),
        (150_000, 11.16),
        (220_000, 12.16),
        (INFINITY, 13.16),
    ],
    "BC": [
        (47_937, 5.06),
        (95_875, 7.7),
        (110_076, 10.5),
        (133_664, 12.29),
        (181_232, 14.7),
        (INFINITY, 16.8),
    ],
    "AB": [
        (148_269, 10.0),
        (177_922, 12.0),
        (237_230, 13.0),
        (355_845, 14.0),
        (INFINITY, 15.0),
    ],
    "QC": [
        (51_780, 14.0),
        (103_545, 19.0),
        (126_000, 24.0),
        (INFINITY, 25.75),
    ],
    "NS": [
        (29_590, 8.79),
        (59_180, 14.95),
        (93_000, 16.67),
        (150_000, 17.5),
        (INFINITY, 21.0),
    ],
}

CAPITAL_GAINS_INCLUSION_RATE = 0.50
# Class 1 (buildings), half-year rule in the first year
CCA_BUILDING_RATE = 0.04
