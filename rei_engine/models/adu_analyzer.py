"""
adu_analyzer.py

ADU conversion profit calculator and funding stack.

For a chosen ADU type (basement suite, garden suite, garage conversion,
attic conversion, laneway house) estimates:
- Construction, permits, design, utility hookups and 15% contingency
- Federal / provincial / municipal funding and the out-of-pocket cost
- Rent, NOI (82% of rent), cash-on-cash, payback and value added
- Timeline, risks and recommendations

Cash-on-cash and payback are None when the funding stack leaves nothing
out of pocket.
"""

from typing import Dict, List, Optional

from rei_engine.models.adu_signal_detector import provincial_adu_info


ADU_TYPE_NAMES = {
    "basement_suite": "Basement Suite",
    "garden_suite": "Garden Suite",
    "garage_conversion": "Garage Conversion",
    "attic_conversion": "Attic Conversion",
    "laneway_house": "Laneway House",
}

# 2024 Canadian market, before provincial adjustment
BASE_COSTS = {
    "basement_suite": {"low": 35_000, "mid": 50_000, "high": 75_000},
    "garden_suite": {"low": 80_000, "mid": 120_000, "high": 180_000},
    "garage_conversion": {"low": 40_000, "mid": 65_000, "high": 95_000},
    "attic_conversion": {"low": 45_000, "mid": 70_000, "high": 100_000},
    "laneway_house": {"low": 150_000, "mid": 220_000, "high": 320_000},
}

BASEMENT_ADJUSTMENTS = {
    "finished": 0.5,
    "partial": 0.75,
    "walkout": 0.9,
    "unfinished": 1.0,
}

PROVINCIAL_COST_MULTIPLIER = {
    "ON": 1.15,
    "BC": 1.25,
    "AB": 1.0,
    "NS": 0.9,
    "QC": 1.05,
}

STANDARD_UNIT_SQFT = 600
MAX_SIZE_MULTIPLIER = 1.5
DIY_DISCOUNT = 0.30
CONTINGENCY_RATE = 0.15
# Property management 8%, maintenance 5%, vacancy 5%
ADU_EXPENSE_RATIO = 0.18
MAX_FUNDED_SHARE = 0.80
VALUE_MULTIPLE_OF_RENT = 15

FEDERAL_SUITE_LOAN = {
    "name": "Canada Secondary Suite Loan",
    "amount": 80_000,
    "interest_rate": 2.0,
    "term": "10 years",
    "eligibility": [
        "Must create a new secondary suite",
        "Property must be your primary residence",
        "Suite must meet building codes",
        "Available through participating lenders",
    ],
    "url": "https://www.cmhc-schl.gc.ca/",
    "provincial": False,
    "forgivable": False,
}

PROVINCIAL_FUNDING = {
    "ON": {
        "name": "Ontario Renovates Program",
        "amount": 25_000,
        "interest_rate": 0,
        "term": "Forgivable after 10 years",
        "eligibility": [
            "Ontario residents only",
            "Income below provincial threshold",
            "Must create affordable rental unit",
            "Rent must be below market rate",
        ],
        "provincial": True,
        "forgivable": True,
    },
    "BC": {
        "name": "BC Secondary Suite Incentive Program",
        "amount": 40_000,
        "interest_rate": 0,
        "term": "Forgivable",
        "eligibility": [
            "BC residents only",
            "Must create new legal suite",
            "Suite must meet BC Building Code",
            "Landlord must commit to affordable rent",
        ],
        "provincial": True,
        "forgivable": True,
    },
    "AB": {
        "name": "Alberta Secondary Suite Grant",
        "amount": 20_000,
        "interest_rate": 0,
        "term": "One-time grant",
        "eligibility": [
            "Select Alberta municipalities only",
            "Must create code-compliant suite",
            "Varies by municipality",
        ],
        "provincial": True,
        "forgivable": True,
    },
}

MUNICIPAL_GRANTS = {
    "toronto": {
        "name": "Toronto Garden Suite Grant",
        "amount": 50_000,
        "interest_rate": 0,
        "term": "Forgivable over 15 years",
        "eligibility": [
            "Toronto properties only",
            "Must build garden suite",
            "Rent to eligible tenant",
            "Affordable rent covenant required",
        ],
        "provincial": False,
        "forgivable": True,
    },
    "ottawa": {
        "name": "Ottawa ADU Incentive",
        "amount": 25_000,
        "interest_rate": 0,
        "term": "Forgivable",
        "eligibility": [
            "Ottawa properties only",
            "Must create new rental unit",
            "Meet affordability requirements",
        ],
        "provincial": False,
        "forgivable": True,
    },
}

BASE_RENTS = {"ON": 1400, "BC": 1600, "AB": 1200, "NS": 1100, "QC": 1000}

CITY_RENT_ADJUSTMENTS = {
    "toronto": 1.5,
    "vancouver": 1.6,
    "calgary": 1.1,
    "edmonton": 1.0,
    "ottawa": 1.3,
    "hamilton": 1.15,
    "st. catharines": 1.0,
    "port colborne": 0.85,
    "niagara falls": 0.95,
    "welland": 0.85,
}

TYPE_RENT_ADJUSTMENTS = {
    "basement_suite": 1.0,
    "garden_suite": 1.2,
    "garage_conversion": 0.9,
    "attic_conversion": 0.85,
    "laneway_house": 1.3,
}

TIMELINES = {
    "laneway_house": {"permits": "3-6 months", "construction": "6-12 months", "total": "12-18 months"},
    "garden_suite": {"permits": "2-4 months", "construction": "4-8 months", "total": "6-12 months"},
    "basement_suite": {"permits": "1-3 months", "construction": "2-4 months", "total": "3-7 months"},
    "garage_conversion": {"permits": "1-3 months", "construction": "3-5 months", "total": "3-7 months"},
    "attic_conversion": {"permits": "1-3 months", "construction": "3-5 months", "total": "3-7 months"},
}


def adu_costs(
    adu_type: str,
    province: str,
    basement_condition: Optional[str] = None,
    target_size: Optional[float] = None,
    diy: bool = False,
) -> Dict[str, int]:
    construction = BASE_COSTS[adu_type]["mid"] * PROVINCIAL_COST_MULTIPLIER.get(province, 1.0)

    if adu_type == "basement_suite" and basement_condition:
        construction *= BASEMENT_ADJUSTMENTS.get(basement_condition, 1.0)

    if target_size and target_size > STANDARD_UNIT_SQFT:
        construction *= min(target_size / STANDARD_UNIT_SQFT, MAX_SIZE_MULTIPLIER)

    construction *= 1 - (DIY_DISCOUNT if diy else 0)

    permits = {"laneway_house": 8_000, "garden_suite": 5_000}.get(adu_type, 2_500)
    design = {"laneway_house": 15_000, "garden_suite": 8_000}.get(adu_type, 3_000)
    utilities = {"basement_suite": 5_000, "garden_suite": 15_000}.get(adu_type, 8_000)
    contingency = construction * CONTINGENCY_RATE

    return {
        "construction": round(construction),
        "permits": permits,
        "design": design,
        "utilities": utilities,
        "contingency": round(contingency),
        "total": round(construction + permits + design + utilities + contingency),
    }


def applicable_funding(province: str, city: str) -> List[Dict]:
    funding = [FEDERAL_SUITE_LOAN]
    if province in PROVINCIAL_FUNDING:
        funding.append(PROVINCIAL_FUNDING[province])
    grant = MUNICIPAL_GRANTS.get((city or "").lower())
    if grant:
        funding.append(grant)
    return funding


def estimate_adu_rent(province: str, city: str, adu_type: str, size_sqft: Optional[float] = None) -> int:
    base = BASE_RENTS.get(province, 1200)
    city_adj = CITY_RENT_ADJUSTMENTS.get((city or "").lower(), 1.0)
    type_adj = TYPE_RENT_ADJUSTMENTS.get(adu_type, 1.0)

    size_adj = 1.0
    if size_sqft:
        if size_sqft >= 800:
            size_adj = 1.15
        elif size_sqft >= 600:
            size_adj = 1.0
        elif size_sqft >= 400:
            size_adj = 0.85
        else:
            size_adj = 0.7

    return round(base * city_adj * type_adj * size_adj)


class AduAnalyzer:
    """
    Example:
        AduAnalyzer(
            purchase_price=650_000,
            current_value=650_000,
            province="ON",
            city="Hamilton",
            adu_type="basement_suite",
            existing_basement="unfinished",
        ).analyze()
    """

    def __init__(
        self,
        purchase_price: float,
        current_value: float,
        province: str,
        city: str,
        adu_type: str,
        existing_basement: Optional[str] = None,
        lot_size_sqft: Optional[float] = None,
        target_unit_size: float = STANDARD_UNIT_SQFT,
        estimated_monthly_rent: Optional[float] = None,
        do_it_yourself: bool = False,
    ):
        if adu_type not in BASE_COSTS:
            raise ValueError(f"Unknown ADU type: {adu_type}")

        self.purchase_price = purchase_price
        self.current_value = current_value
        self.province = province
        self.city = city
        self.adu_type = adu_type
        self.existing_basement = existing_basement
        self.lot_size_sqft = lot_size_sqft
        self.target_unit_size = target_unit_size
        self.estimated_monthly_rent = estimated_monthly_rent
        self.do_it_yourself = do_it_yourself

    def _risks(self, coc: Optional[float], payback: Optional[float]) -> List[str]:
        risks = []
        if self.adu_type == "basement_suite" and self.existing_basement == "none":
            risks.append("No basement - this ADU type is not feasible")
        if self.adu_type == "garden_suite" and (not self.lot_size_sqft or self.lot_size_sqft < 5_000):
            risks.append("Lot may be too small for garden suite - verify with municipality")
        if coc is not None and coc < 10:
            risks.append("ROI below 10% - consider if this is the best use of capital")
        if payback is not None and payback > 10:
            risks.append("Long payback period - consider alternative strategies")
        return risks

    def _recommendations(self, funding: List[Dict]) -> List[str]:
        recs = []
        info = provincial_adu_info(self.province)
        if info:
            recs.extend(f"Check requirement: {r}" for r in info["requirements"])
        if any(f["forgivable"] for f in funding):
            recs.append("Forgivable funding available - apply early, funds are limited")
        if self.do_it_yourself:
            recs.append("DIY can save ~30% but ensure all work meets code")
        recs.append("Get 3 contractor quotes before starting")
        recs.append("Budget 15-20% contingency for unexpected costs")
        return recs

    def analyze(self) -> Dict:
        costs = adu_costs(
            self.adu_type,
            self.province,
            self.existing_basement,
            self.target_unit_size,
            self.do_it_yourself,
        )
        net_cost = costs["total"]
        diy_savings = 0.0
        if self.do_it_yourself:
            contracted = adu_costs(self.adu_type, self.province, self.existing_basement, self.target_unit_size)
            diy_savings = contracted["total"] - net_cost

        funding = applicable_funding(self.province, self.city)
        total_funding = sum(f["amount"] for f in funding)
        out_of_pocket = max(0.0, net_cost - min(total_funding, net_cost * MAX_FUNDED_SHARE))

        rent = self.estimated_monthly_rent or estimate_adu_rent(
            self.province, self.city, self.adu_type, self.target_unit_size
        )
        annual_rent = rent * 12
        noi = annual_rent * (1 - ADU_EXPENSE_RATIO)

        coc = noi / out_of_pocket * 100 if out_of_pocket > 0 else None
        payback = out_of_pocket / noi if out_of_pocket > 0 and noi > 0 else None
        cap_contribution = noi / self.current_value * 100 if self.current_value else 0.0

        value_add = annual_rent * VALUE_MULTIPLE_OF_RENT

        # Versus buying a duplex with 20% down and similar cash flow
        duplex_roi = annual_rent * 0.8 / (self.purchase_price * 0.2) * 100 if self.purchase_price else 0.0
        roi_vs_buying = round(coc - duplex_roi, 1) if coc is not None else None

        return {
            "adu_type": self.adu_type,
            "adu_type_name": ADU_TYPE_NAMES[self.adu_type],
            "feasible": not (self.adu_type == "basement_suite" and self.existing_basement == "none"),
            "estimated_costs": costs,
            "diy_discount": round(diy_savings),
            "net_cost": net_cost,
            "available_funding": funding,
            "total_funding_available": total_funding,
            "out_of_pocket_cost": round(out_of_pocket),
            "estimated_monthly_rent": rent,
            "annual_rent": annual_rent,
            "net_operating_income": round(noi),
            "cash_on_cash_return": round(coc, 1) if coc is not None else None,
            "cap_rate_contribution": round(cap_contribution, 2),
            "payback_period_years": round(payback, 1) if payback is not None else None,
            "value_add": round(value_add),
            "total_property_value_after": round(self.current_value + value_add),
            "roi_vs_buying": roi_vs_buying,
            "estimated_timeline": TIMELINES[self.adu_type],
            "risks": self._risks(coc, payback),
            "recommendations": self._recommendations(funding),
        }


def compare_adu_options(
    purchase_price: float,
    current_value: float,
    province: str,
    city: str,
    existing_basement: Optional[str] = None,
    lot_size_sqft: Optional[float] = None,
) -> List[Dict]:
    """
    Analyze every applicable ADU type, best cash-on-cash first.
    """
    adu_types = ["basement_suite", "garden_suite", "garage_conversion"]
    if lot_size_sqft and lot_size_sqft >= 4_000:
        adu_types.append("laneway_house")
    if existing_basement == "none":
        adu_types.remove("basement_suite")

    results = [
        AduAnalyzer(
            purchase_price=purchase_price,
            current_value=current_value,
            province=province,
            city=city,
            adu_type=t,
            existing_basement=existing_basement,
            lot_size_sqft=lot_size_sqft,
        ).analyze()
        for t in adu_types
    ]

    def coc_key(r: Dict) -> float:
        coc = r["cash_on_cash_return"]
        return float("inf") if coc is None else coc

    return sorted(results, key=coc_key, reverse=True)


def quick_adu_estimate(purchase_price: float, province: str, city: str) -> Dict:
    # Basement suites are the most common conversion
    adu_type = "basement_suite"
    costs = adu_costs(adu_type, province)
    rent = estimate_adu_rent(province, city, adu_type)
    noi = rent * 12 * (1 - ADU_EXPENSE_RATIO)

    return {
        "best_option": adu_type,
        "estimated_cost": costs["total"],
        "estimated_rent": rent,
        "estimated_roi": round(noi / costs["total"] * 100, 1),
    }
