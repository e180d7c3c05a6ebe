"""
development_analyzer.py

Multi-family development and conversion analysis: what it costs to build
or convert the target unit mix, what the local market pays for those
units, and how far the project sits from investor return targets.

1) Development costs: hard costs, soft costs, timeline, construction
   financing and the stabilized value of the finished building
2) Market rents by unit type: weighted comparables when given,
   rent-per-square-foot estimates otherwise
3) Profitability gaps against targets, with rent / cost / timeline
   sensitivity and three scenarios

Rates (vacancy, rent growth, returns) are in percent.
"""

import math
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from rei_engine.exceptions import InvalidInputError
from rei_engine.logging_config import setup_logger
from rei_engine.models.property_inputs import PropertyInputs, Province
from rei_engine.services.loan_calculator import monthly_payment


logger = setup_logger(__name__)

UnitType = Literal["studio", "1br", "2br", "3br", "4br"]
DevelopmentType = Literal["raw_land", "new_construction", "existing_structure"]
RenovationScope = Literal["cosmetic", "moderate", "heavy", "gut_renovation", "new_build"]

UNIT_TYPES = ["studio", "1br", "2br", "3br", "4br"]

# Construction cost per square foot (CAD) by scope and unit type
CONSTRUCTION_COSTS_PER_SQFT: Dict[str, Dict[str, float]] = {
    "new_build": {"studio": 180, "1br": 175, "2br": 170, "3br": 165, "4br": 160},
    "gut_renovation": {"studio": 140, "1br": 135, "2br": 130, "3br": 125, "4br": 120},
    "heavy": {"studio": 100, "1br": 95, "2br": 90, "3br": 85, "4br": 80},
    "moderate": {"studio": 60, "1br": 55, "2br": 50, "3br": 45, "4br": 40},
    "cosmetic": {"studio": 25, "1br": 22, "2br": 20, "3br": 18, "4br": 15},
}

# Percent of base construction
SITE_PREPARATION_PERCENT = 10
PERMITS_PERCENT = 5
LANDSCAPING_PERCENT = 3

# Percent of total hard costs
SOFT_COST_PERCENTAGES: Dict[str, float] = {
    "architect_engineer": 8,
    "legal_fees": 2,
    "development_management": 5,
    "financing_costs": 3,
    "marketing_leasing": 2,
    "contingency": 15,
}

UTILITY_CONNECTION_PER_UNIT = 8_000
UTILITY_MULTIPLIERS: Dict[str, float] = {
    "raw_land": 1.5,
    "new_construction": 1.2,
    "existing_structure": 0.8,
}

BASE_TIMELINE_MONTHS: Dict[str, int] = {
    "raw_land": 18,
    "new_construction": 12,
    "existing_structure": 8,
}
SCOPE_TIMELINE_MULTIPLIERS: Dict[str, float] = {
    "cosmetic": 0.5,
    "moderate": 0.7,
    "heavy": 1.0,
    "gut_renovation": 1.3,
    "new_build": 1.5,
}
MIN_TIMELINE_MONTHS = 3
MAX_TIMELINE_MONTHS = 36

# Construction loan and take-out financing
DEVELOPMENT_EQUITY_PERCENT = 25
CONSTRUCTION_LOAN_RATE = 7.0
PERMANENT_LTV = 80
STABILIZED_CAP_RATE = 6.0
STABILIZED_EXPENSE_RATIO = 40

# Stabilized operations used for the gap, sensitivity and scenario figures
OPERATING_EXPENSE_RATIOS: Dict[str, float] = {
    "property_tax": 12,
    "insurance": 3,
    "maintenance": 8,
    "property_management": 6,
    "utilities": 4,
    "other": 2,
}
STABILIZED_LTV = 75
STABILIZED_RATE = 5.5
STABILIZED_AMORTIZATION_YEARS = 25

# Average rent per square foot (CAD) when no comparables are given
ESTIMATED_RENT_PER_SQFT: Dict[str, float] = {
    "studio": 2.8,
    "1br": 2.6,
    "2br": 2.4,
    "3br": 2.2,
    "4br": 2.0,
}

GAP_TARGETS: Dict[str, float] = {
    "min_cash_flow_per_unit": 200,  # monthly
    "min_cash_on_cash_return": 12,
    "max_cost_per_sqft": 200,
}

SENSITIVITY_STEPS = [-20, -10, -5, 0, 5, 10, 20]
TIMELINE_STEPS = [-6, -3, -1, 0, 1, 3, 6]

SCOPE_BY_CONDITION: Dict[str, str] = {
    "move_in_ready": "cosmetic",
    "cosmetic": "cosmetic",
    "moderate_reno": "moderate",
    "heavy_reno": "heavy",
    "gut_job": "gut_renovation",
}


class DevelopmentUnit(BaseModel):
    unit_type: UnitType
    square_feet: float = Field(..., gt=0)
    target_rent: float = Field(..., ge=0)


class MarketComparable(BaseModel):
    unit_type: UnitType
    rent: float = Field(..., gt=0)
    distance_km: float = Field(1.0, ge=0)
    age_years: float = Field(10.0, ge=0)
    address: str = ""


class DevelopmentInputs(BaseModel):
    city: str
    province: Province

    development_type: DevelopmentType = "existing_structure"
    renovation_scope: RenovationScope = "moderate"
    target_units: List[DevelopmentUnit] = Field(..., min_length=1)

    # Land or purchase price of the existing building
    land_cost: float = Field(0.0, ge=0)

    # Overrides for the percentage-based defaults
    construction_cost_per_sqft: Optional[float] = Field(None, gt=0)
    site_preparation_cost: Optional[float] = Field(None, ge=0)
    permit_costs: Optional[float] = Field(None, ge=0)
    architect_engineer_fees: Optional[float] = Field(None, ge=0)

    comparable_rents: List[MarketComparable] = []
    market_vacancy_rate: float = Field(5.0, ge=0, le=100)
    rent_growth_projection: float = Field(3.0, ge=-100, le=100)


def unit_type_for_bedrooms(bedrooms: int) -> str:
    return UNIT_TYPES[max(0, min(bedrooms, 4))]


def development_inputs_from_property(inputs: PropertyInputs, **overrides) -> DevelopmentInputs:
    """
    Unit mix from PropertyInputs.units. Units without a floor area share
    the building's square footage evenly.
    """
    if not inputs.units:
        raise InvalidInputError("units are required for development analysis")

    default_square_feet = inputs.square_feet / len(inputs.units)
    values = {
        "city": inputs.city,
        "province": inputs.province,
        "renovation_scope": SCOPE_BY_CONDITION[inputs.property_condition],
        "land_cost": inputs.purchase_price,
        "market_vacancy_rate": inputs.vacancy_rate,
        "target_units": [
            {
                "unit_type": unit_type_for_bedrooms(unit.bedrooms),
                "square_feet": unit.square_feet or default_square_feet,
                "target_rent": unit.rent,
            }
            for unit in inputs.units
        ],
    }
    values.update(overrides)
    return DevelopmentInputs(**values)


def weighted_market_rent(comparables: List[MarketComparable]) -> float:
    """
    Closer and newer comparables count for more.
    """
    total_weight = 0.0
    weighted_sum = 0.0
    for comp in comparables:
        distance_weight = max(0.1, 1 / (1 + comp.distance_km * 0.5))
        age_weight = max(0.3, 1 / (1 + comp.age_years * 0.1))
        weight = distance_weight * age_weight
        weighted_sum += comp.rent * weight
        total_weight += weight
    return weighted_sum / total_weight if total_weight > 0 else 0.0


def competition_level(vacancy_rate: float) -> str:
    # Low vacancy means high demand and little competition for tenants
    if vacancy_rate < 3:
        return "low"
    if vacancy_rate < 7:
        return "moderate"
    return "high"


class DevelopmentAnalyzer:
    """
    Example:
        inputs = DevelopmentInputs(city="Hamilton", province="ON", land_cost=500_000,
                                   target_units=[{"unit_type": "2br", "square_feet": 1000,
                                                  "target_rent": 2400}, ...])
        DevelopmentAnalyzer(inputs).analyze()

    With a base DealAnalyzer result the gap analysis measures the deal's
    own cash flow; without one it uses the stabilized estimate.
    """

    def __init__(self, inputs: DevelopmentInputs, base_analysis: Optional[Dict] = None):
        self.inputs = inputs
        self.base = base_analysis

    @property
    def unit_count(self) -> int:
        return len(self.inputs.target_units)

    @property
    def total_square_feet(self) -> float:
        return sum(unit.square_feet for unit in self.inputs.target_units)

    # -------------------------------------------------------------
    # 1) Development costs
    # -------------------------------------------------------------

    def _cost_per_sqft(self, unit_type: str) -> float:
        if self.inputs.construction_cost_per_sqft:
            return self.inputs.construction_cost_per_sqft
        return CONSTRUCTION_COSTS_PER_SQFT[self.inputs.renovation_scope][unit_type]

    def construction_costs(self) -> Dict[str, float]:
        i = self.inputs
        base = sum(unit.square_feet * self._cost_per_sqft(unit.unit_type) for unit in i.target_units)

        site_preparation = (
            i.site_preparation_cost if i.site_preparation_cost is not None
            else base * SITE_PREPARATION_PERCENT / 100
        )
        permits = i.permit_costs if i.permit_costs is not None else base * PERMITS_PERCENT / 100
        utilities = self.unit_count * UTILITY_CONNECTION_PER_UNIT * UTILITY_MULTIPLIERS[i.development_type]
        landscaping = base * LANDSCAPING_PERCENT / 100

        return {
            "base_construction": base,
            "site_preparation": site_preparation,
            "permits_approvals": permits,
            "utilities_connections": utilities,
            "landscaping": landscaping,
            "total_hard_costs": base + site_preparation + permits + utilities + landscaping,
        }

    def soft_costs(self, hard_costs: float) -> Dict[str, float]:
        costs = {key: hard_costs * pct / 100 for key, pct in SOFT_COST_PERCENTAGES.items()}
        if self.inputs.architect_engineer_fees is not None:
            costs["architect_engineer"] = self.inputs.architect_engineer_fees
        costs["total_soft_costs"] = sum(costs.values())
        return costs

    def timeline_months(self) -> int:
        i = self.inputs
        size = 1 + (self.unit_count - 2) * 0.1
        complexity = 1 + (self.total_square_feet - 2_000) / 10_000
        base_months = BASE_TIMELINE_MONTHS[i.development_type] * SCOPE_TIMELINE_MULTIPLIERS[i.renovation_scope]
        months = math.ceil(base_months * size * complexity)
        return max(MIN_TIMELINE_MONTHS, min(MAX_TIMELINE_MONTHS, months))

    def construction_timeline(self, total_months: int) -> Dict:
        planning = math.ceil(total_months * 0.2)
        construction = math.ceil(total_months * 0.7)
        leasing = math.ceil(total_months * 0.1)
        complete = planning + construction

        return {
            "planning_phase_months": planning,
            "construction_phase_months": construction,
            "leasing_phase_months": leasing,
            "total_timeline_months": total_months,
            "key_milestones": {
                "permits_approved": planning,
                "construction_start": planning,
                "construction_complete": complete,
                "first_tenant": complete - 1,
                "stabilized_occupancy": complete + 3,
            },
        }

    def stabilized_value(self) -> float:
        """
        Finished building valued on its rent roll at a new-construction cap rate.
        """
        annual_rent = sum(unit.target_rent for unit in self.inputs.target_units) * 12
        effective = annual_rent * (1 - self.inputs.market_vacancy_rate / 100)
        noi = effective * (1 - STABILIZED_EXPENSE_RATIO / 100)
        return noi / (STABILIZED_CAP_RATE / 100)

    def financing_needs(self, development_cost: float, months: int) -> Dict[str, float]:
        total_project_cost = development_cost + self.inputs.land_cost
        equity = total_project_cost * DEVELOPMENT_EQUITY_PERCENT / 100
        loan = total_project_cost - equity
        completed_value = self.stabilized_value()

        return {
            "total_project_cost": total_project_cost,
            "equity_required": equity,
            "construction_loan_amount": loan,
            "interest_during_construction": loan * CONSTRUCTION_LOAN_RATE / 100 / 12 * months,
            "estimated_completed_value": completed_value,
            "permanent_financing": completed_value * PERMANENT_LTV / 100,
        }

    def development_costs(self) -> Dict:
        hard = self.construction_costs()
        soft = self.soft_costs(hard["total_hard_costs"])
        total = hard["total_hard_costs"] + soft["total_soft_costs"]
        months = self.timeline_months()

        return {
            "construction_costs": hard,
            "soft_costs": soft,
            "total_development_cost": total,
            "cost_per_unit": total / self.unit_count,
            "cost_per_sqft": total / self.total_square_feet,
            "timeline_months": months,
            "construction_timeline": self.construction_timeline(months),
            "financing_needs": self.financing_needs(total, months),
        }

    # -------------------------------------------------------------
    # 2) Market rents
    # -------------------------------------------------------------

    def _rent_analysis(self, unit_type: str, units: List[DevelopmentUnit]) -> Dict:
        square_feet = sum(u.square_feet for u in units) / len(units)
        target_rent = sum(u.target_rent for u in units) / len(units)
        comparables = [c for c in self.inputs.comparable_rents if c.unit_type == unit_type]

        if comparables:
            rents = sorted(c.rent for c in comparables)
            market_rent = weighted_market_rent(comparables)
            rent_range = {"low": rents[0], "average": sum(rents) / len(rents), "high": rents[-1]}
            market_rent_per_sqft = market_rent / square_feet
        else:
            market_rent_per_sqft = ESTIMATED_RENT_PER_SQFT[unit_type]
            market_rent = market_rent_per_sqft * square_feet
            rent_range = {"low": market_rent * 0.85, "average": market_rent, "high": market_rent * 1.15}

        return {
            "unit_count": len(units),
            "average_square_feet": square_feet,
            "target_rent": target_rent,
            "market_rent": market_rent,
            "market_rent_range": rent_range,
            "comparables_used": len(comparables),
            "rent_premium_discount": (target_rent - market_rent) / market_rent * 100 if market_rent > 0 else 0.0,
            "rent_per_sqft": target_rent / square_feet,
            "market_rent_per_sqft": market_rent_per_sqft,
        }

    def market_analysis(self) -> Dict:
        i = self.inputs
        by_type: Dict[str, List[DevelopmentUnit]] = {}
        for unit in i.target_units:
            by_type.setdefault(unit.unit_type, []).append(unit)

        rents = {unit_type: self._rent_analysis(unit_type, units) for unit_type, units in by_type.items()}

        # Rent competitiveness 30%, vacancy 25%, rent growth 20%
        avg_premium = sum(abs(r["rent_premium_discount"]) for r in rents.values()) / len(rents)
        rent_score = max(0.0, 10 - avg_premium / 5)
        vacancy_score = max(0.0, 10 - i.market_vacancy_rate)
        growth_score = max(0.0, min(10.0, i.rent_growth_projection * 2))
        market_score = (rent_score * 0.3 + vacancy_score * 0.25 + growth_score * 0.2) / 0.75

        return {
            "rent_analysis_by_unit": rents,
            "overall_market_score": round(market_score, 1),
            "demand_indicators": {
                "vacancy_rate": i.market_vacancy_rate,
                "rent_growth_trend": i.rent_growth_projection,
                "competition_level": competition_level(i.market_vacancy_rate),
            },
        }

    # -------------------------------------------------------------
    # 3) Profitability gaps
    # -------------------------------------------------------------

    def _gross_income(self, rent_factor: float = 1.0) -> float:
        return sum(unit.target_rent for unit in self.inputs.target_units) * 12 * rent_factor

    def stabilized_cash_flow(self, total_project_cost: float, rent_factor: float = 1.0) -> float:
        """
        Annual cash flow once leased: rent less vacancy, operating costs as a
        share of gross rent, and a conventional mortgage on the project cost.
        """
        gross = self._gross_income(rent_factor)
        effective = gross * (1 - self.inputs.market_vacancy_rate / 100)
        operating = gross * sum(OPERATING_EXPENSE_RATIOS.values()) / 100
        payment = monthly_payment(
            total_project_cost * STABILIZED_LTV / 100, STABILIZED_RATE, STABILIZED_AMORTIZATION_YEARS
        )
        return effective - operating - payment * 12

    @staticmethod
    def _gap(current: float, target: float, base: float) -> Dict[str, float]:
        gap = target - current
        return {
            "current_value": current,
            "target_value": target,
            "gap_amount": gap,
            "gap_percentage": gap / abs(base) * 100 if base != 0 else 100.0,
        }

    def profitability_gaps(self, costs: Dict, market: Dict) -> Dict:
        total_investment = costs["financing_needs"]["total_project_cost"]
        if self.base is not None:
            cash_flow = self.base["cash_flow"]["annual_net"]
        else:
            cash_flow = self.stabilized_cash_flow(total_investment)

        target_cash_flow = self.unit_count * GAP_TARGETS["min_cash_flow_per_unit"] * 12
        cash_flow_gap = self._gap(cash_flow, target_cash_flow, cash_flow)

        roi = cash_flow / total_investment * 100 if total_investment > 0 else 0.0
        roi_gap = self._gap(roi, GAP_TARGETS["min_cash_on_cash_return"], roi)

        # Rent gap is market less target: negative means rents sit above market
        current_rent = sum(u.target_rent for u in self.inputs.target_units) / self.unit_count
        rents = market["rent_analysis_by_unit"].values()
        market_rent = sum(r["market_rent_range"]["average"] for r in rents) / len(rents)
        rent_gap = {
            "current_value": current_rent,
            "target_value": market_rent,
            "gap_amount": market_rent - current_rent,
            "gap_percentage": (market_rent - current_rent) / current_rent * 100 if current_rent > 0 else 0.0,
        }

        max_cost = GAP_TARGETS["max_cost_per_sqft"]
        cost_gap = {
            "current_value": costs["cost_per_sqft"],
            "target_value": max_cost,
            "gap_amount": costs["cost_per_sqft"] - max_cost,
            "gap_percentage": (costs["cost_per_sqft"] - max_cost) / max_cost * 100,
        }

        gaps = {
            "annual_cash_flow": cash_flow,
            "total_investment": total_investment,
            "cash_flow_gap": cash_flow_gap,
            "roi_gap": roi_gap,
            "rent_gap": rent_gap,
            "cost_gap": cost_gap,
        }
        gaps["recommendations"] = gap_recommendations(gaps)
        return gaps

    def sensitivity(self, costs: Dict) -> Dict[str, List[Dict[str, float]]]:
        total = costs["financing_needs"]["total_project_cost"]
        base_cash_flow = self.stabilized_cash_flow(total)
        base_roi = base_cash_flow / total * 100
        loan = costs["financing_needs"]["construction_loan_amount"]
        months = costs["timeline_months"]

        def construction_interest(m: int) -> float:
            return loan * CONSTRUCTION_LOAN_RATE / 100 / 12 * max(0, m)

        return {
            "rent_sensitivity": [
                {"rent_change": pct,
                 "cash_flow_impact": self.stabilized_cash_flow(total, 1 + pct / 100) - base_cash_flow}
                for pct in SENSITIVITY_STEPS
            ],
            "cost_sensitivity": [
                {"cost_change": pct, "roi_impact": base_cash_flow / (total * (1 + pct / 100)) * 100 - base_roi}
                for pct in SENSITIVITY_STEPS
            ],
            "timeline_sensitivity": [
                {"timeline_change": step,
                 "financing_impact": construction_interest(months + step) - construction_interest(months)}
                for step in TIMELINE_STEPS
            ],
        }

    def scenarios(self, costs: Dict) -> Dict[str, Dict]:
        total = costs["financing_needs"]["total_project_cost"]
        cases = {
            "conservative": ("Higher costs, lower rents, longer timeline", 0.95, 1.10),
            "moderate": ("Base case assumptions", 1.0, 1.0),
            "optimistic": ("Lower costs, higher rents, faster timeline", 1.05, 0.95),
        }

        result = {}
        for name, (description, rent_factor, cost_factor) in cases.items():
            cost = total * cost_factor
            cash_flow = self.stabilized_cash_flow(cost, rent_factor)
            result[name] = {"description": description, "cash_flow": cash_flow, "roi": cash_flow / cost * 100}
        return result

    # -------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------

    def warnings(self, costs: Dict, market: Dict) -> List[str]:
        warnings: List[str] = []
        demand = market["demand_indicators"]

        if costs["timeline_months"] > 18:
            warnings.append("Extended construction timeline increases carrying costs and market risk")
        if costs["cost_per_sqft"] > 250:
            warnings.append("High construction cost per sqft - consider value engineering")
        if demand["vacancy_rate"] > 8:
            warnings.append("High market vacancy rate may impact leasing timeline")
        if demand["competition_level"] == "high":
            warnings.append("High competition - ensure strong differentiation strategy")

        rents = market["rent_analysis_by_unit"].values()
        avg_premium = sum(r["rent_premium_discount"] for r in rents) / len(rents)
        if avg_premium > 15:
            warnings.append("Significant rent premium to market - validate demand at target rents")

        return warnings

    def analyze(self) -> Dict:
        i = self.inputs
        logger.debug(
            f"Development analysis: {self.unit_count} units, {i.development_type}/{i.renovation_scope} in {i.city}"
        )

        costs = self.development_costs()
        market = self.market_analysis()

        return {
            "unit_count": self.unit_count,
            "total_square_feet": self.total_square_feet,
            "development_analysis": costs,
            "market_analysis": market,
            "profitability_gaps": self.profitability_gaps(costs, market),
            "sensitivity": self.sensitivity(costs),
            "scenarios": self.scenarios(costs),
            "warnings": self.warnings(costs, market),
        }


def gap_recommendations(gaps: Dict) -> List[str]:
    cash_flow_gap = gaps["cash_flow_gap"]
    roi_gap = gaps["roi_gap"]
    rent_gap = gaps["rent_gap"]
    cost_gap = gaps["cost_gap"]
    recs: List[str] = []

    if cash_flow_gap["gap_amount"] > 0:
        recs.append(f"Increase monthly cash flow by ${cash_flow_gap['gap_amount'] / 12:,.0f} to meet targets")
        if rent_gap["gap_amount"] > 0:
            recs.append(f"Consider raising rents - currently {rent_gap['gap_percentage']:.1f}% below market")
        if cost_gap["gap_amount"] > 0:
            recs.append(f"Reduce construction costs by ${cost_gap['gap_amount']:,.0f}/sqft to improve returns")

    if roi_gap["gap_amount"] > 0:
        recs.append(f"Need {roi_gap['gap_amount']:.1f}% higher cash-on-cash return")
        if cost_gap["gap_amount"] > 0:
            recs.append("Value engineering could reduce costs and improve ROI")
        recs.append("Consider alternative financing structures to reduce equity requirements")

    if rent_gap["gap_percentage"] > 5:
        recs.append(f"Rents are {rent_gap['gap_percentage']:.1f}% below market - significant upside potential")
    elif rent_gap["gap_percentage"] < -10:
        recs.append(f"Rents are {abs(rent_gap['gap_percentage']):.1f}% above market - may face leasing challenges")

    if cost_gap["gap_amount"] > 50:
        recs.append("Significant cost reduction needed - consider alternative construction methods")
    elif cost_gap["gap_amount"] > 20:
        recs.append("Moderate cost optimization opportunities available")

    if cash_flow_gap["gap_amount"] > 0 and roi_gap["gap_amount"] > 0:
        recs.append("Consider phased development to reduce initial capital requirements")
        recs.append("Explore joint venture partnerships to share costs and risks")

    return recs
