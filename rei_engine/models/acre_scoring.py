"""
acre_scoring.py

ACRE (Authentic Canadian Real Estate) investment score, 0-100.

Weights:
- Cash flow        40  (cash flow tier + rent-to-price bonus)
- Location         30  (grade A/B/C/D)
- Appreciation     20  (High/Medium/Low)
- Risk             10  (10 - risk score, risk 0-10 where lower is better)

AcreScoring works from explicit inputs; `from_deal` estimates location,
appreciation and risk from a DealAnalyzer result.
"""

from typing import Dict, List, Optional, Tuple


LOCATION_POINTS = {
    "A": (30, "Prime location with strong fundamentals"),
    "B": (20, "Good location with solid growth potential"),
    "C": (10, "Average location, monitor for changes"),
    "D": (0, "Challenging location, higher risk"),
}

APPRECIATION_POINTS = {
    "High": (20, "Strong appreciation expected based on market trends"),
    "Medium": (10, "Moderate appreciation inline with inflation"),
    "Low": (0, "Limited appreciation potential, focus on cash flow"),
}

ACRE_GRADES: List[Tuple[float, str]] = [
    (90, "A+"),
    (80, "A"),
    (75, "B+"),
    (70, "B"),
    (60, "C"),
    (50, "D"),
]

MARKET_INSIGHTS: Dict[str, Dict] = {
    "ON": {
        "default_location_grade": "B",
        "appreciation_potential": "Medium",
        "hotspots": [
            "Ottawa", "Hamilton", "Kitchener", "London", "St. Catharines",
            "Niagara Falls", "Welland", "Port Colborne",
        ],
    },
    "BC": {
        "default_location_grade": "B",
        "appreciation_potential": "Medium",
        "hotspots": ["Victoria", "Kelowna", "Nanaimo", "Kamloops"],
    },
    "AB": {
        "default_location_grade": "B",
        "appreciation_potential": "High",
        "hotspots": ["Calgary", "Edmonton", "Red Deer", "Lethbridge"],
    },
    "NS": {
        "default_location_grade": "C",
        "appreciation_potential": "Medium",
        "hotspots": ["Halifax", "Dartmouth"],
    },
    "QC": {
        "default_location_grade": "B",
        "appreciation_potential": "Medium",
        "hotspots": ["Montreal", "Quebec City", "Gatineau", "Sherbrooke"],
    },
}


def acre_grade(score: float) -> str:
    for threshold, grade in ACRE_GRADES:
        if score >= threshold:
            return grade
    return "F"


def is_hotspot(province: str, city: str) -> bool:
    insight = MARKET_INSIGHTS.get(province)
    if not insight:
        return False
    city_lower = (city or "").lower()
    return any(h.lower() in city_lower for h in insight["hotspots"])


class AcreScoring:
    """
    Example:
        AcreScoring(
            purchase_price=450_000,
            monthly_rent=3_200,
            monthly_cash_flow=350,
            location_grade="B",
            appreciation_potential="Medium",
            risk_score=3,
        ).calculate()
    """

    def __init__(
        self,
        purchase_price: float,
        monthly_rent: float,
        monthly_cash_flow: float,
        location_grade: str = "B",
        appreciation_potential: str = "Medium",
        risk_score: float = 5,
        vacancy_rate: Optional[float] = None,
    ):
        if location_grade not in LOCATION_POINTS:
            raise ValueError(f"location_grade must be one of {list(LOCATION_POINTS)}")
        if appreciation_potential not in APPRECIATION_POINTS:
            raise ValueError(f"appreciation_potential must be one of {list(APPRECIATION_POINTS)}")

        self.purchase_price = purchase_price
        self.monthly_rent = monthly_rent
        self.monthly_cash_flow = monthly_cash_flow
        self.location_grade = location_grade
        self.appreciation_potential = appreciation_potential
        self.risk_score = risk_score
        self.vacancy_rate = vacancy_rate

    # -------------------------------------------------------------
    # Components
    # -------------------------------------------------------------

    def _rent_to_price(self) -> float:
        if self.purchase_price <= 0:
            return 0.0
        return self.monthly_rent / self.purchase_price * 100

    def _score_cash_flow(self) -> Tuple[float, str]:
        cf = self.monthly_cash_flow
        if cf > 500:
            score, category = 25, "Excellent - Strong positive cash flow"
        elif cf > 200:
            score, category = 20, "Good - Healthy positive cash flow"
        elif cf > 0:
            score, category = 15, "Marginal - Barely positive"
        elif cf > -200:
            score, category = 5, "Warning - Negative but manageable"
        else:
            score, category = 0, "Poor - Significant negative cash flow"

        rtp = self._rent_to_price()
        if rtp >= 1.0:
            score += 15
        elif rtp >= 0.8:
            score += 10
        elif rtp >= 0.6:
            score += 5

        return min(score, 40), category

    def _score_risk(self) -> Tuple[float, str]:
        r = self.risk_score
        if r <= 3:
            rationale = "Low risk profile - well-positioned investment"
        elif r <= 6:
            rationale = "Moderate risk - some factors to monitor"
        else:
            rationale = "Higher risk - requires careful management"
        return max(0, 10 - r), rationale

    def _recommendation(self, total: float) -> str:
        if total >= 75:
            return "STRONG BUY - This property meets all key investment criteria."
        if total >= 60:
            return "CONSIDER - Good potential, but review the weak points."
        if total >= 50:
            return "CAUTION - Marginal deal, requires negotiation or value-add strategy."
        return "PASS - This property does not meet investment criteria."

    # -------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------

    def calculate(self) -> Dict:
        cash_flow_score, cash_flow_category = self._score_cash_flow()
        location_score, location_rationale = LOCATION_POINTS[self.location_grade]
        appreciation_score, appreciation_rationale = APPRECIATION_POINTS[self.appreciation_potential]
        risk_score, risk_rationale = self._score_risk()

        total = cash_flow_score + location_score + appreciation_score + risk_score

        return {
            "total_score": total,
            "grade": acre_grade(total),
            "recommendation": self._recommendation(total),
            "breakdown": {
                "cash_flow_score": cash_flow_score,
                "location_score": location_score,
                "appreciation_score": appreciation_score,
                "risk_score": risk_score,
            },
            "details": {
                "rent_to_price_ratio": round(self._rent_to_price(), 3),
                "cash_flow_category": cash_flow_category,
                "location_rationale": location_rationale,
                "appreciation_rationale": appreciation_rationale,
                "risk_rationale": risk_rationale,
            },
            "inputs": {
                "location_grade": self.location_grade,
                "appreciation_potential": self.appreciation_potential,
                "risk_score": self.risk_score,
            },
        }

    # -------------------------------------------------------------
    # Derived from a deal analysis
    # -------------------------------------------------------------

    @classmethod
    def from_deal(
        cls,
        analysis: Dict,
        location_grade: Optional[str] = None,
        appreciation_potential: Optional[str] = None,
    ) -> "AcreScoring":
        prop = analysis["property"]
        flags = analysis["flags"]
        metrics = analysis["metrics"]
        insight = MARKET_INSIGHTS.get(prop["province"], {})

        risk = 0
        if flags.get("negative_cash_flow"):
            risk += 3
        if flags.get("low_dscr"):
            risk += 2
        if flags.get("below_market_cap_rate"):
            risk += 1
        if flags.get("high_ltv"):
            risk += 2
        if flags.get("fails_stress_test"):
            risk += 2
        risk += min(len(analysis.get("warnings", [])), 3)
        risk = min(risk, 10)

        if location_grade is None:
            location_grade = insight.get("default_location_grade", "B")
            if is_hotspot(prop["province"], prop["city"]):
                location_grade = {"C": "B", "B": "A"}.get(location_grade, location_grade)
            # High cap rate markets read as strong, expensive markets as weaker
            if metrics["cap_rate"] > 7:
                location_grade = "A"
            if metrics["cap_rate"] < 4:
                location_grade = "B" if location_grade == "A" else "C"

        if appreciation_potential is None:
            appreciation_potential = insight.get("appreciation_potential", "Medium")
            if prop.get("property_condition") in ("heavy_reno", "gut_job"):
                appreciation_potential = "High"
            if prop.get("strategy") == "brrrr":
                appreciation_potential = "High"

        return cls(
            purchase_price=prop["purchase_price"],
            monthly_rent=prop["monthly_rent"],
            monthly_cash_flow=analysis["cash_flow"]["monthly_net"],
            location_grade=location_grade,
            appreciation_potential=appreciation_potential,
            risk_score=risk,
            vacancy_rate=prop.get("vacancy_rate"),
        )


def quick_acre_assessment(purchase_price: float, monthly_rent: float, province: str, city: str) -> Dict:
    """
    Rough screen without a full deal analysis.
    Assumes 60% of rent goes to expenses and ~0.5% of price/month to the mortgage.
    """
    rtp = monthly_rent / purchase_price * 100 if purchase_price > 0 else 0.0
    score = 50

    estimated_cash_flow = monthly_rent * 0.4 - purchase_price * 0.005
    if estimated_cash_flow > 300:
        score += 20
    elif estimated_cash_flow > 0:
        score += 10
    else:
        score -= 10

    if rtp >= 0.8:
        score += 15
    elif rtp >= 0.6:
        score += 5

    if is_hotspot(province, city):
        score += 10

    score = max(0, min(100, score))

    if score >= 70:
        verdict = "Worth analyzing in detail"
    elif score >= 50:
        verdict = "Marginal - needs negotiation"
    else:
        verdict = "Likely a pass"

    return {
        "score": score,
        "grade": acre_grade(score),
        "verdict": verdict,
        "estimated_cash_flow": estimated_cash_flow,
    }
