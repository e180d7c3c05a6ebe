"""
risk_analyzer.py

Investment risk profile for an analyzed deal, 0-100 (higher = more risk).

Factors fall into four categories:
- Financial:    cash flow margin, leverage (LTV), DSCR
- Market:       vacancy, property age, valuation (GRM)
- Operational:  property management, maintenance reserve
- Liquidity:    total cash required

Overall = 0.4 financial + 0.3 market + 0.2 operational + 0.1 liquidity
"""

from datetime import date
from typing import Dict, List, Optional

from rei_engine.models.property_inputs import PropertyInputs


FINANCIAL_CATEGORIES = ["Cash Flow Risk", "Leverage Risk", "Debt Service Coverage Risk"]
MARKET_CATEGORIES = ["Vacancy Risk", "Property Age Risk", "Valuation Risk"]
OPERATIONAL_CATEGORIES = ["Property Management Risk", "Maintenance Risk"]

CATEGORY_WEIGHTS = {
    "financial": 0.4,
    "market": 0.3,
    "operational": 0.2,
    "liquidity": 0.1,
}

OVERALL_RECOMMENDATIONS = {
    "Low": (
        "This is a relatively low-risk investment suitable for most investor profiles. "
        "The deal metrics are solid with manageable risks."
    ),
    "Medium": (
        "This deal carries moderate risk. Suitable for experienced investors who can actively "
        "manage the identified risk factors. Consider mitigation strategies carefully."
    ),
    "High": (
        "HIGH RISK: This deal has significant risk factors that require careful consideration. "
        "Only suitable for experienced investors with strong reserves and risk management "
        "capabilities. Seriously consider the mitigation strategies or walking away."
    ),
    "Critical": (
        "CRITICAL RISK: This investment carries critical risks that could result in significant "
        "losses. Strongly recommend passing on this deal unless you can negotiate major "
        "improvements to reduce risk to acceptable levels."
    ),
}


def factor_level(score: float) -> str:
    if score >= 75:
        return "Critical"
    if score >= 50:
        return "High"
    if score >= 25:
        return "Medium"
    return "Low"


def overall_level(score: float) -> str:
    if score >= 70:
        return "Critical"
    if score >= 50:
        return "High"
    if score >= 30:
        return "Medium"
    return "Low"


def _factor(category: str, score: float, description: str, impact: str, mitigation: List[str]) -> Dict:
    return {
        "category": category,
        "risk_level": factor_level(score),
        "score": score,
        "description": description,
        "impact": impact,
        "mitigation_strategies": mitigation,
    }


def _average(factors: List[Dict], categories: List[str]) -> float:
    scores = [f["score"] for f in factors if f["category"] in categories]
    return sum(scores) / len(scores) if scores else 0.0


class RiskAnalyzer:
    """
    Inputs:
        inputs: PropertyInputs for the deal
        analysis: dict from DealAnalyzer.analyze()

    Output:
        overall score and level, per-factor detail, category scores,
        stress scenarios and investor suitability.
    """

    def __init__(self, inputs: PropertyInputs, analysis: Dict, today: Optional[date] = None):
        self.inputs = inputs
        self.analysis = analysis
        self.today = today or date.today()

    # -------------------------------------------------------------
    # Financial
    # -------------------------------------------------------------

    def _cash_flow_risk(self) -> Dict:
        monthly_net = self.analysis["cash_flow"]["monthly_net"]
        rent = self.analysis["revenue"]["gross_monthly_rent"]
        margin = abs(monthly_net) / rent * 100 if rent > 0 else 0.0

        if monthly_net < 0:
            score = 80 + min(margin, 20)
            description = f"Negative cash flow of ${abs(monthly_net):,.0f}/month"
        else:
            if margin < 10:
                score = 60
            elif margin < 20:
                score = 30
            else:
                score = 10
            description = f"Cash flow margin of {margin:.1f}% is {'tight' if margin < 15 else 'healthy'}"

        return _factor(
            "Cash Flow Risk",
            score,
            description,
            "A tight cash flow margin means small increases in expenses or vacancy could turn the deal negative",
            [
                "Negotiate a lower purchase price",
                "Increase rent if market supports it",
                "Reduce operating expenses",
                "Build a cash reserve for shortfalls",
            ],
        )

    def _leverage_risk(self) -> Dict:
        price = self.analysis["acquisition"]["purchase_price"]
        ltv = self.analysis["financing"]["total_mortgage_with_insurance"] / price * 100

        if ltv >= 95:
            score = 85
        elif ltv >= 90:
            score = 65
        elif ltv >= 80:
            score = 40
        else:
            score = 15

        return _factor(
            "Leverage Risk",
            score,
            f"Loan-to-value ratio of {ltv:.1f}% means {'high' if ltv >= 80 else 'moderate'} leverage",
            "High leverage amplifies losses if property value declines, and limits refinancing options",
            [
                "Increase down payment to reduce LTV",
                "Accelerate principal payments",
                "Focus on value-add improvements to build equity",
                "Avoid this deal if market is at peak pricing",
            ],
        )

    def _dscr_risk(self) -> Dict:
        dscr = self.analysis["metrics"]["dscr"]

        if dscr < 1.0:
            score = 90
        elif dscr < 1.15:
            score = 60
        elif dscr < 1.25:
            score = 30
        else:
            score = 10

        return _factor(
            "Debt Service Coverage Risk",
            score,
            f"DSCR of {dscr:.2f} is {'below lender requirements' if dscr < 1.15 else 'acceptable'}",
            "Commercial lenders typically require 1.25+ DSCR. Low DSCR limits financing options "
            "and signals cash flow stress",
            [
                "Increase net operating income (raise rents, reduce expenses)",
                "Reduce mortgage payment (larger down payment, better rate)",
                "Consider owner financing or private money",
            ],
        )

    # -------------------------------------------------------------
    # Market
    # -------------------------------------------------------------

    def _vacancy_risk(self) -> Dict:
        vacancy = self.inputs.vacancy_rate

        if vacancy >= 10:
            score = 70
        elif vacancy >= 7:
            score = 45
        elif vacancy >= 5:
            score = 25
        else:
            score = 10

        return _factor(
            "Vacancy Risk",
            score,
            f"Vacancy rate of {vacancy}% {'exceeds typical market average' if vacancy > 7 else 'is within normal range'}",
            "Higher vacancy means lost income and increased turn costs. Also signals weak demand "
            "or poor property management",
            [
                "Improve property condition to attract quality tenants",
                "Price rent competitively based on market comps",
                "Screen tenants rigorously to improve retention",
                "Offer lease incentives for longer terms",
            ],
        )

    def _age_risk(self) -> Dict:
        year_built = self.inputs.year_built
        impact = (
            "Older properties have higher maintenance costs, deferred maintenance, and systems "
            "nearing end of life (roof, HVAC, plumbing)"
        )
        mitigation = [
            "Get a thorough inspection to identify deferred maintenance",
            "Budget 10-15% of purchase price for capital improvements in first 2 years",
            "Negotiate price reduction based on needed repairs",
            "Consider properties with recent major system upgrades",
        ]

        if year_built is None:
            return _factor("Property Age Risk", 20, "Year built unknown - verify age of major systems",
                           impact, mitigation)

        age = self.today.year - year_built
        if age >= 50:
            score = 65
        elif age >= 30:
            score = 40
        elif age >= 15:
            score = 20
        else:
            score = 10

        return _factor(
            "Property Age Risk",
            score,
            f"Property built in {year_built} ({age} years old) may require "
            f"{'major' if age >= 40 else 'moderate'} capital improvements",
            impact,
            mitigation,
        )

    def _valuation_risk(self) -> Dict:
        grm = self.analysis["metrics"]["grm"]

        # 10-15 is a typical GRM for rentals
        if grm > 20:
            score = 75
        elif grm > 15:
            score = 50
        elif grm > 12:
            score = 25
        else:
            score = 15

        return _factor(
            "Valuation Risk",
            score,
            f"GRM of {grm:.1f} suggests {'overpriced relative to income' if grm > 15 else 'reasonable valuation'}",
            "Overpaying leaves little room for appreciation and makes exit difficult. "
            "Limits refinance and resale options",
            [
                "Order an independent appraisal",
                "Analyze recent comparable sales",
                "Negotiate price down to achieve GRM under 12",
                "Walk away if seller won't negotiate",
            ],
        )

    # -------------------------------------------------------------
    # Operational
    # -------------------------------------------------------------

    def _management_risk(self) -> Dict:
        pm = self.inputs.property_management_percent
        has_pm = pm > 0

        return _factor(
            "Property Management Risk",
            15 if has_pm else 50,
            f"Professional property management at {pm}% reduces operational burden"
            if has_pm
            else "Self-management saves money but requires significant time and expertise",
            "Self-management risk includes legal compliance, tenant disputes, maintenance emergencies "
            "and time commitment",
            [
                "Hire professional property management (8-10% of rent)",
                "If self-managing: educate yourself on landlord-tenant law",
                "Build a network of reliable contractors",
                "Use property management software for organization",
            ],
        )

    def _maintenance_risk(self) -> Dict:
        annual_maintenance = self.analysis["expenses"]["annual"]["maintenance"]
        pct = annual_maintenance / self.analysis["acquisition"]["purchase_price"] * 100

        if pct < 1.0:
            score = 70
        elif pct < 1.5:
            score = 40
        elif pct < 2.5:
            score = 20
        else:
            score = 10

        return _factor(
            "Maintenance Risk",
            score,
            f"Maintenance budget at {pct:.1f}% of property value is {'insufficient' if pct < 1 else 'adequate'}",
            "Underfunding maintenance leads to deferred repairs, tenant complaints, and emergency "
            "expenses that kill cash flow",
            [
                "Budget at least 1% of property value annually",
                "Increase to 2%+ for older properties",
                "Maintain separate capital improvement reserve",
                "Address issues promptly to avoid escalation",
            ],
        )

    # -------------------------------------------------------------
    # Liquidity
    # -------------------------------------------------------------

    def _liquidity_risk(self) -> Dict:
        cash_needed = self.analysis["acquisition"]["total_cash_needed"]

        if cash_needed > 200_000:
            score = 60
        elif cash_needed > 100_000:
            score = 35
        else:
            score = 15

        return _factor(
            "Liquidity Risk",
            score,
            f"Total cash required of ${cash_needed:,.0f} represents significant capital commitment",
            "Large capital requirements tie up liquidity and limit ability to handle emergencies "
            "or pursue other opportunities",
            [
                "Ensure you have 6 months of reserves after closing",
                "Don't invest your last dollar into the property",
                "Consider partnerships to split capital requirements",
                "Line up backup financing (HELOC, private lenders)",
            ],
        )

    # -------------------------------------------------------------
    # Scenarios and suitability
    # -------------------------------------------------------------

    def _stress_scenarios(self) -> List[Dict]:
        a = self.analysis
        insured = a["financing"]["total_mortgage_with_insurance"]
        price = a["acquisition"]["purchase_price"]

        return [
            {
                "scenario": "Vacancy increases to 10%",
                "monthly_cash_flow_impact": -a["revenue"]["gross_monthly_rent"] * 0.05,
                "annual_cash_flow_impact": -a["revenue"]["annual_rent"] * 0.05,
                "break_even_impact": "Would require rent increase of 5% to maintain current cash flow",
            },
            {
                # Rough approximation: 2% of the balance per year
                "scenario": "Interest rate increases 2%",
                "monthly_cash_flow_impact": -insured * 0.02 / 12,
                "annual_cash_flow_impact": -insured * 0.02,
                "break_even_impact": "Would reduce cash flow by ~16% at refinance",
            },
            {
                "scenario": "Major repair needed ($10,000)",
                "monthly_cash_flow_impact": -10_000 / 12,
                "annual_cash_flow_impact": -10_000,
                "break_even_impact": "Would wipe out 12+ months of cash flow for typical deal",
            },
            {
                "scenario": "Property value declines 10%",
                "monthly_cash_flow_impact": 0.0,
                "annual_cash_flow_impact": 0.0,
                "break_even_impact": f"Equity would decrease by ${price * 0.1:,.0f}, limiting refinance options",
            },
        ]

    @staticmethod
    def _tolerance(score: float) -> str:
        if score < 30:
            return "Conservative"
        if score < 55:
            return "Moderate"
        return "Aggressive"

    @staticmethod
    def _investor_types(score: float) -> List[str]:
        types: List[str] = []
        if score < 30:
            types += ["First-time investors", "Passive investors", "Retirement portfolios"]
        if 20 <= score < 60:
            types += ["Experienced investors", "Active investors", "Growth-focused investors"]
        if score >= 40:
            types += ["Advanced investors", "Value-add specialists", "High-risk tolerance investors"]
        return types

    # -------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------

    def analyze(self) -> Dict:
        factors = [
            self._cash_flow_risk(),
            self._leverage_risk(),
            self._dscr_risk(),
            self._vacancy_risk(),
            self._age_risk(),
            self._valuation_risk(),
            self._management_risk(),
            self._maintenance_risk(),
            self._liquidity_risk(),
        ]

        financial = _average(factors, FINANCIAL_CATEGORIES)
        market = _average(factors, MARKET_CATEGORIES)
        operational = _average(factors, OPERATIONAL_CATEGORIES)
        liquidity = _average(factors, ["Liquidity Risk"])

        overall = (
            financial * CATEGORY_WEIGHTS["financial"]
            + market * CATEGORY_WEIGHTS["market"]
            + operational * CATEGORY_WEIGHTS["operational"]
            + liquidity * CATEGORY_WEIGHTS["liquidity"]
        )
        level = overall_level(overall)

        return {
            "overall_risk_score": overall,
            "overall_risk_level": level,
            "risk_factors": factors,
            "financial_risk_score": financial,
            "market_risk_score": market,
            "operational_risk_score": operational,
            "liquidity_risk_score": liquidity,
            "critical_risks": [f["description"] for f in factors if f["risk_level"] == "Critical"],
            "high_risks": [f["description"] for f in factors if f["risk_level"] == "High"],
            "stress_test": self._stress_scenarios(),
            "risk_tolerance_recommendation": self._tolerance(overall),
            "suitable_for_investor_types": self._investor_types(overall),
            "overall_recommendation": OVERALL_RECOMMENDATIONS[level],
        }
