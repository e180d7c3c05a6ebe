"""
financing_optimizer.py

Ranks traditional and creative financing strategies for a purchase
against an investor's financial profile.

Traditional: conventional (20% down), high-ratio with CMHC insurance
Creative:    vendor take-back (VTB), joint venture, HELOC down payment

Each strategy gets a 0-100 suitability score; the top one is recommended.
"""

from typing import Dict, List, Literal

from pydantic import BaseModel, Field

from rei_engine.logging_config import setup_logger
from rei_engine.services.cmhc_insurance import CMHCInsurance, validate_down_payment
from rei_engine.services.loan_calculator import monthly_payment


logger = setup_logger(__name__)

RiskTolerance = Literal["Conservative", "Moderate", "Aggressive"]
InvestmentGoal = Literal["Cash Flow", "Appreciation", "Balanced"]
MarketConditions = Literal["hot", "balanced", "cold"]

CONVENTIONAL_RATE = 6.5
HIGH_RATIO_RATE = 6.8
VTB_RATE = 7.5
VTB_TERM_YEARS = 5
HELOC_RATE = 7.0
HELOC_HOLD_YEARS = 10
AMORTIZATION_YEARS = 25


class FinancingProfile(BaseModel):
    current_income: float = Field(..., ge=0)
    current_assets: float = Field(0.0, ge=0)
    current_debt: float = Field(0.0, ge=0)
    credit_score: int = Field(680, ge=300, le=900)
    down_payment_available: float = Field(..., ge=0)
    monthly_budget: float = Field(..., ge=0)
    risk_tolerance: RiskTolerance = "Moderate"
    investment_goals: InvestmentGoal = "Balanced"
    time_horizon: int = Field(10, ge=1)


CREATIVE_FINANCING_OPTIONS: List[Dict] = [
    {
        "strategy": "Vendor Take-Back (VTB) Mortgage",
        "description": "Seller acts as the bank, providing financing to the buyer",
        "minimum_equity": 20,
        "typical_terms": "1-5 years, 6-8% interest, balloon payment",
        "risk_level": "Medium",
        "best_for": ["Motivated sellers", "Properties hard to finance", "Quick closings"],
        "legal_considerations": [
            "Proper legal documentation required",
            "Title insurance recommended",
            "Clear exit strategy needed",
        ],
    },
    {
        "strategy": "Joint Venture Partnership",
        "description": "Partner with someone who has capital or credit",
        "minimum_equity": 0,
        "typical_terms": "50/50 or 60/40 split, defined roles and responsibilities",
        "risk_level": "Medium",
        "best_for": ["Limited capital", "Strong deal-finding skills", "Sweat equity contribution"],
        "legal_considerations": ["Partnership agreement essential", "Clear exit clauses", "Liability considerations"],
    },
    {
        "strategy": "Private Lending",
        "description": "Borrow from private individuals or companies",
        "minimum_equity": 25,
        "typical_terms": "8-12% interest, 1-2 year terms, interest-only payments",
        "risk_level": "High",
        "best_for": ["Quick closings", "Unique properties", "Bridge financing"],
        "legal_considerations": ["Higher interest rates", "Shorter terms", "Personal guarantees often required"],
    },
    {
        "strategy": "Lease-to-Own",
        "description": "Rent with option to purchase, building equity over time",
        "minimum_equity": 5,
        "typical_terms": "2-5 year lease, portion of rent goes to down payment",
        "risk_level": "Medium",
        "best_for": ["Poor credit", "Limited down payment", "Stable income"],
        "legal_considerations": ["Option fee required", "Clear purchase terms", "Maintenance responsibilities"],
    },
    {
        "strategy": "Assumable Mortgage",
        "description": "Take over the existing mortgage from the seller",
        "minimum_equity": 10,
        "typical_terms": "Existing rate and terms, subject to lender approval",
        "risk_level": "Low",
        "best_for": ["Low interest rate mortgages", "Good credit buyers", "Stable properties"],
        "legal_considerations": ["Lender approval required", "Due-on-sale clauses", "Liability for existing debt"],
    },
    {
        "strategy": "HELOC for Investment",
        "description": "Use home equity line of credit for down payment",
        "minimum_equity": 20,
        "typical_terms": "Prime + 0.5-1%, interest-only payments, revolving credit",
        "risk_level": "High",
        "best_for": ["Existing homeowners", "Multiple property strategy", "Experienced investors"],
        "legal_considerations": ["Primary residence at risk", "Variable interest rates", "Debt service ratio limits"],
    },
    {
        "strategy": "Rent-to-Rent Subletting",
        "description": "Rent property and sublet for profit without ownership",
        "minimum_equity": 0,
        "typical_terms": "Master lease agreement, 3-5 year terms, guaranteed rent",
        "risk_level": "Medium",
        "best_for": ["No capital required", "Management skills", "Market knowledge"],
        "legal_considerations": [
            "Landlord permission required",
            "Local bylaws compliance",
            "Insurance considerations",
        ],
    },
]

ACTION_PLAN = [
    "Complete detailed financial analysis",
    "Get pre-approved with multiple lenders",
    "Gather all required documentation",
    "Compare all financing options",
    "Negotiate terms and conditions",
    "Review all legal documentation",
    "Finalize financing and close deal",
]

RISK_MITIGATION = [
    "Maintain emergency fund (6 months expenses)",
    "Ensure positive cash flow after all expenses",
    "Consider interest rate protection",
    "Regular financial review and monitoring",
    "Diversify investment portfolio",
    "Have exit strategy planned",
]

TIMELINE = [
    "Week 1-2: Financial analysis and pre-approval",
    "Week 3-4: Property search and offers",
    "Week 5-6: Financing finalization",
    "Week 7-8: Legal review and closing",
]


def traditional_suitability(profile: FinancingProfile, down_payment: float, payment: float) -> float:
    score = 50

    if down_payment <= profile.down_payment_available:
        score += 20
    else:
        score -= 30

    if payment <= profile.monthly_budget * 0.8:
        score += 20
    elif payment <= profile.monthly_budget:
        score += 10
    else:
        score -= 20

    if profile.risk_tolerance == "Conservative":
        score += 10
    elif profile.risk_tolerance == "Aggressive":
        score += 5

    return max(0, min(100, score))


def creative_suitability(profile: FinancingProfile, strategy: str) -> float:
    score = 40

    if profile.risk_tolerance == "Aggressive":
        score += 20
    elif profile.risk_tolerance == "Moderate":
        score += 10
    else:
        score -= 10

    if strategy == "VTB" and profile.down_payment_available < 100_000:
        score += 15
    elif strategy == "JV" and profile.down_payment_available < 50_000:
        score += 20
    elif strategy == "HELOC" and profile.current_assets > 300_000:
        score += 15

    return max(0, min(100, score))


def _by_suitability(strategies: List[Dict]) -> List[Dict]:
    return sorted(strategies, key=lambda s: s["suitability"], reverse=True)


class FinancingOptimizer:
    """
    Example:
        profile = FinancingProfile(current_income=120_000, down_payment_available=90_000,
                                   monthly_budget=3_500)
        FinancingOptimizer(600_000, profile).recommend()
    """

    def __init__(self, property_price: float, profile: FinancingProfile,
                 market_conditions: MarketConditions = "balanced"):
        self.price = property_price
        self.profile = profile
        self.market_conditions = market_conditions

    # -------------------------------------------------------------
    # Traditional
    # -------------------------------------------------------------

    def _conventional(self) -> Dict:
        down = self.price * 0.2
        payment = monthly_payment(self.price - down, CONVENTIONAL_RATE, AMORTIZATION_YEARS)
        return {
            "name": "Conventional Mortgage (20% Down)",
            "description": "Standard mortgage with 20% down payment, no CMHC insurance required",
            "down_payment_required": down,
            "monthly_payment": payment,
            "total_cost": payment * 12 * AMORTIZATION_YEARS + down,
            "pros": [
                "No mortgage insurance required",
                "Best interest rates",
                "Lower monthly payments",
                "Build equity faster",
            ],
            "cons": ["Large down payment required", "Ties up significant capital", "Opportunity cost of capital"],
            "risk_level": "Low",
            "suitability": traditional_suitability(self.profile, down, payment),
            "requirements": ["Good credit score (680+)", "Stable income", "Debt service ratios under 44%"],
            "next_steps": [
                "Get pre-approved with multiple lenders",
                "Shop for best rates",
                "Consider mortgage broker",
            ],
        }

    def _high_ratio_down_percent(self) -> float:
        return min(19.0, self.profile.down_payment_available / self.price * 100)

    def high_ratio_available(self) -> bool:
        """
        An insured mortgage needs the federal minimum down payment for the
        price, and CMHC does not insure purchases over $1M.
        """
        down_pct = self._high_ratio_down_percent()
        if not validate_down_payment(self.price, down_pct)["valid"]:
            return False
        return CMHCInsurance(self.price, down_pct).calculate()["insurance_available"]

    def _high_ratio(self) -> Dict:
        down_pct = self._high_ratio_down_percent()
        down = self.price * down_pct / 100
        cmhc = CMHCInsurance(self.price, down_pct).calculate()
        payment = monthly_payment(cmhc["total_mortgage_with_insurance"], HIGH_RATIO_RATE, AMORTIZATION_YEARS)
        return {
            "name": f"High-Ratio Mortgage ({down_pct:.0f}% Down)",
            "description": "Mortgage with CMHC insurance for down payments under 20%",
            "down_payment_required": down,
            "cmhc_premium": cmhc["premium"],
            "monthly_payment": payment,
            "total_cost": payment * 12 * AMORTIZATION_YEARS + down,
            "pros": [
                "Lower down payment required",
                "Preserve capital for other investments",
                "Get into market sooner",
            ],
            "cons": ["CMHC insurance premium required", "Higher monthly payments", "Higher total interest cost"],
            "risk_level": "Medium",
            "suitability": traditional_suitability(self.profile, down, payment),
            "requirements": [
                "Good credit score (680+)",
                "Stable income",
                "Property under $1M",
                "Owner-occupied or investment property",
            ],
            "next_steps": [
                "Calculate CMHC premium",
                "Compare with 20% down option",
                "Consider accelerated payments",
            ],
        }

    def traditional_strategies(self) -> List[Dict]:
        strategies = []
        available = self.profile.down_payment_available
        if available >= self.price * 0.2:
            strategies.append(self._conventional())
        if self.high_ratio_available():
            strategies.append(self._high_ratio())
        return _by_suitability(strategies)

    # -------------------------------------------------------------
    # Creative
    # -------------------------------------------------------------

    def _vendor_take_back(self) -> Dict:
        # 10% down, seller carries 20%, bank finances 70%
        down = self.price * 0.1
        bank_payment = monthly_payment(self.price * 0.7, CONVENTIONAL_RATE, AMORTIZATION_YEARS)
        vtb_payment = monthly_payment(self.price * 0.2, VTB_RATE, VTB_TERM_YEARS)
        return {
            "name": "Vendor Take-Back Mortgage",
            "description": "Seller provides secondary financing for portion of purchase price",
            "down_payment_required": down,
            "monthly_payment": bank_payment + vtb_payment,
            "total_cost": bank_payment * 12 * AMORTIZATION_YEARS + vtb_payment * 12 * VTB_TERM_YEARS + down,
            "pros": [
                "Lower down payment required",
                "Faster closing possible",
                "Flexible terms with seller",
                "May work when bank financing difficult",
            ],
            "cons": [
                "Higher interest rate on VTB portion",
                "Balloon payment due at term end",
                "Seller must be willing and able",
                "More complex legal structure",
            ],
            "risk_level": "Medium",
            "suitability": creative_suitability(self.profile, "VTB"),
            "requirements": [
                "Motivated seller with equity",
                "Good relationship with seller",
                "Clear exit strategy for balloon payment",
                "Legal documentation",
            ],
            "next_steps": [
                "Assess seller motivation",
                "Negotiate VTB terms",
                "Arrange legal documentation",
                "Plan refinancing strategy",
            ],
        }

    def _joint_venture(self) -> Dict:
        return {
            "name": "Joint Venture Partnership",
            "description": "Partner provides capital, you provide expertise and management",
            "down_payment_required": 0.0,
            "monthly_payment": monthly_payment(self.price * 0.8, CONVENTIONAL_RATE, AMORTIZATION_YEARS),
            # Shared with the partner
            "total_cost": self.price,
            "pros": [
                "No down payment required from you",
                "Leverage partner's capital and credit",
                "Share risks and rewards",
                "Learn from experienced partner",
            ],
            "cons": [
                "Share profits with partner",
                "Less control over decisions",
                "Potential for conflicts",
                "Complex legal agreements needed",
            ],
            "risk_level": "Medium",
            "suitability": creative_suitability(self.profile, "JV"),
            "requirements": [
                "Find suitable partner",
                "Bring value (expertise, time, deals)",
                "Clear partnership agreement",
                "Defined roles and responsibilities",
            ],
            "next_steps": [
                "Network to find partners",
                "Prepare partnership proposal",
                "Draft partnership agreement",
                "Define profit-sharing structure",
            ],
        }

    def _heloc(self) -> Dict:
        heloc_amount = min(self.price * 0.2, self.profile.current_assets * 0.8)
        heloc_payment = heloc_amount * HELOC_RATE / 100 / 12  # interest-only
        mortgage_payment = monthly_payment(self.price - heloc_amount, CONVENTIONAL_RATE, AMORTIZATION_YEARS)
        return {
            "name": "HELOC Down Payment Strategy",
            "description": "Use home equity line of credit for down payment",
            "down_payment_required": 0.0,
            "monthly_payment": heloc_payment + mortgage_payment,
            "total_cost": (
                mortgage_payment * 12 * AMORTIZATION_YEARS
                + heloc_payment * 12 * HELOC_HOLD_YEARS
                + heloc_amount
            ),
            "pros": [
                "Preserve cash for other investments",
                "Interest-only payments on HELOC",
                "Tax-deductible interest (if investment)",
                "Flexible repayment",
            ],
            "cons": [
                "Primary residence at risk",
                "Variable interest rates",
                "Higher total debt service",
                "Market risk on both properties",
            ],
            "risk_level": "High",
            "suitability": creative_suitability(self.profile, "HELOC"),
            "requirements": [
                "Existing home with equity",
                "Good credit and income",
                "Comfortable with leverage",
                "Strong cash flow from investment",
            ],
            "next_steps": [
                "Get HELOC pre-approval",
                "Calculate total debt service",
                "Ensure positive cash flow",
                "Consider interest rate protection",
            ],
        }

    def creative_strategies(self) -> List[Dict]:
        strategies = []
        if self.market_conditions in ("cold", "balanced"):
            strategies.append(self._vendor_take_back())
        if self.profile.down_payment_available < self.price * 0.2:
            strategies.append(self._joint_venture())
        # Assets above 200k taken as a sign of usable home equity
        if self.profile.current_assets > 200_000:
            strategies.append(self._heloc())
        return _by_suitability(strategies)

    # -------------------------------------------------------------
    # Recommendation
    # -------------------------------------------------------------

    def recommend(self) -> Dict:
        ranked = _by_suitability(self.traditional_strategies() + self.creative_strategies())
        logger.debug(f"{len(ranked)} financing strategies for ${self.price:,.0f} purchase")

        return {
            "recommended_strategy": ranked[0] if ranked else None,
            "alternative_strategies": ranked[1:4],
            "action_plan": list(ACTION_PLAN),
            "risk_mitigation": list(RISK_MITIGATION),
            "timeline": list(TIMELINE),
        }
