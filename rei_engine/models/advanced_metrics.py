"""
advanced_metrics.py

Hold-period return metrics for a deal:
- Year-by-year cash flows with rent and expense growth
- Sale in the final year (appreciated value - mortgage balance - sale costs)
- IRR, NPV, MIRR (numpy_financial), payback, equity multiple,
  average and annualized return, cash-on-cash progression

Cash flow vectors follow the numpy_financial convention: index 0 is the
initial investment (negative), then one entry per year.
"""

from typing import Dict, List, Optional

import numpy as np
import numpy_financial as npf
from pydantic import BaseModel, Field

from rei_engine.logging_config import setup_logger
from rei_engine.services.loan_calculator import remaining_balance


logger = setup_logger(__name__)


class ProjectionAssumptions(BaseModel):
    hold_period_years: int = Field(10, ge=1, le=40)
    appreciation_rate: float = 3.0
    rent_growth_rate: float = 2.5
    expense_growth_rate: float = 2.5
    sale_costs_percent: float = Field(5.0, ge=0, le=100)
    discount_rate: float = 8.0
    reinvestment_rate: Optional[float] = None


def _finite_or_none(value: float) -> Optional[float]:
    value = float(value)
    return None if np.isnan(value) or np.isinf(value) else value


def interpret_irr(irr: Optional[float]) -> str:
    if irr is None:
        return "Undefined - cash flows never change sign"
    if irr < 0:
        return "Negative - Loss expected"
    if irr < 5:
        return "Poor - Below inflation"
    if irr < 10:
        return "Below Average - Consider alternatives"
    if irr < 15:
        return "Good - Acceptable return"
    if irr < 20:
        return "Excellent - Strong return"
    return "Outstanding - Exceptional return"


def interpret_npv(npv: float) -> str:
    if npv < 0:
        return "Negative NPV - Reject deal"
    if npv < 10_000:
        return "Marginal NPV - Borderline"
    if npv < 50_000:
        return "Positive NPV - Acceptable"
    if npv < 100_000:
        return "Good NPV - Recommended"
    return "Excellent NPV - Highly recommended"


def interpret_payback(years: Optional[float], hold_period: int) -> str:
    if years is None or years > hold_period:
        return "Does not pay back within hold period"
    pct = years / hold_period * 100
    if pct < 30:
        return "Excellent - Very quick payback"
    if pct < 50:
        return "Good - Pays back in first half"
    if pct < 75:
        return "Acceptable - Moderate payback"
    return "Slow - Pays back late in hold period"


def payback_period(annual_flows: List[float], initial_investment: float) -> Optional[float]:
    """
    Years until cumulative cash flow recovers the investment, interpolated
    within the payback year. None if it never does.
    """
    cumulative = 0.0
    for year, flow in enumerate(annual_flows):
        previous = cumulative
        cumulative += flow
        if cumulative >= initial_investment and flow > 0:
            return year + (initial_investment - previous) / flow
    return None


class AdvancedMetrics:
    """
    Example:
        analysis = DealAnalyzer(inputs).analyze()
        AdvancedMetrics(analysis, ProjectionAssumptions(hold_period_years=5)).calculate()
    """

    def __init__(self, analysis: Dict, assumptions: Optional[ProjectionAssumptions] = None):
        self.analysis = analysis
        self.assumptions = assumptions or ProjectionAssumptions()

    # -------------------------------------------------------------
    # Projection
    # -------------------------------------------------------------

    def sale_proceeds(self) -> Dict:
        a = self.analysis
        s = self.assumptions
        financing = a["financing"]

        future_value = a["acquisition"]["purchase_price"] * (1 + s.appreciation_rate / 100) ** s.hold_period_years
        balance = remaining_balance(
            financing["total_mortgage_with_insurance"],
            financing["interest_rate"],
            financing["amortization_years"],
            s.hold_period_years,
        )
        sale_costs = future_value * s.sale_costs_percent / 100

        return {
            "sale_price": future_value,
            "mortgage_balance": balance,
            "sale_costs": sale_costs,
            "net_proceeds": future_value - balance - sale_costs,
        }

    def operating_cash_flows(self) -> List[float]:
        """Annual cash flow after debt service, before any sale."""
        a = self.analysis
        s = self.assumptions
        income = a["revenue"]["annual_effective_income"]
        operating = a["expenses"]["annual_operating"]
        debt_service = a["expenses"]["annual"]["mortgage"]

        flows = []
        for year in range(1, s.hold_period_years + 1):
            grown_income = income * (1 + s.rent_growth_rate / 100) ** (year - 1)
            grown_expenses = operating * (1 + s.expense_growth_rate / 100) ** (year - 1)
            flows.append(grown_income - grown_expenses - debt_service)
        return flows

    def projection(self) -> List[Dict]:
        flows = self.operating_cash_flows()
        sale = self.sale_proceeds()
        rows = []
        for year, flow in enumerate(flows, start=1):
            proceeds = sale["net_proceeds"] if year == len(flows) else 0.0
            rows.append({
                "year": year,
                "operating_cash_flow": flow,
                "sale_proceeds": proceeds,
                "total_cash_flow": flow + proceeds,
            })
        return rows

    # -------------------------------------------------------------
    # Metrics
    # -------------------------------------------------------------

    def calculate(self) -> Dict:
        s = self.assumptions
        initial = self.analysis["acquisition"]["total_cash_needed"]
        rows = self.projection()
        annual_flows = [row["total_cash_flow"] for row in rows]
        flows = [-initial] + annual_flows

        irr = _finite_or_none(npf.irr(flows))
        irr = irr * 100 if irr is not None else None
        npv = float(npf.npv(s.discount_rate / 100, flows))

        reinvest = s.reinvestment_rate if s.reinvestment_rate is not None else s.discount_rate
        mirr = _finite_or_none(
            npf.mirr(flows, self.analysis["financing"]["interest_rate"] / 100, reinvest / 100)
        )
        mirr = mirr * 100 if mirr is not None else None

        payback = payback_period(annual_flows, initial)

        total_returned = sum(annual_flows)
        equity_multiple = total_returned / initial if initial > 0 else None
        average_return = None
        annualized = None
        if equity_multiple is not None:
            average_return = equity_multiple / s.hold_period_years * 100
            if equity_multiple > 0:
                annualized = (equity_multiple ** (1 / s.hold_period_years) - 1) * 100

        coc = [
            row["operating_cash_flow"] / initial * 100 if initial > 0 else 0.0
            for row in rows
        ]

        logger.debug(f"Projection over {s.hold_period_years} years: IRR {irr}, NPV {npv:,.0f}")

        return {
            "initial_investment": initial,
            "cash_flows": flows,
            "projection": rows,
            "irr": irr,
            "npv": npv,
            "mirr": mirr,
            "payback_period": payback,
            "equity_multiple": equity_multiple,
            "average_annual_return": average_return,
            "annualized_return": annualized,
            "coc_progression": coc,
            "total_profit": total_returned - initial,
            "interpretation": {
                "irr": interpret_irr(irr),
                "npv": interpret_npv(npv),
                "payback": interpret_payback(payback, s.hold_period_years),
            },
        }
