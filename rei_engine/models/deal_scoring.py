"""
deal_scoring.py

Scores a deal out of 100 from the DealAnalyzer output and assigns a
letter grade.

Components (max points):
- Monthly cash flow          30
- Cash-on-cash return        25
- Cap rate vs market         20
- DSCR                       15
- OSFI stress test           10
"""

from typing import Dict, List, Tuple


GRADE_THRESHOLDS: List[Tuple[float, str, str]] = [
    (85, "A", "green"),
    (70, "B", "blue"),
    (55, "C", "yellow"),
    (40, "D", "orange"),
]

DEAL_QUALITY = {
    "A": "Excellent Deal - Pursue Aggressively",
    "B": "Good Deal - Worth Considering",
    "C": "Fair Deal - Analyze Carefully",
    "D": "Below Average - Proceed with Caution",
    "F": "Poor Deal - Pass Unless Special Circumstances",
}


class DealScoring:
    def __init__(self, analysis: Dict):
        self.cash_flow = analysis.get("cash_flow", {})
        self.metrics = analysis.get("metrics", {})
        self.market = analysis.get("market_comparison", {})
        self.flags = analysis.get("flags", {})

    # -------------------------------------------------------------
    # Component scores, each returns (points, reason)
    # -------------------------------------------------------------

    def _score_cash_flow(self) -> Tuple[int, str]:
        cf = self.cash_flow.get("monthly_net", 0.0)
        if cf > 500:
            return 30, f"Strong positive cash flow (${cf:,.0f}/mo)"
        if cf > 200:
            return 20, f"Moderate cash flow (${cf:,.0f}/mo)"
        if cf > 0:
            return 10, f"Marginal cash flow (${cf:,.0f}/mo)"
        return 0, f"Negative cash flow (${cf:,.0f}/mo)"

    def _score_coc(self) -> Tuple[int, str]:
        coc = self.metrics.get("cash_on_cash_return", 0.0)
        if coc > 15:
            return 25, f"Exceptional CoC return ({coc:.1f}%)"
        if coc > 10:
            return 20, f"Strong CoC return ({coc:.1f}%)"
        if coc > 6:
            return 15, f"Acceptable CoC return ({coc:.1f}%)"
        if coc > 0:
            return 5, f"Low CoC return ({coc:.1f}%)"
        return 0, f"Negative returns ({coc:.1f}%)"

    def _score_cap_rate(self) -> Tuple[int, str]:
        diff = self.metrics.get("cap_rate", 0.0) - self.market.get("market_avg_cap_rate", 0.0)
        if diff > 1:
            return 20, f"Above market cap rate (+{diff:.1f}%)"
        if diff > 0:
            return 15, f"At market cap rate (+{diff:.1f}%)"
        if diff > -1:
            return 10, f"Slightly below market cap rate ({diff:.1f}%)"
        return 5, f"Well below market cap rate ({diff:.1f}%)"

    def _score_dscr(self) -> Tuple[int, str]:
        dscr = self.metrics.get("dscr", 0.0)
        if dscr > 1.5:
            return 15, f"Excellent debt coverage (DSCR: {dscr:.2f})"
        if dscr > 1.25:
            return 12, f"Strong debt coverage (DSCR: {dscr:.2f})"
        if dscr > 1.0:
            return 8, f"Minimal debt coverage (DSCR: {dscr:.2f})"
        return 0, f"Insufficient debt coverage (DSCR: {dscr:.2f})"

    def _score_stress_test(self) -> Tuple[int, str]:
        if not self.flags.get("fails_stress_test", False):
            return 10, "Passes OSFI stress test"
        return 0, "Fails stress test - financing may be difficult"

    # -------------------------------------------------------------
    # Final score
    # -------------------------------------------------------------

    def calculate(self) -> Dict:
        components = {
            "cash_flow": self._score_cash_flow(),
            "cash_on_cash": self._score_coc(),
            "cap_rate": self._score_cap_rate(),
            "dscr": self._score_dscr(),
            "stress_test": self._score_stress_test(),
        }

        score = sum(points for points, _ in components.values())
        grade, color = grade_for_score(score)

        return {
            "total_score": score,
            "grade": grade,
            "color": color,
            "components": {k: points for k, (points, _) in components.items()},
            "reasons": [reason for _, reason in components.values()],
        }


def grade_for_score(score: float) -> Tuple[str, str]:
    for threshold, grade, color in GRADE_THRESHOLDS:
        if score >= threshold:
            return grade, color
    return "F", "red"


def is_deal_worth_pursuing(score: float) -> bool:
    # C grade or better
    return score >= 55


def deal_quality_description(grade: str) -> str:
    return DEAL_QUALITY.get(grade, DEAL_QUALITY["F"])
