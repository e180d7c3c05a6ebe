"""
break_even.py

What has to change for a deal to break even on monthly cash flow:
rent, purchase price, occupancy, expenses or interest rate, plus how
long rent growth alone would take.
"""

from typing import Dict, Optional

from rei_engine.services.loan_calculator import monthly_payment


RENT_GROWTH_RATE = 0.025
EXPENSE_GROWTH_RATE = 0.025
MAX_PROJECTION_YEARS = 30


class BreakEvenAnalyzer:
    """
    Inputs:
        analysis: dict from DealAnalyzer.analyze()

    Every "needed" figure is zero for a deal that already cash flows.
    """

    def __init__(self, analysis: Dict):
        self.analysis = analysis
        self.monthly_net = analysis["cash_flow"]["monthly_net"]
        self.is_positive = self.monthly_net >= 0
        self.shortfall = 0.0 if self.is_positive else abs(self.monthly_net)
        self.rent = analysis["revenue"]["gross_monthly_rent"]

    # -------------------------------------------------------------
    # Individual levers
    # -------------------------------------------------------------

    def _rent(self) -> Dict:
        needed = self.shortfall
        return {
            "break_even_rent": self.rent + needed,
            "rent_increase_needed_dollars": needed,
            "rent_increase_needed_percent": needed / self.rent * 100 if self.rent > 0 else 0.0,
        }

    def _purchase_price(self) -> Dict:
        """
        Price cut whose smaller mortgage (same down payment percent and
        terms) removes the shortfall.
        """
        a = self.analysis
        price = a["acquisition"]["purchase_price"]
        financed_share = 1 - a["property"]["down_payment_percent"] / 100
        payment_per_dollar = monthly_payment(
            1.0, a["financing"]["interest_rate"], a["financing"]["amortization_years"]
        )

        reduction = 0.0
        if financed_share > 0 and payment_per_dollar > 0:
            reduction = self.shortfall / (financed_share * payment_per_dollar)

        return {
            "max_purchase_price_for_positive_cf": price - reduction,
            "purchase_price_reduction_needed": reduction,
            "purchase_price_reduction_percent": reduction / price * 100,
        }

    def _occupancy(self) -> Dict:
        vacancy_rate = self.analysis["property"]["vacancy_rate"]
        current_vacancy_monthly = self.rent * vacancy_rate / 100

        max_vacancy = 0.0
        if self.rent > 0:
            if self.is_positive:
                max_vacancy = min(100.0, (current_vacancy_monthly + self.monthly_net) / self.rent * 100)
            else:
                max_vacancy = max(0.0, (current_vacancy_monthly - self.shortfall) / self.rent * 100)

        return {
            "break_even_occupancy": 100 - max_vacancy,
            "current_vacancy_cost": self.analysis["revenue"]["annual_vacancy_loss"],
            "max_affordable_vacancy_percent": max_vacancy,
        }

    def _expenses(self) -> Dict:
        monthly_expenses = self.analysis["expenses"]["annual"]["total"] / 12
        max_monthly = monthly_expenses - self.shortfall
        return {
            "max_affordable_expenses": max_monthly * 12,
            "expense_reduction_needed": self.shortfall * 12,
            "expense_reduction_percent": self.shortfall / monthly_expenses * 100 if monthly_expenses > 0 else 0.0,
        }

    def _interest_rate(self) -> Dict:
        financing = self.analysis["financing"]
        rate = financing["interest_rate"]
        mortgage = financing["total_mortgage_with_insurance"]

        # Linear approximation: one point of rate costs 1% of the balance per year
        max_rate = rate
        if mortgage > 0:
            if self.is_positive:
                max_rate = rate + self.monthly_net / mortgage * 12 * 100
            else:
                max_rate = max(0.0, rate - self.shortfall / mortgage * 12 * 100)

        return {
            "max_affordable_interest_rate": max_rate,
            "interest_rate_cushion": max_rate - rate,
        }

    def _timeline(self) -> Dict:
        """
        Years of rent growth until cash flow turns positive, with the
        losses accumulated on the way. None when it never happens
        inside the projection window.
        """
        if self.is_positive:
            return {"years_to_positive_cf": 0, "cumulative_loss_until_positive": 0.0}

        years: Optional[int] = None
        cumulative_loss = 0.0
        projected_rent = self.rent
        annual_loss = self.analysis["cash_flow"]["annual_net"]

        for year in range(1, MAX_PROJECTION_YEARS + 1):
            projected_rent *= 1 + RENT_GROWTH_RATE
            if self.monthly_net + (projected_rent - self.rent) >= 0:
                years = year
                break
            cumulative_loss += annual_loss
            annual_loss *= 1 + EXPENSE_GROWTH_RATE

        return {"years_to_positive_cf": years, "cumulative_loss_until_positive": cumulative_loss}

    # -------------------------------------------------------------
    # Summary
    # -------------------------------------------------------------

    def _primary_issue(self, result: Dict) -> str:
        if self.is_positive:
            return "None - cash flow positive"

        issues = [
            ("Low Rent", result["rent_increase_needed_percent"]),
            ("High Purchase Price", result["purchase_price_reduction_percent"]),
            ("High Expenses", result["expense_reduction_percent"]),
            ("High Interest Rate", abs(result["interest_rate_cushion"]) * 10),
        ]
        return max(issues, key=lambda item: item[1])[0]

    def _quickest_path(self, result: Dict) -> str:
        if self.is_positive:
            return "Already positive"

        def tier(pct: float, easy: float, medium: float) -> int:
            if pct < easy:
                return 1
            if pct < medium:
                return 2
            return 3

        years = result["years_to_positive_cf"]
        if years is None:
            wait_tier, wait_label = 5, f"Rent growth alone won't fix this within {MAX_PROJECTION_YEARS} years"
        else:
            wait_tier = 2 if years < 3 else 3 if years < 5 else 4
            wait_label = f"Wait {years} years for rent growth"

        paths = [
            (f"Increase rent by ${result['rent_increase_needed_dollars']:,.0f}",
             tier(result["rent_increase_needed_percent"], 10, 20)),
            (f"Reduce purchase price by ${result['purchase_price_reduction_needed']:,.0f}",
             tier(result["purchase_price_reduction_percent"], 5, 10)),
            (f"Reduce expenses by ${result['expense_reduction_needed'] / 12:,.0f}/month",
             tier(result["expense_reduction_percent"], 10, 20)),
            (wait_label, wait_tier),
        ]
        # Stable sort keeps the earlier lever on ties
        return sorted(paths, key=lambda p: p[1])[0][0]

    def analyze(self) -> Dict:
        result: Dict = {"monthly_shortfall": self.shortfall}
        result.update(self._rent())
        result.update(self._purchase_price())
        result.update(self._occupancy())
        result.update(self._expenses())
        result.update(self._interest_rate())
        result.update(self._timeline())
        result["is_currently_cash_flow_positive"] = self.is_positive
        result["primary_issue"] = self._primary_issue(result)
        result["quickest_path_to_positive"] = self._quickest_path(result)
        return result
