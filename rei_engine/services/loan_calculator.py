"""
loan_calculator.py

Canadian-style mortgage amortization with monthly payments.

Interest rates are annual, in percent (5.5 == 5.5%).
"""

from typing import Dict, List


class LoanCalculator:
    """
    Standard mortgage amortization model.

    Example:
        calc = LoanCalculator(400_000, 5.5, 25)
        calc.monthly_payment()      # ~2456.0
        calc.balance_after(5)       # remaining principal after 5 years
    """

    def __init__(self, principal: float, annual_rate: float, years: float):
        self.principal = principal
        self.annual_rate = annual_rate
        self.years = years
        self.rate = annual_rate / 100 / 12
        self.months = int(round(years * 12))

    def monthly_payment(self) -> float:
        p = self.principal
        r = self.rate
        n = self.months

        if p <= 0 or n <= 0:
            return 0.0

        if r == 0:
            return p / n

        return p * (r * (1 + r) ** n) / ((1 + r) ** n - 1)

    def annual_debt_service(self) -> float:
        return self.monthly_payment() * 12

    def balance_after(self, years_elapsed: float) -> float:
        """
        Remaining principal after `years_elapsed` years of payments.
        """
        p = self.principal
        r = self.rate
        k = years_elapsed * 12

        if p <= 0 or self.months <= 0:
            return 0.0

        if r == 0:
            return max(0.0, p * (1 - k / self.months))

        pmt = self.monthly_payment()
        balance = p * (1 + r) ** k - pmt * ((1 + r) ** k - 1) / r
        return max(0.0, balance)

    # ----------------------------------------------------------
    # Amortization schedule
    # ----------------------------------------------------------

    def schedule(self) -> List[Dict[str, float]]:
        rows: List[Dict[str, float]] = []
        pmt = self.monthly_payment()
        balance = self.principal

        for month in range(1, self.months + 1):
            if balance <= 0:
                break
            interest = balance * self.rate
            principal_paid = min(pmt - interest, balance)
            balance -= principal_paid
            rows.append({
                "month": month,
                "payment": interest + principal_paid,
                "interest": interest,
                "principal": principal_paid,
                "balance": max(0.0, balance),
            })

        return rows

    def interest_for_year(self, year: int) -> float:
        """
        Total interest paid during loan year `year` (1-based).
        """
        start = (year - 1) * 12
        rows = self.schedule()[start:start + 12]
        return sum(row["interest"] for row in rows)


def monthly_payment(principal: float, annual_rate: float, years: float) -> float:
    return LoanCalculator(principal, annual_rate, years).monthly_payment()


def remaining_balance(principal: float, annual_rate: float, years: float, years_elapsed: float) -> float:
    return LoanCalculator(principal, annual_rate, years).balance_after(years_elapsed)
