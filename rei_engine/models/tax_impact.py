"""
tax_impact.py

Canadian income tax on rental profits and capital gains on sale.

- Marginal rate = federal + provincial bracket rate at total income
- Deductions: operating expenses, vacancy loss, mortgage interest for the
  year (from the amortization schedule), CCA Class 1 on the building
- Capital gains: 50% inclusion, taxed at the marginal rate
"""

from typing import Dict, List

from rei_engine.constants.canadian_rates import (
    CAPITAL_GAINS_INCLUSION_RATE,
    CCA_BUILDING_RATE,
    FEDERAL_TAX_BRACKETS,
    PROVINCIAL_TAX_BRACKETS,
    tax_from_brackets,
)
from rei_engine.services.loan_calculator import LoanCalculator


# Share of the purchase price attributed to the building (land is not depreciable)
BUILDING_VALUE_SHARE = 0.8

DEDUCTIBLE_EXPENSE_KEYS = [
    "property_tax",
    "insurance",
    "utilities",
    "maintenance",
    "property_management",
    "hoa_fees",
    "other",
]


def _provincial_brackets(province: str):
    return PROVINCIAL_TAX_BRACKETS.get(province, PROVINCIAL_TAX_BRACKETS["ON"])


def _bracket_rate(income: float, brackets) -> float:
    lower = 0.0
    rate = 0.0
    for upper, bracket_rate in brackets:
        if income > lower:
            rate = bracket_rate
        lower = upper
    return rate


def marginal_tax_rate(total_income: float, province: str) -> float:
    """Combined federal + provincial marginal rate, in percent."""
    return _bracket_rate(total_income, FEDERAL_TAX_BRACKETS) + _bracket_rate(
        total_income, _provincial_brackets(province)
    )


def progressive_tax(income: float, province: str) -> float:
    """Federal plus provincial tax owed on `income` (no credits)."""
    return tax_from_brackets(income, FEDERAL_TAX_BRACKETS) + tax_from_brackets(
        income, _provincial_brackets(province)
    )


def cca_for_year(building_value: float, year: int) -> float:
    """
    Class 1 declining balance. Only half the rate is claimed in year 1.
    """
    ucc = building_value
    claim = 0.0
    for y in range(1, year + 1):
        claim = ucc * CCA_BUILDING_RATE * (0.5 if y == 1 else 1.0)
        ucc -= claim
    return claim


class TaxImpact:
    """
    Example:
        analysis = DealAnalyzer(inputs).analyze()
        TaxImpact(analysis, employment_income=95_000).calculate()
        TaxImpact(analysis, employment_income=95_000).project(years=5)
    """

    def __init__(
        self,
        analysis: Dict,
        employment_income: float,
        years_held: int = 5,
        appreciation_rate: float = 3.0,
    ):
        self.analysis = analysis
        self.employment_income = employment_income
        self.years_held = years_held
        self.appreciation_rate = appreciation_rate

        financing = analysis["financing"]
        self.loan = LoanCalculator(
            financing["total_mortgage_with_insurance"],
            financing["interest_rate"],
            financing["amortization_years"],
        )

    def _deductible_expenses(self) -> float:
        annual = self.analysis["expenses"]["annual"]
        return sum(annual[k] for k in DEDUCTIBLE_EXPENSE_KEYS) + self.analysis["revenue"]["annual_vacancy_loss"]

    def calculate(self, year: int = 1) -> Dict:
        a = self.analysis
        province = a["property"]["province"]

        gross = a["revenue"]["annual_rent"]
        deductible = self._deductible_expenses()
        interest = self.loan.interest_for_year(year)
        purchase_price = a["acquisition"]["purchase_price"]
        cca = cca_for_year(purchase_price * BUILDING_VALUE_SHARE, year)

        net_rental = gross - deductible - interest - cca
        total_income = self.employment_income + max(net_rental, 0.0)
        marginal = marginal_tax_rate(total_income, province)

        rental_tax = net_rental * marginal / 100 if net_rental > 0 else 0.0
        after_tax_cf = a["cash_flow"]["annual_net"] - rental_tax

        sale_price = purchase_price * (1 + self.appreciation_rate / 100) ** self.years_held
        gain = sale_price - purchase_price
        taxable_gain = gain * CAPITAL_GAINS_INCLUSION_RATE
        gains_tax = taxable_gain * marginal / 100

        total_deductions = deductible + interest + cca

        return {
            "year": year,
            "gross_rental_income": gross,
            "deductible_expenses": deductible,
            "mortgage_interest_deduction": interest,
            "depreciation_deduction": cca,
            "net_rental_income": net_rental,
            "rental_income_tax": rental_tax,
            "after_tax_cash_flow": after_tax_cf,
            "total_income": total_income,
            "total_income_tax": progressive_tax(total_income, province),
            "purchase_price": purchase_price,
            "estimated_sale_price": sale_price,
            "capital_gain": gain,
            "taxable_capital_gain": taxable_gain,
            "capital_gains_tax": gains_tax,
            "net_proceeds_after_tax": sale_price - gains_tax,
            "effective_tax_rate_rental": rental_tax / gross * 100 if gross > 0 else 0.0,
            "effective_tax_rate_capital_gain": gains_tax / gain * 100 if gain > 0 else 0.0,
            "marginal_tax_rate": marginal,
            "total_tax_deductions": total_deductions,
            "tax_savings_from_deductions": total_deductions * marginal / 100,
        }

    def project(self, years: int = 5) -> List[Dict]:
        rows = []
        cumulative = 0.0
        for year in range(1, years + 1):
            impact = self.calculate(year)
            cumulative += impact["rental_income_tax"]
            rows.append({
                "year": year,
                "rental_income": impact["gross_rental_income"],
                "deductions": impact["total_tax_deductions"],
                "net_income": impact["net_rental_income"],
                "tax_owed": impact["rental_income_tax"],
                "after_tax_cf": impact["after_tax_cash_flow"],
                "cumulative_tax": cumulative,
            })
        return rows
