import pytest

from rei_engine.models.tax_impact import TaxImpact, cca_for_year, marginal_tax_rate, progressive_tax


def test_marginal_rates():
    assert marginal_tax_rate(100_000, "ON") == pytest.approx(29.65)
    assert marginal_tax_rate(50_000, "AB") == pytest.approx(25.0)
    # Unknown provinces fall back to Ontario brackets
    assert marginal_tax_rate(50_000, "YT") == pytest.approx(20.05)


def test_progressive_tax():
    assert progressive_tax(50_000, "ON") == pytest.approx(10_025)


def test_cca_half_year_rule():
    assert cca_for_year(400_000, 1) == pytest.approx(8_000)
    assert cca_for_year(400_000, 2) == pytest.approx(15_680)


def test_first_year_rental_tax(analysis):
    impact = TaxImpact(analysis, employment_income=90_000).calculate()

    assert impact["deductible_expenses"] == pytest.approx(10_200)
    assert 19_700 < impact["mortgage_interest_deduction"] < 19_900
    assert impact["depreciation_deduction"] == pytest.approx(8_000)
    assert impact["net_rental_income"] == pytest.approx(3_987.5, abs=60)
    assert impact["marginal_tax_rate"] == pytest.approx(29.65)
    assert impact["rental_income_tax"] == pytest.approx(impact["net_rental_income"] * 0.2965)
    assert impact["after_tax_cash_flow"] == pytest.approx(
        analysis["cash_flow"]["annual_net"] - impact["rental_income_tax"]
    )


def test_capital_gains_on_sale(analysis):
    impact = TaxImpact(analysis, employment_income=90_000, years_held=5, appreciation_rate=3.0).calculate()

    assert impact["estimated_sale_price"] == pytest.approx(579_637, abs=1)
    assert impact["taxable_capital_gain"] == pytest.approx(impact["capital_gain"] * 0.5)
    assert impact["effective_tax_rate_capital_gain"] == pytest.approx(29.65 * 0.5)


def test_rental_loss_is_not_taxed(negative_analysis):
    impact = TaxImpact(negative_analysis, employment_income=90_000).calculate()

    assert impact["net_rental_income"] < 0
    assert impact["rental_income_tax"] == 0.0
    assert impact["total_income"] == 90_000


def test_projection_accumulates_tax(analysis):
    rows = TaxImpact(analysis, employment_income=90_000).project(years=3)

    assert [r["year"] for r in rows] == [1, 2, 3]
    assert rows[-1]["cumulative_tax"] == pytest.approx(sum(r["tax_owed"] for r in rows))
    # Larger CCA claim in year 2 lowers taxable income
    assert rows[1]["net_income"] < rows[0]["net_income"]
