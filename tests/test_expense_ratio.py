import pytest

from rei_engine.models.deal_analyzer import analyze_deal
from rei_engine.models.expense_ratio_analyzer import ExpenseRatioAnalyzer, management_fee_benchmark
from rei_engine.models.property_inputs import PropertyInputs


def test_ratio_against_benchmark(analysis):
    report = ExpenseRatioAnalyzer(analysis).analyze()

    assert report["total_annual_revenue"] == pytest.approx(42_000)
    assert report["total_annual_expenses"] == pytest.approx(8_100)
    assert report["expense_ratio"] == pytest.approx(19.29, abs=0.01)
    assert report["market_benchmark_ratio"] == 35
    assert report["target_ratio"] == pytest.approx(31.5)
    assert report["efficiency_rating"] == "Excellent"


def test_savings_potential(analysis):
    report = ExpenseRatioAnalyzer(analysis).analyze()
    lines = {line["category"]: line for line in report["expense_breakdown"]}

    assert lines["Property Tax"]["is_optimizable"] is False
    assert lines["Property Tax"]["potential_savings"] is None
    assert lines["Insurance"]["potential_savings"] == pytest.approx(180)
    assert lines["Maintenance"]["potential_savings"] == pytest.approx(525)
    assert lines["Vacancy Cost"]["potential_savings"] == pytest.approx(630)
    assert report["total_potential_savings"] == pytest.approx(1_335)
    assert report["optimized_expense_ratio"] == pytest.approx(16.107, abs=0.001)


def test_category_rankings(analysis):
    report = ExpenseRatioAnalyzer(analysis).analyze()

    assert report["highest_expense_categories"] == ["Property Tax", "Maintenance", "Vacancy Cost"]
    assert report["most_optimizable_categories"] == ["Vacancy Cost", "Maintenance", "Insurance"]


def test_recommendations_for_lean_deal(analysis):
    recs = ExpenseRatioAnalyzer(analysis).analyze()["recommendations"]

    assert len(recs) == 1
    assert "excellent" in recs[0]


def test_management_recommendation(hamilton_property):
    hamilton_property["property_management_percent"] = 12
    recs = ExpenseRatioAnalyzer(analyze_deal(PropertyInputs(**hamilton_property))).analyze()["recommendations"]
    assert any("self-managing" in r for r in recs)


def test_report_is_cached(analysis):
    analyzer = ExpenseRatioAnalyzer(analysis)
    assert analyzer.analyze() is analyzer.analyze()


def test_projection_phases_in_savings(analysis):
    rows = ExpenseRatioAnalyzer(analysis).project(years=2)

    assert len(rows) == 2
    assert rows[0]["revenue"] == pytest.approx(43_050)
    assert rows[0]["expenses"] == pytest.approx(7_635)
    assert rows[1]["cumulative_savings"] == pytest.approx(2_002.5)


def test_management_benchmark_by_property_type(analysis, hamilton_property):
    lines = {line["category"]: line for line in ExpenseRatioAnalyzer(analysis).analyze()["expense_breakdown"]}
    assert lines["Property Management"]["market_benchmark_percent"] == 8

    hamilton_property["property_type"] = "triplex"
    triplex = ExpenseRatioAnalyzer(analyze_deal(PropertyInputs(**hamilton_property))).analyze()
    lines = {line["category"]: line for line in triplex["expense_breakdown"]}
    assert lines["Property Management"]["market_benchmark_percent"] == 10

    assert management_fee_benchmark("multi_unit_5plus") == 6
    assert management_fee_benchmark("condo_townhouse") == 8
