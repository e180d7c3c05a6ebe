import pytest

from rei_engine.models.break_even import BreakEvenAnalyzer
from rei_engine.models.deal_analyzer import analyze_deal
from rei_engine.models.property_inputs import PropertyInputs


def test_positive_deal_needs_nothing(analysis):
    result = BreakEvenAnalyzer(analysis).analyze()

    assert result["is_currently_cash_flow_positive"] is True
    assert result["monthly_shortfall"] == 0.0
    assert result["rent_increase_needed_dollars"] == 0.0
    assert result["purchase_price_reduction_needed"] == 0.0
    assert result["years_to_positive_cf"] == 0
    assert result["primary_issue"] == "None - cash flow positive"
    assert result["quickest_path_to_positive"] == "Already positive"


def test_positive_deal_cushions(analysis):
    result = BreakEvenAnalyzer(analysis).analyze()

    assert result["break_even_occupancy"] == pytest.approx(86.1, abs=0.1)
    assert result["interest_rate_cushion"] > 0


def test_negative_deal_levers(negative_analysis):
    result = BreakEvenAnalyzer(negative_analysis).analyze()
    shortfall = result["monthly_shortfall"]

    assert shortfall == pytest.approx(2_134.05, abs=0.5)
    assert result["break_even_rent"] == pytest.approx(3_000 + shortfall)
    assert result["expense_reduction_needed"] == pytest.approx(shortfall * 12)
    assert result["max_purchase_price_for_positive_cf"] < 900_000
    # Vacancy cost is smaller than the shortfall, so full occupancy is required
    assert result["max_affordable_vacancy_percent"] == 0.0
    assert result["break_even_occupancy"] == 100
    assert result["primary_issue"] == "Low Rent"


def test_rent_growth_timeline(negative_analysis):
    result = BreakEvenAnalyzer(negative_analysis).analyze()

    # 3,000 * (1.025^n - 1) first covers the shortfall at n = 22
    assert result["years_to_positive_cf"] == 22
    assert result["cumulative_loss_until_positive"] < 0


def test_hopeless_deal_never_turns_positive(toronto_property):
    toronto_property["monthly_rent"] = 1_000
    result = BreakEvenAnalyzer(analyze_deal(PropertyInputs(**toronto_property))).analyze()

    assert result["years_to_positive_cf"] is None
    assert result["is_currently_cash_flow_positive"] is False
