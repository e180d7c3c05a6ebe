import pytest
from pydantic import ValidationError

from rei_engine.models.airbnb_analyzer import (
    AirbnbAnalyzer,
    AirbnbInputs,
    management_intensity,
    optimal_pricing,
    regulatory_risk,
    seasonal_projections,
)
from rei_engine.models.deal_analyzer import DealAnalyzer
from rei_engine.models.property_inputs import PropertyInputs


@pytest.fixture
def str_inputs():
    return AirbnbInputs(
        average_daily_rate=200,
        occupancy_rate=60,
        bookings_per_month=6,
        cleaning_fee_per_booking=80,
        cleaning_cost_per_booking=60,
        monthly_utilities=150,
        supplies_monthly=50,
        extra_insurance_annual=600,
        furnishing_cost=15_000,
    )


def test_revenue(analysis, str_inputs):
    result = AirbnbAnalyzer(analysis, str_inputs).analyze()

    # 219 occupied nights at $200, plus 72 cleaning fees at $80
    assert result["gross_rental_income"] == pytest.approx(43_800)
    assert result["cleaning_fees_collected"] == pytest.approx(5_760)
    assert result["total_gross_revenue"] == pytest.approx(49_560)
    assert result["revenue_per_available_night"] == pytest.approx(120)
    assert result["average_revenue_per_booking"] == pytest.approx(49_560 / 72)


def test_expenses_include_base_tax_and_insurance(analysis, str_inputs):
    result = AirbnbAnalyzer(analysis, str_inputs).analyze()

    assert result["platform_fees"] == pytest.approx(1_486.8)
    assert result["cleaning_costs"] == pytest.approx(4_320)
    assert result["total_str_expenses"] == pytest.approx(14_806.8)


def test_comparison_with_long_term_rental(analysis, str_inputs):
    result = AirbnbAnalyzer(analysis, str_inputs).analyze()

    ltr = analysis["cash_flow"]["annual_net"]
    assert result["long_term_annual_cash_flow"] == pytest.approx(ltr)
    assert result["net_cash_flow"] == pytest.approx(49_560 - 14_806.8 - analysis["expenses"]["annual"]["mortgage"])
    assert result["str_vs_ltr_cash_flow_difference"] == pytest.approx(result["net_cash_flow"] - ltr)
    assert result["str_vs_ltr_percentage_increase"] > 0
    assert result["initial_investment"] == pytest.approx(109_025 + 15_000)


def test_break_even_occupancy(analysis, str_inputs):
    result = AirbnbAnalyzer(analysis, str_inputs).analyze()
    # LTR net operating revenue 33,900 over a daily profit of ~132.39
    assert result["break_even_occupancy"] == pytest.approx(70.15, abs=0.05)


def test_break_even_capped_when_str_cannot_compete(analysis):
    weak = AirbnbInputs(average_daily_rate=60, occupancy_rate=30, bookings_per_month=3, extra_insurance_annual=5_000)
    assert AirbnbAnalyzer(analysis, weak).analyze()["break_even_occupancy"] == 100.0


def test_break_even_floored_when_long_term_rental_loses_money(hamilton_property):
    # Operating costs above gross rent: long-term net operating revenue is negative
    hamilton_property["property_tax_annual"] = 60_000
    base = DealAnalyzer(PropertyInputs(**hamilton_property)).analyze()
    premium = AirbnbInputs(average_daily_rate=600, occupancy_rate=60, bookings_per_month=6)

    assert AirbnbAnalyzer(base, premium).analyze()["break_even_occupancy"] == 0.0


def test_risk_labels(analysis, str_inputs):
    result = AirbnbAnalyzer(analysis, str_inputs).analyze()

    assert result["regulatory_risk"] == "Low"
    assert result["seasonal_variance_risk"] == "Medium"
    assert result["management_intensity"] == "Medium"
    assert regulatory_risk("Toronto") == "High"
    assert management_intensity(1) == "High"


def test_occupancy_must_be_a_percentage():
    with pytest.raises(ValidationError):
        AirbnbInputs(average_daily_rate=150, occupancy_rate=120, bookings_per_month=5)


def test_optimal_pricing():
    prices = optimal_pricing(100, "resort")

    assert prices["peak_season_rate"] == pytest.approx(150)
    assert prices["off_season_rate"] == pytest.approx(75)
    assert prices["last_minute_discount"] == pytest.approx(85)


def test_seasonal_projection_caps_occupancy():
    rows = seasonal_projections(200, 90, "resort")

    assert len(rows) == 12
    july = rows[6]
    assert july["month"] == "July"
    assert july["occupancy"] == 100.0
    assert july["adr"] == pytest.approx(280)
    assert july["revenue"] == pytest.approx(280 * 31)
