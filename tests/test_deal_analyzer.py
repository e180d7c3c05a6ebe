import pytest
from pydantic import ValidationError

from rei_engine.exceptions import InsufficientDownPaymentError
from rei_engine.models.deal_analyzer import DealAnalyzer, analyze_deal, breakeven_occupancy, estimate_renovation_cost
from rei_engine.models.property_inputs import PropertyInputs


# ---------------------------------------------------------
# Inputs
# ---------------------------------------------------------

def test_down_payment_amount_is_derived(inputs):
    assert inputs.down_payment_amount == pytest.approx(100_000)
    assert inputs.is_multi_unit is False


def test_price_must_be_positive(hamilton_property):
    hamilton_property["purchase_price"] = 0
    with pytest.raises(ValidationError):
        PropertyInputs(**hamilton_property)


def test_unsupported_province_rejected(hamilton_property):
    hamilton_property["province"] = "MB"
    with pytest.raises(ValidationError):
        PropertyInputs(**hamilton_property)


# ---------------------------------------------------------
# Core pipeline on the reference deal
# ---------------------------------------------------------

def test_acquisition(analysis):
    acq = analysis["acquisition"]

    assert acq["down_payment"] == pytest.approx(100_000)
    assert acq["land_transfer_tax"] == pytest.approx(6_475)
    # 100,000 + 6,475 + 1,500 legal + 500 inspection + 300 appraisal + 250 title
    assert acq["total_acquisition_cost"] == pytest.approx(109_025)
    assert acq["total_cash_needed"] == pytest.approx(109_025)


def test_financing(analysis):
    fin = analysis["financing"]

    assert fin["cmhc_premium"] == 0.0
    assert fin["mortgage_amount"] == pytest.approx(400_000)
    assert fin["monthly_payment"] == pytest.approx(2338.36, abs=0.05)
    assert fin["stress_test_rate"] == pytest.approx(7.0)
    assert fin["stress_test_passes"] is True


def test_revenue_and_expenses(analysis):
    assert analysis["revenue"]["vacancy_loss_monthly"] == pytest.approx(175)
    assert analysis["revenue"]["effective_monthly_income"] == pytest.approx(3_325)

    monthly = analysis["expenses"]["monthly"]
    assert monthly["property_tax"] == pytest.approx(400)
    assert monthly["maintenance"] == pytest.approx(175)
    assert monthly["total"] == pytest.approx(3013.36, abs=0.05)
    assert analysis["expenses"]["annual_operating"] == pytest.approx(8_100)


def test_cash_flow_and_metrics(analysis):
    cf = analysis["cash_flow"]
    metrics = analysis["metrics"]

    assert cf["monthly_net"] == pytest.approx(311.64, abs=0.05)
    assert cf["annual_noi"] == pytest.approx(31_800)
    assert metrics["cap_rate"] == pytest.approx(6.36)
    assert metrics["grm"] == pytest.approx(500_000 / 42_000)
    assert metrics["dscr"] == pytest.approx(1.133, abs=0.001)
    assert metrics["breakeven_occupancy"] == pytest.approx(86.1, abs=0.1)


def test_market_comparison_and_flags(analysis):
    market = analysis["market_comparison"]
    assert market["market"] == "Hamilton"
    assert market["market_avg_cap_rate"] == 4.0
    assert "above market" in market["cap_rate_vs_market"]

    flags = analysis["flags"]
    assert flags["low_dscr"] is True
    assert flags["negative_cash_flow"] is False
    assert flags["below_market_cap_rate"] is False
    assert flags["high_ltv"] is False

    assert len(analysis["warnings"]) == 2
    assert any("DSCR" in w for w in analysis["warnings"])
    assert any("breakeven occupancy" in w for w in analysis["warnings"])


def test_scoring_is_attached(analysis):
    # 20 cash flow + 5 CoC + 20 cap rate + 8 DSCR + 10 stress test
    assert analysis["scoring"]["total_score"] == 63
    assert analysis["scoring"]["grade"] == "C"


def test_property_snapshot_is_plain_dict(analysis):
    assert analysis["property"]["city"] == "Hamilton"
    assert analysis["brrrr"] is None


# ---------------------------------------------------------
# Variants
# ---------------------------------------------------------

def test_negative_cash_flow_warning(negative_analysis):
    assert negative_analysis["flags"]["negative_cash_flow"] is True
    assert negative_analysis["warnings"][0].startswith("Negative cash flow")


def test_multi_unit_uses_multi_unit_benchmark(hamilton_property):
    hamilton_property["property_type"] = "duplex"
    result = analyze_deal(PropertyInputs(**hamilton_property))
    assert result["market_comparison"]["market_avg_cap_rate"] == 5.0


def test_unknown_city_uses_default_benchmark(hamilton_property):
    hamilton_property["city"] = "Thunder Bay"
    result = analyze_deal(PropertyInputs(**hamilton_property))
    assert result["market_comparison"]["market"] == "default"


def test_insured_mortgage(hamilton_property):
    hamilton_property["down_payment_percent"] = 10
    result = analyze_deal(PropertyInputs(**hamilton_property))

    assert result["financing"]["cmhc_premium"] == pytest.approx(13_950)
    assert result["financing"]["total_mortgage_with_insurance"] == pytest.approx(463_950)
    assert result["flags"]["high_ltv"] is True


def test_cmhc_unavailable_over_one_million(hamilton_property):
    hamilton_property.update(purchase_price=1_200_000, down_payment_percent=10, monthly_rent=6_000)
    result = analyze_deal(PropertyInputs(**hamilton_property))

    assert result["financing"]["cmhc_available"] is False
    assert any("CMHC insurance not available" in w for w in result["warnings"])
    assert any("require 20% down" in w for w in result["warnings"])


def test_insufficient_down_payment_raises(hamilton_property):
    hamilton_property["down_payment_percent"] = 3
    with pytest.raises(InsufficientDownPaymentError):
        DealAnalyzer(PropertyInputs(**hamilton_property)).analyze()


def test_stress_test_with_low_income(hamilton_property):
    hamilton_property["gross_annual_income"] = 40_000
    result = analyze_deal(PropertyInputs(**hamilton_property))

    assert result["flags"]["fails_stress_test"] is True
    assert result["scoring"]["components"]["stress_test"] == 0
    assert any("GDS" in w for w in result["warnings"])


def test_brrrr_refinance(hamilton_property):
    hamilton_property.update(
        strategy="brrrr",
        property_condition="heavy_reno",
        renovation_cost=50_000,
        after_repair_value=650_000,
    )
    result = analyze_deal(PropertyInputs(**hamilton_property))
    brrrr = result["brrrr"]

    # Six vacant months of mortgage, tax and insurance by default
    holding = (result["expenses"]["monthly"]["mortgage"] + 400 + 100) * 6
    assert brrrr["holding_period_months"] == 6
    assert brrrr["holding_costs"] == pytest.approx(holding)
    assert brrrr["holding_costs"] == pytest.approx(17_030.17, abs=0.1)
    assert brrrr["renovation_contingency"] == pytest.approx(7_500)
    assert brrrr["refinance_amount"] == pytest.approx(487_500)
    assert brrrr["total_investment"] == pytest.approx(109_025 + 50_000 + holding)
    assert brrrr["cash_left_in_deal"] == pytest.approx(brrrr["total_investment"] - brrrr["cash_recovered"])
    assert brrrr["infinite_return"] is False
    assert brrrr["effective_coc_return"] is not None
    assert any("Major renovations" in w for w in result["warnings"])


def test_brrrr_renovation_timeline_sets_holding_period(hamilton_property):
    hamilton_property.update(
        strategy="brrrr",
        renovation_cost=50_000,
        after_repair_value=650_000,
        renovation_timeline_months=3,
    )
    brrrr = analyze_deal(PropertyInputs(**hamilton_property))["brrrr"]

    assert brrrr["holding_period_months"] == 3
    assert brrrr["holding_costs"] == pytest.approx(17_030.17 / 2, abs=0.1)


def test_brrrr_all_cash_recovered_is_infinite_return(hamilton_property):
    hamilton_property.update(
        strategy="brrrr",
        renovation_cost=50_000,
        after_repair_value=900_000,
    )
    brrrr = analyze_deal(PropertyInputs(**hamilton_property))["brrrr"]

    # 675,000 refinance against a ~391,700 balance returns more than was put in
    assert brrrr["refinance_amount"] == pytest.approx(675_000)
    assert brrrr["cash_recovered"] > brrrr["total_investment"]
    assert brrrr["cash_left_in_deal"] <= 0
    assert brrrr["infinite_return"] is True
    assert brrrr["effective_coc_return"] is None


def test_no_brrrr_section_without_arv(hamilton_property):
    hamilton_property["strategy"] = "brrrr"
    assert analyze_deal(PropertyInputs(**hamilton_property))["brrrr"] is None


def test_zero_rent_analysis(hamilton_property):
    hamilton_property["monthly_rent"] = 0
    result = analyze_deal(PropertyInputs(**hamilton_property))
    metrics = result["metrics"]

    assert result["revenue"]["annual_gross_income"] == 0
    assert metrics["grm"] == 0.0
    assert metrics["expense_ratio"] == 0.0
    assert metrics["breakeven_occupancy"] == 100.0
    assert result["flags"]["negative_cash_flow"] is True
    assert result["market_comparison"]["deal_rent_to_price"] == 0


def test_explicit_zero_closing_costs_are_kept(hamilton_property):
    hamilton_property.update(legal_fees=0, inspection_cost=0, appraisal_cost=0)
    acq = analyze_deal(PropertyInputs(**hamilton_property))["acquisition"]

    assert acq["legal_fees"] == 0
    assert acq["inspection"] == 0
    assert acq["appraisal"] == 0
    # Down payment, LTT and title insurance only
    assert acq["total_acquisition_cost"] == pytest.approx(106_725)


def test_closing_cost_override(hamilton_property):
    hamilton_property["legal_fees"] = 2_000
    acq = analyze_deal(PropertyInputs(**hamilton_property))["acquisition"]

    assert acq["legal_fees"] == 2_000
    assert acq["total_acquisition_cost"] == pytest.approx(109_525)


def test_recommended_maintenance_from_building_age(hamilton_property):
    hamilton_property["year_built"] = 1950
    expenses = analyze_deal(PropertyInputs(**hamilton_property))["expenses"]

    # Over 50 years old: 3.5% of value per year
    assert expenses["recommended_maintenance_annual"] == pytest.approx(17_500)


def test_no_recommended_maintenance_without_year_built(hamilton_property):
    del hamilton_property["year_built"]
    expenses = analyze_deal(PropertyInputs(**hamilton_property))["expenses"]

    assert expenses["recommended_maintenance_annual"] is None


def test_breakeven_occupancy_without_income():
    assert breakeven_occupancy(10_000, 0) == 100.0


def test_renovation_estimate_is_ordered():
    estimate = estimate_renovation_cost("moderate_reno", 1_000)
    assert estimate["low"] <= estimate["mid"] <= estimate["high"]
