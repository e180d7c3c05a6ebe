import pytest
from pydantic import ValidationError

from rei_engine.models.financing_optimizer import (
    CREATIVE_FINANCING_OPTIONS,
    FinancingOptimizer,
    FinancingProfile,
    creative_suitability,
    traditional_suitability,
)


def _profile(**overrides):
    values = dict(current_income=90_000, down_payment_available=20_000, monthly_budget=3_000)
    values.update(overrides)
    return FinancingProfile(**values)


def test_thin_down_payment_only_gets_creative_options():
    optimizer = FinancingOptimizer(600_000, _profile())

    assert optimizer.traditional_strategies() == []

    creative = optimizer.creative_strategies()
    assert [s["name"] for s in creative] == ["Joint Venture Partnership", "Vendor Take-Back Mortgage"]
    assert [s["suitability"] for s in creative] == [70, 65]

    result = optimizer.recommend()
    assert result["recommended_strategy"]["name"] == "Joint Venture Partnership"
    assert len(result["alternative_strategies"]) == 1
    assert len(result["action_plan"]) == 7


def test_hot_market_drops_vendor_take_back():
    creative = FinancingOptimizer(600_000, _profile(), market_conditions="hot").creative_strategies()
    assert [s["name"] for s in creative] == ["Joint Venture Partnership"]


def test_heloc_needs_assets():
    creative = FinancingOptimizer(600_000, _profile(current_assets=400_000)).creative_strategies()
    heloc = [s for s in creative if s["name"] == "HELOC Down Payment Strategy"]

    assert len(heloc) == 1
    assert heloc[0]["suitability"] == 65
    assert heloc[0]["risk_level"] == "High"


def test_full_down_payment_unlocks_conventional():
    optimizer = FinancingOptimizer(600_000, _profile(down_payment_available=200_000, monthly_budget=5_000))
    names = [s["name"] for s in optimizer.traditional_strategies()]

    assert "Conventional Mortgage (20% Down)" in names
    assert "High-Ratio Mortgage (19% Down)" in names
    # JV is only offered below 20% down
    assert all(s["name"] != "Joint Venture Partnership" for s in optimizer.creative_strategies())


def test_traditional_suitability_penalizes_shortfall():
    profile = _profile(risk_tolerance="Conservative")
    assert traditional_suitability(profile, 10_000, 2_000) == 100
    assert traditional_suitability(profile, 50_000, 3_500) == 10


def test_creative_suitability_for_conservative_investor():
    profile = _profile(risk_tolerance="Conservative", down_payment_available=150_000)
    assert creative_suitability(profile, "VTB") == 30


def test_no_strategy_available():
    optimizer = FinancingOptimizer(600_000, _profile(down_payment_available=150_000), market_conditions="hot")
    result = optimizer.recommend()

    assert result["recommended_strategy"] is None
    assert result["alternative_strategies"] == []


def test_creative_catalogue():
    assert len(CREATIVE_FINANCING_OPTIONS) == 7
    assert {o["risk_level"] for o in CREATIVE_FINANCING_OPTIONS} <= {"Low", "Medium", "High"}


def test_credit_score_range():
    with pytest.raises(ValidationError):
        _profile(credit_score=950)


def test_no_insured_mortgage_over_one_million():
    optimizer = FinancingOptimizer(1_500_000, _profile(down_payment_available=150_000, monthly_budget=8_000))

    assert optimizer.high_ratio_available() is False
    assert optimizer.traditional_strategies() == []


def test_high_ratio_needs_tiered_minimum_down_payment():
    # Tiered minimum on 700,000: 5% of 500,000 + 10% of 200,000 = 45,000 (~6.43%)
    for available in (35_000, 42_000):
        short = FinancingOptimizer(700_000, _profile(down_payment_available=available))
        assert short.high_ratio_available() is False
        assert short.traditional_strategies() == []

    enough = FinancingOptimizer(700_000, _profile(down_payment_available=50_000))
    strategies = enough.traditional_strategies()

    assert [s["name"] for s in strategies] == ["High-Ratio Mortgage (7% Down)"]
    assert strategies[0]["down_payment_required"] == pytest.approx(50_000)
    assert strategies[0]["cmhc_premium"] > 0
