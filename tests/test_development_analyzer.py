"""
Reference conversion worked out by hand: an existing Hamilton building
bought for 500,000 and moderately renovated into a 1,000 sqft 2br at
2,400 and a 600 sqft 1br at 1,700.

    base construction 50,000 + 33,000 = 83,000
    hard costs 83,000 + 8,300 site + 4,150 permits + 12,800 utilities
               + 2,490 landscaping = 110,740
    soft costs 35% of hard = 38,759 -> development cost 149,499
    timeline ceil(8 x 0.7 x 0.96) = 6 months
"""

import pytest
from pydantic import ValidationError

from rei_engine.exceptions import InvalidInputError
from rei_engine.models.development_analyzer import (
    DevelopmentAnalyzer,
    DevelopmentInputs,
    MarketComparable,
    competition_level,
    development_inputs_from_property,
    unit_type_for_bedrooms,
    weighted_market_rent,
)
from rei_engine.models.property_inputs import PropertyInputs
from rei_engine.services.loan_calculator import monthly_payment


@pytest.fixture
def conversion():
    return DevelopmentInputs(
        city="Hamilton",
        province="ON",
        development_type="existing_structure",
        renovation_scope="moderate",
        land_cost=500_000,
        target_units=[
            {"unit_type": "2br", "square_feet": 1_000, "target_rent": 2_400},
            {"unit_type": "1br", "square_feet": 600, "target_rent": 1_700},
        ],
    )


@pytest.fixture
def result(conversion):
    return DevelopmentAnalyzer(conversion).analyze()


# ---------------------------------------------------------
# Development costs
# ---------------------------------------------------------

def test_hard_costs(result):
    hard = result["development_analysis"]["construction_costs"]

    assert hard["base_construction"] == pytest.approx(83_000)
    assert hard["site_preparation"] == pytest.approx(8_300)
    assert hard["permits_approvals"] == pytest.approx(4_150)
    assert hard["utilities_connections"] == pytest.approx(12_800)
    assert hard["landscaping"] == pytest.approx(2_490)
    assert hard["total_hard_costs"] == pytest.approx(110_740)


def test_soft_costs_and_totals(result):
    dev = result["development_analysis"]

    assert dev["soft_costs"]["architect_engineer"] == pytest.approx(8_859.2)
    assert dev["soft_costs"]["contingency"] == pytest.approx(16_611)
    assert dev["soft_costs"]["total_soft_costs"] == pytest.approx(38_759)
    assert dev["total_development_cost"] == pytest.approx(149_499)
    assert dev["cost_per_unit"] == pytest.approx(74_749.5)
    assert dev["cost_per_sqft"] == pytest.approx(93.44, abs=0.01)


def test_timeline_and_milestones(result):
    dev = result["development_analysis"]
    timeline = dev["construction_timeline"]

    assert dev["timeline_months"] == 6
    assert timeline["planning_phase_months"] == 2
    assert timeline["construction_phase_months"] == 5
    assert timeline["key_milestones"]["construction_complete"] == 7
    assert timeline["key_milestones"]["first_tenant"] == 6
    assert timeline["key_milestones"]["stabilized_occupancy"] == 10


def test_timeline_is_clamped():
    tower = DevelopmentInputs(
        city="Hamilton",
        province="ON",
        development_type="raw_land",
        renovation_scope="new_build",
        target_units=[{"unit_type": "3br", "square_feet": 1_200, "target_rent": 2_800}] * 12,
    )
    touch_up = DevelopmentInputs(
        city="Hamilton",
        province="ON",
        renovation_scope="cosmetic",
        target_units=[{"unit_type": "studio", "square_feet": 400, "target_rent": 1_200}],
    )

    assert DevelopmentAnalyzer(tower).timeline_months() == 36
    assert DevelopmentAnalyzer(touch_up).timeline_months() == 3


def test_financing_needs(result):
    financing = result["development_analysis"]["financing_needs"]

    assert financing["total_project_cost"] == pytest.approx(649_499)
    assert financing["equity_required"] == pytest.approx(162_374.75)
    assert financing["construction_loan_amount"] == pytest.approx(487_124.25)
    assert financing["interest_during_construction"] == pytest.approx(17_049.35, abs=0.01)
    # 49,200 rent, 5% vacancy, 40% expenses, 6% cap rate
    assert financing["estimated_completed_value"] == pytest.approx(467_400)
    assert financing["permanent_financing"] == pytest.approx(373_920)


def test_cost_overrides(conversion):
    conversion = DevelopmentInputs(**{
        **conversion.model_dump(),
        "construction_cost_per_sqft": 100,
        "site_preparation_cost": 0,
        "permit_costs": 2_000,
        "architect_engineer_fees": 5_000,
    })
    dev = DevelopmentAnalyzer(conversion).development_costs()

    assert dev["construction_costs"]["base_construction"] == pytest.approx(160_000)
    assert dev["construction_costs"]["site_preparation"] == 0
    assert dev["construction_costs"]["permits_approvals"] == 2_000
    assert dev["soft_costs"]["architect_engineer"] == 5_000


# ---------------------------------------------------------
# Market rents
# ---------------------------------------------------------

def test_rents_estimated_without_comparables(result):
    market = result["market_analysis"]
    two_bed = market["rent_analysis_by_unit"]["2br"]
    one_bed = market["rent_analysis_by_unit"]["1br"]

    assert two_bed["market_rent"] == pytest.approx(2_400)
    assert two_bed["rent_premium_discount"] == pytest.approx(0)
    assert two_bed["market_rent_range"]["low"] == pytest.approx(2_040)
    assert one_bed["market_rent"] == pytest.approx(1_560)
    assert one_bed["rent_premium_discount"] == pytest.approx(8.97, abs=0.01)
    assert one_bed["comparables_used"] == 0

    assert market["overall_market_score"] == 6.9
    assert market["demand_indicators"]["competition_level"] == "moderate"


def test_rents_from_weighted_comparables(conversion):
    conversion.comparable_rents = [
        MarketComparable(unit_type="2br", rent=2_200, distance_km=0, age_years=0),
        MarketComparable(unit_type="2br", rent=2_600, distance_km=2, age_years=10),
    ]
    two_bed = DevelopmentAnalyzer(conversion).market_analysis()["rent_analysis_by_unit"]["2br"]

    # Weights 1.0 and 0.5 x 0.5
    assert two_bed["market_rent"] == pytest.approx(2_280)
    assert two_bed["market_rent_range"] == {"low": 2_200, "average": 2_400, "high": 2_600}
    assert two_bed["rent_premium_discount"] == pytest.approx(5.263, abs=0.001)
    assert two_bed["comparables_used"] == 2


def test_units_of_one_type_are_grouped(conversion):
    conversion.target_units = conversion.target_units + [
        conversion.target_units[0].model_copy(update={"square_feet": 800, "target_rent": 2_000})
    ]
    two_bed = DevelopmentAnalyzer(conversion).market_analysis()["rent_analysis_by_unit"]["2br"]

    assert two_bed["unit_count"] == 2
    assert two_bed["average_square_feet"] == pytest.approx(900)
    assert two_bed["target_rent"] == pytest.approx(2_200)


def test_weighted_market_rent_without_comparables():
    assert weighted_market_rent([]) == 0.0


def test_competition_level():
    assert competition_level(2) == "low"
    assert competition_level(5) == "moderate"
    assert competition_level(9) == "high"


# ---------------------------------------------------------
# Profitability gaps
# ---------------------------------------------------------

def test_gaps_against_stabilized_cash_flow(result):
    gaps = result["profitability_gaps"]
    debt_service = monthly_payment(649_499 * 0.75, 5.5, 25) * 12
    cash_flow = 49_200 * 0.95 - 49_200 * 0.35 - debt_service

    assert gaps["annual_cash_flow"] == pytest.approx(cash_flow)
    assert gaps["cash_flow_gap"]["target_value"] == 4_800
    assert gaps["cash_flow_gap"]["gap_amount"] == pytest.approx(4_800 - cash_flow)
    assert gaps["roi_gap"]["current_value"] == pytest.approx(cash_flow / 649_499 * 100)

    assert gaps["rent_gap"]["current_value"] == pytest.approx(2_050)
    assert gaps["rent_gap"]["target_value"] == pytest.approx(1_980)
    assert gaps["rent_gap"]["gap_percentage"] == pytest.approx(-3.41, abs=0.01)
    assert gaps["cost_gap"]["gap_amount"] == pytest.approx(93.44 - 200, abs=0.01)

    assert any("phased development" in r for r in gaps["recommendations"])
    assert not any("Reduce construction costs" in r for r in gaps["recommendations"])


def test_gaps_use_base_deal_cash_flow(conversion, analysis):
    gaps = DevelopmentAnalyzer(conversion, analysis).analyze()["profitability_gaps"]
    assert gaps["annual_cash_flow"] == pytest.approx(analysis["cash_flow"]["annual_net"])


def test_sensitivity(result):
    sensitivity = result["sensitivity"]
    rent = {row["rent_change"]: row["cash_flow_impact"] for row in sensitivity["rent_sensitivity"]}
    timeline = {row["timeline_change"]: row["financing_impact"] for row in sensitivity["timeline_sensitivity"]}
    cost = {row["cost_change"]: row["roi_impact"] for row in sensitivity["cost_sensitivity"]}

    # 10% more rent keeps 60% after vacancy and operating costs
    assert rent[10] == pytest.approx(2_952)
    assert rent[0] == pytest.approx(0)
    assert cost[0] == pytest.approx(0)
    assert timeline[3] == pytest.approx(8_524.67, abs=0.01)
    assert timeline[-6] == pytest.approx(-17_049.35, abs=0.01)


def test_scenarios_are_ordered(result):
    scenarios = result["scenarios"]

    assert scenarios["moderate"]["cash_flow"] == pytest.approx(result["profitability_gaps"]["annual_cash_flow"])
    assert scenarios["conservative"]["cash_flow"] < scenarios["moderate"]["cash_flow"]
    assert scenarios["optimistic"]["roi"] > scenarios["moderate"]["roi"]


def test_warnings(result, conversion):
    assert result["warnings"] == []

    conversion.market_vacancy_rate = 9
    conversion.construction_cost_per_sqft = 400
    warnings = DevelopmentAnalyzer(conversion).analyze()["warnings"]

    assert any("cost per sqft" in w for w in warnings)
    assert any("vacancy" in w for w in warnings)
    assert any("competition" in w for w in warnings)


# ---------------------------------------------------------
# Inputs
# ---------------------------------------------------------

def test_needs_at_least_one_unit():
    with pytest.raises(ValidationError):
        DevelopmentInputs(city="Hamilton", province="ON", target_units=[])


def test_unit_type_for_bedrooms():
    assert unit_type_for_bedrooms(0) == "studio"
    assert unit_type_for_bedrooms(2) == "2br"
    assert unit_type_for_bedrooms(6) == "4br"


def test_inputs_from_property_units(hamilton_property):
    hamilton_property.update(
        property_type="triplex",
        square_feet=2_400,
        strategy="multifamily_development",
        property_condition="heavy_reno",
        units=[
            {"unit_number": "1", "bedrooms": 2, "rent": 1_800, "square_feet": 900},
            {"unit_number": "2", "bedrooms": 1, "rent": 1_400},
            {"unit_number": "3", "bedrooms": 0, "rent": 1_100},
        ],
    )
    dev_inputs = development_inputs_from_property(PropertyInputs(**hamilton_property), development_type="new_construction")

    assert [u.unit_type for u in dev_inputs.target_units] == ["2br", "1br", "studio"]
    assert [u.square_feet for u in dev_inputs.target_units] == [900, 800, 800]
    assert [u.target_rent for u in dev_inputs.target_units] == [1_800, 1_400, 1_100]
    assert dev_inputs.land_cost == 500_000
    assert dev_inputs.renovation_scope == "heavy"
    assert dev_inputs.market_vacancy_rate == 5
    assert dev_inputs.development_type == "new_construction"


def test_inputs_from_property_without_units(inputs):
    with pytest.raises(InvalidInputError):
        development_inputs_from_property(inputs)
