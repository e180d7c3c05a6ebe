import pytest

from rei_engine.models.mortgage_qualification import (
    MortgageQualification,
    check_affordability,
    lender_for_credit,
    max_borrowing_power,
)


def test_a_lender_profile():
    result = MortgageQualification(
        gross_annual_income=120_000,
        monthly_mortgage_payment=2_000,
        annual_property_tax=4_800,
        other_monthly_debts=300,
        credit_score=720,
    ).calculate()

    # (2,000 + 400 tax + 150 heat) / 10,000
    assert result["gds_ratio"] == pytest.approx(25.5)
    assert result["tds_ratio"] == pytest.approx(28.5)
    assert result["lender_type"] == "A-Lender"
    assert result["approval_odds"] == "High"
    assert result["max_purchase_price"] > 0


def test_b_lender_profile():
    result = MortgageQualification(
        gross_annual_income=60_000,
        monthly_mortgage_payment=1_800,
        annual_property_tax=2_400,
        other_monthly_debts=200,
        credit_score=650,
    ).calculate()

    assert result["gds_ratio"] == pytest.approx(43.0)
    assert result["tds_ratio"] == pytest.approx(47.0)
    assert result["lender_type"] == "B-Lender"
    assert result["approval_odds"] == "Medium"


def test_condo_fees_count_at_half():
    result = MortgageQualification(
        gross_annual_income=120_000,
        monthly_mortgage_payment=2_000,
        monthly_condo_fees=400,
    ).calculate()
    assert result["gds_ratio"] == pytest.approx(23.5)


def test_low_credit_is_unqualified():
    result = MortgageQualification(120_000, 2_000, credit_score=450).calculate()
    assert result["lender_type"] == "Unqualified"
    assert result["approval_odds"] == "None"


def test_zero_income():
    result = MortgageQualification(0, 2_000).calculate()

    assert result["lender_type"] == "Unqualified"
    assert result["gds_ratio"] == 0.0
    assert result["qualification_amount"] == 0


@pytest.mark.parametrize("score, lender", [(680, "A-Lender"), (679, "B-Lender"), (600, "B-Lender"), (599, "Private")])
def test_lender_for_credit(score, lender):
    assert lender_for_credit(score) == lender


def test_max_borrowing_power_fits_gds_limit():
    result = max_borrowing_power(120_000, 0, 720, interest_rate=5.0)

    assert result["stress_test_rate"] == pytest.approx(7.0)
    assert result["max_purchase_price"] % 1000 == 0
    assert result["max_mortgage_amount"] == round(result["max_purchase_price"] * 0.8)
    assert 38.5 < result["gds_at_max"] <= 39.0
    assert result["lender_type"] == "A-Lender"
    assert result["down_payment_percent"] == 20.0


def test_small_down_payment_grosses_up_mortgage():
    price = max_borrowing_power(120_000, 0, 720, interest_rate=5.0)["max_purchase_price"]
    result = max_borrowing_power(120_000, 0, 720, down_payment_available=price * 0.12, interest_rate=5.0)

    assert result["max_purchase_price"] == price
    assert result["down_payment_percent"] == pytest.approx(12.0)
    assert result["max_mortgage_amount"] == round(price * 0.8 * 1.031)


def test_debts_reduce_borrowing_power():
    clean = max_borrowing_power(120_000, 0, 720, interest_rate=5.0)
    indebted = max_borrowing_power(120_000, 1_500, 720, interest_rate=5.0)
    assert indebted["max_purchase_price"] < clean["max_purchase_price"]


def test_affordability():
    assert check_affordability(300_000, 120_000, 0, 720)["can_afford"] is True

    result = check_affordability(2_000_000, 120_000, 0, 720)
    assert result["can_afford"] is False
    assert result["shortfall"] == pytest.approx(2_000_000 - result["max_affordable"])
    assert "exceeds your qualification" in result["message"]
