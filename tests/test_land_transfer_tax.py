import pytest

from rei_engine.exceptions import UnsupportedProvinceError
from rei_engine.services.land_transfer_tax import LandTransferTax


def test_ontario_outside_toronto():
    result = LandTransferTax(500_000, "ON", "Hamilton").calculate()

    # 275 + 1,950 + 2,250 + 2,000
    assert result["provincial_tax"] == pytest.approx(6_475)
    assert result["municipal_tax"] == 0.0
    assert result["net_tax"] == pytest.approx(6_475)


def test_toronto_pays_municipal_tax_too():
    result = LandTransferTax(500_000, "ON", "Toronto").calculate()

    assert result["municipal_tax"] == pytest.approx(6_475)
    assert result["total_tax"] == pytest.approx(12_950)
    assert any("Toronto" in line for line in result["breakdown"])


def test_toronto_first_time_buyer_gets_both_rebates():
    result = LandTransferTax(500_000, "ON", "Toronto", is_first_time_buyer=True).calculate()

    assert result["rebate"] == pytest.approx(4_000 + 4_475)
    assert result["net_tax"] == pytest.approx(12_950 - 8_475)


def test_ontario_top_bracket():
    result = LandTransferTax(2_500_000, "ON", "Ottawa").calculate()
    assert result["provincial_tax"] == pytest.approx(48_975)


def test_bc_first_time_buyer_full_exemption():
    result = LandTransferTax(400_000, "BC", "Victoria", is_first_time_buyer=True).calculate()

    assert result["provincial_tax"] == pytest.approx(6_000)
    assert result["net_tax"] == pytest.approx(0.0)


def test_bc_first_time_buyer_partial_exemption():
    result = LandTransferTax(510_000, "BC", "Victoria", is_first_time_buyer=True).calculate()

    assert result["provincial_tax"] == pytest.approx(8_200)
    assert result["rebate"] == pytest.approx(8_000)
    assert result["net_tax"] == pytest.approx(200)


def test_alberta_has_no_transfer_tax():
    result = LandTransferTax(600_000, "AB", "Calgary").calculate()

    assert result["net_tax"] == 0.0
    assert any("registration fee" in line for line in result["breakdown"])


def test_nova_scotia_with_rebate():
    result = LandTransferTax(300_000, "NS", "Halifax", is_first_time_buyer=True).calculate()

    assert result["provincial_tax"] == pytest.approx(4_050)
    assert result["rebate"] == pytest.approx(1_500)
    assert result["net_tax"] == pytest.approx(2_550)


def test_quebec_welcome_tax():
    result = LandTransferTax(300_000, "QC", "Montreal").calculate()
    assert result["provincial_tax"] == pytest.approx(2_851)


def test_lowercase_province_is_accepted():
    assert LandTransferTax(500_000, "on", "Hamilton").calculate()["net_tax"] == pytest.approx(6_475)


def test_unsupported_province():
    with pytest.raises(UnsupportedProvinceError) as excinfo:
        LandTransferTax(500_000, "MB", "Winnipeg")

    assert "MB" in str(excinfo.value)
    assert isinstance(excinfo.value, ValueError)
