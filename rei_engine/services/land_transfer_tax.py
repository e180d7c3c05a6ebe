"""
land_transfer_tax.py

Land transfer tax estimator for the supported provinces.

- ON: provincial LTT, plus Toronto municipal LTT inside the city
- BC: property transfer tax with first-time buyer exemption
- AB: no LTT (title registration fee only)
- NS: deed transfer tax
- QC: welcome tax (Montreal schedule)

First-time buyer relief is reported as a rebate against the total.
"""

from typing import Dict, List, Optional

from rei_engine.constants.canadian_rates import (
    ALBERTA_TITLE_REGISTRATION_FEE,
    BC_FTB_FULL_EXEMPTION_MAX_PRICE,
    BC_FTB_PARTIAL_EXEMPTION_MAX_PRICE,
    NOVA_SCOTIA_FTB_REBATE_MAX,
    ONTARIO_FTB_REBATE_MAX,
    PROVINCIAL_LTT_BRACKETS,
    TORONTO_FTB_REBATE_MAX,
    TORONTO_MUNICIPAL_LTT_BRACKETS,
    tax_from_brackets,
)
from rei_engine.exceptions import UnsupportedProvinceError


class LandTransferTax:
    def __init__(
        self,
        purchase_price: float,
        province: str,
        city: Optional[str] = None,
        is_first_time_buyer: bool = False,
    ):
        self.purchase_price = purchase_price
        self.province = (province or "").upper()
        self.city = city or ""
        self.is_first_time_buyer = is_first_time_buyer

        if self.province not in PROVINCIAL_LTT_BRACKETS:
            raise UnsupportedProvinceError(province)

    def _provincial(self) -> float:
        return tax_from_brackets(self.purchase_price, PROVINCIAL_LTT_BRACKETS[self.province])

    def _is_toronto(self) -> bool:
        return self.province == "ON" and "toronto" in self.city.lower()

    def _municipal(self) -> float:
        if self._is_toronto():
            return tax_from_brackets(self.purchase_price, TORONTO_MUNICIPAL_LTT_BRACKETS)
        return 0.0

    def calculate(self) -> Dict:
        price = self.purchase_price
        provincial = self._provincial()
        municipal = self._municipal()
        rebate = 0.0
        breakdown: List[str] = []

        if self.province == "ON":
            breakdown.append(f"Ontario Provincial LTT: ${provincial:,.2f}")
            if self._is_toronto():
                breakdown.append(f"Toronto Municipal LTT: ${municipal:,.2f}")
            if self.is_first_time_buyer:
                rebate = min(ONTARIO_FTB_REBATE_MAX, provincial)
                if self._is_toronto():
                    rebate += min(TORONTO_FTB_REBATE_MAX, municipal)
                breakdown.append(f"First-time buyer rebate: -${rebate:,.2f}")

        elif self.province == "BC":
            breakdown.append(f"BC Property Transfer Tax: ${provincial:,.2f}")
            if self.is_first_time_buyer and price <= BC_FTB_FULL_EXEMPTION_MAX_PRICE:
                rebate = provincial
                breakdown.append(f"First-time buyer exemption: -${rebate:,.2f}")
            elif self.is_first_time_buyer and price <= BC_FTB_PARTIAL_EXEMPTION_MAX_PRICE:
                rebate = tax_from_brackets(
                    BC_FTB_FULL_EXEMPTION_MAX_PRICE, PROVINCIAL_LTT_BRACKETS["BC"]
                )
                breakdown.append(f"First-time buyer partial exemption: -${rebate:,.2f}")

        elif self.province == "AB":
            breakdown.append("Alberta has no land transfer tax")
            breakdown.append(
                f"Title registration fee: ~${ALBERTA_TITLE_REGISTRATION_FEE} (not included in LTT calculation)"
            )

        elif self.province == "NS":
            breakdown.append(f"Nova Scotia Deed Transfer Tax: ${provincial:,.2f}")
            if self.is_first_time_buyer:
                rebate = min(NOVA_SCOTIA_FTB_REBATE_MAX, provincial)
                breakdown.append(f"First-time buyer rebate: -${rebate:,.2f}")

        elif self.province == "QC":
            breakdown.append(f"Quebec Welcome Tax (Montreal rates): ${provincial:,.2f}")
            breakdown.append("Note: Welcome tax varies by municipality")

        total = provincial + municipal

        return {
            "provincial_tax": provincial,
            "municipal_tax": municipal,
            "total_tax": total,
            "rebate": rebate,
            "net_tax": total - rebate,
            "breakdown": breakdown,
        }
