"""
deal_analyzer.py

Core deal analysis pipeline for a Canadian rental property.

Steps (each feeds the next):
1) Acquisition costs (down payment, land transfer tax, closing costs)
2) Financing (CMHC insurance, mortgage payment, OSFI stress test)
3) Revenue (rent, other income, vacancy)
4) Expenses (monthly and annual)
5) Cash flow and NOI
6) Metrics (cap rate, cash-on-cash, DSCR, GRM, expense ratio, breakeven)
7) BRRRR refinance analysis (brrrr strategy with an ARV only)
8) Market comparison against city benchmarks
9) Flags and warnings
10) Deal score

Output is a plain dict; downstream analyzers (risk, expense ratio,
ACRE, tax, break-even) read from it.
"""

from typing import Any, Dict, List, Optional, Tuple

from rei_engine.constants.canadian_rates import BRRRR_STRATEGY, CLOSING_COSTS, get_maintenance_budget
from rei_engine.constants.market_data import MARKET_BENCHMARKS, RENOVATION_COSTS_PER_SF, market_key
from rei_engine.logging_config import setup_logger
from rei_engine.models.deal_scoring import DealScoring
from rei_engine.models.property_inputs import PropertyInputs
from rei_engine.services.cmhc_insurance import CMHCInsurance
from rei_engine.services.land_transfer_tax import LandTransferTax
from rei_engine.services.loan_calculator import monthly_payment, remaining_balance
from rei_engine.services.stress_test import StressTest


logger = setup_logger(__name__)


def breakeven_occupancy(total_expenses: float, gross_income: float) -> float:
    if gross_income == 0:
        return 100.0
    return total_expenses / gross_income * 100


def estimate_renovation_cost(condition: str, square_feet: float) -> Dict[str, float]:
    """
    Low / mid / high renovation budget for a condition and floor area.
    """
    rates = RENOVATION_COSTS_PER_SF[condition]
    return {
        "low": rates["low"] * square_feet,
        "mid": rates["mid"] * square_feet,
        "high": rates["high"] * square_feet,
    }


class DealAnalyzer:
    """
    Example:
        inputs = PropertyInputs(city="Hamilton", province="ON",
                                purchase_price=600_000, monthly_rent=3_200, ...)
        analysis = DealAnalyzer(inputs).analyze()
        analysis["metrics"]["cap_rate"], analysis["scoring"]["grade"]
    """

    def __init__(self, inputs: PropertyInputs):
        self.inputs = inputs

    # ----------------------------------------------------------
    # 1) Acquisition
    # ----------------------------------------------------------

    def _acquisition(self) -> Dict[str, Any]:
        i = self.inputs

        ltt = LandTransferTax(
            purchase_price=i.purchase_price,
            province=i.province,
            city=i.city,
            is_first_time_buyer=i.is_first_time_buyer,
        ).calculate()

        legal_fees = i.legal_fees if i.legal_fees is not None else CLOSING_COSTS["legal_fees"]
        inspection = i.inspection_cost if i.inspection_cost is not None else CLOSING_COSTS["inspection"]
        appraisal = i.appraisal_cost if i.appraisal_cost is not None else CLOSING_COSTS["appraisal"]
        other_closing_costs = CLOSING_COSTS["title_insurance"]

        total_acquisition_cost = (
            i.down_payment_amount
            + ltt["net_tax"]
            + legal_fees
            + inspection
            + appraisal
            + other_closing_costs
        )

        return {
            "purchase_price": i.purchase_price,
            "down_payment": i.down_payment_amount,
            "land_transfer_tax": ltt["net_tax"],
            "land_transfer_tax_breakdown": ltt["breakdown"],
            "legal_fees": legal_fees,
            "inspection": inspection,
            "appraisal": appraisal,
            "other_closing_costs": other_closing_costs,
            "total_acquisition_cost": total_acquisition_cost,
            "renovation_cost": i.renovation_cost,
            "total_cash_needed": total_acquisition_cost + i.renovation_cost,
        }

    # ----------------------------------------------------------
    # 2) Financing
    # ----------------------------------------------------------

    def _financing(self, acquisition: Dict[str, Any]) -> Dict[str, Any]:
        i = self.inputs

        cmhc = CMHCInsurance(i.purchase_price, i.down_payment_percent).calculate()
        insured_mortgage = cmhc["total_mortgage_with_insurance"]

        payment = monthly_payment(insured_mortgage, i.interest_rate, i.amortization_years)

        stress = StressTest(
            mortgage_amount=insured_mortgage,
            contract_rate=i.interest_rate,
            amortization_years=i.amortization_years,
            gross_annual_income=i.gross_annual_income,
            monthly_property_tax=i.property_tax_annual / 12,
        ).calculate()

        return {
            "mortgage_amount": i.purchase_price - acquisition["down_payment"],
            "cmhc_premium": cmhc["premium"],
            "cmhc_premium_rate": cmhc["premium_rate"],
            "cmhc_available": cmhc["insurance_available"],
            "cmhc_message": cmhc["message"],
            "total_mortgage_with_insurance": insured_mortgage,
            "monthly_payment": payment,
            "annual_payment": payment * 12,
            "interest_rate": i.interest_rate,
            "amortization_years": i.amortization_years,
            "stress_test_rate": stress["stress_test_rate"],
            "stress_test_payment": stress["qualification_payment"],
            "stress_test_passes": stress["passes"],
            "stress_test_message": stress["message"],
        }

    # ----------------------------------------------------------
    # 3) Revenue
    # ----------------------------------------------------------

    def _revenue(self) -> Dict[str, float]:
        i = self.inputs

        total_monthly = i.monthly_rent + i.other_income
        vacancy_loss = total_monthly * i.vacancy_rate / 100
        effective_monthly = total_monthly - vacancy_loss

        return {
            "gross_monthly_rent": i.monthly_rent,
            "other_monthly_income": i.other_income,
            "total_monthly_income": total_monthly,
            "vacancy_loss_monthly": vacancy_loss,
            "effective_monthly_income": effective_monthly,
            "annual_rent": i.monthly_rent * 12,
            "annual_gross_income": total_monthly * 12,
            "annual_vacancy_loss": vacancy_loss * 12,
            "annual_effective_income": effective_monthly * 12,
        }

    # ----------------------------------------------------------
    # 4) Expenses
    # ----------------------------------------------------------

    def _expenses(self, financing: Dict[str, Any], revenue: Dict[str, float]) -> Dict[str, Any]:
        i = self.inputs

        monthly = {
            "mortgage": financing["monthly_payment"],
            "property_tax": i.property_tax_annual / 12,
            "insurance": i.insurance_annual / 12,
            "property_management": revenue["gross_monthly_rent"] * i.property_management_percent / 100,
            "maintenance": revenue["gross_monthly_rent"] * i.maintenance_percent / 100,
            "utilities": i.utilities_monthly,
            "hoa_fees": i.hoa_condo_fees_monthly,
            "other": i.other_expenses_monthly,
        }
        monthly["total"] = sum(monthly.values())

        annual = {k: v * 12 for k, v in monthly.items()}
        annual["property_tax"] = i.property_tax_annual
        annual["insurance"] = i.insurance_annual

        # Age-based reserve as a check on the percent-of-rent maintenance input
        recommended_maintenance = None
        if i.year_built:
            recommended_maintenance = i.purchase_price * get_maintenance_budget(i.year_built) / 100

        return {
            "monthly": monthly,
            "annual": annual,
            "annual_operating": annual["total"] - annual["mortgage"],
            "recommended_maintenance_annual": recommended_maintenance,
        }

    # ----------------------------------------------------------
    # 5) Cash flow
    # ----------------------------------------------------------

    def _cash_flow(self, revenue: Dict[str, float], expenses: Dict[str, Any]) -> Dict[str, float]:
        monthly_net = revenue["effective_monthly_income"] - expenses["monthly"]["total"]
        monthly_before_debt = revenue["effective_monthly_income"] - (
            expenses["monthly"]["total"] - expenses["monthly"]["mortgage"]
        )

        return {
            "monthly_net": monthly_net,
            "annual_net": monthly_net * 12,
            "monthly_before_debt": monthly_before_debt,
            "annual_noi": monthly_before_debt * 12,
        }

    # ----------------------------------------------------------
    # 6) Metrics
    # ----------------------------------------------------------

    def _metrics(
        self,
        acquisition: Dict[str, Any],
        revenue: Dict[str, float],
        expenses: Dict[str, Any],
        cash_flow: Dict[str, float],
    ) -> Dict[str, float]:
        price = self.inputs.purchase_price
        gross = revenue["annual_gross_income"]
        cash_invested = acquisition["total_acquisition_cost"]
        debt_service = expenses["annual"]["mortgage"]

        return {
            "cap_rate": cash_flow["annual_noi"] / price * 100,
            "cash_on_cash_return": cash_flow["annual_net"] / cash_invested * 100 if cash_invested > 0 else 0.0,
            "dscr": cash_flow["annual_noi"] / debt_service if debt_service > 0 else 0.0,
            "grm": price / gross if gross > 0 else 0.0,
            "expense_ratio": expenses["annual_operating"] / gross * 100 if gross > 0 else 0.0,
            "breakeven_occupancy": breakeven_occupancy(expenses["annual"]["total"], gross),
        }

    # ----------------------------------------------------------
    # 7) BRRRR
    # ----------------------------------------------------------

    def _brrrr(
        self,
        acquisition: Dict[str, Any],
        financing: Dict[str, Any],
        expenses: Dict[str, Any],
        cash_flow: Dict[str, float],
    ) -> Dict[str, Any]:
        i = self.inputs
        arv = i.after_repair_value or 0.0

        # Vacant while under renovation: debt, tax, insurance and utilities are still due
        holding_months = i.renovation_timeline_months or BRRRR_STRATEGY["holding_period_months"]
        monthly = expenses["monthly"]
        monthly_holding = (
            monthly["mortgage"]
            + monthly["property_tax"]
            + monthly["insurance"]
            + monthly["utilities"]
            + monthly["hoa_fees"]
        )
        holding_costs = monthly_holding * holding_months

        total_investment = acquisition["total_acquisition_cost"] + i.renovation_cost + holding_costs
        refinance_ltv = BRRRR_STRATEGY["refinance_ltv"]
        refinance_amount = arv * refinance_ltv / 100

        # Renovation plus refinance assumed to take one year
        balance = remaining_balance(
            financing["total_mortgage_with_insurance"], i.interest_rate, i.amortization_years, 1
        )

        cash_recovered = max(0.0, refinance_amount - balance)
        cash_left = total_investment - cash_recovered
        infinite_return = cash_left <= 0

        new_payment = monthly_payment(refinance_amount, i.interest_rate, i.amortization_years)
        cash_flow_after_refi = cash_flow["monthly_net"] - (new_payment - financing["monthly_payment"])

        effective_coc: Optional[float] = None
        if not infinite_return:
            effective_coc = cash_flow_after_refi * 12 / cash_left * 100

        return {
            "holding_period_months": holding_months,
            "holding_costs": holding_costs,
            "renovation_contingency": i.renovation_cost * BRRRR_STRATEGY["renovation_contingency"],
            "total_investment": total_investment,
            "after_repair_value": arv,
            "refinance_ltv_percent": refinance_ltv,
            "refinance_amount": refinance_amount,
            "original_mortgage_balance": balance,
            "cash_recovered": cash_recovered,
            "cash_left_in_deal": cash_left,
            "infinite_return": infinite_return,
            "new_monthly_payment": new_payment,
            "cash_flow_after_refi": cash_flow_after_refi,
            "effective_coc_return": effective_coc,
        }

    # ----------------------------------------------------------
    # 8) Market comparison
    # ----------------------------------------------------------

    def _market_comparison(self, metrics: Dict[str, float]) -> Dict[str, Any]:
        i = self.inputs
        key = market_key(i.city)
        type_key = "multi_unit" if i.is_multi_unit else "single_family"

        market_cap = MARKET_BENCHMARKS["cap_rates"][key][type_key]
        market_rtp = MARKET_BENCHMARKS["rent_to_price_ratios"][key]
        deal_rtp = i.monthly_rent * 12 / i.purchase_price * 100

        cap_diff = metrics["cap_rate"] - market_cap
        rtp_diff = deal_rtp - market_rtp

        return {
            "market": key,
            "market_avg_cap_rate": market_cap,
            "cap_rate_difference": cap_diff,
            "cap_rate_vs_market": f"{abs(cap_diff):.1f}% {'above' if cap_diff > 0 else 'below'} market",
            "market_avg_rent_to_price": market_rtp,
            "deal_rent_to_price": deal_rtp,
            "rent_to_price_vs_market": f"{abs(rtp_diff):.2f}% {'above' if rtp_diff > 0 else 'below'} market",
        }

    # ----------------------------------------------------------
    # 9) Flags and warnings
    # ----------------------------------------------------------

    def _flags_and_warnings(
        self,
        metrics: Dict[str, float],
        financing: Dict[str, Any],
        cash_flow: Dict[str, float],
        market: Dict[str, Any],
    ) -> Tuple[Dict[str, bool], List[str]]:
        i = self.inputs
        warnings: List[str] = []

        flags = {
            "negative_cash_flow": cash_flow["monthly_net"] < 0,
            "low_dscr": metrics["dscr"] < 1.2,
            "below_market_cap_rate": metrics["cap_rate"] < market["market_avg_cap_rate"],
            "high_ltv": i.down_payment_percent < 20,
            "fails_stress_test": not financing["stress_test_passes"],
        }

        if flags["negative_cash_flow"]:
            warnings.append(f"Negative cash flow: -${abs(cash_flow['monthly_net']):,.2f}/mo")

        if flags["low_dscr"]:
            warnings.append(f"DSCR below 1.2 ({metrics['dscr']:.2f}) - may face lender challenges")

        if flags["below_market_cap_rate"]:
            diff = market["market_avg_cap_rate"] - metrics["cap_rate"]
            warnings.append(f"Cap rate {diff:.1f}% below market average")

        if metrics["cap_rate"] < 3:
            warnings.append(f"Very low cap rate ({metrics['cap_rate']:.1f}%) - difficult to cash flow")

        if metrics["breakeven_occupancy"] > 80:
            warnings.append(
                f"High breakeven occupancy ({metrics['breakeven_occupancy']:.1f}%) - limited margin for error"
            )

        if flags["high_ltv"] and i.purchase_price > 1_000_000:
            warnings.append("Properties over $1M require 20% down payment for conventional financing")

        if not financing["cmhc_available"]:
            warnings.append("CMHC insurance not available - mortgage shown uninsured")

        if flags["fails_stress_test"]:
            warnings.append(financing["stress_test_message"])

        if i.property_condition in ("heavy_reno", "gut_job"):
            warnings.append("Major renovations required - ensure budget includes contingency (15-20%)")

        if metrics["expense_ratio"] > 50:
            warnings.append(f"High expense ratio ({metrics['expense_ratio']:.1f}%) - verify operating costs")

        return flags, warnings

    # ----------------------------------------------------------
    # Public API
    # ----------------------------------------------------------

    def analyze(self) -> Dict[str, Any]:
        i = self.inputs
        logger.debug(f"Analyzing {i.property_type} in {i.city}, {i.province} at ${i.purchase_price:,.0f}")

        acquisition = self._acquisition()
        financing = self._financing(acquisition)
        revenue = self._revenue()
        expenses = self._expenses(financing, revenue)
        cash_flow = self._cash_flow(revenue, expenses)
        metrics = self._metrics(acquisition, revenue, expenses, cash_flow)

        brrrr = None
        if i.strategy == "brrrr" and i.after_repair_value:
            brrrr = self._brrrr(acquisition, financing, expenses, cash_flow)

        market = self._market_comparison(metrics)
        flags, warnings = self._flags_and_warnings(metrics, financing, cash_flow, market)

        analysis = {
            "property": i.model_dump(),
            "acquisition": acquisition,
            "financing": financing,
            "revenue": revenue,
            "expenses": expenses,
            "cash_flow": cash_flow,
            "metrics": metrics,
            "brrrr": brrrr,
            "market_comparison": market,
            "warnings": warnings,
            "flags": flags,
        }
        analysis["scoring"] = DealScoring(analysis).calculate()

        if warnings:
            logger.debug(f"{len(warnings)} warnings for {i.address or i.city}")

        return analysis


def analyze_deal(inputs: PropertyInputs) -> Dict[str, Any]:
    return DealAnalyzer(inputs).analyze()
