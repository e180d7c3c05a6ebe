"""
deal_engine.py

Top-level integration engine that orchestrates:
- Input validation (PropertyInputs)
- Core deal analysis (acquisition, financing, cash flow, metrics, score)
- Optional add-on analyses, requested by name in config["analyses"]:
    risk              RiskAnalyzer
    expense_ratio     ExpenseRatioAnalyzer (+ 5-year projection)
    acre              AcreScoring.from_deal
    break_even        BreakEvenAnalyzer
    tax               TaxImpact (needs config["employment_income"])
    advanced_metrics  AdvancedMetrics (config["projection"] assumptions)
    airbnb            AirbnbAnalyzer (needs config["airbnb"] inputs)
    adu               AduSignalDetector, plus AduAnalyzer when
                      config["adu"]["adu_type"] is given
    development       DevelopmentAnalyzer on property["units"]; runs by
                      default for the multifamily_development strategy

Produces a single structured deal report; comparing several deals
ranks them by deal score.
"""

from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from rei_engine.exceptions import InvalidInputError, ReiEngineError
from rei_engine.logging_config import setup_logger

# ---- Core models ----
from rei_engine.models.property_inputs import PropertyInputs
from rei_engine.models.deal_analyzer import DealAnalyzer

# ---- Add-on analyses ----
from rei_engine.models.acre_scoring import AcreScoring
from rei_engine.models.adu_analyzer import AduAnalyzer
from rei_engine.models.adu_signal_detector import AduSignalDetector
from rei_engine.models.advanced_metrics import AdvancedMetrics, ProjectionAssumptions
from rei_engine.models.airbnb_analyzer import AirbnbAnalyzer, AirbnbInputs
from rei_engine.models.break_even import BreakEvenAnalyzer
from rei_engine.models.development_analyzer import DevelopmentAnalyzer, development_inputs_from_property
from rei_engine.models.expense_ratio_analyzer import ExpenseRatioAnalyzer
from rei_engine.models.risk_analyzer import RiskAnalyzer
from rei_engine.models.tax_impact import TaxImpact


logger = setup_logger(__name__)

DEFAULT_ANALYSES = ["risk", "expense_ratio", "acre", "break_even"]
SUPPORTED_ANALYSES = DEFAULT_ANALYSES + ["tax", "advanced_metrics", "airbnb", "adu", "development"]


def _validation_message(error: ValidationError) -> str:
    parts = []
    for err in error.errors():
        field = ".".join(str(loc) for loc in err["loc"]) or "input"
        parts.append(f"{field}: {err['msg']}")
    return "; ".join(parts)


class DealEngine:
    """
    Main orchestration class.
    """

    # ---------------------------------------------------------
    # Public entry points
    # ---------------------------------------------------------

    def run_full_analysis(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """
        High-level orchestration.

        config:
            property:          PropertyInputs fields (required)
            analyses:          list of add-on names (default: risk,
                               expense_ratio, acre, break_even)
            acre:              {location_grade, appreciation_potential}
            employment_income: float, for tax
            projection:        ProjectionAssumptions fields
            airbnb:            AirbnbInputs fields
            adu:               {details, adu_type, existing_basement, ...}
            development:       DevelopmentInputs overrides (development_type,
                               renovation_scope, comparable_rents, ...)

        Returns a complete deal report, or {"success": False, "error": ...}.
        """
        property_data = config.get("property")
        if not property_data:
            return {"success": False, "error": "property is required"}

        requested = config.get("analyses") or DEFAULT_ANALYSES
        unknown = [name for name in requested if name not in SUPPORTED_ANALYSES]
        if unknown:
            return {"success": False, "error": f"Unknown analyses: {', '.join(unknown)}"}

        # 1) Validate inputs
        try:
            inputs = PropertyInputs(**property_data)
        except ValidationError as e:
            return {"success": False, "error": f"Invalid property inputs: {_validation_message(e)}"}

        if not config.get("analyses") and inputs.strategy == "multifamily_development":
            requested = requested + ["development"]

        # 2) Core analysis
        try:
            analysis = DealAnalyzer(inputs).analyze()
        except ReiEngineError as e:
            logger.info(f"Deal analysis rejected: {e}")
            return {"success": False, "error": str(e)}

        # 3) Add-ons
        report: Dict[str, Any] = {"success": True, "analysis": analysis}
        builders = {
            "risk": lambda: self._build_risk_profile(inputs, analysis),
            "expense_ratio": lambda: self._build_expense_profile(analysis),
            "acre": lambda: self._build_acre_profile(analysis, config.get("acre") or {}),
            "break_even": lambda: self._build_break_even_profile(analysis),
            "tax": lambda: self._build_tax_profile(analysis, config),
            "advanced_metrics": lambda: self._build_advanced_metrics(analysis, config.get("projection") or {}),
            "airbnb": lambda: self._build_airbnb_profile(analysis, config.get("airbnb")),
            "adu": lambda: self._build_adu_profile(inputs, config.get("adu") or {}),
            "development": lambda: self._build_development_profile(inputs, analysis, config.get("development") or {}),
        }
        for name in requested:
            report[name] = builders[name]()

        logger.info(
            f"Analyzed {inputs.city}, {inputs.province} at ${inputs.purchase_price:,.0f}: "
            f"score {analysis['scoring']['total_score']} ({analysis['scoring']['grade']})"
        )
        return report

    def compare_deals(self, configs: List[Dict[str, Any]]) -> Dict[str, Any]:
        """
        Analyze several deals and rank them by deal score (best first).
        Deals that fail validation are reported separately.
        """
        if len(configs) < 2:
            return {"success": False, "error": "At least two deals are required for a comparison"}

        ranked = []
        failed = []
        for index, config in enumerate(configs):
            result = self.run_full_analysis({**config, "analyses": config.get("analyses") or ["risk"]})
            if not result["success"]:
                failed.append({"index": index, "error": result["error"]})
                continue
            ranked.append(self._summarize(index, result))

        if not ranked:
            return {"success": False, "error": "No deal could be analyzed", "failed": failed}

        ranked.sort(key=lambda d: d["score"], reverse=True)
        for position, deal in enumerate(ranked, start=1):
            deal["rank"] = position

        return {
            "success": True,
            "deals": ranked,
            "best_overall": ranked[0]["index"],
            "best_cap_rate": max(ranked, key=lambda d: d["cap_rate"])["index"],
            "best_cash_flow": max(ranked, key=lambda d: d["monthly_cash_flow"])["index"],
            "best_cash_on_cash": max(ranked, key=lambda d: d["cash_on_cash_return"])["index"],
            "failed": failed,
        }

    # ---------------------------------------------------------
    # Comparison summary
    # ---------------------------------------------------------

    def _summarize(self, index: int, result: Dict[str, Any]) -> Dict[str, Any]:
        analysis = result["analysis"]
        prop = analysis["property"]
        risk = result.get("risk") or {}

        return {
            "index": index,
            "address": prop["address"],
            "city": prop["city"],
            "province": prop["province"],
            "purchase_price": prop["purchase_price"],
            "score": analysis["scoring"]["total_score"],
            "grade": analysis["scoring"]["grade"],
            "monthly_cash_flow": analysis["cash_flow"]["monthly_net"],
            "cap_rate": analysis["metrics"]["cap_rate"],
            "cash_on_cash_return": analysis["metrics"]["cash_on_cash_return"],
            "dscr": analysis["metrics"]["dscr"],
            "total_cash_needed": analysis["acquisition"]["total_cash_needed"],
            "risk_level": risk.get("overall_risk_level"),
            "warnings": len(analysis["warnings"]),
        }

    # ---------------------------------------------------------
    # Add-on builders
    # ---------------------------------------------------------

    def _build_risk_profile(self, inputs: PropertyInputs, analysis: Dict[str, Any]) -> Dict[str, Any]:
        return RiskAnalyzer(inputs, analysis).analyze()

    def _build_expense_profile(self, analysis: Dict[str, Any]) -> Dict[str, Any]:
        analyzer = ExpenseRatioAnalyzer(analysis)
        profile = analyzer.analyze()
        profile["projection"] = analyzer.project(years=5)
        return profile

    def _build_acre_profile(self, analysis: Dict[str, Any], acre_config: Dict[str, Any]) -> Dict[str, Any]:
        try:
            scoring = AcreScoring.from_deal(
                analysis,
                location_grade=acre_config.get("location_grade"),
                appreciation_potential=acre_config.get("appreciation_potential"),
            )
        except ValueError as e:
            return {"success": False, "error": str(e)}
        return scoring.calculate()

    def _build_break_even_profile(self, analysis: Dict[str, Any]) -> Dict[str, Any]:
        return BreakEvenAnalyzer(analysis).analyze()

    def _build_tax_profile(self, analysis: Dict[str, Any], config: Dict[str, Any]) -> Dict[str, Any]:
        income = config.get("employment_income")
        if income is None:
            return {"success": False, "error": "employment_income is required for tax analysis"}

        tax = TaxImpact(
            analysis,
            employment_income=income,
            years_held=config.get("years_held", 5),
            appreciation_rate=config.get("appreciation_rate", 3.0),
        )
        profile = tax.calculate()
        profile["projection"] = tax.project(years=5)
        return profile

    def _build_advanced_metrics(self, analysis: Dict[str, Any], projection: Dict[str, Any]) -> Dict[str, Any]:
        try:
            assumptions = ProjectionAssumptions(**projection)
        except ValidationError as e:
            return {"success": False, "error": f"Invalid projection assumptions: {_validation_message(e)}"}
        return AdvancedMetrics(analysis, assumptions).calculate()

    def _build_airbnb_profile(self, analysis: Dict[str, Any], airbnb: Optional[Dict[str, Any]]) -> Dict[str, Any]:
        if not airbnb:
            return {"success": False, "error": "airbnb inputs are required for short-term rental analysis"}
        try:
            str_inputs = AirbnbInputs(**airbnb)
        except ValidationError as e:
            return {"success": False, "error": f"Invalid airbnb inputs: {_validation_message(e)}"}
        return AirbnbAnalyzer(analysis, str_inputs).analyze()

    def _build_adu_profile(self, inputs: PropertyInputs, adu: Dict[str, Any]) -> Dict[str, Any]:
        profile: Dict[str, Any] = {
            "signals": AduSignalDetector(inputs, adu.get("details")).detect(),
            "conversion": None,
        }

        adu_type = adu.get("adu_type")
        if adu_type:
            try:
                profile["conversion"] = AduAnalyzer(
                    purchase_price=inputs.purchase_price,
                    current_value=adu.get("current_value") or inputs.purchase_price,
                    province=inputs.province,
                    city=inputs.city,
                    adu_type=adu_type,
                    existing_basement=adu.get("existing_basement"),
                    lot_size_sqft=adu.get("lot_size_sqft"),
                    target_unit_size=adu.get("target_unit_size", 600),
                    estimated_monthly_rent=adu.get("estimated_monthly_rent"),
                    do_it_yourself=adu.get("do_it_yourself", False),
                ).analyze()
            except ValueError as e:
                profile["conversion"] = {"success": False, "error": str(e)}

        return profile

    def _build_development_profile(
        self, inputs: PropertyInputs, analysis: Dict[str, Any], development: Dict[str, Any]
    ) -> Dict[str, Any]:
        overrides = {k: v for k, v in development.items() if v is not None}
        try:
            dev_inputs = development_inputs_from_property(inputs, **overrides)
        except ValidationError as e:
            return {"success": False, "error": f"Invalid development inputs: {_validation_message(e)}"}
        except InvalidInputError as e:
            return {"success": False, "error": str(e)}
        return DevelopmentAnalyzer(dev_inputs, analysis).analyze()
