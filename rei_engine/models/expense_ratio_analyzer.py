"""
expense_ratio_analyzer.py

Operating expense ratio (excluding debt service) against a property-type
benchmark, with per-category savings potential and a multi-year projection.
"""

from typing import Dict, List, Optional

from rei_engine.constants.canadian_rates import PROPERTY_MANAGEMENT_FEES


# Operating expenses as % of gross rent
EXPENSE_RATIO_BENCHMARKS: Dict[str, float] = {
    "single_family": 35,
    "duplex": 38,
    "triplex": 40,
    "fourplex": 42,
    "multi_unit_5plus": 45,
}
DEFAULT_EXPENSE_RATIO_BENCHMARK = 40

# Management fee benchmark class for each property type
MANAGEMENT_FEE_CLASSES: Dict[str, str] = {
    "single_family": "single_family",
    "duplex": "multi_family_small",
    "triplex": "multi_family_small",
    "fourplex": "multi_family_small",
    "multi_unit_5plus": "multi_family_large",
}

CATEGORY_BENCHMARKS: Dict[str, float] = {
    "property_tax": 12,
    "insurance": 5,
    "maintenance": 8,
    "utilities": 5,
    "hoa_condo": 15,
    "vacancy": 5,
}

# (label, benchmark key, share of the line that could be saved; None = fixed cost)
EXPENSE_CATEGORIES = [
    ("Property Tax", "property_tax", None),
    ("Insurance", "insurance", 0.15),
    ("Property Management", "property_management", 1.0),
    ("Maintenance", "maintenance", 0.25),
    ("Utilities", "utilities", 0.20),
]
VACANCY_SAVINGS_SHARE = 0.30


def management_fee_benchmark(property_type: str) -> float:
    return PROPERTY_MANAGEMENT_FEES[MANAGEMENT_FEE_CLASSES.get(property_type, "single_family")]


class ExpenseRatioAnalyzer:
    """
    Example:
        analysis = DealAnalyzer(inputs).analyze()
        report = ExpenseRatioAnalyzer(analysis).analyze()
        ExpenseRatioAnalyzer(analysis).project(years=5)
    """

    def __init__(self, analysis: Dict):
        self.analysis = analysis
        self._report: Optional[Dict] = None

    def _line(self, category: str, amount: float, benchmark: float,
              savings_share: Optional[float], expenses: float, revenue: float) -> Dict:
        line = {
            "category": category,
            "annual_amount": amount,
            "percent_of_total": amount / expenses * 100 if expenses > 0 else 0.0,
            "percent_of_revenue": amount / revenue * 100 if revenue > 0 else 0.0,
            "is_optimizable": savings_share is not None,
            "market_benchmark_percent": benchmark,
            "potential_savings": None,
        }
        if savings_share is not None:
            line["potential_savings"] = max(0.0, amount * savings_share)
        return line

    def _breakdown(self, expenses: float, revenue: float) -> List[Dict]:
        annual = self.analysis["expenses"]["annual"]
        source = {
            "property_tax": annual["property_tax"],
            "insurance": annual["insurance"],
            "property_management": annual["property_management"],
            "maintenance": annual["maintenance"],
            "utilities": annual["utilities"],
        }

        benchmarks = dict(CATEGORY_BENCHMARKS)
        benchmarks["property_management"] = management_fee_benchmark(self.analysis["property"]["property_type"])

        breakdown = [
            self._line(label, source[key], benchmarks[key], share, expenses, revenue)
            for label, key, share in EXPENSE_CATEGORIES
        ]
        breakdown.append(self._line(
            "Vacancy Cost",
            self.analysis["revenue"]["annual_vacancy_loss"],
            CATEGORY_BENCHMARKS["vacancy"],
            VACANCY_SAVINGS_SHARE,
            expenses,
            revenue,
        ))

        if annual["hoa_fees"] > 0:
            breakdown.append(self._line(
                "HOA/Condo Fees", annual["hoa_fees"], CATEGORY_BENCHMARKS["hoa_condo"], None, expenses, revenue
            ))
        return breakdown

    @staticmethod
    def _efficiency(ratio: float, benchmark: float, target: float) -> str:
        if ratio <= target:
            return "Excellent"
        if ratio <= benchmark:
            return "Good"
        if ratio <= benchmark * 1.15:
            return "Fair"
        return "Poor"

    def _recommendations(self, lines: Dict[str, Dict], ratio: float,
                         benchmark: float, rating: str) -> List[str]:
        recs: List[str] = []

        insurance = lines["Insurance"]
        if insurance["percent_of_revenue"] > CATEGORY_BENCHMARKS["insurance"] * 1.2:
            recs.append(
                f"Insurance costs are {insurance['percent_of_revenue']:.1f}% of revenue "
                f"(benchmark: {CATEGORY_BENCHMARKS['insurance']}%). Shop for quotes from at least 3 providers "
                f"to save ~${insurance['potential_savings'] / 12:,.0f}/month."
            )

        pm = lines["Property Management"]
        if pm["annual_amount"] > 0:
            monthly_pm = pm["potential_savings"] / 12
            if pm["percent_of_revenue"] > 10:
                recs.append(
                    f"Property management at {pm['percent_of_revenue']:.1f}% is high. Consider self-managing "
                    f"for the first year to save ${monthly_pm:,.0f}/month and learn the property."
                )
            else:
                recs.append(
                    f"Property management at {pm['percent_of_revenue']:.1f}% is reasonable, but self-managing "
                    f"could save ${monthly_pm:,.0f}/month if you have the time."
                )

        maintenance = lines["Maintenance"]
        if maintenance["percent_of_revenue"] > CATEGORY_BENCHMARKS["maintenance"] * 1.3:
            year_built = self.analysis["property"].get("year_built")
            built = f"built in {year_built}" if year_built else "of this age"
            recs.append(
                f"Maintenance budget at {maintenance['percent_of_revenue']:.1f}% is conservative. For a property "
                f"{built}, you may be able to reduce this by 20-30% after the first year once major repairs "
                f"are completed."
            )

        utilities = lines["Utilities"]
        if utilities["annual_amount"] > 1200:
            recs.append(
                f"Consider making utilities tenant-paid to eliminate ${utilities['annual_amount'] / 12:,.0f}/month "
                f"in expenses. This is standard for most rental properties."
            )

        vacancy = lines["Vacancy Cost"]
        if vacancy["percent_of_revenue"] > 7:
            recs.append(
                f"Vacancy rate of {vacancy['percent_of_revenue']:.1f}% is high. Improve tenant screening and "
                f"retention to reduce turnover and save ${vacancy['potential_savings'] / 12:,.0f}/month."
            )

        if rating == "Poor":
            recs.append(
                f"Your expense ratio of {ratio:.1f}% is significantly above the market benchmark of "
                f"{benchmark}%. Focus on the optimizations above to improve cash flow."
            )
        elif rating == "Excellent":
            recs.append(
                f"Your expense ratio of {ratio:.1f}% is excellent - below the market benchmark of {benchmark}%. "
                f"Continue monitoring costs to maintain this efficiency."
            )

        tax = lines["Property Tax"]
        if tax["percent_of_revenue"] > 15:
            recs.append(
                f"Property taxes at {tax['percent_of_revenue']:.1f}% of revenue are high. Consider filing a "
                f"property tax appeal if the assessment seems inflated compared to recent sales."
            )

        return recs

    # -------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------

    def analyze(self) -> Dict:
        if self._report is not None:
            return self._report

        revenue = self.analysis["revenue"]["annual_rent"]
        expenses = self.analysis["expenses"]["annual_operating"]
        breakdown = self._breakdown(expenses, revenue)
        lines = {line["category"]: line for line in breakdown}

        total_savings = sum(line["potential_savings"] or 0.0 for line in breakdown if line["is_optimizable"])

        ratio = expenses / revenue * 100 if revenue > 0 else 0.0
        benchmark = EXPENSE_RATIO_BENCHMARKS.get(
            self.analysis["property"]["property_type"], DEFAULT_EXPENSE_RATIO_BENCHMARK
        )
        target = benchmark * 0.9

        optimized_ratio = (expenses - total_savings) / revenue * 100 if revenue > 0 else 0.0
        improvement = (ratio - optimized_ratio) / ratio * 100 if ratio > 0 else 0.0

        highest = sorted(breakdown, key=lambda l: l["annual_amount"], reverse=True)[:3]
        optimizable = [l for l in breakdown if l["is_optimizable"] and l["potential_savings"] > 0]
        most_optimizable = sorted(optimizable, key=lambda l: l["potential_savings"], reverse=True)[:3]

        rating = self._efficiency(ratio, benchmark, target)

        self._report = {
            "total_annual_expenses": expenses,
            "total_annual_revenue": revenue,
            "expense_ratio": ratio,
            "market_benchmark_ratio": benchmark,
            "target_ratio": target,
            "variance_from_benchmark": ratio - benchmark,
            "expense_breakdown": breakdown,
            "total_potential_savings": total_savings,
            "optimized_expense_ratio": optimized_ratio,
            "improvement_potential_percent": improvement,
            "highest_expense_categories": [l["category"] for l in highest],
            "most_optimizable_categories": [l["category"] for l in most_optimizable],
            "efficiency_rating": rating,
            "recommendations": self._recommendations(lines, ratio, benchmark, rating),
        }
        return self._report

    def project(self, years: int = 5, revenue_growth: float = 2.5, expense_growth: float = 2.5) -> List[Dict]:
        """
        Year-by-year expense ratio with optimizations phased in:
        half the savings in year 1, all of them from year 2 on.
        """
        report = self.analyze()
        revenue = report["total_annual_revenue"]
        expenses = report["total_annual_expenses"]
        cumulative = 0.0
        rows = []

        for year in range(1, years + 1):
            revenue *= 1 + revenue_growth / 100
            expenses *= 1 + expense_growth / 100

            savings = report["total_potential_savings"] * min(year * 0.5, 1.0)
            cumulative += savings
            adjusted = expenses - savings

            rows.append({
                "year": year,
                "revenue": revenue,
                "expenses": adjusted,
                "expense_ratio": adjusted / revenue * 100 if revenue > 0 else 0.0,
                "cumulative_savings": cumulative,
            })

        return rows
