"""
adu_signal_detector.py

Finds hidden ADU (additional dwelling unit) potential in a listing.

Signals:
- Listing keywords ("separate entrance", "in-law suite", "lane access", ...)
- Structure (walkout / finished basement, detached garage)
- Lot size
- Municipal bylaws (ADU-friendly cities)
- Market timing (days on market, price drops)

Each signal is weighted by strength (strong 25, moderate 15, weak 5)
into a 0-100 score. The estimated ADU rent is capitalised at 15x
annual rent to approximate the value added.

Listing details are an optional dict:
    {
        "description": str,
        "basement": "finished" | "unfinished" | "partial" | "none" | "walkout",
        "garage": "attached" | "detached" | "none",
        "garage_size": sqft,
        "lot_size": sqft,
        "days_on_market": int,
        "price_history": [{"date": str, "price": float}, ...],
    }
"""

from typing import Dict, List, Optional

from rei_engine.models.property_inputs import PropertyInputs


SIGNAL_POINTS = {"strong": 25, "moderate": 15, "weak": 5}

SQFT_PER_ACRE = 43_560
LARGE_LOT_SQFT = 6_000
VERY_LARGE_LOT_SQFT = 8_000

ADU_KEYWORDS: Dict[str, Dict] = {
    "separate entrance": {"strength": "strong", "adu_types": ["basement_suite"]},
    "private entrance": {"strength": "strong", "adu_types": ["basement_suite", "garden_suite"]},
    "in-law suite": {"strength": "strong", "adu_types": ["basement_suite"]},
    "granny suite": {"strength": "strong", "adu_types": ["basement_suite", "garden_suite"]},
    "nanny suite": {"strength": "strong", "adu_types": ["basement_suite"]},
    "secondary suite": {"strength": "strong", "adu_types": ["basement_suite"]},
    "legal suite": {"strength": "strong", "adu_types": ["basement_suite"]},
    "income potential": {"strength": "moderate", "adu_types": ["basement_suite", "garden_suite"]},
    "rental income": {"strength": "moderate", "adu_types": ["basement_suite", "garden_suite"]},
    "walk-out basement": {"strength": "strong", "adu_types": ["basement_suite"]},
    "walkout basement": {"strength": "strong", "adu_types": ["basement_suite"]},
    "daylight basement": {"strength": "moderate", "adu_types": ["basement_suite"]},
    "high ceilings": {"strength": "weak", "adu_types": ["basement_suite", "attic_conversion"]},
    "9 foot ceilings": {"strength": "moderate", "adu_types": ["basement_suite"]},
    "10 foot ceilings": {"strength": "moderate", "adu_types": ["basement_suite"]},
    "large lot": {"strength": "moderate", "adu_types": ["garden_suite", "laneway_house"]},
    "oversized lot": {"strength": "moderate", "adu_types": ["garden_suite", "laneway_house"]},
    "detached garage": {"strength": "moderate", "adu_types": ["garage_conversion", "garden_suite"]},
    "double garage": {"strength": "weak", "adu_types": ["garage_conversion"]},
    "laneway access": {"strength": "strong", "adu_types": ["laneway_house", "garden_suite"]},
    "lane access": {"strength": "strong", "adu_types": ["laneway_house", "garden_suite"]},
    "rear lane": {"strength": "strong", "adu_types": ["laneway_house", "garden_suite"]},
    "roughed-in": {"strength": "moderate", "adu_types": ["basement_suite"]},
    "rough-in": {"strength": "moderate", "adu_types": ["basement_suite"]},
    "plumbing rough-in": {"strength": "moderate", "adu_types": ["basement_suite"]},
    "development potential": {"strength": "moderate", "adu_types": ["garden_suite", "laneway_house"]},
    "investor": {"strength": "weak", "adu_types": ["basement_suite"]},
    "handyman special": {"strength": "weak", "adu_types": ["basement_suite", "garage_conversion"]},
    "bring your ideas": {"strength": "weak", "adu_types": ["basement_suite", "garden_suite"]},
}

PROVINCIAL_ADU_INFO: Dict[str, Dict] = {
    "ON": {
        "basement_suite_allowed": True,
        "garden_suite_allowed": True,
        "max_units": 3,
        "incentives": [
            "Canada Secondary Suite Loan: Up to $80,000 at 2%",
            "Ontario Renovates Program: Up to $25,000 forgivable",
            "Some municipalities offer development charge waivers",
        ],
        "requirements": [
            "Minimum ceiling height: 6'5\" (1.95m)",
            "Separate entrance required",
            "Egress window in bedrooms",
            "Smoke and CO detectors required",
            "Building permit required",
        ],
    },
    "BC": {
        "basement_suite_allowed": True,
        "garden_suite_allowed": True,
        "max_units": 3,
        "incentives": [
            "BC Housing Secondary Suite Incentive Program",
            "Some municipalities offer grants up to $40,000",
        ],
        "requirements": [
            "Minimum ceiling height: 6'8\" (2.03m)",
            "Fire separation required",
            "Separate entrance recommended",
            "Building permit required",
        ],
    },
    "AB": {
        "basement_suite_allowed": True,
        "garden_suite_allowed": True,
        "max_units": 2,
        "incentives": [
            "Secondary Suite Grant Program (select municipalities)",
            "Development permit fee waivers available",
        ],
        "requirements": [
            "Minimum ceiling height: 6'8\" (2.03m)",
            "Separate entrance required",
            "Building permit required",
        ],
    },
    "NS": {
        "basement_suite_allowed": True,
        "garden_suite_allowed": True,
        "max_units": 2,
        "incentives": ["Nova Scotia Affordable Housing Grant"],
        "requirements": ["Development permit required", "Fire separation required"],
    },
    "QC": {
        "basement_suite_allowed": True,
        "garden_suite_allowed": False,  # varies by municipality
        "max_units": 2,
        "incentives": ["Accès Logis Québec (rental housing program)"],
        "requirements": ["Building permit required", "Must comply with municipal bylaws"],
    },
}

ADU_HOTSPOTS: Dict[str, Dict] = {
    "toronto": {"adu_friendly": True, "recent_bylaw_changes": True, "notes": "Garden suites now allowed city-wide"},
    "ottawa": {"adu_friendly": True, "recent_bylaw_changes": True, "notes": "Up to 3 units on most residential lots"},
    "hamilton": {"adu_friendly": True, "recent_bylaw_changes": True, "notes": "ADU-friendly since 2022"},
    "st. catharines": {"adu_friendly": True, "recent_bylaw_changes": True, "notes": "Secondary suites allowed in all zones"},
    "port colborne": {"adu_friendly": True, "recent_bylaw_changes": True, "notes": "Recent zoning changes favor ADUs"},
    "niagara falls": {"adu_friendly": True, "recent_bylaw_changes": False, "notes": "Secondary suites permitted"},
    "welland": {"adu_friendly": True, "recent_bylaw_changes": True, "notes": "Part of Niagara ADU initiative"},
    "vancouver": {"adu_friendly": True, "recent_bylaw_changes": True, "notes": "Laneway houses allowed since 2009"},
    "calgary": {"adu_friendly": True, "recent_bylaw_changes": True, "notes": "Backyard suites allowed since 2018"},
    "edmonton": {"adu_friendly": True, "recent_bylaw_changes": True, "notes": "Garden suites permitted city-wide"},
}

# 1BR-equivalent rent by province
BASE_ADU_RENTS = {"ON": 1400, "BC": 1600, "AB": 1200, "NS": 1100, "QC": 1000}

CITY_RENT_ADJUSTMENTS = {
    "toronto": 1.4,
    "vancouver": 1.5,
    "calgary": 1.1,
    "edmonton": 1.0,
    "ottawa": 1.2,
    "hamilton": 1.1,
    "st. catharines": 0.95,
    "port colborne": 0.85,
    "niagara falls": 0.9,
    "welland": 0.85,
}

ADU_TYPE_RENT_ADJUSTMENTS = {
    "basement_suite": 1.0,
    "garden_suite": 1.15,
    "garage_conversion": 0.9,
    "attic_conversion": 0.85,
    "laneway_house": 1.25,
}


def estimate_adu_rent(city: str, province: str, adu_types: List[str]) -> int:
    base = BASE_ADU_RENTS.get(province, 1200)
    city_adj = CITY_RENT_ADJUSTMENTS.get((city or "").lower(), 1.0)
    # Highest-value ADU type drives the estimate
    type_adj = max([ADU_TYPE_RENT_ADJUSTMENTS.get(t, 1.0) for t in adu_types] + [1.0])
    return round(base * city_adj * type_adj)


class AduSignalDetector:
    def __init__(self, inputs: PropertyInputs, details: Optional[Dict] = None):
        self.inputs = inputs
        self.details = details or {}
        self.signals: List[Dict] = []
        self.adu_types: List[str] = []
        self.opportunities: List[str] = []
        self.risk_factors: List[str] = []

    def _add_signal(self, kind: str, description: str, strength: str, adu_types: List[str], source: str):
        self.signals.append({
            "type": kind,
            "description": description,
            "strength": strength,
            "adu_types": adu_types,
            "source": source,
        })

    def _recommend(self, *adu_types: str):
        for t in adu_types:
            if t not in self.adu_types:
                self.adu_types.append(t)

    # -------------------------------------------------------------
    # Signal collectors
    # -------------------------------------------------------------

    def _keyword_signals(self):
        text = (self.details.get("description") or "").lower()
        if not text:
            return
        for keyword, info in ADU_KEYWORDS.items():
            if keyword in text:
                self._add_signal(
                    "keyword", f'Listing mentions "{keyword}"', info["strength"],
                    info["adu_types"], "listing_description",
                )
                self._recommend(*info["adu_types"])

    def _structural_signals(self):
        basement = self.details.get("basement")
        if basement in ("walkout", "finished"):
            walkout = basement == "walkout"
            self._add_signal(
                "structural",
                "Walk-out basement provides ideal separate entrance"
                if walkout else "Finished basement reduces conversion costs",
                "strong" if walkout else "moderate",
                ["basement_suite"],
                "property_features",
            )
            self._recommend("basement_suite")

        garage_size = self.details.get("garage_size") or 0
        if self.details.get("garage") == "detached" and garage_size >= 400:
            self._add_signal(
                "structural",
                f"Detached garage ({garage_size} sqft) could be converted",
                "strong" if garage_size >= 600 else "moderate",
                ["garage_conversion", "garden_suite"],
                "property_features",
            )
            self._recommend("garage_conversion")

    def _lot_signals(self):
        lot_sqft = self.details.get("lot_size")
        acres = self.inputs.lot_size

        if lot_sqft:
            if lot_sqft >= LARGE_LOT_SQFT:
                self._add_signal(
                    "lot_characteristic",
                    f"Large lot ({lot_sqft} sqft) allows garden suite",
                    "strong" if lot_sqft >= VERY_LARGE_LOT_SQFT else "moderate",
                    ["garden_suite", "laneway_house"],
                    "property_features",
                )
                self._recommend("garden_suite")
        elif acres and acres >= 0.15:
            sqft = acres * SQFT_PER_ACRE
            self._add_signal(
                "lot_characteristic",
                f"Large lot ({acres:.2f} acres) may support ADU",
                "strong" if sqft >= VERY_LARGE_LOT_SQFT else "moderate",
                ["garden_suite", "laneway_house"],
                "property_features",
            )
            self._recommend("garden_suite")

    def _zoning_signals(self):
        hotspot = ADU_HOTSPOTS.get(self.inputs.city.lower())
        if hotspot and hotspot["adu_friendly"]:
            self._add_signal(
                "zoning",
                f"{self.inputs.city} has favorable ADU bylaws",
                "strong" if hotspot["recent_bylaw_changes"] else "moderate",
                ["basement_suite", "garden_suite"],
                "municipal_data",
            )
            self.opportunities.append(hotspot["notes"])

    def _market_timing_signals(self):
        timing_types = ["basement_suite", "garden_suite", "garage_conversion"]

        dom = self.details.get("days_on_market") or 0
        if dom > 60:
            self._add_signal(
                "market_timing",
                f"{dom} days on market - motivated seller",
                "strong" if dom > 90 else "moderate",
                timing_types,
                "market_data",
            )
            self.opportunities.append("Longer DOM suggests room for negotiation")

        history = self.details.get("price_history") or []
        if len(history) >= 2:
            first = history[0]["price"]
            last = history[-1]["price"]
            drop = (first - last) / first * 100 if first else 0.0
            if drop >= 5:
                self._add_signal(
                    "market_timing",
                    f"Price reduced {drop:.1f}% from original",
                    "strong" if drop >= 10 else "moderate",
                    timing_types,
                    "market_data",
                )
                self.opportunities.append("Price reduction indicates negotiation opportunity")

    def _provincial_context(self):
        info = PROVINCIAL_ADU_INFO.get(self.inputs.province)
        if not info:
            return
        self.opportunities.extend(info["incentives"])
        self.risk_factors.extend(f"Requirement: {r}" for r in info["requirements"])

    # -------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------

    def detect(self) -> Dict:
        self.signals, self.adu_types, self.opportunities, self.risk_factors = [], [], [], []

        self._keyword_signals()
        self._structural_signals()
        self._lot_signals()
        self._zoning_signals()
        self._market_timing_signals()
        self._provincial_context()

        score = min(100, sum(SIGNAL_POINTS[s["strength"]] for s in self.signals))

        strong = sum(1 for s in self.signals if s["strength"] == "strong")
        if strong >= 2 and len(self.signals) >= 4:
            confidence = "high"
        elif strong >= 1 and len(self.signals) >= 2:
            confidence = "medium"
        else:
            confidence = "low"

        rent = estimate_adu_rent(self.inputs.city, self.inputs.province, self.adu_types)

        return {
            "has_adu_potential": score >= 30,
            "overall_score": score,
            "confidence": confidence,
            "signals": self.signals,
            "recommended_adu_types": list(self.adu_types),
            "estimated_monthly_rent": rent,
            "estimated_added_value": rent * 12 * 15,
            "risk_factors": self.risk_factors,
            "opportunities": self.opportunities,
        }


def quick_adu_check(inputs: PropertyInputs) -> Dict:
    hotspot = ADU_HOTSPOTS.get(inputs.city.lower())
    large_lot = bool(inputs.lot_size and inputs.lot_size >= 0.15)

    if hotspot and hotspot["adu_friendly"] and large_lot:
        return {
            "has_high_potential": True,
            "summary": f"{inputs.city} is ADU-friendly with a large lot - strong ADU potential",
        }
    if hotspot and hotspot["adu_friendly"]:
        return {
            "has_high_potential": True,
            "summary": f"{inputs.city} has favorable ADU bylaws - check for structural potential",
        }
    return {
        "has_high_potential": False,
        "summary": "Standard property - analyze listing details for ADU signals",
    }


def provincial_adu_info(province: str) -> Optional[Dict]:
    return PROVINCIAL_ADU_INFO.get(province)


def municipal_adu_info(city: str) -> Optional[Dict]:
    return ADU_HOTSPOTS.get((city or "").lower())
