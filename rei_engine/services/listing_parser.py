"""
listing_parser.py

Pulls basic property facts from a public listing page (realtor.ca,
zillow.com, redfin.com) to pre-fill PropertyInputs.

Sources, in order:
1) JSON-LD blocks (schema.org Residence / SingleFamilyResidence / Offer)
2) The <h1> address line
3) Regex over the visible page text

Pages are fetched through a requests Session that retries transient
failures (429 / 5xx) with exponential backoff. Only fields that were
found are meaningful; missing ones come back as None (or 0 for counts).

NOTE: This is a lightweight HTML scraper, not an API. Listing sites change
their markup often and may block automated requests.
"""

import json
import re
from typing import Dict, List, Optional, Set, Tuple
from urllib.parse import urlparse

import requests
from bs4 import BeautifulSoup
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from rei_engine.config import settings
from rei_engine.constants.canadian_rates import SUPPORTED_PROVINCES
from rei_engine.exceptions import ListingFetchError, UnsupportedListingSourceError
from rei_engine.logging_config import setup_logger


logger = setup_logger(__name__)

SUPPORTED_SOURCES = {
    "realtor.ca": "realtor",
    "zillow.com": "zillow",
    "redfin.com": "redfin",
}

RETRY_STATUS_CODES = (429, 500, 502, 503, 504)

PROVINCE_NAMES = {
    "ontario": "ON",
    "british columbia": "BC",
    "alberta": "AB",
    "nova scotia": "NS",
    "quebec": "QC",
    "québec": "QC",
}

RESIDENCE_TYPES = {"SingleFamilyResidence", "Residence", "House", "Apartment", "Product", "RealEstateListing"}

POSTAL_CODE_RE = re.compile(r"\b([A-Z]\d[A-Z])\s?(\d[A-Z]\d)\b")
PRICE_RE = re.compile(r"\$\s?([0-9][0-9,]{3,})")
BEDROOMS_RE = re.compile(r"(\d+)\s*(?:bed|bedroom|bd)s?\b", re.IGNORECASE)
BATHROOMS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:bath|bathroom|ba)s?\b", re.IGNORECASE)
SQFT_RE = re.compile(r"([0-9][0-9,]*)\s*(?:sq\.?\s*ft|sqft|square feet)", re.IGNORECASE)
YEAR_BUILT_RE = re.compile(r"(?:year built|built)[:\s]*(?:in\s*)?(\d{4})", re.IGNORECASE)


def listing_source(url: str) -> str:
    """
    Source key for a supported listing URL; raises for anything else.
    """
    host = (urlparse(url).hostname or "").lower()
    for domain, source in SUPPORTED_SOURCES.items():
        if host == domain or host.endswith("." + domain):
            return source
    raise UnsupportedListingSourceError(host or url)


def build_session(max_retries: Optional[int] = None, backoff_factor: Optional[float] = None) -> requests.Session:
    retry = Retry(
        total=settings.http_max_retries if max_retries is None else max_retries,
        backoff_factor=settings.http_backoff_factor if backoff_factor is None else backoff_factor,
        status_forcelist=RETRY_STATUS_CODES,
        allowed_methods=frozenset(["GET"]),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retry)

    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    return session


def _to_int(raw: str) -> int:
    return int(raw.replace(",", ""))


def _to_number(raw) -> Optional[float]:
    """
    Number from a JSON-LD value: 649000, "649,000", "$649,000" or a
    QuantitativeValue dict. None when it does not parse.
    """
    if isinstance(raw, dict):
        raw = raw.get("value")
    if raw is None or isinstance(raw, bool):
        return None
    cleaned = str(raw).replace("$", "").replace(",", "").strip()
    try:
        return float(cleaned)
    except ValueError:
        return None


def _schema_types(item: Dict) -> Set[str]:
    """@type may be a single string or a list of strings."""
    types = item.get("@type")
    if isinstance(types, str):
        return {types}
    if isinstance(types, list):
        return {t for t in types if isinstance(t, str)}
    return set()


def _json_ld_items(data) -> List[Dict]:
    """Top-level objects of a JSON-LD block plus the members of any @graph."""
    items = data if isinstance(data, list) else [data]
    found: List[Dict] = []
    for item in items:
        if not isinstance(item, dict):
            continue
        found.append(item)
        graph = item.get("@graph")
        if isinstance(graph, list):
            found.extend(node for node in graph if isinstance(node, dict))
    return found


def normalize_province(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    value = raw.strip()
    if value.upper() in SUPPORTED_PROVINCES:
        return value.upper()
    return PROVINCE_NAMES.get(value.lower())


def infer_property_type(text: str) -> str:
    lowered = text.lower()
    if "fourplex" in lowered or "quadruplex" in lowered:
        return "fourplex"
    if "triplex" in lowered:
        return "triplex"
    if "duplex" in lowered:
        return "duplex"
    return "single_family"


class ListingParser:
    """
    Input:
        - url: realtor.ca, zillow.com or redfin.com listing URL

    Output:
        {
            "success": True,
            "source": "realtor" | "zillow" | "redfin",
            "url": str,
            "address": str,
            "city": str,
            "province": str | None,
            "postal_code": str | None,
            "property_type": str,
            "bedrooms": int,
            "bathrooms": float,
            "square_feet": int,
            "year_built": int | None,
            "purchase_price": float,
        }
    """

    USER_AGENT = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )

    def __init__(self, url: str, session: Optional[requests.Session] = None):
        self.url = url
        self.source = listing_source(url)
        self.session = session or build_session()
        self.html: str = ""
        self.soup: Optional[BeautifulSoup] = None
        self.text: str = ""

    # -------------------------------------------------------------
    # Fetch
    # -------------------------------------------------------------

    def fetch(self) -> str:
        try:
            response = self.session.get(
                self.url,
                headers={"User-Agent": self.USER_AGENT},
                timeout=settings.http_timeout,
            )
        except requests.RequestException as e:
            logger.warning(f"Listing fetch failed for {self.url}: {e}")
            raise ListingFetchError(f"Failed to fetch listing: {e}") from e

        if response.status_code != 200:
            raise ListingFetchError(f"Failed to fetch listing: HTTP {response.status_code}")

        return response.text

    # -------------------------------------------------------------
    # Extraction helpers
    # -------------------------------------------------------------

    def _json_ld(self) -> Dict:
        for tag in self.soup.find_all("script", type="application/ld+json"):
            try:
                data = json.loads(tag.string or "")
            except json.JSONDecodeError:
                continue

            for item in _json_ld_items(data):
                if _schema_types(item) & RESIDENCE_TYPES:
                    return item
        return {}

    def _address_parts(self, json_ld: Dict) -> Tuple[str, str, Optional[str], Optional[str]]:
        address = json_ld.get("address")
        if isinstance(address, dict) and address.get("streetAddress"):
            return (
                address.get("streetAddress", ""),
                address.get("addressLocality", ""),
                normalize_province(address.get("addressRegion")),
                address.get("postalCode"),
            )

        h1 = self.soup.find("h1")
        if not h1:
            return "", "", None, None

        # "123 Main St, Hamilton, Ontario L8P 1A1"
        parts = [p.strip() for p in h1.get_text(" ", strip=True).split(",") if p.strip()]
        street = parts[0] if parts else ""
        city = parts[1] if len(parts) >= 2 else ""

        province = None
        postal_code = None
        if len(parts) >= 3:
            last = parts[-1]
            postal = POSTAL_CODE_RE.search(last)
            if postal:
                postal_code = f"{postal.group(1)} {postal.group(2)}"
                last = POSTAL_CODE_RE.sub("", last).strip()
            province = normalize_province(last)
            if province is None:
                code = re.search(r"\b([A-Z]{2})\b", last)
                province = normalize_province(code.group(1)) if code else None

        return street, city, province, postal_code

    def _price(self, json_ld: Dict) -> float:
        offers = json_ld.get("offers")
        if isinstance(offers, list):
            offers = offers[0] if offers else None
        if isinstance(offers, dict):
            price = _to_number(offers.get("price"))
            if price:
                return price

        m = PRICE_RE.search(self.text)
        return float(_to_int(m.group(1))) if m else 0.0

    def _bedrooms(self, json_ld: Dict) -> int:
        bedrooms = _to_number(json_ld.get("numberOfBedrooms"))
        if bedrooms:
            return int(bedrooms)
        m = BEDROOMS_RE.search(self.text)
        return int(m.group(1)) if m else 0

    def _bathrooms(self, json_ld: Dict) -> float:
        bathrooms = _to_number(json_ld.get("numberOfBathroomsTotal"))
        if bathrooms:
            return bathrooms
        m = BATHROOMS_RE.search(self.text)
        return float(m.group(1)) if m else 0.0

    def _square_feet(self, json_ld: Dict) -> int:
        square_feet = _to_number(json_ld.get("floorSize"))
        if square_feet:
            return int(square_feet)
        m = SQFT_RE.search(self.text)
        return _to_int(m.group(1)) if m else 0

    def _year_built(self) -> Optional[int]:
        m = YEAR_BUILT_RE.search(self.text)
        return int(m.group(1)) if m else None

    # -------------------------------------------------------------
    # Main parse methods
    # -------------------------------------------------------------

    def parse_html(self, html: str) -> Dict:
        self.html = html
        self.soup = BeautifulSoup(html, "html.parser")
        self.text = self.soup.get_text(" ", strip=True)

        json_ld = self._json_ld()
        street, city, province, postal_code = self._address_parts(json_ld)

        return {
            "success": True,
            "source": self.source,
            "url": self.url,
            "address": street,
            "city": city,
            "province": province,
            "postal_code": postal_code,
            "property_type": infer_property_type(self.text),
            "bedrooms": self._bedrooms(json_ld),
            "bathrooms": self._bathrooms(json_ld),
            "square_feet": self._square_feet(json_ld),
            "year_built": self._year_built(),
            "purchase_price": self._price(json_ld),
        }

    def parse(self) -> Dict:
        data = self.parse_html(self.fetch())
        logger.info(f"Parsed {self.source} listing: {data['address'] or self.url}")
        return data


def scrape_listing(url: str, session: Optional[requests.Session] = None) -> Dict:
    return ListingParser(url, session=session).parse()
