import pytest
import requests

from conftest import FakeResponse, FakeSession
from rei_engine.exceptions import ListingFetchError, UnsupportedListingSourceError
from rei_engine.services.listing_parser import (
    ListingParser,
    build_session,
    infer_property_type,
    listing_source,
    normalize_province,
    scrape_listing,
)


REALTOR_URL = "https://www.realtor.ca/real-estate/12345/12-king-st-hamilton"

JSON_LD_PAGE = """
<html><head>
<script type="application/ld+json">
{
  "@type": "SingleFamilyResidence",
  "address": {
    "streetAddress": "12 King St",
    "addressLocality": "Hamilton",
    "addressRegion": "Ontario",
    "postalCode": "L8P 1A1"
  },
  "numberOfBedrooms": 3,
  "numberOfBathroomsTotal": 2,
  "floorSize": {"value": "1,450"},
  "offers": {"price": "649900"}
}
</script>
</head><body><p>Built in 1955. Legal duplex close to downtown.</p></body></html>
"""

HEADING_PAGE = """
<html><body>
<h1>45 Elm Ave, Calgary, AB T2P 1J9</h1>
<div>$525,000</div>
<ul><li>4 beds</li><li>3 baths</li><li>1,800 sq ft</li><li>Year built: 2005</li></ul>
</body></html>
"""

MULTI_TYPE_PAGE = """
<html><head>
<script type="application/ld+json">
{"@type": "BreadcrumbList", "itemListElement": []}
</script>
<script type="application/ld+json">
{
  "@type": ["Product", "SingleFamilyResidence"],
  "address": {
    "streetAddress": "7 Bay St",
    "addressLocality": "Toronto",
    "addressRegion": "ON",
    "postalCode": "M5J 2R8"
  },
  "numberOfBedrooms": "2",
  "numberOfBathroomsTotal": "1.5",
  "floorSize": {"@type": "QuantitativeValue", "value": "1,850.5", "unitCode": "FTK"},
  "offers": [{"@type": "Offer", "price": "$649,000", "priceCurrency": "CAD"}]
}
</script>
</head><body></body></html>
"""

GRAPH_PAGE = """
<html><head>
<script type="application/ld+json">
{
  "@context": "https://schema.org",
  "@graph": [
    {"@type": "WebPage", "name": "Listing"},
    {
      "@type": "House",
      "address": {"streetAddress": "3 Oak Rd", "addressLocality": "Halifax", "addressRegion": "NS"},
      "numberOfBedrooms": 4,
      "offers": {"price": 415000}
    }
  ]
}
</script>
</head><body></body></html>
"""

UNPARSEABLE_NUMBERS_PAGE = """
<html><head>
<script type="application/ld+json">
{
  "@type": "Residence",
  "numberOfBedrooms": "three",
  "floorSize": {"value": "n/a"},
  "offers": {"price": "Contact agent"}
}
</script>
</head><body><p>$480,000 - 2 bedrooms - 950 sq ft</p></body></html>
"""


def test_json_ld_listing():
    data = ListingParser(REALTOR_URL, session=FakeSession()).parse_html(JSON_LD_PAGE)

    assert data["source"] == "realtor"
    assert data["address"] == "12 King St"
    assert data["city"] == "Hamilton"
    assert data["province"] == "ON"
    assert data["postal_code"] == "L8P 1A1"
    assert data["purchase_price"] == 649_900.0
    assert data["bedrooms"] == 3
    assert data["bathrooms"] == 2.0
    assert data["square_feet"] == 1_450
    assert data["year_built"] == 1955
    assert data["property_type"] == "duplex"


def test_heading_and_text_fallback():
    data = ListingParser("https://www.redfin.com/home/1", session=FakeSession()).parse_html(HEADING_PAGE)

    assert data["address"] == "45 Elm Ave"
    assert data["city"] == "Calgary"
    assert data["province"] == "AB"
    assert data["postal_code"] == "T2P 1J9"
    assert data["purchase_price"] == 525_000.0
    assert data["bedrooms"] == 4
    assert data["bathrooms"] == 3.0
    assert data["square_feet"] == 1_800
    assert data["year_built"] == 2005
    assert data["property_type"] == "single_family"


def test_list_valued_type_and_formatted_numbers():
    data = ListingParser(REALTOR_URL, session=FakeSession()).parse_html(MULTI_TYPE_PAGE)

    assert data["address"] == "7 Bay St"
    assert data["city"] == "Toronto"
    assert data["province"] == "ON"
    assert data["purchase_price"] == 649_000.0
    assert data["bedrooms"] == 2
    assert data["bathrooms"] == 1.5
    assert data["square_feet"] == 1_850


def test_graph_members_are_searched():
    data = ListingParser(REALTOR_URL, session=FakeSession()).parse_html(GRAPH_PAGE)

    assert data["address"] == "3 Oak Rd"
    assert data["city"] == "Halifax"
    assert data["province"] == "NS"
    assert data["bedrooms"] == 4
    assert data["purchase_price"] == 415_000.0


def test_unparseable_json_ld_numbers_fall_back_to_text():
    data = ListingParser(REALTOR_URL, session=FakeSession()).parse_html(UNPARSEABLE_NUMBERS_PAGE)

    assert data["purchase_price"] == 480_000.0
    assert data["bedrooms"] == 2
    assert data["square_feet"] == 950


def test_empty_page():
    data = ListingParser(REALTOR_URL, session=FakeSession()).parse_html("<html><body></body></html>")

    assert data["address"] == ""
    assert data["province"] is None
    assert data["purchase_price"] == 0.0
    assert data["year_built"] is None


def test_scrape_listing_uses_session():
    session = FakeSession(FakeResponse(HEADING_PAGE))
    data = scrape_listing("https://www.zillow.com/homedetails/1", session=session)

    assert data["source"] == "zillow"
    assert data["city"] == "Calgary"
    assert len(session.calls) == 1
    assert "User-Agent" in session.calls[0]["headers"]
    assert session.calls[0]["timeout"] is not None


def test_http_error_status():
    session = FakeSession(FakeResponse("Not found", status_code=404))
    with pytest.raises(ListingFetchError, match="HTTP 404"):
        ListingParser(REALTOR_URL, session=session).parse()


def test_connection_error():
    session = FakeSession(error=requests.ConnectionError("refused"))
    with pytest.raises(ListingFetchError):
        ListingParser(REALTOR_URL, session=session).parse()


@pytest.mark.parametrize(
    "url, source",
    [
        ("https://www.realtor.ca/x", "realtor"),
        ("https://realtor.ca/x", "realtor"),
        ("https://www.zillow.com/x", "zillow"),
        ("https://redfin.com/x", "redfin"),
    ],
)
def test_supported_sources(url, source):
    assert listing_source(url) == source


@pytest.mark.parametrize("url", ["https://notzillow.com/x", "https://example.com/listing", "not a url"])
def test_unsupported_sources(url):
    with pytest.raises(UnsupportedListingSourceError):
        listing_source(url)


def test_normalize_province():
    assert normalize_province("Ontario") == "ON"
    assert normalize_province(" bc ") == "BC"
    assert normalize_province("Manitoba") is None
    assert normalize_province(None) is None


def test_infer_property_type():
    assert infer_property_type("Legal TRIPLEX with parking") == "triplex"
    assert infer_property_type("Charming bungalow") == "single_family"


def test_session_retries_transient_errors():
    session = build_session(max_retries=3)
    retry = session.get_adapter("https://www.realtor.ca").max_retries

    assert retry.total == 3
    assert 429 in retry.status_forcelist
    assert 503 in retry.status_forcelist
