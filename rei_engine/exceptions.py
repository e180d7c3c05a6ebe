"""
exceptions.py

Errors raised by the formula modules and services. The engine turns these
into {"success": False, "error": ...}; the API maps them to HTTP errors.
"""


class ReiEngineError(Exception):
    """Base class for all engine errors."""


class InvalidInputError(ReiEngineError, ValueError):
    """Inputs are present but unusable (negative price, zero income, ...)."""


class InsufficientDownPaymentError(InvalidInputError):
    """Down payment is below the 5% CMHC minimum."""


class UnsupportedProvinceError(InvalidInputError):
    def __init__(self, province: str):
        self.province = province
        super().__init__(f"Unsupported province: {province}")


class ListingFetchError(ReiEngineError):
    """A listing page could not be downloaded."""


class UnsupportedListingSourceError(ReiEngineError):
    def __init__(self, domain: str):
        self.domain = domain
        super().__init__(
            f"Unsupported listing domain: {domain}. Supported sites: realtor.ca, zillow.com, redfin.com"
        )
