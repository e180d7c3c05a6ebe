"""
config.py

Runtime settings loaded from the environment (and a local .env file).

    LOG_LEVEL               default INFO
    LOG_FILE                optional log file path
    API_TITLE               FastAPI title
    CORS_ORIGINS            comma-separated, default "*"
    HTTP_TIMEOUT_SECONDS    listing fetch timeout, default 10
    HTTP_MAX_RETRIES        listing fetch retries, default 3
    HTTP_BACKOFF_FACTOR     exponential backoff base, default 1.0 (1s, 2s, 4s)
    DEFAULT_INTEREST_RATE   contract rate in percent, default 5.5
    DEFAULT_AMORTIZATION    years, default 25
"""

import os
from typing import List, Optional

from dotenv import load_dotenv


load_dotenv()


def _get_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be numeric, got {raw!r}")


def _get_int(name: str, default: int) -> int:
    return int(_get_float(name, default))


class Settings:
    """
    Read once at import; call Settings() again to pick up changes in tests.
    """

    def __init__(self):
        self.log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
        self.log_file: Optional[str] = os.getenv("LOG_FILE") or None

        self.api_title: str = os.getenv("API_TITLE", "Canadian Real Estate Investment Engine API")
        self.cors_origins: List[str] = [
            o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()
        ]

        self.http_timeout: float = _get_float("HTTP_TIMEOUT_SECONDS", 10.0)
        self.http_max_retries: int = _get_int("HTTP_MAX_RETRIES", 3)
        self.http_backoff_factor: float = _get_float("HTTP_BACKOFF_FACTOR", 1.0)

        self.default_interest_rate: float = _get_float("DEFAULT_INTEREST_RATE", 5.5)
        self.default_amortization_years: int = _get_int("DEFAULT_AMORTIZATION", 25)


settings = Settings()
