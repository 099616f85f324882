from __future__ import annotations

from dataclasses import dataclass
import os
import re

from splitpay.core.currency import Locale

# The smallest per-item maximum the generator accepts is one above this.
MAX_PER_PART_FLOOR = 14000
DEFAULT_MAX_PER_PART = 14999
DEFAULT_EXTRACTION_MODEL = "gemini-2.5-flash"

_CURRENCY_CODE = re.compile(r"^[A-Z]{3,}$")


@dataclass(frozen=True, slots=True)
class SplitpayConfig:
    """Process configuration loaded at startup."""

    database_url: str = "sqlite:///splitpay.db"
    locale: Locale = Locale.ES
    max_per_part: int = DEFAULT_MAX_PER_PART
    settlement_currency: str = "BRL"
    debounce_seconds: float = 1.0
    extraction_model: str = DEFAULT_EXTRACTION_MODEL


def validate_max_per_part(value: int) -> int:
    """Return ``value`` if it is usable as the configured per-item maximum."""
    if value <= MAX_PER_PART_FLOOR:
        raise ValueError(
            f"SPLITPAY_MAX_PER_PART must be greater than {MAX_PER_PART_FLOOR}"
        )
    return value


def require_google_api_key() -> str:
    value = os.environ.get("GOOGLE_API_KEY", "").strip()
    if not value:
        raise ValueError("Missing required environment variable: GOOGLE_API_KEY")
    return value


def load_config_from_env() -> SplitpayConfig:
    """Load config from env and validate startup requirements."""
    database_url = os.environ.get(
        "SPLITPAY_DATABASE_URL", "sqlite:///splitpay.db"
    ).strip()

    locale_value = os.environ.get("SPLITPAY_LOCALE", "es").strip().lower()
    try:
        locale = Locale(locale_value)
    except ValueError:
        raise ValueError("SPLITPAY_LOCALE must be one of: en, es, pt") from None

    max_per_part_value = os.environ.get(
        "SPLITPAY_MAX_PER_PART", str(DEFAULT_MAX_PER_PART)
    ).strip()
    if not max_per_part_value.isdigit():
        raise ValueError("SPLITPAY_MAX_PER_PART must be a whole number")
    max_per_part = validate_max_per_part(int(max_per_part_value))

    settlement_currency = os.environ.get("SPLITPAY_SETTLEMENT_CURRENCY", "BRL").strip()
    if not _CURRENCY_CODE.match(settlement_currency):
        raise ValueError(
            "SPLITPAY_SETTLEMENT_CURRENCY must be 3 or more uppercase letters"
        )

    debounce_value = os.environ.get("SPLITPAY_DEBOUNCE_SECONDS", "1.0").strip()
    try:
        debounce_seconds = float(debounce_value)
    except ValueError:
        raise ValueError("SPLITPAY_DEBOUNCE_SECONDS must be a number") from None
    if debounce_seconds < 0:
        raise ValueError("SPLITPAY_DEBOUNCE_SECONDS must not be negative")

    extraction_model = (
        os.environ.get("SPLITPAY_EXTRACTION_MODEL", DEFAULT_EXTRACTION_MODEL).strip()
        or DEFAULT_EXTRACTION_MODEL
    )

    return SplitpayConfig(
        database_url=database_url,
        locale=locale,
        max_per_part=max_per_part,
        settlement_currency=settlement_currency,
        debounce_seconds=debounce_seconds,
        extraction_model=extraction_model,
    )
