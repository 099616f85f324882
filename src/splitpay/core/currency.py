"""Lenient parsing of locale-formatted amounts such as ``"1.234,56 BRL"``."""

from __future__ import annotations

from dataclasses import dataclass
import enum
import math
import re


class Locale(enum.Enum):
    """Supported display locales; each fixes its own number separators."""

    EN = "en"
    ES = "es"
    PT = "pt"

    @property
    def thousands_separator(self) -> str:
        return "," if self is Locale.EN else "."

    @property
    def decimal_separator(self) -> str:
        return "." if self is Locale.EN else ","


LocaleTag = Locale | str


@dataclass(frozen=True, slots=True)
class ParsedAmount:
    """Normalized amount with an optional trailing currency code."""

    amount: float
    currency: str | None


ZERO = ParsedAmount(amount=0.0, currency=None)

# Number part, then an optional run of 3+ uppercase letters at the end.
_AMOUNT_WITH_CURRENCY = re.compile(r"^(.*?)(?:\s*([A-Z]{3,}))?$", re.DOTALL)
_TRAILING_CURRENCY = re.compile(r"([A-Z]{3,})\s*$")
# Longest float-like prefix, the way JavaScript's parseFloat reads one.
_FLOAT_PREFIX = re.compile(r"^[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")


def coerce_locale(locale: LocaleTag) -> Locale:
    """Accept a ``Locale`` or its tag string (``"en"``, ``"es"``, ``"pt"``)."""
    if isinstance(locale, Locale):
        return locale
    return Locale(locale.strip().lower())


def parse_currency_value(text: str | None, locale: LocaleTag) -> ParsedAmount:
    """Parse ``text`` into an amount and currency code.

    Everything after the first ``/`` is ignored for the amount. Separators
    come from ``locale``, never from the string itself. Malformed or blank
    input yields amount 0 and no currency; this function does not raise on
    data.

    Examples:
        >>> parse_currency_value("1.234,56 BRL", "es")
        ParsedAmount(amount=1234.56, currency='BRL')
        >>> parse_currency_value("500,00/1000,00 BRL", "pt")
        ParsedAmount(amount=500.0, currency='BRL')
    """
    resolved = coerce_locale(locale)
    if not text:
        return ZERO

    head, _, tail = text.partition("/")
    match = _AMOUNT_WITH_CURRENCY.match(head.strip())
    if match is None:
        return ZERO

    number_part = (match.group(1) or "").strip()
    if not number_part:
        return ZERO

    currency = match.group(2)
    if currency is None and tail:
        currency = _trailing_currency(tail)

    return ParsedAmount(amount=_parse_number(number_part, resolved), currency=currency)


def _trailing_currency(text: str) -> str | None:
    match = _TRAILING_CURRENCY.search(text)
    return match.group(1) if match else None


def _parse_number(number_part: str, locale: Locale) -> float:
    normalized = number_part.replace(locale.thousands_separator, "")
    normalized = normalized.replace(locale.decimal_separator, ".", 1)

    match = _FLOAT_PREFIX.match(normalized)
    if match is None:
        return 0.0
    try:
        amount = float(match.group(0))
    except ValueError:
        return 0.0
    return amount if math.isfinite(amount) else 0.0
