"""Fold extracted execution records into per-currency totals."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from splitpay.core.currency import LocaleTag, coerce_locale, parse_currency_value

if TYPE_CHECKING:
    from splitpay.orders.entities import ExtractedRecord

DEFAULT_SETTLEMENT_CURRENCY = "BRL"


@dataclass(frozen=True, slots=True)
class CurrencyTotals:
    """Quantity, fees and cost summed over a set of execution records.

    The fee and cost maps are copied into read-only views, so a registered
    snapshot cannot change after it is taken.
    """

    total_quantity: float = 0.0
    average_price: float = 0.0
    total_fees: Mapping[str, float] = field(default_factory=dict)
    total_cost: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "total_fees", MappingProxyType(dict(self.total_fees)))
        object.__setattr__(self, "total_cost", MappingProxyType(dict(self.total_cost)))

    def __deepcopy__(self, memo: dict[int, Any]) -> CurrencyTotals:
        return self

    def settlement_cost(self, currency: str = DEFAULT_SETTLEMENT_CURRENCY) -> float:
        return self.total_cost.get(currency, 0.0)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalQuantity": self.total_quantity,
            "averagePrice": self.average_price,
            "totalFees": dict(self.total_fees),
            "totalCost": dict(self.total_cost),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> CurrencyTotals:
        # Snapshots written by older clients may lack any of these keys.
        return cls(
            total_quantity=float(data.get("totalQuantity") or 0.0),
            average_price=float(data.get("averagePrice") or 0.0),
            total_fees={k: float(v) for k, v in (data.get("totalFees") or {}).items()},
            total_cost={k: float(v) for k, v in (data.get("totalCost") or {}).items()},
        )


def aggregate(
    records: Iterable[ExtractedRecord],
    locale: LocaleTag,
    *,
    settlement_currency: str = DEFAULT_SETTLEMENT_CURRENCY,
) -> CurrencyTotals:
    """Sum quantity, fees and cost across ``records``.

    Quantity ignores any unit suffix. Fees and cost are bucketed by their
    parsed currency; amounts without a currency cannot be attributed and
    are skipped. Average price is the settlement-currency cost divided by
    total quantity, or 0 when nothing was filled.

    Args:
        records: Execution records with locale-formatted string fields
        locale: Locale whose separators the record text uses
        settlement_currency: Currency the average price is computed against

    Returns:
        CurrencyTotals; zeroed when ``records`` is empty
    """
    resolved = coerce_locale(locale)
    quantity = 0.0
    fees: dict[str, float] = {}
    costs: dict[str, float] = {}

    for record in records:
        quantity += parse_currency_value(record.filled_quantity, resolved).amount

        fee = parse_currency_value(record.fee, resolved)
        if fee.currency:
            fees[fee.currency] = fees.get(fee.currency, 0.0) + fee.amount

        cost = parse_currency_value(record.total, resolved)
        if cost.currency:
            costs[cost.currency] = costs.get(cost.currency, 0.0) + cost.amount

    settlement_cost = costs.get(settlement_currency, 0.0)
    average_price = settlement_cost / quantity if quantity > 0 else 0.0

    return CurrencyTotals(
        total_quantity=quantity,
        average_price=average_price,
        total_fees=fees,
        total_cost=costs,
    )
