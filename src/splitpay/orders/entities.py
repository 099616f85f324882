"""Order domain entities shared by the lifecycle service and persistence."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields, replace
from datetime import UTC, datetime
import enum
from typing import Any

from splitpay.core.aggregator import CurrencyTotals
from splitpay.errors import InvalidInputError


class OrderStatus(enum.Enum):
    """Payment status derived from the split items."""

    PENDING = "pending"
    PAID = "paid"


@dataclass
class SplitItem:
    """One bounded sub-payment of an order."""

    id: str
    value: int
    link_url: str = ""
    is_paid: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "value": self.value,
            "linkUrl": self.link_url,
            "isPaid": self.is_paid,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> SplitItem:
        return cls(
            id=str(data["id"]),
            value=int(data["value"]),
            link_url=str(data.get("linkUrl") or ""),
            is_paid=bool(data.get("isPaid", False)),
        )


# Python attribute -> interchange key used by the extraction service.
RECORD_FIELD_KEYS: dict[str, str] = {
    "order_number": "orderNumber",
    "type": "type",
    "filled_quantity": "filledQuantity",
    "iceberg_value": "icebergValue",
    "average_price": "averagePrice",
    "conditions": "conditions",
    "fee": "fee",
    "total": "total",
    "creation_date": "creationDate",
    "update_date": "updateDate",
}


@dataclass(frozen=True, slots=True)
class ExtractedRecord:
    """A broker trade confirmation line, every field kept as displayed text."""

    order_number: str = ""
    type: str = ""
    filled_quantity: str = ""
    iceberg_value: str = ""
    average_price: str = ""
    conditions: str = ""
    fee: str = ""
    total: str = ""
    creation_date: str = ""
    update_date: str = ""

    def is_blank(self) -> bool:
        return all(not getattr(self, f.name).strip() for f in fields(self))

    def with_field(self, name: str, value: str) -> ExtractedRecord:
        if name not in RECORD_FIELD_KEYS:
            raise InvalidInputError(f"Unknown record field: {name}")
        return replace(self, **{name: value})

    def to_dict(self) -> dict[str, str]:
        return {key: getattr(self, attr) for attr, key in RECORD_FIELD_KEYS.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ExtractedRecord:
        """Build from camelCase or snake_case keys; missing fields stay blank."""
        values: dict[str, str] = {}
        for attr, key in RECORD_FIELD_KEYS.items():
            raw = data.get(key, data.get(attr))
            values[attr] = "" if raw is None else str(raw)
        return cls(**values)


def _utcnow() -> datetime:
    return datetime.now(UTC)


@dataclass
class Order:
    """A persisted batch of split items plus payment and execution state."""

    id: str
    links: list[SplitItem]
    total_amount: int = 0
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = field(default_factory=_utcnow)
    extracted_records: list[ExtractedRecord] = field(default_factory=list)
    execution_totals: CurrencyTotals | None = None
    is_execution_registered: bool = False

    def find_item(self, item_id: str) -> SplitItem | None:
        return next((item for item in self.links if item.id == item_id), None)

    def recompute(self) -> None:
        """Re-derive total and status from the current items."""
        self.total_amount = sum(item.value for item in self.links)
        all_paid = bool(self.links) and all(item.is_paid for item in self.links)
        self.status = OrderStatus.PAID if all_paid else OrderStatus.PENDING

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "totalAmount": self.total_amount,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "links": [item.to_dict() for item in self.links],
            "extractedData": [record.to_dict() for record in self.extracted_records],
            "executionTotals": (
                self.execution_totals.to_dict() if self.execution_totals else None
            ),
            "isExecutionRegistered": self.is_execution_registered,
        }
