from __future__ import annotations

from datetime import UTC, datetime
import json
from typing import Any

from sqlalchemy import TIMESTAMP, Boolean, Integer, String, Text, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from splitpay.core.aggregator import CurrencyTotals
from splitpay.orders.entities import ExtractedRecord, Order, OrderStatus, SplitItem


class Base(DeclarativeBase):
    """Base class for SQLAlchemy models."""

    pass


class OrderRow(Base):
    """Order model - one row per order, nested values stored as JSON text."""

    __tablename__ = "orders"

    order_id: Mapped[str] = mapped_column(String, primary_key=True)
    total_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(String, nullable=False)  # "pending" | "paid"
    links: Mapped[str] = mapped_column(Text, nullable=False)  # JSON array
    extracted_data: Mapped[str] = mapped_column(
        Text, nullable=False, server_default=text("'[]'")
    )  # JSON array
    execution_totals: Mapped[str | None] = mapped_column(
        Text, nullable=True
    )  # JSON object
    is_execution_registered: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("FALSE")
    )
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP, nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )


def _dumps(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False)


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo.
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value


def order_to_row(order: Order) -> OrderRow:
    row = OrderRow(order_id=order.id)
    apply_order_to_row(order, row)
    return row


def apply_order_to_row(order: Order, row: OrderRow) -> None:
    row.total_amount = order.total_amount
    row.status = order.status.value
    row.links = _dumps([item.to_dict() for item in order.links])
    row.extracted_data = _dumps(
        [record.to_dict() for record in order.extracted_records]
    )
    row.execution_totals = (
        _dumps(order.execution_totals.to_dict()) if order.execution_totals else None
    )
    row.is_execution_registered = order.is_execution_registered
    row.created_at = order.created_at.astimezone(UTC)
    row.updated_at = datetime.now(UTC)


def row_to_order(row: OrderRow) -> Order:
    totals_data = json.loads(row.execution_totals) if row.execution_totals else None
    return Order(
        id=row.order_id,
        links=[SplitItem.from_dict(item) for item in json.loads(row.links)],
        total_amount=row.total_amount,
        status=OrderStatus(row.status),
        created_at=_as_utc(row.created_at),
        extracted_records=[
            ExtractedRecord.from_dict(record)
            for record in json.loads(row.extracted_data or "[]")
        ],
        execution_totals=(
            CurrencyTotals.from_dict(totals_data) if totals_data is not None else None
        ),
        is_execution_registered=row.is_execution_registered,
    )
