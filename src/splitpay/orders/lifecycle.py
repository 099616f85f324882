"""Order lifecycle: draft generation, payment tracking, execution registration."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from decimal import Decimal
import math
import random
import string
from typing import Protocol

from splitpay.core.aggregator import CurrencyTotals, aggregate
from splitpay.core.allocator import allocate
from splitpay.core.config import SplitpayConfig, validate_max_per_part
from splitpay.core.currency import LocaleTag
from splitpay.errors import (
    AllocationUnresolvableError,
    InvalidInputError,
    ItemNotFoundError,
    OrderNotFoundError,
)
from splitpay.orders.entities import ExtractedRecord, Order, SplitItem
from splitpay.orders.logger import OrderLifecycleLogger
from splitpay.services.debounced_writer import DebouncedOrderWriter, Scheduler

_CODE_ALPHABET = string.digits + string.ascii_uppercase


class OrderRepository(Protocol):
    def create(self, order: Order) -> Order: ...

    def get(self, order_id: str) -> Order | None: ...

    def list(self) -> list[Order]: ...

    def update(self, order: Order) -> Order: ...

    def delete(self, order_id: str) -> bool: ...

    def bulk_delete(self, order_ids: Iterable[str]) -> int: ...


def generate_order_code(
    now: datetime | None = None, rng: random.Random | None = None
) -> str:
    """Opaque order code: ``PO-<epoch millis>-<6 uppercase base36 chars>``."""
    moment = now or datetime.now(UTC)
    chooser = rng or random.SystemRandom()
    suffix = "".join(chooser.choice(_CODE_ALPHABET) for _ in range(6))
    return f"PO-{int(moment.timestamp() * 1000)}-{suffix}"


@dataclass
class Draft:
    """Generated split items not yet saved as an order."""

    order_id: str
    items: list[SplitItem] = field(default_factory=list)

    @property
    def total(self) -> int:
        return sum(item.value for item in self.items)

    @property
    def is_empty(self) -> bool:
        return not self.items

    def set_value(self, item_id: str, value: int) -> None:
        _validate_item_value(value)
        self._find(item_id).value = value

    def set_link(self, item_id: str, url: str) -> None:
        self._find(item_id).link_url = url

    def set_paid(self, item_id: str, is_paid: bool) -> None:
        self._find(item_id).is_paid = is_paid

    def delete_item(self, item_id: str) -> None:
        self.items.remove(self._find(item_id))

    def _find(self, item_id: str) -> SplitItem:
        for item in self.items:
            if item.id == item_id:
                return item
        raise ItemNotFoundError(f"Draft {self.order_id} has no item {item_id}")


def _validate_item_value(value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise InvalidInputError(
            f"Item value must be a positive integer, got {value!r}"
        )


def whole_units(amount: int | float | Decimal | str) -> int:
    """Floor a monetary amount to whole units; cents are ignored for splitting."""
    try:
        value = Decimal(str(amount))
    except ArithmeticError:
        raise InvalidInputError(f"Not a number: {amount!r}") from None
    if not value.is_finite():
        raise InvalidInputError(f"Not a finite number: {amount!r}")
    return math.floor(value)


class OrderLifecycle:
    """Orchestrates orders between the allocator, aggregator and a repository.

    Mutations are applied to an in-memory copy of each order and then
    written through ``writer`` (debounced) when given, else straight to the
    repository.
    """

    def __init__(
        self,
        repository: OrderRepository,
        *,
        config: SplitpayConfig | None = None,
        writer: DebouncedOrderWriter | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], datetime] | None = None,
        lifecycle_logger: OrderLifecycleLogger | None = None,
    ) -> None:
        self._repository = repository
        self._config = config or SplitpayConfig()
        self._writer = writer
        self._rng = rng
        self._clock = clock or (lambda: datetime.now(UTC))
        self._logger = lifecycle_logger or OrderLifecycleLogger()
        self._orders: dict[str, Order] = {}

    @classmethod
    def from_store(
        cls,
        repository: OrderRepository,
        *,
        config: SplitpayConfig,
        rng: random.Random | None = None,
        scheduler: Scheduler | None = None,
    ) -> OrderLifecycle:
        """Build a lifecycle whose edits are written after ``debounce_seconds``.

        A delay of zero writes every edit straight to the repository. Callers
        must call ``flush`` before exiting so pending edits are not lost.
        """
        writer = None
        if config.debounce_seconds > 0:
            writer = DebouncedOrderWriter(
                repository.update,
                delay=config.debounce_seconds,
                scheduler=scheduler,
            )
        return cls(repository, config=config, writer=writer, rng=rng)

    def flush(self) -> int:
        """Write pending debounced edits now; returns how many were written."""
        if self._writer is None:
            return 0
        return self._writer.flush()

    # -------- Generation --------

    def generate_draft(
        self,
        total_amount: int | float | Decimal | str,
        max_per_part: int | None = None,
    ) -> Draft:
        """Split ``total_amount`` into a draft of distinct split items.

        Raises:
            InvalidInputError: Non-positive total or unusable ``max_per_part``
            AllocationUnresolvableError: Distinct values could not be produced
        """
        total = whole_units(total_amount)
        if max_per_part is None:
            limit = self._config.max_per_part
        else:
            try:
                limit = validate_max_per_part(max_per_part)
            except ValueError as exc:
                raise InvalidInputError(str(exc)) from None

        try:
            values = allocate(total, limit, rng=self._rng)
        except (InvalidInputError, AllocationUnresolvableError) as exc:
            self._logger.generation_failed(total, limit, exc)
            raise

        order_id = generate_order_code(self._clock(), self._rng)
        items = [
            SplitItem(id=f"{order_id}-{index}", value=value)
            for index, value in enumerate(values)
        ]
        self._logger.draft_generated(order_id, total, values)
        return Draft(order_id=order_id, items=items)

    def save_draft(self, draft: Draft) -> Order:
        if draft.is_empty:
            raise InvalidInputError(f"Draft {draft.order_id} has no items to save")

        order = Order(
            id=draft.order_id,
            links=[replace(item) for item in draft.items],
            created_at=self._clock(),
        )
        order.recompute()
        self._repository.create(order)
        self._orders[order.id] = order
        self._logger.order_saved(order)
        return order

    # -------- Queries --------

    def get(self, order_id: str) -> Order:
        order = self._orders.get(order_id)
        if order is None:
            order = self._repository.get(order_id)
            if order is None:
                raise OrderNotFoundError(f"Order not found: {order_id}")
            self._orders[order_id] = order
        return order

    def list_orders(self) -> list[Order]:
        """All orders newest first, preferring unsaved in-memory edits."""
        orders = self._repository.list()
        return [self._orders.get(order.id, order) for order in orders]

    def current_totals(
        self, order_id: str, locale: LocaleTag | None = None
    ) -> CurrencyTotals:
        order = self.get(order_id)
        return aggregate(
            order.extracted_records,
            locale or self._config.locale,
            settlement_currency=self._config.settlement_currency,
        )

    # -------- Split items --------

    def set_item_paid(self, order_id: str, item_id: str, is_paid: bool) -> Order:
        order = self.get(order_id)
        self._find_item(order, item_id).is_paid = is_paid
        previous_status = order.status
        order.recompute()
        self._logger.item_updated(order_id, item_id, "is_paid")
        if order.status is not previous_status:
            self._logger.status_changed(order)
        return self._persist(order)

    def set_item_link(self, order_id: str, item_id: str, url: str) -> Order:
        order = self.get(order_id)
        self._find_item(order, item_id).link_url = url
        self._logger.item_updated(order_id, item_id, "link_url")
        return self._persist(order)

    def set_item_value(self, order_id: str, item_id: str, value: int) -> Order:
        _validate_item_value(value)
        order = self.get(order_id)
        self._find_item(order, item_id).value = value
        order.recompute()
        self._logger.item_updated(order_id, item_id, "value")
        return self._persist(order)

    def delete_item(self, order_id: str, item_id: str) -> Order | None:
        """Remove one item; removing the last one deletes the whole order.

        Returns:
            The updated order, or None when the order was deleted
        """
        order = self.get(order_id)
        order.links.remove(self._find_item(order, item_id))
        self._logger.item_deleted(order_id, item_id, len(order.links))

        if not order.links:
            self.delete_order(order_id)
            return None

        previous_status = order.status
        order.recompute()
        if order.status is not previous_status:
            self._logger.status_changed(order)
        return self._persist(order)

    # -------- Orders --------

    def delete_order(self, order_id: str) -> bool:
        return self.delete_orders([order_id]) > 0

    def delete_orders(self, order_ids: Iterable[str]) -> int:
        ids = list(dict.fromkeys(order_ids))
        if not ids:
            return 0
        for order_id in ids:
            self._orders.pop(order_id, None)
            if self._writer is not None:
                self._writer.cancel(order_id)
        deleted = self._repository.bulk_delete(ids)
        self._logger.orders_deleted(ids)
        return deleted

    # -------- Execution records --------

    def save_records(self, order_id: str, records: Iterable[ExtractedRecord]) -> Order:
        """Replace the order's execution records."""
        order = self.get(order_id)
        if self._is_locked(order, "save_records"):
            return order
        order.extracted_records = list(records)
        self._logger.records_saved(order_id, len(order.extracted_records))
        return self._persist(order)

    def append_records(
        self, order_id: str, records: Iterable[ExtractedRecord]
    ) -> Order:
        order = self.get(order_id)
        if self._is_locked(order, "append_records"):
            return order
        order.extracted_records = [*order.extracted_records, *records]
        self._logger.records_saved(order_id, len(order.extracted_records))
        return self._persist(order)

    def add_manual_record(self, order_id: str, record: ExtractedRecord) -> Order:
        """Append a hand-typed record; at least one field must be filled.

        Raises:
            InvalidInputError: If every field of ``record`` is blank
        """
        order = self.get(order_id)
        if self._is_locked(order, "add_manual_record"):
            return order
        if record.is_blank():
            raise InvalidInputError("Fill at least one field to add a record")
        return self.append_records(order_id, [record])

    def update_record(self, order_id: str, index: int, field: str, value: str) -> Order:
        order = self.get(order_id)
        if self._is_locked(order, "update_record"):
            return order
        records = list(order.extracted_records)
        position = self._record_index(order, index)
        records[position] = records[position].with_field(field, value)
        order.extracted_records = records
        return self._persist(order)

    def delete_record(self, order_id: str, index: int) -> Order:
        order = self.get(order_id)
        if self._is_locked(order, "delete_record"):
            return order
        records = list(order.extracted_records)
        del records[self._record_index(order, index)]
        order.extracted_records = records
        self._logger.records_saved(order_id, len(records))
        return self._persist(order)

    def register_execution(
        self, order_id: str, locale: LocaleTag | None = None
    ) -> bool:
        """Freeze the totals of the current records onto the order.

        Returns:
            True if registered now; False if already registered or there is
            nothing to register
        """
        order = self.get(order_id)
        if order.is_execution_registered:
            self._logger.registration_skipped(order_id, "already registered")
            return False
        if not order.extracted_records:
            self._logger.registration_skipped(order_id, "no execution records")
            return False

        totals = self.current_totals(order_id, locale)
        order.execution_totals = totals
        order.is_execution_registered = True
        self._persist(order)
        self._logger.execution_registered(order_id, totals)
        return True

    # -------- Internal helpers --------

    def _persist(self, order: Order) -> Order:
        self._orders[order.id] = order
        if self._writer is not None:
            self._writer.submit(order)
        else:
            self._repository.update(order)
        return order

    def _is_locked(self, order: Order, operation: str) -> bool:
        if order.is_execution_registered:
            self._logger.records_locked(order.id, operation)
            return True
        return False

    @staticmethod
    def _find_item(order: Order, item_id: str) -> SplitItem:
        item = order.find_item(item_id)
        if item is None:
            raise ItemNotFoundError(f"Order {order.id} has no item {item_id}")
        return item

    @staticmethod
    def _record_index(order: Order, index: int) -> int:
        if not 0 <= index < len(order.extracted_records):
            raise InvalidInputError(
                f"Order {order.id} has no execution record at index {index}"
            )
        return index


__all__ = [
    "Draft",
    "OrderLifecycle",
    "OrderRepository",
    "generate_order_code",
    "whole_units",
]
