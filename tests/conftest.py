"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime
import random

import pytest

from splitpay.adapters.db.facade import OrderStore
from splitpay.core.config import SplitpayConfig
from splitpay.orders.entities import ExtractedRecord
from splitpay.orders.lifecycle import OrderLifecycle


class FakeTimer:
    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


class FakeScheduler:
    """Records scheduled callbacks; tests fire them by hand."""

    def __init__(self) -> None:
        self.timers: list[FakeTimer] = []

    def schedule(self, delay: float, callback: Callable[[], None]) -> FakeTimer:
        timer = FakeTimer(delay, callback)
        self.timers.append(timer)
        return timer

    def live(self) -> list[FakeTimer]:
        return [timer for timer in self.timers if not timer.cancelled]

    def fire_all(self) -> None:
        for timer in self.live():
            timer.cancelled = True
            timer.callback()


@pytest.fixture
def store() -> OrderStore:
    order_store = OrderStore("sqlite:///:memory:")
    order_store.create_schema()
    return order_store


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 14, 12, 30, 0, tzinfo=UTC)


@pytest.fixture
def lifecycle(store: OrderStore, fixed_now: datetime) -> OrderLifecycle:
    return OrderLifecycle(
        store,
        config=SplitpayConfig(database_url="sqlite:///:memory:"),
        rng=random.Random(1234),
        clock=lambda: fixed_now,
    )


@pytest.fixture
def sample_records() -> list[ExtractedRecord]:
    return [
        ExtractedRecord(
            order_number="1001",
            type="Limit / Buy",
            filled_quantity="100,5 USDT",
            average_price="5,10",
            fee="0,10 USDT",
            total="512,55 BRL",
        ),
        ExtractedRecord(
            order_number="1002",
            type="Limit / Buy",
            filled_quantity="99,5 USDT",
            average_price="5,12",
            fee="0,05 USDT",
            total="509,44 BRL",
        ),
    ]


@pytest.fixture
def scheduler() -> FakeScheduler:
    return FakeScheduler()
