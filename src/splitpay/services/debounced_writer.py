"""Coalesce rapid edits to an order into one delayed write of its latest state."""

from __future__ import annotations

from collections.abc import Callable
import copy
from functools import partial
import threading
from typing import Any, Protocol

from splitpay.orders.entities import Order
from splitpay.services.logger import PersistenceLogger


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Runs a callback once after a delay; the handle cancels it."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class ThreadingScheduler:
    """Scheduler backed by daemon ``threading.Timer`` instances."""

    def schedule(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        timer = threading.Timer(delay, callback)
        timer.daemon = True
        timer.start()
        return timer


class DebouncedOrderWriter:
    """Debounces order writes per order id.

    Each ``submit`` replaces the pending snapshot for that order and restarts
    its timer, so a burst of edits produces one write carrying the last
    state. Writes run one at a time in the order their snapshots are taken,
    and ``flush`` returns only after any write already in progress ends.
    """

    def __init__(
        self,
        write: Callable[[Order], Any],
        *,
        delay: float = 1.0,
        scheduler: Scheduler | None = None,
        persistence_logger: PersistenceLogger | None = None,
    ) -> None:
        self._write = write
        self._delay = delay
        self._scheduler = scheduler or ThreadingScheduler()
        self._logger = persistence_logger or PersistenceLogger()
        self._lock = threading.Lock()
        self._write_lock = threading.RLock()
        self._pending: dict[str, Order] = {}
        self._timers: dict[str, TimerHandle] = {}

    @property
    def pending_ids(self) -> list[str]:
        with self._lock:
            return list(self._pending)

    def submit(self, order: Order) -> None:
        snapshot = copy.deepcopy(order)
        with self._lock:
            previous = self._timers.pop(order.id, None)
            if previous is not None:
                previous.cancel()
            self._pending[order.id] = snapshot
            self._timers[order.id] = self._scheduler.schedule(
                self._delay, partial(self._fire, order.id)
            )
        self._logger.write_scheduled(order.id, self._delay, previous is not None)

    def cancel(self, order_id: str) -> bool:
        with self._lock:
            timer = self._timers.pop(order_id, None)
            dropped = self._pending.pop(order_id, None)
        if timer is not None:
            timer.cancel()
        if dropped is None:
            return False
        self._logger.write_cancelled(order_id)
        return True

    def flush(self) -> int:
        """Write every pending order now; returns how many were written."""
        with self._write_lock:
            with self._lock:
                orders = list(self._pending.values())
                timers = list(self._timers.values())
                self._pending.clear()
                self._timers.clear()
            for timer in timers:
                timer.cancel()
            for order in orders:
                self._write_one(order)
        self._logger.flushed(len(orders))
        return len(orders)

    def _fire(self, order_id: str) -> None:
        with self._write_lock:
            with self._lock:
                self._timers.pop(order_id, None)
                order = self._pending.pop(order_id, None)
            if order is not None:
                self._write_one(order)

    def _write_one(self, order: Order) -> None:
        # A failed write must not block writes of other orders.
        try:
            self._write(order)
        except Exception as exc:
            self._logger.write_failed(order.id, exc)
            return
        self._logger.write_completed(order.id)
