"""Tests for debounced per-order persistence."""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING
from unittest.mock import MagicMock

from splitpay.orders.entities import Order, SplitItem
from splitpay.services.debounced_writer import DebouncedOrderWriter
from splitpay.services.logger import PersistenceLogger

if TYPE_CHECKING:
    from conftest import FakeScheduler


def _order(order_id: str = "PO-1-AAAAAA", value: int = 100) -> Order:
    return Order(id=order_id, links=[SplitItem(id=f"{order_id}-0", value=value)])


class TestDebouncedOrderWriter:
    def test_nothing_is_written_before_the_delay(
        self, scheduler: FakeScheduler
    ) -> None:
        write = MagicMock()
        writer = DebouncedOrderWriter(write, delay=1.0, scheduler=scheduler)

        writer.submit(_order())

        write.assert_not_called()
        assert writer.pending_ids == ["PO-1-AAAAAA"]
        assert scheduler.timers[0].delay == 1.0

    def test_burst_of_edits_writes_last_state_once(
        self, scheduler: FakeScheduler
    ) -> None:
        # Setup
        write = MagicMock()
        writer = DebouncedOrderWriter(write, scheduler=scheduler)
        order = _order()

        # Act
        for value in (101, 102, 103):
            order.links[0].value = value
            writer.submit(order)
        scheduler.fire_all()

        # Assert
        write.assert_called_once()
        assert write.call_args.args[0].links[0].value == 103
        assert len(scheduler.live()) == 0
        assert [timer.cancelled for timer in scheduler.timers] == [True, True, True]

    def test_snapshot_is_isolated_from_later_mutation(
        self, scheduler: FakeScheduler
    ) -> None:
        write = MagicMock()
        writer = DebouncedOrderWriter(write, scheduler=scheduler)
        order = _order()

        writer.submit(order)
        order.links[0].value = 999
        scheduler.fire_all()

        assert write.call_args.args[0].links[0].value == 100

    def test_orders_are_debounced_independently(
        self, scheduler: FakeScheduler
    ) -> None:
        write = MagicMock()
        writer = DebouncedOrderWriter(write, scheduler=scheduler)

        writer.submit(_order("PO-1-A"))
        writer.submit(_order("PO-2-B"))
        scheduler.fire_all()

        written = sorted(call.args[0].id for call in write.call_args_list)
        assert written == ["PO-1-A", "PO-2-B"]

    def test_cancel_drops_pending_write(self, scheduler: FakeScheduler) -> None:
        write = MagicMock()
        writer = DebouncedOrderWriter(write, scheduler=scheduler)
        writer.submit(_order())

        assert writer.cancel("PO-1-AAAAAA") is True
        scheduler.fire_all()

        write.assert_not_called()
        assert writer.cancel("PO-1-AAAAAA") is False

    def test_flush_writes_everything_now(self, scheduler: FakeScheduler) -> None:
        write = MagicMock()
        writer = DebouncedOrderWriter(write, scheduler=scheduler)
        writer.submit(_order("PO-1-A"))
        writer.submit(_order("PO-2-B"))

        assert writer.flush() == 2

        assert write.call_count == 2
        assert writer.pending_ids == []
        assert scheduler.live() == []

    def test_failed_write_is_logged_and_others_continue(
        self, scheduler: FakeScheduler
    ) -> None:
        # Setup
        persistence_logger = MagicMock(spec=PersistenceLogger)
        written: list[str] = []

        def write(order: Order) -> None:
            if order.id == "PO-1-A":
                raise RuntimeError("disk full")
            written.append(order.id)

        writer = DebouncedOrderWriter(
            write, scheduler=scheduler, persistence_logger=persistence_logger
        )

        # Act
        writer.submit(_order("PO-1-A"))
        writer.submit(_order("PO-2-B"))
        scheduler.fire_all()

        # Assert
        assert written == ["PO-2-B"]
        persistence_logger.write_failed.assert_called_once()
        assert persistence_logger.write_failed.call_args.args[0] == "PO-1-A"
        persistence_logger.write_completed.assert_called_once_with("PO-2-B")

    def test_coalesced_submit_is_logged(self, scheduler: FakeScheduler) -> None:
        persistence_logger = MagicMock(spec=PersistenceLogger)
        writer = DebouncedOrderWriter(
            MagicMock(), scheduler=scheduler, persistence_logger=persistence_logger
        )

        writer.submit(_order())
        writer.submit(_order())

        assert [
            call.args[2] for call in persistence_logger.write_scheduled.call_args_list
        ] == [False, True]

    def test_default_scheduler_uses_timer_thread(self) -> None:
        done = threading.Event()
        writer = DebouncedOrderWriter(lambda order: done.set(), delay=0.01)

        writer.submit(_order())

        assert done.wait(timeout=5)

    def test_flush_waits_for_a_write_in_progress(
        self, scheduler: FakeScheduler
    ) -> None:
        # Setup
        started = threading.Event()
        release = threading.Event()
        written: list[int] = []

        def write(order: Order) -> None:
            if not written:
                started.set()
                release.wait(timeout=5)
            written.append(order.links[0].value)

        writer = DebouncedOrderWriter(write, scheduler=scheduler)
        writer.submit(_order(value=1))
        firing = threading.Thread(target=scheduler.fire_all)
        firing.start()
        assert started.wait(timeout=5)
        writer.submit(_order(value=2))

        # Act
        flushing = threading.Thread(target=writer.flush)
        flushing.start()
        flushing.join(timeout=0.2)
        blocked = flushing.is_alive()
        release.set()
        flushing.join(timeout=5)
        firing.join(timeout=5)

        # Assert
        assert blocked
        assert written == [1, 2]
