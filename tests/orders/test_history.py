"""Tests for the operations history and its CSV export."""

from __future__ import annotations

import csv
from datetime import UTC, date, datetime
import io

import pytest

from splitpay.core.aggregator import CurrencyTotals
from splitpay.orders.entities import Order, SplitItem
from splitpay.orders.history import (
    default_export_filename,
    export_history_csv,
    filter_history,
    history_headers,
    history_row,
)


def _registered(
    order_id: str,
    created_at: datetime,
    total: int = 30_000,
    totals: CurrencyTotals | None = None,
) -> Order:
    return Order(
        id=order_id,
        links=[SplitItem(id=f"{order_id}-0", value=total)],
        total_amount=total,
        created_at=created_at,
        execution_totals=totals
        or CurrencyTotals(
            total_quantity=5_000.5,
            average_price=5.9876,
            total_fees={"USDT": 1.25},
            total_cost={"BRL": 29_940.0},
        ),
        is_execution_registered=True,
    )


@pytest.fixture
def orders() -> list[Order]:
    return [
        _registered("PO-1710000000000-AAAAAA", datetime(2026, 3, 1, 9, tzinfo=UTC)),
        _registered(
            "PO-1710000000001-BBBBBB",
            datetime(2026, 3, 10, 23, 59, tzinfo=UTC),
            total=45_000,
            totals=CurrencyTotals(
                total_quantity=7_500.0,
                average_price=6.0,
                total_fees={"BNB": 0.02},
                total_cost={"BRL": 45_000.0},
            ),
        ),
        Order(
            id="PO-1710000000002-CCCCCC",
            links=[SplitItem(id="PO-1710000000002-CCCCCC-0", value=100)],
            total_amount=100,
            created_at=datetime(2026, 3, 5, tzinfo=UTC),
        ),
    ]


class TestFilterHistory:
    def test_only_registered_orders_are_listed(self, orders: list[Order]) -> None:
        matched = filter_history(orders)

        assert [order.id for order in matched] == [
            "PO-1710000000000-AAAAAA",
            "PO-1710000000001-BBBBBB",
        ]

    def test_date_range_is_inclusive(self, orders: list[Order]) -> None:
        matched = filter_history(
            orders, start=date(2026, 3, 10), end=date(2026, 3, 10)
        )

        assert [order.id for order in matched] == ["PO-1710000000001-BBBBBB"]

    def test_start_only(self, orders: list[Order]) -> None:
        assert filter_history(orders, start=date(2026, 3, 11)) == []

    def test_end_only(self, orders: list[Order]) -> None:
        matched = filter_history(orders, end=date(2026, 3, 1))

        assert [order.id for order in matched] == ["PO-1710000000000-AAAAAA"]

    @pytest.mark.parametrize(
        ("search", "expected"),
        [
            ("bbbbbb", "PO-1710000000001-BBBBBB"),
            ("45000", "PO-1710000000001-BBBBBB"),
            ("29940", "PO-1710000000000-AAAAAA"),
            ("5000.5", "PO-1710000000000-AAAAAA"),
            ("0.02", "PO-1710000000001-BBBBBB"),
        ],
    )
    def test_search_matches_id_and_amounts(
        self, orders: list[Order], search: str, expected: str
    ) -> None:
        matched = filter_history(orders, search=search)

        assert [order.id for order in matched] == [expected]

    def test_blank_search_matches_everything(self, orders: list[Order]) -> None:
        assert len(filter_history(orders, search="   ")) == 2


class TestHistoryCsv:
    def test_row_formatting(self, orders: list[Order]) -> None:
        row = history_row(orders[0])

        assert row == [
            "PO-1710000000000-AAAAAA",
            "2026-03-01T09:00:00+00:00",
            "30000.00",
            "29940.00",
            "5000.5000",
            "1.2500 USDT",
            "5.9876",
        ]

    def test_multiple_fee_currencies_are_joined(self) -> None:
        order = _registered(
            "PO-1-X",
            datetime(2026, 1, 1, tzinfo=UTC),
            totals=CurrencyTotals(total_fees={"USDT": 1.0, "BNB": 0.5}),
        )

        assert history_row(order)[5] == "1.0000 USDT | 0.5000 BNB"

    def test_no_fees_render_as_zero(self) -> None:
        order = _registered(
            "PO-1-X", datetime(2026, 1, 1, tzinfo=UTC), totals=CurrencyTotals()
        )

        assert history_row(order)[5] == "0"

    def test_unregistered_order_has_no_row(self, orders: list[Order]) -> None:
        with pytest.raises(ValueError):
            history_row(orders[2])

    def test_export_writes_header_and_rows(self, orders: list[Order]) -> None:
        # Setup
        out = io.StringIO()

        # Act
        written = export_history_csv(filter_history(orders), out)

        # Assert
        assert written == 2
        lines = out.getvalue().splitlines()
        assert lines[0] == (
            '"PO Code","Date","Total Amount","Total BRL Exec",'
            '"Total Quantity Exec","Fee Exec","Average Price"'
        )
        rows = list(csv.reader(io.StringIO(out.getvalue())))
        assert rows[1] == history_row(orders[0])
        assert rows[2] == history_row(orders[1])

    def test_export_skips_orders_without_totals(self, orders: list[Order]) -> None:
        out = io.StringIO()

        assert export_history_csv(orders, out) == 2

    def test_headers_name_settlement_currency(self) -> None:
        assert history_headers("USD")[3] == "Total USD Exec"

    def test_default_export_filename(self) -> None:
        assert (
            default_export_filename(date(2026, 3, 14))
            == "operations_history_2026-03-14.csv"
        )
