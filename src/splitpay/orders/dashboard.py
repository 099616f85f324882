"""Portfolio-wide metrics over all orders."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from splitpay.core.aggregator import DEFAULT_SETTLEMENT_CURRENCY
from splitpay.orders.entities import Order, OrderStatus


@dataclass(frozen=True, slots=True)
class DashboardMetrics:
    """Order counts and amounts; execution figures cover registered orders only."""

    total_orders: int = 0
    pending_amount: float = 0.0
    paid_amount: float = 0.0
    settlement_total: float = 0.0
    total_quantity: float = 0.0
    fees_by_currency: dict[str, float] = field(default_factory=dict)


def compute_dashboard(
    orders: Iterable[Order],
    settlement_currency: str = DEFAULT_SETTLEMENT_CURRENCY,
) -> DashboardMetrics:
    total_orders = 0
    pending = 0.0
    paid = 0.0
    settlement_total = 0.0
    quantity = 0.0
    fees: dict[str, float] = {}

    for order in orders:
        total_orders += 1
        if order.status is OrderStatus.PAID:
            paid += order.total_amount
        else:
            pending += order.total_amount

        totals = order.execution_totals
        if not order.is_execution_registered or totals is None:
            continue
        settlement_total += totals.settlement_cost(settlement_currency)
        quantity += totals.total_quantity
        for currency, amount in totals.total_fees.items():
            fees[currency] = fees.get(currency, 0.0) + amount

    return DashboardMetrics(
        total_orders=total_orders,
        pending_amount=pending,
        paid_amount=paid,
        settlement_total=settlement_total,
        total_quantity=quantity,
        fees_by_currency=fees,
    )
