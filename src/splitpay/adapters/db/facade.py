from __future__ import annotations

from collections.abc import Iterable, Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from splitpay.adapters.db.models import (
    Base,
    OrderRow,
    apply_order_to_row,
    order_to_row,
    row_to_order,
)
from splitpay.errors import OrderNotFoundError
from splitpay.orders.entities import Order


class OrderStore:
    """Order persistence keyed by order id.

    Only plain ``Order`` values cross this boundary; ORM rows never leave
    a session.
    """

    def __init__(self, url: str) -> None:
        """Initialize database connection.

        Args:
            url: Database URL (e.g., "sqlite:///splitpay.db")
        """
        self._url = url
        engine_kwargs: dict[str, object] = {"echo": False}
        if url in {"sqlite://", "sqlite:///:memory:"}:
            # Share one connection so every session sees the same in-memory DB.
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            engine_kwargs["poolclass"] = StaticPool
        self._engine = create_engine(url, **engine_kwargs)
        self._session_factory = sessionmaker(bind=self._engine, class_=Session)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Context manager for database sessions."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def create_schema(self) -> None:
        Base.metadata.create_all(self._engine)

    def create(self, order: Order) -> Order:
        with self.session() as session:  # type: Session
            session.add(order_to_row(order))
        return order

    def get(self, order_id: str) -> Order | None:
        with self.session() as session:  # type: Session
            row = session.get(OrderRow, order_id)
            return row_to_order(row) if row is not None else None

    def list(self) -> list[Order]:
        """Return all orders, newest first."""
        with self.session() as session:  # type: Session
            rows = session.query(OrderRow).order_by(OrderRow.created_at.desc()).all()
            return [row_to_order(row) for row in rows]

    def update(self, order: Order) -> Order:
        """Overwrite the stored order with ``order``.

        Raises:
            OrderNotFoundError: If the order was never created or was deleted
        """
        with self.session() as session:  # type: Session
            row = session.get(OrderRow, order.id)
            if row is None:
                raise OrderNotFoundError(f"Order not found: {order.id}")
            apply_order_to_row(order, row)
        return order

    def delete(self, order_id: str) -> bool:
        with self.session() as session:  # type: Session
            deleted = (
                session.query(OrderRow)
                .filter(OrderRow.order_id == order_id)
                .delete(synchronize_session=False)
            )
            return deleted > 0

    def bulk_delete(self, order_ids: Iterable[str]) -> int:
        """Delete several orders at once.

        Returns:
            Number of orders deleted
        """
        ids = list(order_ids)
        if not ids:
            return 0

        with self.session() as session:  # type: Session
            return (
                session.query(OrderRow)
                .filter(OrderRow.order_id.in_(ids))
                .delete(synchronize_session=False)
            )
