"""SQLAlchemy-backed order persistence."""

from splitpay.adapters.db.facade import OrderStore

__all__ = ["OrderStore"]
