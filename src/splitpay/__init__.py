"""Split payment generation, order tracking and execution reconciliation."""

__version__ = "0.1.0"
