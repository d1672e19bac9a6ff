"""Financial reconciliation layer of the agency console."""

__version__ = "1.0.0"
