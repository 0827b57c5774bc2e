"""Utility functions for math, retries and transactions"""

from .math import compute_minimums, from_units, quote_from_reserves, to_units
from .retry import is_transient_error, run_with_retry
from .transactions import TransactionBuilder

__all__ = [
    "compute_minimums",
    "from_units",
    "quote_from_reserves",
    "to_units",
    "is_transient_error",
    "run_with_retry",
    "TransactionBuilder",
]
