"""Contract wrappers for ERC20, router and pair interactions"""

from .erc20 import ERC20
from .pair import Pair, PoolReserves
from .router import Router

__all__ = ["ERC20", "Pair", "PoolReserves", "Router"]
