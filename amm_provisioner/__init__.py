"""
AMM Provisioner - concurrent liquidity provisioning across many wallets
"""

from .core.connection import Web3Manager
from .core.config import Config
from .core.exceptions import (
    AMMError,
    ConfigError,
    ConnectionError,
    TransactionError,
    InsufficientBalanceError,
    AuthorizationError,
    PoolError,
    QuoteError,
)
from .operations.provision import LiquidityProvisioner

__version__ = "0.1.0"
__all__ = [
    "Web3Manager",
    "Config",
    "LiquidityProvisioner",
    "AMMError",
    "ConfigError",
    "ConnectionError",
    "TransactionError",
    "InsufficientBalanceError",
    "AuthorizationError",
    "PoolError",
    "QuoteError",
]
