"""Core module - configuration, connection, exceptions, and wallets"""

from .config import Config
from .connection import Web3Manager
from .exceptions import AMMError, ConfigError, ConnectionError, TransactionError
from .wallet import WalletJob, generate_wallet, load_wallets

__all__ = [
    "Config",
    "Web3Manager",
    "AMMError",
    "ConfigError",
    "ConnectionError",
    "TransactionError",
    "WalletJob",
    "generate_wallet",
    "load_wallets",
]
