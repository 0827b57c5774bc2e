"""Custom exceptions for AMM Provisioner"""


class AMMError(Exception):
    """Base exception for all AMM errors"""
    pass


class ConfigError(AMMError):
    """Configuration-related errors"""
    pass


class ConnectionError(AMMError):
    """Web3 connection errors"""
    pass


class TransactionError(AMMError):
    """Transaction execution errors"""
    pass


class InsufficientBalanceError(AMMError):
    """Insufficient native or token balance"""

    def __init__(self, message, shortfalls=None):
        super().__init__(message)
        self.shortfalls = list(shortfalls or [])


class AuthorizationError(AMMError):
    """Token allowance could not be established or is too low"""
    pass


class PoolError(AMMError):
    """Pool-related errors (not found, unknown token, etc.)"""
    pass


class QuoteError(AMMError):
    """Quote-related errors (no usable price from any source)"""
    pass
