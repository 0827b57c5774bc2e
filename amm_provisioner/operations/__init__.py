"""High-level operations for liquidity provisioning"""

from .batch import BatchSummary, JobOutcome, run_batched
from .deposit import DepositParameters, DepositSubmitter
from .distribute import TokenDistributor
from .oracle import AssetPairQuote, PriceOracle, QuoteSource
from .preconditions import FundingCheck, PreconditionValidator, Shortfall
from .provision import LiquidityProvisioner

__all__ = [
    "AssetPairQuote",
    "BatchSummary",
    "DepositParameters",
    "DepositSubmitter",
    "FundingCheck",
    "JobOutcome",
    "LiquidityProvisioner",
    "PreconditionValidator",
    "PriceOracle",
    "QuoteSource",
    "Shortfall",
    "TokenDistributor",
    "run_batched",
]
