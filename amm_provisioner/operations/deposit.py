"""Liquidity deposit parameters and submission"""

import asyncio
import dataclasses
import logging
import time
from dataclasses import dataclass

from .preconditions import has_sufficient_allowance
from ..core.exceptions import AuthorizationError, TransactionError
from ..core.wallet import wallet_logger
from ..utils.math import compute_minimums, effective_slippage, from_units
from ..utils.retry import is_transient_error, run_with_retry

logger = logging.getLogger(__name__)

DEFAULT_DEADLINE_SECONDS = 600


@dataclass(frozen=True)
class DepositParameters:
    """
    Arguments of one addLiquidityETH call.

    asset_a is the wrapped native coin (sent as value), asset_b the token
    (pulled by allowance). All amounts are in smallest units.
    """

    asset_a: str
    asset_b: str
    amount_a_desired: int
    amount_b_desired: int
    amount_a_min: int
    amount_b_min: int
    recipient: str
    deadline: int

    def __post_init__(self):
        if self.amount_a_desired <= 0 or self.amount_b_desired <= 0:
            raise ValueError("Desired deposit amounts must be positive")
        if not 0 <= self.amount_a_min <= self.amount_a_desired:
            raise ValueError("amount_a_min must be between 0 and amount_a_desired")
        if not 0 <= self.amount_b_min <= self.amount_b_desired:
            raise ValueError("amount_b_min must be between 0 and amount_b_desired")

    @classmethod
    def from_quote(cls, quote, native_asset, token_asset, recipient, slippage_tolerance,
                   deadline_seconds=DEFAULT_DEADLINE_SECONDS, now=None):
        """
        Build deposit parameters from a token -> native quote.

        Args:
            quote: AssetPairQuote (input = token, output = native)
            native_asset: Wrapped native coin address
            token_asset: Token address
            recipient: Address receiving the LP tokens
            slippage_tolerance: Configured tolerance in percent
            deadline_seconds: Validity window from now
            now: Current unix time (defaults to time.time())
        """
        amount_native = quote.output_amount
        amount_token = quote.input_amount
        min_native, min_token = compute_minimums(amount_native, amount_token, slippage_tolerance)
        now = time.time() if now is None else now
        return cls(
            asset_a=native_asset,
            asset_b=token_asset,
            amount_a_desired=amount_native,
            amount_b_desired=amount_token,
            amount_a_min=min_native,
            amount_b_min=min_token,
            recipient=recipient,
            deadline=int(now) + deadline_seconds,
        )

    def with_deadline(self, deadline):
        return dataclasses.replace(self, deadline=deadline)


class DepositSubmitter:
    """Re-verify a wallet's funding and submit the deposit, retrying transient errors"""

    def __init__(self, router, token, validator, deadline_seconds=DEFAULT_DEADLINE_SECONDS,
                 retry_attempts=3, retry_delay=2.0, is_transient=is_transient_error,
                 sleep=asyncio.sleep, clock=time.time):
        """
        Args:
            router: Router wrapper (also the token spender)
            token: ERC20 wrapper for the token side
            validator: PreconditionValidator used for the live balance re-check
            deadline_seconds: Deadline window stamped at each attempt
            retry_attempts: Attempts for transient failures
            retry_delay: Seconds between attempts
            is_transient: Error classifier for the retry wrapper
            sleep: Awaitable sleep (injectable for tests)
            clock: Returns current unix time
        """
        self.router = router
        self.token = token
        self.validator = validator
        self.deadline_seconds = deadline_seconds
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self.is_transient = is_transient
        self.sleep = sleep
        self.clock = clock

    async def submit(self, wallet, params):
        """
        Submit the deposit for wallet.

        Returns:
            Confirmed transaction hash

        Raises:
            InsufficientBalanceError: Live balance below a desired amount
            AuthorizationError: Live allowance too low
            TransactionError: Deposit reverted or deadline already passed
        """
        tx_hash = await run_with_retry(
            lambda: self._submit_once(wallet, params),
            max_attempts=self.retry_attempts,
            delay=self.retry_delay,
            is_transient=self.is_transient,
            sleep=self.sleep,
            label=f"[{wallet.label}] deposit",
        )
        # A sent deposit is never resent, only its receipt wait is retried
        await run_with_retry(
            lambda: self.router.confirm(tx_hash),
            max_attempts=self.retry_attempts,
            delay=self.retry_delay,
            is_transient=self.is_transient,
            sleep=self.sleep,
            label=f"[{wallet.label}] deposit receipt",
        )
        wallet_logger(logger, wallet).info("Deposit confirmed: %s", tx_hash)
        return tx_hash

    async def _submit_once(self, wallet, params):
        log = wallet_logger(logger, wallet)
        params = params.with_deadline(int(self.clock()) + self.deadline_seconds)
        if params.deadline <= self.clock():
            raise TransactionError(f"Deposit deadline {params.deadline} is not in the future")

        log.info("Final check before deposit")
        funding = await self.validator.ensure_funded(wallet, params.amount_a_desired, params.amount_b_desired)
        funding.raise_for_shortfall()

        allowance = await self.token.allowance(wallet.address, self.router.address)
        total_supply = await self.token.total_supply()
        if not has_sufficient_allowance(allowance, params.amount_b_desired, total_supply):
            decimals = self.validator.token_decimals
            raise AuthorizationError(
                f"{self.validator.token_symbol} allowance too low: need "
                f"{from_units(params.amount_b_desired, decimals)}, have {from_units(allowance, decimals)}"
            )

        log.info(
            "Depositing %s %s + %s %s (min %s / %s), deadline %s",
            from_units(params.amount_a_desired, self.validator.native_decimals), self.validator.native_symbol,
            from_units(params.amount_b_desired, self.validator.token_decimals), self.validator.token_symbol,
            from_units(params.amount_a_min, self.validator.native_decimals),
            from_units(params.amount_b_min, self.validator.token_decimals),
            params.deadline,
        )

        tx_hash = await self.router.add_liquidity_eth(
            wallet.account,
            token=params.asset_b,
            amount_token_desired=params.amount_b_desired,
            amount_token_min=params.amount_b_min,
            amount_eth_min=params.amount_a_min,
            to=params.recipient,
            deadline=params.deadline,
            value=params.amount_a_desired,
            wait=False,
        )
        log.info("Deposit sent: %s", tx_hash)
        return tx_hash


def describe_slippage(tolerance):
    """Human note on the tolerance actually applied"""
    applied = effective_slippage(tolerance)
    if applied != tolerance:
        return f"{applied}% (configured {tolerance}%, raised to protective minimum)"
    return f"{applied}%"
