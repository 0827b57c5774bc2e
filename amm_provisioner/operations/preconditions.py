"""Funding and token authorization checks run before any deposit"""

import logging
from dataclasses import dataclass

from ..core.exceptions import AuthorizationError, InsufficientBalanceError, TransactionError
from ..core.wallet import wallet_logger
from ..utils.math import from_units

logger = logging.getLogger(__name__)


def is_amply_authorized(allowance, total_supply):
    """An allowance of at least half the supply never needs topping up"""
    return allowance >= total_supply // 2


def has_sufficient_allowance(allowance, required, total_supply):
    return allowance >= required or is_amply_authorized(allowance, total_supply)


@dataclass(frozen=True)
class Shortfall:
    """How far one asset balance falls below what is required"""

    asset: str
    required: int
    available: int
    decimals: int

    @property
    def deficit(self):
        """Missing amount in smallest units"""
        return self.required - self.available

    @property
    def deficit_amount(self):
        """Missing amount in human units"""
        return from_units(self.deficit, self.decimals)

    def describe(self):
        return (
            f"{self.asset} short by {self.deficit_amount} "
            f"(need {from_units(self.required, self.decimals)}, "
            f"have {from_units(self.available, self.decimals)})"
        )


@dataclass(frozen=True)
class FundingCheck:
    """Result of comparing a wallet's balances against required amounts"""

    native_balance: int
    token_balance: int
    shortfalls: tuple = ()

    @property
    def sufficient(self):
        return not self.shortfalls

    def shortfall_for(self, asset):
        for shortfall in self.shortfalls:
            if shortfall.asset == asset:
                return shortfall
        return None

    def describe(self):
        if self.sufficient:
            return "balances sufficient"
        return "; ".join(s.describe() for s in self.shortfalls)

    def raise_for_shortfall(self):
        """
        Raises:
            InsufficientBalanceError: Naming every short asset and its deficit
        """
        if not self.sufficient:
            raise InsufficientBalanceError(
                f"Insufficient balance: {self.describe()}", shortfalls=self.shortfalls
            )


class PreconditionValidator:
    """Check balances and set token allowances for a wallet"""

    def __init__(self, manager, token, token_symbol, token_decimals,
                 native_symbol="OKB", native_decimals=18):
        """
        Args:
            manager: Web3Manager instance (native balances)
            token: ERC20 wrapper for the token side of the deposit
            token_symbol: Token symbol for messages
            token_decimals: Token decimals
            native_symbol: Native coin symbol for messages
            native_decimals: Native coin decimals
        """
        self.manager = manager
        self.token = token
        self.token_symbol = token_symbol
        self.token_decimals = token_decimals
        self.native_symbol = native_symbol
        self.native_decimals = native_decimals

    async def ensure_funded(self, wallet, required_native, required_token):
        """
        Compare live balances with required amounts (smallest units).

        A balance equal to the requirement is sufficient.

        Returns:
            FundingCheck with one Shortfall per short asset
        """
        log = wallet_logger(logger, wallet)
        native_balance = await self.manager.get_balance(wallet.address)
        token_balance = await self.token.balance_of(wallet.address)

        log.info(
            "%s: %s (need %s), %s: %s (need %s)",
            self.native_symbol, from_units(native_balance, self.native_decimals),
            from_units(required_native, self.native_decimals),
            self.token_symbol, from_units(token_balance, self.token_decimals),
            from_units(required_token, self.token_decimals),
        )

        shortfalls = []
        if native_balance < required_native:
            shortfalls.append(Shortfall(self.native_symbol, required_native, native_balance, self.native_decimals))
        if token_balance < required_token:
            shortfalls.append(Shortfall(self.token_symbol, required_token, token_balance, self.token_decimals))

        check = FundingCheck(native_balance, token_balance, tuple(shortfalls))
        if check.sufficient:
            log.info("Balances sufficient")
        else:
            log.warning("Insufficient balance: %s", check.describe())
        return check

    async def ensure_authorized(self, wallet, spender, required_amount):
        """
        Make sure spender may move at least required_amount of the token.

        Allowances of half the total supply or more are left alone. Otherwise
        a nonzero allowance is first reset to zero, then the full supply is
        approved, each step confirmed before the next.

        Returns:
            Hash of the approval transaction, or None if already authorized

        Raises:
            AuthorizationError: If an approval reverts or supply cannot cover the amount
        """
        log = wallet_logger(logger, wallet)
        allowance = await self.token.allowance(wallet.address, spender)
        total_supply = await self.token.total_supply()

        log.info(
            "%s allowance: %s, need %s, total supply %s",
            self.token_symbol,
            from_units(allowance, self.token_decimals),
            from_units(required_amount, self.token_decimals),
            from_units(total_supply, self.token_decimals),
        )

        if is_amply_authorized(allowance, total_supply):
            log.info("Allowance already ample, skipping approval")
            return None

        if total_supply < required_amount:
            raise AuthorizationError(
                f"{self.token_symbol} total supply {total_supply} is below required {required_amount}"
            )

        try:
            # Some tokens reject changing one nonzero allowance to another
            if allowance > 0:
                log.info("Resetting existing allowance to 0")
                await self.token.approve(wallet.account, spender, 0)

            tx_hash = await self.token.approve(wallet.account, spender, total_supply)
        except TransactionError as e:
            raise AuthorizationError(f"{self.token_symbol} approval failed: {e}") from e

        log.info("Approved %s %s for %s: %s",
                 from_units(total_supply, self.token_decimals), self.token_symbol, spender, tx_hash)
        return tx_hash
