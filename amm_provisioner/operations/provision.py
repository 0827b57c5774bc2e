"""Liquidity provisioning across many pre-funded wallets"""

import asyncio
import logging

from .batch import BatchSummary, run_batched
from .deposit import DepositParameters, DepositSubmitter, describe_slippage
from .oracle import PriceOracle
from .preconditions import PreconditionValidator
from ..contracts.erc20 import ERC20
from ..contracts.router import Router
from ..core.config import Config
from ..core.connection import Web3Manager
from ..core.exceptions import AMMError, ConnectionError, QuoteError
from ..core.wallet import load_wallets, wallet_logger
from ..utils.math import apply_percent_reduction, from_units, to_units
from ..utils.retry import is_transient_error, run_with_retry
from ..utils.transactions import TransactionBuilder

logger = logging.getLogger(__name__)


async def read_token_decimals(token, config, is_transient=is_transient_error, sleep=asyncio.sleep):
    """
    Read the token's decimals, retrying transient RPC failures.

    Raises:
        ConnectionError: If the read still fails once retries are spent
    """
    try:
        return await run_with_retry(
            token.decimals,
            max_attempts=config.retry_attempts,
            delay=config.retry_delay,
            is_transient=is_transient,
            sleep=sleep,
            label="token decimals",
        )
    except AMMError:
        raise
    except Exception as e:
        raise ConnectionError(f"Could not read token decimals for {config.token_address}: {e}") from e


class LiquidityProvisioner:
    """
    Add token/native liquidity from every configured sub-wallet.

    Per wallet: check configured funding, quote the native amount matching
    the sized token amount, check funding for that pair, make sure the
    router may spend the token, then deposit. Wallets run in concurrent
    groups and a failing wallet never stops the others.
    """

    def __init__(self, config=None, manager=None, wallets=None, oracle=None, validator=None,
                 submitter=None, spender=None, token_decimals=None, token=None, router=None,
                 is_transient=is_transient_error, sleep=asyncio.sleep):
        """
        Args:
            config: Config instance (loaded from the environment if None)
            manager: Web3Manager (created and connected in setup() if None)
            wallets: WalletJob list (loaded from config if None)
            oracle, validator, submitter: Pre-built components (built in setup() if None)
            spender: Address allowed to pull the token (router address if None)
            token_decimals: Token decimals (read from chain if None)
            token, router: Contract wrappers (built in setup() if None)
            is_transient: Error classifier shared by every retry
            sleep: Awaitable sleep used for retries and group delays
        """
        self.config = config or Config()
        self.manager = manager
        self.wallets = wallets
        self.oracle = oracle
        self.validator = validator
        self.submitter = submitter
        self.spender = spender
        self.token_decimals = token_decimals
        self.token = token
        self.router = router
        self.is_transient = is_transient
        self.sleep = sleep
        self._owns_manager = manager is None

    # ── setup ──────────────────────────────────────────────────────────

    async def setup(self, require_sub_wallets=True):
        """
        Validate configuration, then connect and build missing components.

        Raises:
            ConfigError: Before any network call, on invalid settings
            ConnectionError: If no RPC endpoint is usable or token decimals cannot be read
        """
        self.config.validate(require_sub_wallets=require_sub_wallets)
        if self.wallets is None and require_sub_wallets:
            self.wallets = load_wallets(self.config.sub_wallet_private_keys)

        if all(c is not None for c in (self.oracle, self.validator, self.submitter, self.spender)) \
                and self.token_decimals is not None:
            return self

        if self.manager is None:
            self.manager = Web3Manager(self.config)
        if self.manager.w3 is None:
            await self.manager.connect()

        if self.token is None or self.router is None:
            tx_builder = TransactionBuilder(self.manager)
            if self.token is None:
                self.token = ERC20(self.manager, self.config.token_address, tx_builder)
            if self.router is None:
                self.router = Router(self.manager, self.config.router_address, tx_builder)
        token, router = self.token, self.router

        if self.token_decimals is None:
            self.token_decimals = await read_token_decimals(token, self.config, self.is_transient, self.sleep)
        token_symbol = await token.symbol()
        native_decimals = Config.NATIVE_DECIMALS

        if self.spender is None:
            self.spender = router.address
        if self.validator is None:
            self.validator = PreconditionValidator(
                self.manager, token, token_symbol, self.token_decimals,
                native_symbol=self.config.native_symbol, native_decimals=native_decimals,
            )
        if self.oracle is None:
            self.oracle = PriceOracle(
                router,
                token_in=self.config.token_address,
                token_out=self.config.wrapped_native_address,
                decimals_in=self.token_decimals,
                decimals_out=native_decimals,
                reference_price=self.config.reference_price,
                min_reserve_out=to_units(self.config.min_pool_reserve, native_decimals),
            )
        if self.submitter is None:
            self.submitter = DepositSubmitter(
                router, token, self.validator,
                deadline_seconds=self.config.deadline_seconds,
                retry_attempts=self.config.retry_attempts,
                retry_delay=self.config.retry_delay,
                is_transient=self.is_transient,
                sleep=self.sleep,
            )
        return self

    async def close(self):
        if self._owns_manager and self.manager is not None:
            await self.manager.close()

    # ── amounts ────────────────────────────────────────────────────────

    def deposit_token_amount(self):
        """Configured per-deposit token amount minus the safety buffer, in smallest units"""
        full = to_units(self.config.token_amount_per_liquidity, self.token_decimals)
        return apply_percent_reduction(full, self.config.safety_buffer)

    def required_balances(self):
        """Configured (native, token) every wallet should hold, in smallest units"""
        return (
            to_units(self.config.native_per_wallet, Config.NATIVE_DECIMALS),
            to_units(self.config.token_per_wallet, self.token_decimals),
        )

    # ── operations ─────────────────────────────────────────────────────

    async def provision_wallet(self, wallet):
        """
        Run the full deposit flow for one wallet.

        Returns:
            Confirmed deposit transaction hash

        Raises:
            InsufficientBalanceError: Wallet is short; nothing was sent
            QuoteError: No price could be produced
            AuthorizationError, TransactionError: Approval or deposit failed
        """
        log = wallet_logger(logger, wallet)
        log.info("Starting liquidity provisioning for %s", wallet.address)

        required_native, required_token = self.required_balances()
        funding = await self.validator.ensure_funded(wallet, required_native, required_token)
        funding.raise_for_shortfall()

        quote = await self.oracle.quote(self.deposit_token_amount(), wallet=wallet)
        if quote is None:
            raise QuoteError("No price available from any quote source")

        funding = await self.validator.ensure_funded(wallet, quote.output_amount, quote.input_amount)
        funding.raise_for_shortfall()

        await run_with_retry(
            lambda: self.validator.ensure_authorized(wallet, self.spender, quote.input_amount),
            max_attempts=self.config.retry_attempts,
            delay=self.config.retry_delay,
            is_transient=self.is_transient,
            sleep=self.sleep,
            label=f"[{wallet.label}] approval",
        )

        params = DepositParameters.from_quote(
            quote,
            native_asset=self.config.wrapped_native_address,
            token_asset=self.config.token_address,
            recipient=wallet.address,
            slippage_tolerance=self.config.slippage_tolerance,
            deadline_seconds=self.config.deadline_seconds,
        )
        tx_hash = await self.submitter.submit(wallet, params)
        log.info("Liquidity added: %s", tx_hash)
        return tx_hash

    async def run(self):
        """
        Provision liquidity from every wallet.

        Returns:
            BatchSummary with one outcome per wallet, in wallet order
        """
        try:
            await self.setup()
            logger.info(
                "Provisioning %d wallets, %s token per deposit after %s%% buffer, slippage %s",
                len(self.wallets),
                from_units(self.deposit_token_amount(), self.token_decimals),
                self.config.safety_buffer,
                describe_slippage(self.config.slippage_tolerance),
            )
            outcomes = await run_batched(
                self.wallets,
                self.provision_wallet,
                concurrency_limit=self.config.concurrency_limit,
                group_delay=self.config.group_delay,
                sleep=self.sleep,
            )
        finally:
            await self.close()

        summary = BatchSummary(tuple(outcomes))
        logger.info("Liquidity provisioning finished: %d/%d succeeded", summary.succeeded, summary.total)
        return summary

    async def check_balances(self):
        """
        Check every wallet against the configured per-wallet amounts.

        Returns:
            List of (WalletJob, FundingCheck) in wallet order
        """
        try:
            await self.setup()
            required_native, required_token = self.required_balances()
            results = []
            for wallet in self.wallets:
                check = await self.validator.ensure_funded(wallet, required_native, required_token)
                results.append((wallet, check))
            return results
        finally:
            await self.close()

    async def quote_only(self):
        """Quote the configured deposit without sending anything"""
        try:
            await self.setup(require_sub_wallets=False)
            quote = await self.oracle.quote(self.deposit_token_amount())
            if quote is None:
                raise QuoteError("No price available from any quote source")
            return quote
        finally:
            await self.close()
