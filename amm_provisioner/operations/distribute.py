"""Fund sub-wallets from a main wallet"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from eth_account import Account

from .preconditions import PreconditionValidator
from .provision import read_token_decimals
from ..contracts.erc20 import ERC20
from ..core.config import Config
from ..core.connection import Web3Manager
from ..core.exceptions import ConfigError
from ..core.wallet import load_wallets
from ..utils.math import from_units, to_units
from ..utils.retry import is_transient_error
from ..utils.transactions import TransactionBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Transfer:
    """Both funding transfers sent to one sub-wallet"""

    index: int
    address: str
    native_tx: str
    token_tx: str
    private_key: Optional[str] = None

    def to_dict(self):
        result = {
            "wallet": self.index + 1,
            "address": self.address,
            "native_tx": self.native_tx,
            "token_tx": self.token_tx,
        }
        # Only freshly created wallets carry a key worth reporting
        if self.private_key:
            result["private_key"] = self.private_key
        return result


class TokenDistributor:
    """
    Send the configured native and token amounts to every sub-wallet.

    Targets are the configured sub-wallets; when none are configured,
    NUMBER_OF_WALLETS fresh accounts are created and their keys reported.
    Transfers run one after another, each confirmed before the next.
    """

    def __init__(self, config=None, manager=None, main_account=None, token=None,
                 tx_builder=None, token_decimals=None, is_transient=is_transient_error,
                 sleep=asyncio.sleep):
        self.config = config or Config()
        self.manager = manager
        self.main_account = main_account
        self.token = token
        self.tx_builder = tx_builder
        self.token_decimals = token_decimals
        self.is_transient = is_transient
        self.sleep = sleep
        self._owns_manager = manager is None

    async def setup(self):
        """
        Raises:
            ConfigError: If the main wallet key is missing or malformed
            ConnectionError: If no RPC endpoint is usable or token decimals cannot be read
        """
        self.config.validate(require_sub_wallets=False, require_main_wallet=True)
        if self.main_account is None:
            try:
                self.main_account = Account.from_key(self.config.main_wallet_private_key)
            except Exception as e:
                raise ConfigError(f"MAIN_WALLET_PRIVATE_KEY is invalid: {e}")

        if self.manager is None:
            self.manager = Web3Manager(self.config)
        if self.manager.w3 is None:
            await self.manager.connect()

        if self.tx_builder is None:
            self.tx_builder = TransactionBuilder(self.manager)
        if self.token is None:
            self.token = ERC20(self.manager, self.config.token_address, self.tx_builder)
        if self.token_decimals is None:
            self.token_decimals = await read_token_decimals(
                self.token, self.config, self.is_transient, self.sleep
            )
        logger.info("Main wallet: %s", self.main_account.address)
        return self

    def targets(self):
        """
        (address, private key or None) for every wallet to fund.

        Returns:
            List of tuples in wallet order
        """
        keys = self.config.sub_wallet_private_keys
        if keys:
            return [(wallet.address, None) for wallet in load_wallets(keys)]

        targets = []
        for i in range(self.config.number_of_wallets):
            account = Account.create()
            private_key = "0x" + account.key.hex().removeprefix("0x")
            logger.info("Created sub-wallet %d: %s", i + 1, account.address)
            targets.append((account.address, private_key))
        return targets

    async def check_main_balance(self, count):
        """
        Make sure the main wallet can fund count sub-wallets.

        Returns:
            FundingCheck against count times the per-wallet amounts
        """
        symbol = await self.token.symbol()
        validator = PreconditionValidator(
            self.manager, self.token, symbol, self.token_decimals,
            native_symbol=self.config.native_symbol, native_decimals=Config.NATIVE_DECIMALS,
        )
        required_native = to_units(self.config.native_per_wallet * count, Config.NATIVE_DECIMALS)
        required_token = to_units(self.config.token_per_wallet * count, self.token_decimals)
        return await validator.ensure_funded(self.main_account, required_native, required_token)

    async def run(self):
        """
        Fund every sub-wallet.

        Returns:
            List of Transfer, in wallet order

        Raises:
            InsufficientBalanceError: Main wallet cannot fund every target; nothing sent
            TransactionError: A transfer reverted (earlier transfers stand)
        """
        try:
            await self.setup()
            targets = self.targets()
            funding = await self.check_main_balance(len(targets))
            funding.raise_for_shortfall()

            native_amount = to_units(self.config.native_per_wallet, Config.NATIVE_DECIMALS)
            token_amount = to_units(self.config.token_per_wallet, self.token_decimals)

            transfers = []
            for i, (address, private_key) in enumerate(targets):
                logger.info(
                    "Funding wallet %d (%s) with %s %s and %s token",
                    i + 1, address,
                    from_units(native_amount, Config.NATIVE_DECIMALS), self.config.native_symbol,
                    from_units(token_amount, self.token_decimals),
                )
                native_tx = await self.tx_builder.send_value(self.main_account, address, native_amount)
                token_tx = await self.token.transfer(self.main_account, address, token_amount)
                transfers.append(Transfer(i, address, native_tx, token_tx, private_key))

                if i < len(targets) - 1:
                    await self.sleep(self.config.distribution_delay)

            logger.info("Funded %d wallets", len(transfers))
            return transfers
        finally:
            if self._owns_manager and self.manager is not None:
                await self.manager.close()
