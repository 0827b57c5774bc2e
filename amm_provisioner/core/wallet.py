"""Wallet loading and generation"""

import logging
from dataclasses import dataclass, field

from mnemonic import Mnemonic
from eth_account import Account
from eth_account.signers.local import LocalAccount

from .exceptions import ConfigError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WalletJob:
    """One pre-funded wallet taking part in a run"""

    index: int
    account: LocalAccount = field(repr=False)
    address: str

    @property
    def label(self):
        """1-based label used in log lines"""
        return f"wallet {self.index + 1}"


def load_wallets(private_keys):
    """
    Create one WalletJob per private key, in configured order.

    Raises:
        ConfigError: If a key cannot be turned into an account
    """
    wallets = []
    for i, key in enumerate(private_keys):
        try:
            account = Account.from_key(key)
        except Exception as e:
            raise ConfigError(f"Sub-wallet private key {i + 1} is invalid: {e}")
        wallets.append(WalletJob(index=i, account=account, address=account.address))
        logger.info("Loaded %s: %s", wallets[-1].label, account.address)
    return wallets


def generate_wallet(num_accounts=3):
    """
    Generate a new wallet with 12-word mnemonic.

    Args:
        num_accounts: Number of accounts to derive (default: 3)

    Returns:
        Dict with mnemonic and derived accounts
    """
    Account.enable_unaudited_hdwallet_features()

    mnemo = Mnemonic("english")
    mnemonic = mnemo.generate(strength=128)

    # Standard Ethereum derivation path
    accounts = []
    for i in range(num_accounts):
        path = f"m/44'/60'/0'/0/{i}"
        account = Account.from_mnemonic(mnemonic, account_path=path)

        accounts.append({
            "index": i,
            "path": path,
            "address": account.address,
            "private_key": "0x" + account.key.hex().removeprefix("0x"),
        })

    return {
        "mnemonic": mnemonic,
        "accounts": accounts,
    }


class WalletLogAdapter(logging.LoggerAdapter):
    """Prefix log messages with the wallet's label"""

    def process(self, msg, kwargs):
        return f"[{self.extra['label']}] {msg}", kwargs


def wallet_logger(base_logger, wallet=None):
    """Logger that tags every line with wallet's label (or base_logger itself)"""
    if wallet is None:
        return base_logger
    label = getattr(wallet, "label", None) or wallet.address
    return WalletLogAdapter(base_logger, {"label": label})
