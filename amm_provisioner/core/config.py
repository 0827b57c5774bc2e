"""Configuration loading and validation"""

import os
import re
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path

from dotenv import load_dotenv

from .exceptions import ConfigError


ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")
PRIVATE_KEY_RE = re.compile(r"^0x[0-9a-fA-F]{64}$")

# Substrings left behind by copying .env.example without filling it in
PLACEHOLDER_MARKERS = ("Your", "Address")


class Config:
    """Settings for one provisioning run, read from the environment"""

    _abis = None

    # Contract ABIs are inside the package (not user-configurable)
    PACKAGE_ABIS = Path(__file__).parent.parent / "abis.json"

    # X Layer mainnet defaults
    DEFAULT_TOKEN = "0x1e4a5963abfd975d8c9021ce480b42188849d41d"
    DEFAULT_ROUTER = "0x881fb2f98c13d521009464e7d1cbf16e1b394e8e"
    DEFAULT_WRAPPED_NATIVE = "0xe538905cf8410324e03a5a23c1c177a474d59b2b"
    DEFAULT_RPC_URLS = [
        "https://rpc.xlayer.tech",
        "https://xlayerrpc.okx.com",
        "https://endpoints.omniatech.io/v1/xlayer/mainnet/public",
    ]
    DEFAULT_CHAIN_ID = 196

    # Price of one native coin in token units, observed on a confirmed deposit
    DEFAULT_REFERENCE_PRICE = "168.44"

    NATIVE_DECIMALS = 18
    MAX_PERCENT = Decimal(50)

    def __init__(self, env=None):
        """
        Args:
            env: Mapping to read settings from. When None, .env and wallet.env
                are loaded into the process environment and that is used.
        """
        if env is None:
            load_dotenv()
            load_dotenv("wallet.env")
            env = os.environ
        self._env = env

        self.number_of_wallets = self._int("NUMBER_OF_WALLETS", 2)
        self.native_per_wallet = self._decimal("NATIVE_PER_WALLET", "0.01")
        self.token_per_wallet = self._decimal("TOKEN_PER_WALLET", "3")
        self.slippage_tolerance = self._decimal("SLIPPAGE_TOLERANCE", "10")
        self.safety_buffer = self._decimal("SAFETY_BUFFER", "10")
        self.token_amount_per_liquidity = self._decimal("TOKEN_AMOUNT_PER_LIQUIDITY", "3")
        self.reference_price = self._decimal("REFERENCE_PRICE", self.DEFAULT_REFERENCE_PRICE)
        self.min_pool_reserve = self._decimal("MIN_POOL_RESERVE", "0.1")

        self.token_address = self._str("TOKEN_CONTRACT", self.DEFAULT_TOKEN)
        self.router_address = self._str("ROUTER_CONTRACT", self.DEFAULT_ROUTER)
        self.wrapped_native_address = self._str("WRAPPED_NATIVE_CONTRACT", self.DEFAULT_WRAPPED_NATIVE)
        self.native_symbol = self._str("NATIVE_SYMBOL", "OKB")

        self.rpc_urls = self._rpc_urls()
        self.chain_id = self._int("CHAIN_ID", self.DEFAULT_CHAIN_ID)

        self.sub_wallet_private_keys = self._list("SUB_WALLET_PRIVATE_KEYS")
        self.main_wallet_private_key = self._str("MAIN_WALLET_PRIVATE_KEY", "")

        self.concurrency_limit = self._int("CONCURRENCY_LIMIT", 3)
        self.group_delay = float(self._decimal("GROUP_DELAY_SECONDS", "2"))
        self.retry_attempts = self._int("RETRY_ATTEMPTS", 3)
        self.retry_delay = float(self._decimal("RETRY_DELAY_SECONDS", "2"))
        self.deadline_seconds = self._int("DEADLINE_SECONDS", 600)
        self.distribution_delay = float(self._decimal("DISTRIBUTION_DELAY_SECONDS", "5"))

        self.log_level = self._str("LOG_LEVEL", "INFO")
        self.log_file = self._str("LOG_FILE", "") or None

    # ── raw value parsing ──────────────────────────────────────────────

    def _str(self, key, default):
        value = self._env.get(key)
        if value is None or value.strip() == "":
            return default
        return value.strip()

    def _int(self, key, default):
        raw = self._str(key, None)
        if raw is None:
            return default
        try:
            return int(raw)
        except ValueError:
            raise ConfigError(f"{key} must be an integer, got: {raw}")

    def _decimal(self, key, default):
        raw = self._str(key, default)
        try:
            value = Decimal(raw)
        except InvalidOperation:
            raise ConfigError(f"{key} must be a number, got: {raw}")
        if not value.is_finite():
            raise ConfigError(f"{key} must be a finite number, got: {raw}")
        return value

    def _list(self, key):
        raw = self._env.get(key) or ""
        return [item.strip() for item in raw.split(",") if item.strip()]

    def _rpc_urls(self):
        """Primary RPC_URL first, then fallbacks, without duplicates"""
        urls = []
        primary = self._str("RPC_URL", None)
        if primary:
            urls.append(primary)
        fallbacks = self._list("RPC_FALLBACK_URLS") or self.DEFAULT_RPC_URLS
        for url in fallbacks:
            if url not in urls:
                urls.append(url)
        return urls

    # ── validation ─────────────────────────────────────────────────────

    def validate(self, require_sub_wallets=True, require_main_wallet=False):
        """
        Check every setting before any network call is made.

        Raises:
            ConfigError: On the first invalid setting found
        """
        for field, value in (
            ("TOKEN_CONTRACT", self.token_address),
            ("ROUTER_CONTRACT", self.router_address),
            ("WRAPPED_NATIVE_CONTRACT", self.wrapped_native_address),
        ):
            self._check_address(field, value)

        self._check_percent("SLIPPAGE_TOLERANCE", self.slippage_tolerance)
        self._check_percent("SAFETY_BUFFER", self.safety_buffer)

        for field, value in (
            ("NATIVE_PER_WALLET", self.native_per_wallet),
            ("TOKEN_PER_WALLET", self.token_per_wallet),
            ("TOKEN_AMOUNT_PER_LIQUIDITY", self.token_amount_per_liquidity),
            ("REFERENCE_PRICE", self.reference_price),
        ):
            if value <= 0:
                raise ConfigError(f"{field} must be positive, got: {value}")

        if self.min_pool_reserve < 0:
            raise ConfigError(f"MIN_POOL_RESERVE must not be negative, got: {self.min_pool_reserve}")
        if self.number_of_wallets < 1:
            raise ConfigError(f"NUMBER_OF_WALLETS must be at least 1, got: {self.number_of_wallets}")
        if self.concurrency_limit < 1:
            raise ConfigError(f"CONCURRENCY_LIMIT must be at least 1, got: {self.concurrency_limit}")
        if self.retry_attempts < 1:
            raise ConfigError(f"RETRY_ATTEMPTS must be at least 1, got: {self.retry_attempts}")
        if self.deadline_seconds < 1:
            raise ConfigError(f"DEADLINE_SECONDS must be at least 1, got: {self.deadline_seconds}")
        if not self.rpc_urls:
            raise ConfigError("No RPC endpoint configured")

        if require_sub_wallets:
            self._check_sub_wallets()
        if require_main_wallet:
            self._check_placeholder("MAIN_WALLET_PRIVATE_KEY", self.main_wallet_private_key)
            if not PRIVATE_KEY_RE.match(self.main_wallet_private_key):
                raise ConfigError(
                    "MAIN_WALLET_PRIVATE_KEY must be a 64 character hex string starting with 0x"
                )

    def _check_sub_wallets(self):
        keys = self.sub_wallet_private_keys
        if not keys:
            raise ConfigError("SUB_WALLET_PRIVATE_KEYS is empty; set comma-separated private keys")
        if len(keys) != self.number_of_wallets:
            raise ConfigError(
                f"SUB_WALLET_PRIVATE_KEYS has {len(keys)} keys but NUMBER_OF_WALLETS is "
                f"{self.number_of_wallets}"
            )
        for i, key in enumerate(keys):
            if not PRIVATE_KEY_RE.match(key):
                raise ConfigError(
                    f"Sub-wallet private key {i + 1} must be a 64 character hex string starting with 0x"
                )

    def _check_placeholder(self, field, value):
        if not value or any(marker in value for marker in PLACEHOLDER_MARKERS):
            raise ConfigError(f"Set a real value for {field} in .env, current value: {value!r}")

    def _check_address(self, field, value):
        self._check_placeholder(field, value)
        if not ADDRESS_RE.match(value):
            raise ConfigError(f"{field} is not a valid address: {value}")

    def _check_percent(self, field, value):
        if value < 0 or value > self.MAX_PERCENT:
            raise ConfigError(f"{field} must be between 0 and {self.MAX_PERCENT}%, got: {value}%")

    # ── ABIs ───────────────────────────────────────────────────────────

    @classmethod
    def _load_abis(cls):
        if not cls.PACKAGE_ABIS.exists():
            raise ConfigError(f"Contract ABIs not found: {cls.PACKAGE_ABIS}")
        with open(cls.PACKAGE_ABIS) as f:
            cls._abis = json.load(f)

    def get_abi(self, name):
        """Get ABI by name ("erc20", "router", "factory", "pair")"""
        if Config._abis is None:
            self._load_abis()
        if name not in Config._abis:
            raise ConfigError(f"ABI not found: {name}")
        return Config._abis[name]

    def summary(self):
        """Non-secret settings for display"""
        return {
            "wallets": self.number_of_wallets,
            "native_per_wallet": str(self.native_per_wallet),
            "token_per_wallet": str(self.token_per_wallet),
            "token_amount_per_liquidity": str(self.token_amount_per_liquidity),
            "slippage_tolerance": str(self.slippage_tolerance),
            "safety_buffer": str(self.safety_buffer),
            "chain_id": self.chain_id,
            "rpc_urls": list(self.rpc_urls),
            "concurrency_limit": self.concurrency_limit,
        }
