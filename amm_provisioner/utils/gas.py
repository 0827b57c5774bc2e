"""Fee fields and gas limits for provisioning transactions"""

import json
import logging
from decimal import Decimal
from pathlib import Path

from .math import to_units
from ..core.exceptions import TransactionError

logger = logging.getLogger(__name__)

GWEI_DECIMALS = 9

# Applied to base fee + tip when no fee cap is configured
FEE_HEADROOM = Decimal("1.2")


class GasPriceTooHighError(TransactionError):
    """Network fee is above the configured cap"""
    pass


class GasConfig:
    """
    Gas settings from gas_config.json.

    Keys: "maxFeePerGas" and "maxPriorityFeePerGas" in gwei (fee cap and
    tip), "gasLimit" mapping operation name to fallback units.
    """

    DEFAULT_GAS_LIMITS = {
        "approve": 65000,
        "transfer": 65000,
        "nativeTransfer": 21000,
        "addLiquidityETH": 300000,
        "default": 500000,
    }
    DEFAULT_PRIORITY_FEE_GWEI = "0.1"

    SEARCH_PATHS = (
        Path.cwd() / "gas_config.json",
        Path.home() / ".amm-provisioner" / "gas_config.json",
    )

    def __init__(self, config_path=None, settings=None):
        """
        Args:
            config_path: Explicit gas_config.json location
            settings: Already-parsed settings dict (skips file lookup)
        """
        if settings is None:
            settings = self._read(config_path)
        self.settings = settings
        self.gas_limits = dict(self.DEFAULT_GAS_LIMITS)
        self.gas_limits.update(settings.get("gasLimit") or {})

    def _read(self, config_path):
        candidates = [Path(config_path)] if config_path else list(self.SEARCH_PATHS)
        for path in candidates:
            if path.exists():
                logger.debug("Loading gas settings from %s", path)
                with open(path) as f:
                    return json.load(f)
        return {}

    @staticmethod
    def _gwei_to_wei(value):
        if value is None:
            return None
        return to_units(Decimal(str(value)), GWEI_DECIMALS)

    @property
    def max_fee_wei(self):
        """Fee cap per gas unit, None when uncapped"""
        return self._gwei_to_wei(self.settings.get("maxFeePerGas"))

    @property
    def priority_fee_wei(self):
        return self._gwei_to_wei(self.settings.get("maxPriorityFeePerGas", self.DEFAULT_PRIORITY_FEE_GWEI))

    def gas_limit(self, operation_type=None):
        """Fallback gas units for an operation"""
        return self.gas_limits.get(operation_type or "default", self.gas_limits["default"])


class GasManager:
    """Fee fields for EIP-1559 chains, or a plain gas price on legacy ones"""

    def __init__(self, manager, config=None):
        """
        Args:
            manager: Web3Manager instance
            config: GasConfig instance (loaded from gas_config.json if None)
        """
        self.manager = manager
        self.config = config or GasConfig()

    def gas_limit(self, operation_type=None):
        return self.config.gas_limit(operation_type)

    async def base_fee(self):
        """Latest block's base fee in wei, None on chains without one"""
        block = await self.manager.latest_block()
        return block.get("baseFeePerGas")

    async def fee_params(self):
        """
        Returns:
            Dict with maxFeePerGas, maxPriorityFeePerGas and type 2, or gasPrice

        Raises:
            GasPriceTooHighError: If the network fee exceeds the cap
        """
        cap = self.config.max_fee_wei
        base_fee = await self.base_fee()

        if base_fee is None:
            gas_price = await self.manager.get_gas_price()
            if cap is not None and gas_price > cap:
                raise GasPriceTooHighError(f"Gas price {gas_price} wei is above the {cap} wei cap")
            return {"gasPrice": gas_price}

        tip = self.config.priority_fee_wei
        if cap is None:
            max_fee = int((base_fee + tip) * FEE_HEADROOM)
        elif cap < base_fee:
            # Never includable until the base fee drops
            raise GasPriceTooHighError(f"Base fee {base_fee} wei is above the {cap} wei cap")
        else:
            max_fee = cap

        return {"maxFeePerGas": max_fee, "maxPriorityFeePerGas": min(tip, max_fee), "type": 2}

    async def estimate(self, contract_func, tx_params, operation_type=None):
        """Node gas estimate, or the configured limit when estimation fails"""
        try:
            return await contract_func.estimate_gas(tx_params)
        except Exception as e:
            fallback = self.gas_limit(operation_type)
            logger.debug("Gas estimate for %s failed (%s), using %s", operation_type, e, fallback)
            return fallback
