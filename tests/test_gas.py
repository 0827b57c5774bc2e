import asyncio

import pytest

from amm_provisioner.utils.gas import GasConfig, GasManager, GasPriceTooHighError

GWEI = 10 ** 9


class BlockSource:
    def __init__(self, base_fee=None, gas_price=GWEI):
        self.block = {} if base_fee is None else {"baseFeePerGas": base_fee}
        self.gas_price = gas_price

    async def latest_block(self):
        return self.block

    async def get_gas_price(self):
        return self.gas_price


def test_limits_merge_with_defaults():
    config = GasConfig(settings={"gasLimit": {"addLiquidityETH": 400000}})

    assert config.gas_limit("addLiquidityETH") == 400000
    assert config.gas_limit("approve") == 65000
    assert config.gas_limit("unknown") == 500000


def test_eip1559_fees_without_cap():
    manager = GasManager(BlockSource(base_fee=GWEI), GasConfig(settings={}))

    params = asyncio.run(manager.fee_params())

    assert params == {
        "maxFeePerGas": 1_320_000_000,
        "maxPriorityFeePerGas": GWEI // 10,
        "type": 2,
    }


def test_cap_below_base_fee_is_refused():
    config = GasConfig(settings={"maxFeePerGas": 1})
    manager = GasManager(BlockSource(base_fee=2 * GWEI), config)

    with pytest.raises(GasPriceTooHighError):
        asyncio.run(manager.fee_params())


def test_legacy_chain_uses_gas_price():
    manager = GasManager(BlockSource(gas_price=3 * GWEI), GasConfig(settings={"maxFeePerGas": 5}))

    assert asyncio.run(manager.fee_params()) == {"gasPrice": 3 * GWEI}
