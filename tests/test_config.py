from decimal import Decimal

import pytest

from amm_provisioner.core.config import Config
from amm_provisioner.core.exceptions import ConfigError
from fakes import key


def env(**overrides):
    values = {
        "NUMBER_OF_WALLETS": "2",
        "SUB_WALLET_PRIVATE_KEYS": f"{key(1)},{key(2)}",
        "MAIN_WALLET_PRIVATE_KEY": key(9),
    }
    values.update(overrides)
    return values


def test_defaults():
    config = Config(env())

    assert config.slippage_tolerance == Decimal("10")
    assert config.reference_price == Decimal("168.44")
    assert config.concurrency_limit == 3
    assert config.group_delay == 2.0
    assert config.deadline_seconds == 600
    assert config.chain_id == 196
    assert config.rpc_urls[0] == "https://rpc.xlayer.tech"
    config.validate(require_main_wallet=True)


def test_primary_rpc_comes_first_without_duplicates():
    config = Config(env(RPC_URL="https://a", RPC_FALLBACK_URLS="https://b, https://a"))
    assert config.rpc_urls == ["https://a", "https://b"]


def test_amounts_are_decimal():
    config = Config(env(NATIVE_PER_WALLET="0.1", TOKEN_PER_WALLET="0.3"))
    assert config.native_per_wallet + config.token_per_wallet == Decimal("0.4")


@pytest.mark.parametrize("field, value", [
    ("SLIPPAGE_TOLERANCE", "51"),
    ("SAFETY_BUFFER", "-1"),
    ("TOKEN_CONTRACT", "YourTokenAddress"),
    ("ROUTER_CONTRACT", "0x1234"),
    ("NATIVE_PER_WALLET", "0"),
    ("CONCURRENCY_LIMIT", "0"),
    ("NUMBER_OF_WALLETS", "3"),
    ("SUB_WALLET_PRIVATE_KEYS", "0xabc,0xdef"),
])
def test_invalid_settings_are_rejected(field, value):
    config = Config(env(**{field: value}))
    with pytest.raises(ConfigError):
        config.validate()


def test_unparseable_number_is_config_error():
    with pytest.raises(ConfigError):
        Config(env(SLIPPAGE_TOLERANCE="ten"))
    with pytest.raises(ConfigError):
        Config(env(CONCURRENCY_LIMIT="three"))


def test_main_wallet_only_checked_when_needed():
    config = Config(env(MAIN_WALLET_PRIVATE_KEY="YourMainWalletPrivateKey"))
    config.validate()
    with pytest.raises(ConfigError):
        config.validate(require_main_wallet=True)


def test_sub_wallets_optional_for_read_only_use():
    config = Config(env(SUB_WALLET_PRIVATE_KEYS=""))
    config.validate(require_sub_wallets=False)
    with pytest.raises(ConfigError):
        config.validate()


def test_abis_are_packaged():
    config = Config(env())
    names = {entry.get("name") for entry in config.get_abi("router")}
    assert "addLiquidityETH" in names
    with pytest.raises(ConfigError):
        config.get_abi("missing")
