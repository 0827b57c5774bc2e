import logging
import re

import pytest

from amm_provisioner.core.exceptions import ConfigError
from amm_provisioner.core.wallet import generate_wallet, load_wallets, wallet_logger
from fakes import key, make_wallet


def test_load_wallets_keeps_order():
    wallets = load_wallets([key(1), key(2)])

    assert [w.index for w in wallets] == [0, 1]
    assert wallets[0].address == wallets[0].account.address
    assert wallets[1].label == "wallet 2"


def test_bad_key_is_config_error():
    with pytest.raises(ConfigError):
        load_wallets(["not-a-key"])


def test_generate_wallet():
    result = generate_wallet(num_accounts=2)

    assert len(result["mnemonic"].split()) == 12
    assert [a["path"] for a in result["accounts"]] == ["m/44'/60'/0'/0/0", "m/44'/60'/0'/0/1"]
    for account in result["accounts"]:
        assert re.match(r"^0x[0-9a-f]{64}$", account["private_key"])


def test_wallet_logger_prefixes_label():
    log = wallet_logger(logging.getLogger("test"), make_wallet(2))
    assert log.process("hello", {}) == ("[wallet 3] hello", {})


def test_wallet_logger_without_wallet_is_plain():
    base = logging.getLogger("test")
    assert wallet_logger(base) is base
