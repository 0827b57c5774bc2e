import asyncio

import pytest

from amm_provisioner.core.config import Config
from amm_provisioner.core.exceptions import ConfigError, ConnectionError, InsufficientBalanceError, QuoteError
from amm_provisioner.core.wallet import load_wallets
from amm_provisioner.operations.deposit import DepositSubmitter
from amm_provisioner.operations.oracle import PriceOracle
from amm_provisioner.operations.preconditions import PreconditionValidator
from amm_provisioner.operations import provision
from amm_provisioner.operations.provision import LiquidityProvisioner
from fakes import (
    NATIVE, ROUTER, TOKEN, USDT, WRAPPED_NATIVE,
    FakeManager, FakeRouter, FakeToken, RecordingSleep, key, rpc_error,
)

KEYS = [key(1), key(2), key(3), key(4)]
NATIVE_OUT = 16 * 10 ** 15


def config_for(count, **overrides):
    env = {
        "NUMBER_OF_WALLETS": str(count),
        "SUB_WALLET_PRIVATE_KEYS": ",".join(KEYS[:count]),
        "TOKEN_CONTRACT": TOKEN,
        "ROUTER_CONTRACT": ROUTER,
        "WRAPPED_NATIVE_CONTRACT": WRAPPED_NATIVE,
    }
    env.update(overrides)
    return Config(env)


class Chain:
    """Wire a provisioner to in-memory fakes"""

    def __init__(self, config, native=5 * NATIVE // 100, token=3 * USDT, oracle=None):
        self.config = config
        self.wallets = load_wallets(config.sub_wallet_private_keys)
        self.manager = FakeManager({w.address: native for w in self.wallets})
        self.token = FakeToken(balances={w.address: token for w in self.wallets})
        self.router = FakeRouter(amounts_out=[2_700_000, NATIVE_OUT])
        self.sleep = RecordingSleep()
        self.validator = PreconditionValidator(self.manager, self.token, "USDT", 6)
        self.oracle = oracle or PriceOracle(
            self.router, TOKEN, WRAPPED_NATIVE, 6, 18,
            reference_price=config.reference_price, min_reserve_out=NATIVE // 10,
        )
        self.submitter = DepositSubmitter(self.router, self.token, self.validator, sleep=self.sleep)

    def provisioner(self):
        return LiquidityProvisioner(
            self.config,
            wallets=self.wallets,
            oracle=self.oracle,
            validator=self.validator,
            submitter=self.submitter,
            spender=ROUTER,
            token_decimals=6,
            sleep=self.sleep,
        )


class NoQuote:
    async def quote(self, known_amount, wallet=None):
        return None


def test_deposit_amount_applies_safety_buffer():
    chain = Chain(config_for(1))
    assert chain.provisioner().deposit_token_amount() == 2_700_000


def test_every_wallet_deposits():
    chain = Chain(config_for(2))

    summary = asyncio.run(chain.provisioner().run())

    assert summary.all_succeeded
    assert [d["sender"] for d in chain.router.deposits] == [w.address for w in chain.wallets]
    deposit = chain.router.deposits[0]
    assert deposit["value"] == NATIVE_OUT
    assert deposit["amount_token_desired"] == 2_700_000
    assert deposit["amount_token_min"] == 2_430_000
    # zero allowance: one approval of the full supply per wallet
    assert len(chain.token.approvals) == 2


def test_underfunded_wallet_fails_alone():
    chain = Chain(config_for(4))
    chain.token.balances[chain.wallets[1].address] = 2_999_999

    summary = asyncio.run(chain.provisioner().run())

    assert [o.success for o in summary.outcomes] == [True, False, True, True]
    assert "0.000001" in summary.outcomes[1].error
    assert chain.wallets[1].address not in {a for a, _, _ in chain.token.approvals}
    assert len(chain.router.deposits) == 3
    # groups of three, one pause
    assert chain.sleep.calls == [2.0]


def test_missing_quote_fails_the_wallet():
    chain = Chain(config_for(1), oracle=NoQuote())

    summary = asyncio.run(chain.provisioner().run())

    assert not summary.all_succeeded
    assert "No price available" in summary.outcomes[0].error
    assert chain.router.deposits == []


def test_wallet_short_for_quoted_native_is_not_approved():
    chain = Chain(config_for(1), native=NATIVE // 100)

    with pytest.raises(InsufficientBalanceError):
        asyncio.run(chain.provisioner().provision_wallet(chain.wallets[0]))
    assert chain.token.approvals == []


def test_invalid_config_fails_before_any_wallet():
    chain = Chain(config_for(1))
    chain.config.slippage_tolerance = 80

    with pytest.raises(ConfigError):
        asyncio.run(chain.provisioner().run())
    assert chain.router.deposits == []


def test_check_balances_reports_each_wallet():
    chain = Chain(config_for(2))
    chain.manager.balances[chain.wallets[0].address] = 0

    results = asyncio.run(chain.provisioner().check_balances())

    assert [check.sufficient for _, check in results] == [False, True]
    assert results[0][1].shortfall_for("OKB").deficit == NATIVE // 100


def test_quote_only():
    chain = Chain(config_for(1))

    quote = asyncio.run(chain.provisioner().quote_only())

    assert quote.output_amount == NATIVE_OUT


def test_quote_only_raises_without_price():
    chain = Chain(config_for(1), oracle=NoQuote())

    with pytest.raises(QuoteError):
        asyncio.run(chain.provisioner().quote_only())


def test_setup_retries_token_decimals():
    config = config_for(1)
    wallets = load_wallets(config.sub_wallet_private_keys)
    token = FakeToken(balances={wallets[0].address: 3 * USDT}, decimals_errors=[rpc_error(-32011)])
    router = FakeRouter(amounts_out=[2_700_000, NATIVE_OUT])
    sleep = RecordingSleep()
    provisioner = LiquidityProvisioner(
        config,
        manager=FakeManager({wallets[0].address: 5 * NATIVE // 100}),
        wallets=wallets,
        token=token,
        router=router,
        sleep=sleep,
    )

    summary = asyncio.run(provisioner.run())

    assert summary.all_succeeded
    assert token.decimals_calls == 2
    assert provisioner.token_decimals == 6
    assert sleep.calls == [2.0]
    assert len(router.deposits) == 1


def test_unreadable_decimals_raise_connection_error(monkeypatch):
    manager = FakeManager()
    monkeypatch.setattr(provision, "Web3Manager", lambda config: manager)
    token = FakeToken(decimals_errors=[ValueError("Could not decode contract function call")])
    provisioner = LiquidityProvisioner(config_for(1), token=token, router=FakeRouter(), sleep=RecordingSleep())

    with pytest.raises(ConnectionError):
        asyncio.run(provisioner.run())
    assert token.decimals_calls == 1
    # the manager was created here, so a failed setup still releases it
    assert manager.closed


def test_quote_only_closes_manager_when_setup_fails(monkeypatch):
    manager = FakeManager()
    monkeypatch.setattr(provision, "Web3Manager", lambda config: manager)
    token = FakeToken(decimals_errors=[rpc_error(-32011)] * 3)
    sleep = RecordingSleep()
    provisioner = LiquidityProvisioner(config_for(1), token=token, router=FakeRouter(), sleep=sleep)

    with pytest.raises(ConnectionError):
        asyncio.run(provisioner.quote_only())
    assert sleep.calls == [2.0, 2.0]
    assert manager.closed
