import asyncio
from decimal import Decimal

import pytest

from amm_provisioner.core.exceptions import AuthorizationError, InsufficientBalanceError, TransactionError
from amm_provisioner.operations.preconditions import (
    PreconditionValidator,
    has_sufficient_allowance,
    is_amply_authorized,
)
from fakes import NATIVE, ROUTER, USDT, FakeManager, FakeToken, make_wallet

SUPPLY = 1_000_000 * USDT


def validator_for(wallet, native=0, token=0, allowance=0, **token_kwargs):
    manager = FakeManager({wallet.address: native})
    fake_token = FakeToken(
        balances={wallet.address: token},
        allowances={(wallet.address, ROUTER): allowance},
        total_supply=SUPPLY,
        **token_kwargs,
    )
    return PreconditionValidator(manager, fake_token, "USDT", 6), fake_token


def test_half_supply_counts_as_ample():
    assert is_amply_authorized(SUPPLY // 2, SUPPLY)
    assert not is_amply_authorized(SUPPLY // 2 - 1, SUPPLY)
    assert has_sufficient_allowance(5, 5, SUPPLY)


def test_balance_equal_to_requirement_is_enough():
    wallet = make_wallet(0)
    validator, _ = validator_for(wallet, native=NATIVE // 100, token=3 * USDT)

    check = asyncio.run(validator.ensure_funded(wallet, NATIVE // 100, 3 * USDT))

    assert check.sufficient
    check.raise_for_shortfall()


def test_shortfall_reports_exact_deficit():
    wallet = make_wallet(0)
    validator, _ = validator_for(wallet, native=NATIVE // 100, token=2_999_999)

    check = asyncio.run(validator.ensure_funded(wallet, NATIVE // 100, 3 * USDT))

    assert not check.sufficient
    assert check.shortfall_for("OKB") is None
    assert check.shortfall_for("USDT").deficit_amount == Decimal("0.000001")
    with pytest.raises(InsufficientBalanceError) as excinfo:
        check.raise_for_shortfall()
    assert "USDT short by 0.000001" in str(excinfo.value)
    assert len(excinfo.value.shortfalls) == 1


def test_both_assets_short():
    wallet = make_wallet(0)
    validator, _ = validator_for(wallet)

    check = asyncio.run(validator.ensure_funded(wallet, 1, 1))

    assert [s.asset for s in check.shortfalls] == ["OKB", "USDT"]


def test_ample_allowance_sends_nothing():
    wallet = make_wallet(0)
    validator, token = validator_for(wallet, allowance=SUPPLY // 2)

    result = asyncio.run(validator.ensure_authorized(wallet, ROUTER, 3 * USDT))

    assert result is None
    assert token.approvals == []


def test_existing_allowance_is_reset_before_approval():
    wallet = make_wallet(0)
    validator, token = validator_for(wallet, allowance=1 * USDT)

    result = asyncio.run(validator.ensure_authorized(wallet, ROUTER, 3 * USDT))

    assert token.approvals == [(wallet.address, ROUTER, 0), (wallet.address, ROUTER, SUPPLY)]
    assert result == "0xapprove2"


def test_zero_allowance_approves_full_supply_once():
    wallet = make_wallet(0)
    validator, token = validator_for(wallet)

    asyncio.run(validator.ensure_authorized(wallet, ROUTER, 3 * USDT))

    assert token.approvals == [(wallet.address, ROUTER, SUPPLY)]


def test_reverted_approval_becomes_authorization_error():
    wallet = make_wallet(0)
    validator, _ = validator_for(wallet, approve_error=TransactionError("approve reverted"))

    with pytest.raises(AuthorizationError):
        asyncio.run(validator.ensure_authorized(wallet, ROUTER, 3 * USDT))


def test_supply_below_requirement_is_rejected():
    wallet = make_wallet(0)
    validator, token = validator_for(wallet)
    token.supply = 1

    with pytest.raises(AuthorizationError):
        asyncio.run(validator.ensure_authorized(wallet, ROUTER, 3 * USDT))
    assert token.approvals == []
