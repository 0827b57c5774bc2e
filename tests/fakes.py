"""In-memory stand-ins for the chain-facing collaborators"""

from types import SimpleNamespace

from amm_provisioner.contracts.pair import PoolReserves
from amm_provisioner.core.exceptions import TransactionError
from amm_provisioner.core.wallet import WalletJob

TOKEN = "0x" + "11" * 20
WRAPPED_NATIVE = "0x" + "22" * 20
ROUTER = "0x" + "33" * 20
MAIN = "0x" + "44" * 20

NATIVE = 10 ** 18
USDT = 10 ** 6


def key(n):
    """Deterministic valid private key"""
    return "0x" + f"{n:064x}"


def rpc_error(code, message="rpc error"):
    """Error shaped like a JSON-RPC failure raised by web3"""
    return ValueError({"code": code, "message": message})


class RecordingSleep:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


class FakeManager:
    def __init__(self, balances=None):
        self.balances = dict(balances or {})
        self.w3 = object()
        self.closed = False

    async def get_balance(self, address):
        return self.balances.get(address, 0)

    async def close(self):
        self.closed = True

    @staticmethod
    def checksum(address):
        return address


class FakeToken:
    def __init__(self, balances=None, allowances=None, total_supply=1_000_000 * USDT,
                 decimals=6, symbol="USDT", approve_error=None, decimals_errors=()):
        self.balances = dict(balances or {})
        self.allowances = dict(allowances or {})
        self.supply = total_supply
        self._decimals = decimals
        self._symbol = symbol
        self.approve_error = approve_error
        self.decimals_errors = list(decimals_errors)
        self.decimals_calls = 0
        self.approvals = []
        self.transfers = []

    async def decimals(self):
        self.decimals_calls += 1
        if self.decimals_errors:
            raise self.decimals_errors.pop(0)
        return self._decimals

    async def symbol(self):
        return self._symbol

    async def balance_of(self, address):
        return self.balances.get(address, 0)

    async def allowance(self, owner, spender):
        return self.allowances.get((owner, spender), 0)

    async def total_supply(self):
        return self.supply

    async def approve(self, account, spender, amount):
        if self.approve_error is not None:
            raise self.approve_error
        self.approvals.append((account.address, spender, amount))
        self.allowances[(account.address, spender)] = amount
        return f"0xapprove{len(self.approvals)}"

    async def transfer(self, account, to, amount):
        self.transfers.append((account.address, to, amount))
        return f"0xtransfer{len(self.transfers)}"


class FakePair:
    def __init__(self, reserves):
        self._reserves = reserves

    async def reserves(self):
        return self._reserves


class FakeRouter:
    """Router whose quote sources and deposit results are scripted"""

    def __init__(self, amounts_out=None, pair=None, deposit_errors=(), confirm_errors=()):
        self.address = ROUTER
        self.amounts_out = amounts_out
        self.pair = pair
        self.deposit_errors = list(deposit_errors)
        self.confirm_errors = list(confirm_errors)
        self.confirmations = []
        self.deposits = []

    async def get_amounts_out(self, amount_in, path):
        if isinstance(self.amounts_out, Exception):
            raise self.amounts_out
        if self.amounts_out is None:
            raise TransactionError("execution reverted")
        return self.amounts_out

    async def get_pair(self, token_a, token_b):
        if isinstance(self.pair, Exception):
            raise self.pair
        return self.pair

    async def add_liquidity_eth(self, account, wait=True, **kwargs):
        if self.deposit_errors:
            raise self.deposit_errors.pop(0)
        self.deposits.append(dict(kwargs, sender=account.address))
        return f"0xdeposit{len(self.deposits)}"

    async def confirm(self, tx_hash):
        if self.confirm_errors:
            raise self.confirm_errors.pop(0)
        self.confirmations.append(tx_hash)
        return {"status": 1}


class FakeTxBuilder:
    def __init__(self):
        self.sent = []

    async def send_value(self, account, to, value, wait=True):
        self.sent.append((account.address, to, value))
        return f"0xnative{len(self.sent)}"


def make_wallet(index, address=None):
    """WalletJob backed by a bare account"""
    address = address or "0x" + f"{index + 0xa0:040x}"
    return WalletJob(index=index, account=SimpleNamespace(address=address), address=address)


def reserves(token_reserve, native_reserve, token=TOKEN, native=WRAPPED_NATIVE):
    return PoolReserves.from_call(token, native, (token_reserve, native_reserve, 0))
