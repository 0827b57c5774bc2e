"""Uniswap V2 compatible router (PotatoSwap) wrapper"""

from .pair import Pair
from ..utils.transactions import TransactionBuilder

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class Router:
    """Wrapper for router quotes, factory lookups and liquidity deposits"""

    def __init__(self, manager, address, tx_builder=None):
        """
        Args:
            manager: Web3Manager instance (connected)
            address: Router contract address
            tx_builder: TransactionBuilder for deposits (created if None)
        """
        self.manager = manager
        self.address = manager.checksum(address)
        self.contract = manager.get_contract(address, "router")
        self.tx_builder = tx_builder or TransactionBuilder(manager)
        self._factory = None

    async def factory(self):
        """Factory contract address (cached)"""
        if self._factory is None:
            self._factory = await self.contract.functions.factory().call()
        return self._factory

    async def get_amounts_out(self, amount_in, path):
        """Output amounts along a swap path, one per hop"""
        path = [self.manager.checksum(token) for token in path]
        amounts = await self.contract.functions.getAmountsOut(amount_in, path).call()
        return [int(amount) for amount in amounts]

    async def get_pair(self, token_a, token_b):
        """
        Look up the pair for two tokens through the factory.

        Returns:
            Pair, or None when the factory has no pair for them
        """
        factory = self.manager.get_contract(await self.factory(), "factory")
        pair_address = await factory.functions.getPair(
            self.manager.checksum(token_a), self.manager.checksum(token_b)
        ).call()
        if pair_address.lower() == ZERO_ADDRESS:
            return None
        return Pair(self.manager, pair_address)

    async def add_liquidity_eth(self, account, token, amount_token_desired, amount_token_min,
                                amount_eth_min, to, deadline, value, wait=True):
        """
        Deposit native coin (attached as value) plus token into the pool.

        Returns:
            Transaction hash, confirmed when wait=True
        """
        contract_func = self.contract.functions.addLiquidityETH(
            self.manager.checksum(token),
            amount_token_desired,
            amount_token_min,
            amount_eth_min,
            self.manager.checksum(to),
            deadline,
        )
        return await self.tx_builder.build_and_send(
            contract_func, account, operation_type="addLiquidityETH", value=value, wait=wait
        )

    async def confirm(self, tx_hash):
        """Wait for a sent deposit; raises TransactionError if it reverted"""
        return await self.tx_builder.wait(tx_hash, "addLiquidityETH")
