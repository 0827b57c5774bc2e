"""ERC20 token contract wrapper"""

from ..utils.transactions import TransactionBuilder


class ERC20:
    """Wrapper for ERC20 token interactions"""

    def __init__(self, manager, address, tx_builder=None):
        """
        Args:
            manager: Web3Manager instance (connected)
            address: Token contract address
            tx_builder: TransactionBuilder for state-changing calls (created if None)
        """
        self.manager = manager
        self.address = manager.checksum(address)
        self.contract = manager.get_contract(address, "erc20")
        self.tx_builder = tx_builder or TransactionBuilder(manager)
        self._decimals = None
        self._symbol = None

    async def decimals(self):
        """Token decimals (cached)"""
        if self._decimals is None:
            self._decimals = await self.contract.functions.decimals().call()
        return self._decimals

    async def symbol(self):
        """Token symbol (cached), "UNKNOWN" for non-standard tokens"""
        if self._symbol is None:
            try:
                self._symbol = await self.contract.functions.symbol().call()
            except Exception:
                # Some tokens return bytes32 instead of string
                self._symbol = "UNKNOWN"
        return self._symbol

    async def balance_of(self, address):
        """Get token balance in smallest units"""
        return await self.contract.functions.balanceOf(self.manager.checksum(address)).call()

    async def allowance(self, owner, spender):
        """Get allowance granted by owner to spender"""
        return await self.contract.functions.allowance(
            self.manager.checksum(owner), self.manager.checksum(spender)
        ).call()

    async def total_supply(self):
        """Get total issued supply"""
        return await self.contract.functions.totalSupply().call()

    async def approve(self, account, spender, amount):
        """
        Set spender's allowance to exactly amount and wait for confirmation.

        Returns:
            Transaction hash
        """
        contract_func = self.contract.functions.approve(self.manager.checksum(spender), amount)
        return await self.tx_builder.build_and_send(contract_func, account, operation_type="approve")

    async def transfer(self, account, to, amount):
        """Transfer tokens from account and wait for confirmation"""
        contract_func = self.contract.functions.transfer(self.manager.checksum(to), amount)
        return await self.tx_builder.build_and_send(contract_func, account, operation_type="transfer")
