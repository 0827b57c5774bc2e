"""Uniswap V2 style pair contract wrapper"""

from dataclasses import dataclass

from ..core.exceptions import PoolError


@dataclass(frozen=True)
class PoolReserves:
    """Pool reserves with lower-cased token identifiers"""

    token0: str
    token1: str
    reserve0: int
    reserve1: int

    @classmethod
    def from_call(cls, token0, token1, reserves):
        """Build from token0()/token1() addresses and the getReserves() tuple"""
        return cls(
            token0=token0.lower(),
            token1=token1.lower(),
            reserve0=int(reserves[0]),
            reserve1=int(reserves[1]),
        )

    def reserve_of(self, token):
        """Reserve held for token (address compared case-insensitively)"""
        token = token.lower()
        if token == self.token0:
            return self.reserve0
        if token == self.token1:
            return self.reserve1
        raise PoolError(f"Token {token} is not part of pair {self.token0}/{self.token1}")


class Pair:
    """Wrapper for pair reads"""

    def __init__(self, manager, address):
        """
        Args:
            manager: Web3Manager instance
            address: Pair contract address
        """
        self.manager = manager
        self.address = manager.checksum(address)
        self.contract = manager.get_contract(address, "pair")

    async def reserves(self):
        """Current reserves as a PoolReserves record"""
        raw = await self.contract.functions.getReserves().call()
        token0 = await self.contract.functions.token0().call()
        token1 = await self.contract.functions.token1().call()
        return PoolReserves.from_call(token0, token1, raw)
