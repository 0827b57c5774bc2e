"""Web3 connection management"""

import logging

from web3 import AsyncWeb3, AsyncHTTPProvider, Web3

from .config import Config
from .exceptions import ConnectionError

logger = logging.getLogger(__name__)


class Web3Manager:
    """Manages the async Web3 connection, with failover across RPC endpoints"""

    def __init__(self, config=None):
        """
        Args:
            config: Config instance (loaded from the environment if None)
        """
        self.config = config or Config()
        self.w3 = None
        self.rpc_url = None
        self._chain_id = None

    async def connect(self):
        """
        Connect to the first healthy endpoint serving the configured chain.

        Raises:
            ConnectionError: If every configured endpoint fails
        """
        for rpc_url in self.config.rpc_urls:
            logger.info("Trying RPC endpoint %s", rpc_url)
            w3 = AsyncWeb3(AsyncHTTPProvider(rpc_url))
            try:
                if not await w3.is_connected():
                    logger.warning("RPC %s is not reachable, trying next", rpc_url)
                    continue
                chain_id = await w3.eth.chain_id
            except Exception as e:
                logger.warning("RPC %s failed (%s), trying next", rpc_url, e)
                continue

            if chain_id != self.config.chain_id:
                logger.warning(
                    "RPC %s serves chain %s, expected %s, trying next",
                    rpc_url, chain_id, self.config.chain_id,
                )
                continue

            self.w3 = w3
            self.rpc_url = rpc_url
            self._chain_id = chain_id
            logger.info("Connected to %s (chain %s)", rpc_url, chain_id)
            return self

        raise ConnectionError(f"All RPC endpoints are unavailable: {self.config.rpc_urls}")

    async def close(self):
        """Release the provider's HTTP session"""
        if self.w3 is not None:
            await self.w3.provider.disconnect()

    def _require_connection(self):
        if self.w3 is None:
            raise ConnectionError("Not connected; call connect() first")
        return self.w3

    @property
    def chain_id(self):
        """Chain ID of the connected endpoint"""
        self._require_connection()
        return self._chain_id

    async def get_balance(self, address):
        """Get native coin balance in smallest units"""
        w3 = self._require_connection()
        return await w3.eth.get_balance(self.checksum(address))

    async def get_nonce(self, address):
        """Get transaction count (nonce), including pending transactions"""
        w3 = self._require_connection()
        return await w3.eth.get_transaction_count(self.checksum(address), "pending")

    async def get_gas_price(self):
        """Get current gas price in wei"""
        w3 = self._require_connection()
        return await w3.eth.gas_price

    async def latest_block(self):
        """Get the latest block"""
        w3 = self._require_connection()
        return await w3.eth.get_block("latest")

    def get_contract(self, address, abi_name):
        """Create contract instance"""
        w3 = self._require_connection()
        abi = self.config.get_abi(abi_name)
        return w3.eth.contract(address=self.checksum(address), abi=abi)

    @staticmethod
    def checksum(address):
        """Convert address to checksum format"""
        return Web3.to_checksum_address(address)
