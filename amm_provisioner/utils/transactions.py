"""Transaction building, signing and confirmation"""

import logging

from web3 import Web3

from .gas import GasManager
from ..core.exceptions import TransactionError

logger = logging.getLogger(__name__)


class TransactionBuilder:
    """Build, sign and send transactions for any wallet's account"""

    def __init__(self, manager, gas_manager=None, receipt_timeout=180):
        """
        Args:
            manager: Web3Manager instance
            gas_manager: GasManager instance (created if None, loads from gas_config.json)
            receipt_timeout: Seconds to wait for a receipt before giving up
        """
        self.manager = manager
        self.gas_manager = gas_manager or GasManager(manager)
        self.receipt_timeout = receipt_timeout

    async def _base_tx(self, account, value=0):
        tx = {
            "from": account.address,
            "nonce": await self.manager.get_nonce(account.address),
            "chainId": self.manager.chain_id,
        }
        tx.update(await self.gas_manager.fee_params())
        if value > 0:
            tx["value"] = value
        return tx

    async def build(self, contract_func, account, operation_type=None, gas_buffer=1.2, value=0):
        """
        Build a transaction for a contract function.

        Args:
            contract_func: Bound contract function to call
            account: Signing account (sender)
            operation_type: Type of operation for gas limit fallback
            gas_buffer: Multiplier for gas limit (default 1.2 = +20%)
            value: Native value to attach in wei

        Returns:
            Transaction dictionary ready for signing

        Raises:
            GasPriceTooHighError: If the network fee is above the configured cap
        """
        tx = await self._base_tx(account, value)
        estimate_params = {"from": account.address}
        if value > 0:
            estimate_params["value"] = value
        estimated_gas = await self.gas_manager.estimate(contract_func, estimate_params, operation_type)
        tx["gas"] = int(estimated_gas * gas_buffer)
        return await contract_func.build_transaction(tx)

    async def build_value_transfer(self, account, to, value):
        """Build a plain native coin transfer"""
        tx = await self._base_tx(account, value)
        tx["to"] = self.manager.checksum(to)
        tx["gas"] = self.gas_manager.gas_limit("nativeTransfer")
        return tx

    async def send(self, tx, account):
        """
        Sign and broadcast a transaction.

        Returns:
            Pending transaction hash (0x-prefixed hex string)
        """
        signed = account.sign_transaction(tx)
        tx_hash = await self.manager.w3.eth.send_raw_transaction(signed.raw_transaction)
        return Web3.to_hex(tx_hash)

    async def wait(self, tx_hash, operation_type="transaction"):
        """
        Wait for a pending transaction to be mined.

        Returns:
            Transaction receipt

        Raises:
            TransactionError: If the transaction reverted
        """
        receipt = await self.manager.w3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self.receipt_timeout
        )
        if receipt["status"] != 1:
            raise TransactionError(f"{operation_type} reverted: {tx_hash}")
        logger.debug("%s confirmed in block %s: %s", operation_type, receipt["blockNumber"], tx_hash)
        return receipt

    async def build_and_send(self, contract_func, account, operation_type=None, gas_buffer=1.2,
                             value=0, wait=True):
        """
        Build, sign, and send a contract transaction.

        Returns:
            Transaction hash; confirmed (reverts raise) when wait=True
        """
        tx = await self.build(contract_func, account, operation_type, gas_buffer, value)
        tx_hash = await self.send(tx, account)
        logger.info("Sent %s from %s: %s", operation_type or "transaction", account.address, tx_hash)

        if wait:
            await self.wait(tx_hash, operation_type or "transaction")
        return tx_hash

    async def send_value(self, account, to, value, wait=True):
        """Send native coin and optionally wait for confirmation"""
        tx = await self.build_value_transfer(account, to, value)
        tx_hash = await self.send(tx, account)
        logger.info("Sent %s wei from %s to %s: %s", value, account.address, to, tx_hash)

        if wait:
            await self.wait(tx_hash, "nativeTransfer")
        return tx_hash
