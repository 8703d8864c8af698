"""
Ethereum JSON-RPC connector
Handles on-chain reads via Web3.py's async client
"""
from typing import Any, Dict, List, Optional
from web3 import AsyncWeb3, Web3
from web3.exceptions import BadFunctionCallOutput, ContractLogicError, TransactionNotFound
import logging

from mint_watch.config.settings import settings
from mint_watch.config.constants import ERC20_ABI, TRANSFER_EVENT_TOPIC
from mint_watch.core.exceptions import ConnectionError, ContractError


logger = logging.getLogger(__name__)


class EthereumConnector:
    """Read-only access to an Ethereum-compatible node"""

    def __init__(self, rpc_url: Optional[str] = None):
        self.rpc_url = rpc_url or settings.RPC_HTTP_URL
        if not self.rpc_url:
            raise ConnectionError("No Ethereum RPC endpoint configured", code="missing_rpc")
        self.w3 = AsyncWeb3(AsyncWeb3.AsyncHTTPProvider(self.rpc_url))
        self._is_connected = False

    async def connect(self) -> None:
        """Verify the node answers before watchers start"""
        if not await self.w3.is_connected():
            raise ConnectionError("Failed to connect to Ethereum RPC")
        self._is_connected = True
        logger.info("Connected to Ethereum via Web3")

    async def disconnect(self) -> None:
        await self.w3.provider.disconnect()
        self._is_connected = False

    @property
    def is_connected(self) -> bool:
        return self._is_connected

    async def get_code(self, address: str) -> bytes:
        """Deployed bytecode at address (empty for wallets)"""
        return await self.w3.eth.get_code(Web3.to_checksum_address(address))

    async def call_erc20(self, address: str, function_name: str) -> Any:
        """Read-only call of one ERC-20 getter; raises on revert or non-contract"""
        contract = self.w3.eth.contract(
            address=Web3.to_checksum_address(address),
            abi=ERC20_ABI
        )
        try:
            return await contract.functions[function_name]().call()
        except (ContractLogicError, BadFunctionCallOutput) as e:
            raise ContractError(f"{function_name}() failed at {address}: {e}", code="call_failed")

    async def get_transfer_logs(self, block_number: int) -> List[Dict[str, Any]]:
        """Transfer logs emitted in a single block"""
        return await self.w3.eth.get_logs({
            "fromBlock": block_number,
            "toBlock": block_number,
            "topics": [TRANSFER_EVENT_TOPIC]
        })

    async def get_transaction(self, tx_hash: str) -> Optional[Dict[str, Any]]:
        """Transaction by hash, or None if the node no longer knows it"""
        try:
            return await self.w3.eth.get_transaction(tx_hash)
        except TransactionNotFound:
            return None

    async def wait_for_receipt(self, tx_hash: str, timeout: Optional[float] = None) -> Dict[str, Any]:
        """Block until the transaction is mined; raises TimeExhausted on timeout"""
        return await self.w3.eth.wait_for_transaction_receipt(
            tx_hash,
            timeout=timeout or settings.RECEIPT_TIMEOUT_SECONDS
        )
