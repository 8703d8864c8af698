"""
Deployment watcher
Follows pending contract-creation transactions until mined and reports
the ones whose created contract passes the ERC-20 probe
"""
from typing import Any, Dict, List, Optional
import logging

from web3 import Web3

from mint_watch.analytics.contract_classifier import ContractClassifier
from mint_watch.analytics.metadata_resolver import MetadataResolver
from mint_watch.config.constants import PENDING_TRANSACTIONS_SUBSCRIPTION
from mint_watch.connectors.chain.ethereum import EthereumConnector
from mint_watch.core.data_models import DeploymentEvent
from mint_watch.notifications.notifier import Notifier
from mint_watch.utils.helpers import to_hex
from mint_watch.workers.base_watcher import BaseWatcher


logger = logging.getLogger(__name__)


def is_contract_creation(tx: Dict[str, Any]) -> bool:
    """No recipient and a non-empty payload"""
    if tx.get("to"):
        return False
    payload = tx.get("input")
    if payload is None:
        payload = tx.get("data")
    if payload is None:
        return False
    return to_hex(payload) != "0x"


class DeploymentWatcher(BaseWatcher):
    """newPendingTransactions subscription -> receipt -> ERC-20 probe"""

    name = "deployment watcher"

    def __init__(
        self,
        chain: EthereumConnector,
        classifier: ContractClassifier,
        resolver: MetadataResolver,
        notifier: Notifier,
        receipt_timeout: Optional[float] = None,
        **kwargs
    ):
        super().__init__(**kwargs)
        self.chain = chain
        self.classifier = classifier
        self.resolver = resolver
        self.notifier = notifier
        self.receipt_timeout = receipt_timeout

    @property
    def subscription_params(self) -> List[Any]:
        return [PENDING_TRANSACTIONS_SUBSCRIPTION]

    async def handle_notification(self, result: Any) -> None:
        # Some providers push the whole transaction instead of its hash
        if isinstance(result, dict):
            await self.process_transaction(result)
            return

        tx = await self.chain.get_transaction(result)
        if tx is None:
            logger.debug(f"Pending transaction {result} no longer available")
            return
        await self.process_transaction(tx)

    async def process_transaction(self, tx: Dict[str, Any]) -> Optional[DeploymentEvent]:
        if not is_contract_creation(tx):
            return None

        tx_hash = to_hex(tx["hash"])
        logger.debug(f"Contract creation pending: {tx_hash}", extra={"transaction_hash": tx_hash})

        receipt = await self.chain.wait_for_receipt(tx_hash, timeout=self.receipt_timeout)
        contract_address = receipt.get("contractAddress")
        if not contract_address:
            return None
        contract_address = Web3.to_checksum_address(contract_address)

        if not await self.classifier.is_erc20_conformant(contract_address):
            return None

        self.stats["events"] += 1
        deployer = tx.get("from")
        event = DeploymentEvent(
            contract_address=contract_address,
            transaction_hash=tx_hash,
            deployer_address=Web3.to_checksum_address(deployer) if deployer else None,
            block_number=receipt.get("blockNumber")
        )
        logger.info(
            f"ERC-20 deployed at {contract_address}",
            extra={"contract_address": contract_address, "transaction_hash": tx_hash}
        )

        metadata = await self.resolver.resolve(contract_address)
        await self.notifier.notify_deployment(event, metadata)
        return event
