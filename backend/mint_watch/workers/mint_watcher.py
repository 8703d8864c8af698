"""
Mint watcher
Scans every new block for ERC-20 Transfer logs originating at the zero address
"""
from typing import Any, Dict, List, Optional
import logging

from web3 import Web3

from mint_watch.analytics.metadata_resolver import MetadataResolver
from mint_watch.config.constants import (
    NEW_HEADS_SUBSCRIPTION,
    TRANSFER_EVENT_TOPIC,
    ZERO_TOPIC,
)
from mint_watch.connectors.chain.ethereum import EthereumConnector
from mint_watch.core.data_models import MintEvent
from mint_watch.core.exceptions import DataValidationError
from mint_watch.notifications.notifier import Notifier
from mint_watch.utils.helpers import to_hex
from mint_watch.workers.base_watcher import BaseWatcher


logger = logging.getLogger(__name__)


def decode_mint(log: Dict[str, Any]) -> Optional[MintEvent]:
    """
    Decode a log record into a MintEvent, or None if it is not a mint.

    A mint is an ERC-20 Transfer (three topics; ERC-721 transfers carry a
    fourth) whose `from` topic is the 32-byte zero value. The recipient is
    the last 20 bytes of topic 2 and the amount the first word of data.
    """
    topics = [to_hex(topic) for topic in log.get("topics") or []]
    if len(topics) != 3 or topics[0] != TRANSFER_EVENT_TOPIC:
        return None
    if topics[1] != ZERO_TOPIC:
        return None

    data = to_hex(log.get("data") or "0x")
    if len(data) < 66:
        raise DataValidationError(f"Transfer log data too short: {data}")

    transaction_hash = log.get("transactionHash")
    return MintEvent(
        contract_address=Web3.to_checksum_address(log["address"]),
        recipient_address=Web3.to_checksum_address("0x" + topics[2][-40:]),
        amount=int(data[2:66], 16),
        block_number=log.get("blockNumber"),
        transaction_hash=to_hex(transaction_hash) if transaction_hash is not None else None
    )


class MintWatcher(BaseWatcher):
    """newHeads subscription -> per-block log query -> one task per mint"""

    name = "mint watcher"

    def __init__(
        self,
        chain: EthereumConnector,
        resolver: MetadataResolver,
        notifier: Notifier,
        **kwargs
    ):
        super().__init__(**kwargs)
        self.chain = chain
        self.resolver = resolver
        self.notifier = notifier

    @property
    def subscription_params(self) -> List[Any]:
        return [NEW_HEADS_SUBSCRIPTION]

    async def handle_notification(self, result: Any) -> None:
        number = result["number"]
        block_number = int(number, 16) if isinstance(number, str) else int(number)
        await self.process_block(block_number)

    async def process_block(self, block_number: int) -> int:
        """Query the block's Transfer logs and dispatch each mint; returns the mint count"""
        logs = await self.chain.get_transfer_logs(block_number)

        mints = 0
        for log in logs:
            try:
                event = decode_mint(log)
            except (DataValidationError, ValueError, KeyError) as e:
                self.stats["event_errors"] += 1
                logger.warning(
                    f"Skipping undecodable Transfer log: {e}",
                    extra={"block_number": block_number}
                )
                continue
            if event is None:
                continue

            mints += 1
            self.stats["events"] += 1
            self.spawn(self.process_mint(event))

        if mints:
            logger.info(f"Block {block_number}: {mints} mint(s)", extra={"block_number": block_number})
        return mints

    async def process_mint(self, event: MintEvent) -> None:
        metadata = await self.resolver.resolve(event.contract_address)
        await self.notifier.notify_mint(event, metadata)
