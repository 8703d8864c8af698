"""
Notifier - formats and delivers one message per detected event
"""
from collections import deque
from typing import Deque, List
import logging

from mint_watch.analytics.contract_classifier import ContractClassifier
from mint_watch.config.constants import ANONYMITY_CONTRACT, ANONYMITY_WALLET
from mint_watch.connectors.notify.discord import DiscordWebhookConnector
from mint_watch.core.data_models import (
    DeploymentEvent,
    MintEvent,
    NotificationMessage,
    NotificationRecord,
    TokenMetadata,
)
from mint_watch.core.exceptions import MintWatchException
from mint_watch.notifications.formatter import build_deployment_message, build_mint_message
from mint_watch.utils.helpers import get_utc_now


logger = logging.getLogger(__name__)


class Notifier:
    """Best-effort delivery: failures are logged and the event is dropped"""

    def __init__(
        self,
        sink: DiscordWebhookConnector,
        classifier: ContractClassifier,
        history_size: int = 100
    ):
        self.sink = sink
        self.classifier = classifier
        self._history: Deque[NotificationRecord] = deque(maxlen=history_size)
        self.stats = {"sent": 0, "failed": 0}

    async def minter_anonymity(self, address: str) -> str:
        """Heuristic label: contracts may hide who minted, wallets usually don't"""
        if await self.classifier.has_deployed_code(address):
            return ANONYMITY_CONTRACT
        return ANONYMITY_WALLET

    async def notify_mint(self, event: MintEvent, metadata: TokenMetadata) -> bool:
        anonymity = await self.minter_anonymity(event.recipient_address)
        message = build_mint_message(event, metadata, anonymity)
        return await self._deliver(message, event.contract_address)

    async def notify_deployment(self, event: DeploymentEvent, metadata: TokenMetadata) -> bool:
        message = build_deployment_message(event, metadata)
        return await self._deliver(message, event.contract_address)

    async def _deliver(self, message: NotificationMessage, contract_address: str) -> bool:
        error = None
        try:
            await self.sink.send(message)
        except MintWatchException as e:
            error = e.message
            self.stats["failed"] += 1
            logger.error(
                f"Error sending Discord notification: {e.message}",
                extra={"contract_address": contract_address}
            )
        else:
            self.stats["sent"] += 1
            logger.info(
                f"Notification sent for {message.title.lower()} at {contract_address}",
                extra={"contract_address": contract_address}
            )

        self._history.append(NotificationRecord(
            title=message.title,
            contract_address=contract_address,
            delivered=error is None,
            error=error,
            timestamp=get_utc_now()
        ))
        return error is None

    def recent(self, limit: int = 20) -> List[NotificationRecord]:
        """Most recent attempts, newest first"""
        return list(reversed(self._history))[:limit]
