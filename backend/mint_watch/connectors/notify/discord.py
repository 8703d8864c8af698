"""
Discord webhook connector
Delivers notification messages as embeds
"""
from typing import Any, Dict, Optional
import logging

from mint_watch.core.base_connector import BaseConnector
from mint_watch.core.data_models import NotificationMessage
from mint_watch.config.settings import settings


logger = logging.getLogger(__name__)


class DiscordWebhookConnector(BaseConnector):
    """Posts embeds to a single Discord webhook URL"""

    def __init__(self, webhook_url: Optional[str] = None):
        super().__init__(service_name="DiscordWebhook", rate_limit=5)
        self.webhook_url = webhook_url or settings.DISCORD_WEBHOOK_URL

    def _get_base_url(self) -> str:
        return self.webhook_url

    @staticmethod
    def to_payload(message: NotificationMessage) -> Dict[str, Any]:
        """Render a NotificationMessage as a webhook body"""
        embed: Dict[str, Any] = {
            "title": message.title,
            "color": message.color,
            "fields": [field.model_dump() for field in message.fields],
            "timestamp": message.timestamp.isoformat(),
        }
        if message.thumbnail_url:
            embed["thumbnail"] = {"url": message.thumbnail_url}
        return {"embeds": [embed]}

    async def send(self, message: NotificationMessage) -> None:
        """Single delivery attempt; raises APIError / ConnectionError on failure"""
        await self._make_request("POST", "", data=self.to_payload(message))
        logger.debug(f"Delivered '{message.title}' to Discord")
