"""
Etherscan connector - fallback source for token logos
"""
from typing import Any, Optional
import logging

from mint_watch.core.base_connector import BaseConnector
from mint_watch.config.constants import NOT_AVAILABLE
from mint_watch.config.settings import settings


logger = logging.getLogger(__name__)


class EtherscanConnector(BaseConnector):
    """Etherscan token info connector (requires an API key)"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_seconds: Optional[float] = None
    ):
        super().__init__(
            service_name="Etherscan",
            api_key=api_key or settings.ETHERSCAN_API_KEY,
            timeout_seconds=timeout_seconds or settings.METADATA_TIMEOUT_SECONDS,
            rate_limit=5
        )
        self.base_url = (base_url or settings.ETHERSCAN_BASE_URL).rstrip("/")

    def _get_base_url(self) -> str:
        return self.base_url

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    async def get_token_logo(self, contract_address: str) -> str:
        """Return result[0].logo, or the N/A sentinel if the body lacks it"""
        params = {
            "module": "token",
            "action": "tokeninfo",
            "contractaddress": contract_address,
            "apikey": self.api_key
        }
        data = await self._make_request("GET", "/api", params=params)
        return self.parse_logo(data)

    @staticmethod
    def parse_logo(data: Any) -> str:
        # Shape is only presence-checked; anything unexpected means no logo
        if not isinstance(data, dict):
            return NOT_AVAILABLE
        result = data.get("result")
        if not isinstance(result, list) or not result or not isinstance(result[0], dict):
            return NOT_AVAILABLE
        logo = result[0].get("logo")
        return logo if isinstance(logo, str) and logo else NOT_AVAILABLE
