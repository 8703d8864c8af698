"""
CoinGecko connector - primary source for token icon and trading volume
"""
from typing import Any, Dict, Optional, Union
from pydantic import BaseModel
import logging

from mint_watch.core.base_connector import BaseConnector
from mint_watch.core.exceptions import DataValidationError
from mint_watch.config.constants import NOT_AVAILABLE
from mint_watch.config.settings import settings


logger = logging.getLogger(__name__)


class MarketData(BaseModel):
    """Subset of the CoinGecko contract response we use"""
    icon: str = NOT_AVAILABLE
    volume_usd: Union[int, float, str] = NOT_AVAILABLE


class CoinGeckoConnector(BaseConnector):
    """CoinGecko public API connector (no auth)"""

    def __init__(self, base_url: Optional[str] = None, timeout_seconds: Optional[float] = None):
        super().__init__(
            service_name="CoinGecko",
            timeout_seconds=timeout_seconds or settings.METADATA_TIMEOUT_SECONDS,
            rate_limit=5
        )
        self.base_url = (base_url or settings.COINGECKO_BASE_URL).rstrip("/")

    def _get_base_url(self) -> str:
        return self.base_url

    async def get_contract_market_data(self, contract_address: str) -> MarketData:
        """
        Look up an Ethereum token by contract address

        Raises ConnectionError, APIError or DataValidationError when the
        lookup cannot be used.
        """
        data = await self._make_request("GET", f"/coins/ethereum/contract/{contract_address}")
        return self.parse_market_data(data)

    @staticmethod
    def parse_market_data(data: Any) -> MarketData:
        """Extract image.small and market_data.total_volume.usd"""
        if not isinstance(data, dict):
            raise DataValidationError("CoinGecko response is not a JSON object")

        icon = NOT_AVAILABLE
        image = data.get("image")
        if isinstance(image, dict) and isinstance(image.get("small"), str) and image["small"]:
            icon = image["small"]

        volume: Union[int, float, str] = NOT_AVAILABLE
        market_data: Dict[str, Any] = data.get("market_data") or {}
        if isinstance(market_data, dict):
            total_volume = market_data.get("total_volume") or {}
            usd = total_volume.get("usd") if isinstance(total_volume, dict) else None
            if isinstance(usd, (int, float)) and not isinstance(usd, bool):
                volume = usd

        return MarketData(icon=icon, volume_usd=volume)
