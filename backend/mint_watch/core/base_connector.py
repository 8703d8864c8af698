"""
Base connector class for HTTP API integrations
Provides session handling and uniform error mapping
"""
from abc import ABC, abstractmethod
from typing import Dict, Optional, Any
import asyncio
import aiohttp
import logging

from mint_watch.core.exceptions import ConnectionError, APIError, RateLimitError


logger = logging.getLogger(__name__)


class BaseConnector(ABC):
    """Base class for all HTTP connectors"""

    def __init__(
        self,
        service_name: str,
        api_key: Optional[str] = None,
        timeout_seconds: float = 30.0,
        rate_limit: int = 10
    ):
        self.service_name = service_name
        self.api_key = api_key
        self.timeout_seconds = timeout_seconds
        self.rate_limit = rate_limit
        self.session: Optional[aiohttp.ClientSession] = None
        self._rate_limiter = asyncio.Semaphore(rate_limit)
        self._is_connected = False

        logger.info(f"Initialized {service_name} connector")

    async def __aenter__(self):
        """Async context manager entry"""
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit"""
        await self.disconnect()

    async def connect(self) -> None:
        """Open the HTTP session"""
        if not self.session:
            timeout = aiohttp.ClientTimeout(total=self.timeout_seconds)
            self.session = aiohttp.ClientSession(timeout=timeout)
            self._is_connected = True
            logger.info(f"Connected to {self.service_name}")

    async def disconnect(self) -> None:
        """Close the HTTP session"""
        if self.session:
            await self.session.close()
            self.session = None
            self._is_connected = False
            logger.info(f"Disconnected from {self.service_name}")

    async def _make_request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        data: Optional[Dict] = None,
        headers: Optional[Dict] = None
    ) -> Any:
        """Make HTTP request with rate limiting and error handling

        Returns the decoded JSON body, or None for empty responses.
        Raises RateLimitError / APIError on error statuses and
        ConnectionError on transport failures and timeouts.
        """
        if not self.session:
            await self.connect()

        async with self._rate_limiter:
            try:
                url = f"{self._get_base_url()}{endpoint}"

                async with self.session.request(
                    method=method,
                    url=url,
                    params=params,
                    json=data,
                    headers=headers or {}
                ) as response:
                    if response.status == 429:
                        raise RateLimitError(
                            f"Rate limit exceeded for {self.service_name}",
                            code="429"
                        )

                    if response.status >= 400:
                        error_text = await response.text()
                        raise APIError(
                            f"API error from {self.service_name}: {response.status} - {error_text[:200]}",
                            code=str(response.status)
                        )

                    if response.status == 204:
                        return None

                    return await response.json(content_type=None)

            except aiohttp.ClientError as e:
                raise ConnectionError(f"Connection error to {self.service_name}: {str(e)}")
            except asyncio.TimeoutError:
                raise ConnectionError(
                    f"Request to {self.service_name} timed out after {self.timeout_seconds}s",
                    code="timeout"
                )
            except ValueError as e:
                # Body was not valid JSON
                raise APIError(f"Malformed response from {self.service_name}: {str(e)}")

    @abstractmethod
    def _get_base_url(self) -> str:
        """Get base URL for API requests"""
        pass

    @property
    def is_connected(self) -> bool:
        """Check if connector is connected"""
        return self._is_connected
