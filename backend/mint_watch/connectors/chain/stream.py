"""
eth_subscribe over a persistent websocket connection
"""
import asyncio
import json
from typing import Any, AsyncIterator, List, Optional
import websockets
import logging

from mint_watch.core.exceptions import TransportError


logger = logging.getLogger(__name__)


class EthereumSubscriptionStream:
    """One websocket carrying one eth_subscribe subscription"""

    def __init__(
        self,
        ws_url: str,
        params: List[Any],
        handshake_timeout: float = 30.0
    ):
        self.ws_url = ws_url
        self.params = params
        self.handshake_timeout = handshake_timeout
        self.subscription_id: Optional[str] = None
        self._ws = None

    async def connect(self) -> str:
        """Open the socket and subscribe; returns the subscription id"""
        try:
            self._ws = await websockets.connect(
                self.ws_url,
                ping_interval=20,
                ping_timeout=30,
                close_timeout=10,
                max_size=None
            )
            await self._ws.send(json.dumps({
                "jsonrpc": "2.0",
                "id": 1,
                "method": "eth_subscribe",
                "params": self.params
            }))
            response = await asyncio.wait_for(self._read_response(1), self.handshake_timeout)
        except (OSError, ValueError, asyncio.TimeoutError, websockets.WebSocketException) as e:
            await self.close()
            raise TransportError(f"Subscription to {self.params[0]} failed: {e}")

        if "error" in response:
            await self.close()
            raise TransportError(
                f"Node rejected eth_subscribe {self.params[0]}: {response['error']}",
                code="subscribe_rejected"
            )

        self.subscription_id = response.get("result")
        logger.info(
            f"Subscribed to {self.params[0]}",
            extra={"subscription": self.subscription_id}
        )
        return self.subscription_id

    async def _read_response(self, request_id: int) -> dict:
        while True:
            message = json.loads(await self._ws.recv())
            if isinstance(message, dict) and message.get("id") == request_id:
                return message

    async def notifications(self) -> AsyncIterator[Any]:
        """Yield params.result of each eth_subscription message

        Raises TransportError when the socket fails or is closed.
        """
        if self._ws is None:
            raise TransportError("Stream is not connected")
        try:
            async for raw in self._ws:
                try:
                    message = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("Discarding non-JSON websocket frame")
                    continue
                if not isinstance(message, dict):
                    logger.warning("Discarding websocket frame that is not a JSON object")
                    continue
                if message.get("method") != "eth_subscription":
                    continue
                params = message.get("params")
                if not isinstance(params, dict):
                    logger.warning("Discarding eth_subscription frame without params object")
                    continue
                if params.get("subscription") != self.subscription_id:
                    continue
                yield params.get("result")
        except (OSError, websockets.WebSocketException) as e:
            raise TransportError(f"Websocket error: {e}")
        raise TransportError("Websocket closed by remote", code="closed")

    async def close(self) -> None:
        if self._ws is not None:
            ws, self._ws = self._ws, None
            try:
                await ws.close()
            except (OSError, websockets.WebSocketException) as e:
                logger.debug(f"Error closing websocket: {e}")
