"""
Subscription watcher base
Owns one eth_subscribe stream, dispatches each notification as its own task
and resubscribes after a fixed delay on transport errors
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set
import logging

from mint_watch.connectors.chain.stream import EthereumSubscriptionStream
from mint_watch.core.exceptions import StartupError, TransportError


logger = logging.getLogger(__name__)


class BaseWatcher(ABC):
    """Base class for the mint and deployment watchers"""

    name = "watcher"

    def __init__(
        self,
        ws_url: Optional[str] = None,
        reconnect_delay: float = 5.0,
        stream_factory: Optional[Callable[[], EthereumSubscriptionStream]] = None
    ):
        self.ws_url = ws_url
        self.reconnect_delay = reconnect_delay
        self._stream_factory = stream_factory or self._default_stream
        self._listen_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()
        self._running = False
        self.stats: Dict[str, int] = {
            "notifications": 0,
            "events": 0,
            "event_errors": 0,
            "transport_errors": 0,
            "listener_errors": 0,
            "resubscriptions": 0
        }

    @property
    @abstractmethod
    def subscription_params(self) -> List[Any]:
        """eth_subscribe params, e.g. ["newHeads"]"""
        pass

    @abstractmethod
    async def handle_notification(self, result: Any) -> None:
        """Process one subscription notification"""
        pass

    def _default_stream(self) -> EthereumSubscriptionStream:
        return EthereumSubscriptionStream(self.ws_url, self.subscription_params)

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Establish the initial subscription; failure here is fatal"""
        logger.info(f"Starting {self.name}...")
        try:
            stream = await self._subscribe()
        except TransportError as e:
            raise StartupError(f"Failed to start {self.name}: {e.message}", code="startup")

        self._running = True
        self._listen_task = asyncio.create_task(self._listen(stream))

    async def stop(self) -> None:
        """Cancel the listen loop and any in-flight event tasks"""
        self._running = False
        if self._listen_task:
            self._listen_task.cancel()
            try:
                await self._listen_task
            except asyncio.CancelledError:
                pass
            self._listen_task = None

        for task in list(self._tasks):
            task.cancel()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

        logger.info(f"{self.name} stopped")

    async def _subscribe(self) -> EthereumSubscriptionStream:
        stream = self._stream_factory()
        await stream.connect()
        return stream

    async def _listen(self, stream: Optional[EthereumSubscriptionStream]) -> None:
        try:
            while self._running:
                try:
                    if stream is None:
                        stream = await self._subscribe()
                        self.stats["resubscriptions"] += 1
                        logger.info(f"{self.name} resubscribed")

                    async for result in stream.notifications():
                        self.stats["notifications"] += 1
                        self.spawn(self.handle_notification(result))

                except TransportError as e:
                    self.stats["transport_errors"] += 1
                    logger.error(
                        f"WebSocket error: {e.message}; resubscribing in {self.reconnect_delay}s"
                    )
                    if stream is not None:
                        await stream.close()
                    stream = None
                    await asyncio.sleep(self.reconnect_delay)
                except Exception as e:
                    self.stats["listener_errors"] += 1
                    logger.error(
                        f"Unexpected error in {self.name} listener: {e}; "
                        f"resubscribing in {self.reconnect_delay}s",
                        exc_info=True
                    )
                    if stream is not None:
                        await stream.close()
                    stream = None
                    await asyncio.sleep(self.reconnect_delay)
        finally:
            if stream is not None:
                await stream.close()

    def spawn(self, coro: Awaitable[None]) -> asyncio.Task:
        """Run coro as an independent task; errors are logged, not raised"""
        task = asyncio.create_task(self._guarded(coro))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _guarded(self, coro: Awaitable[None]) -> None:
        try:
            await coro
        except Exception as e:
            self.stats["event_errors"] += 1
            logger.error(f"Error processing {self.name} event: {e}", exc_info=True)

    async def drain(self) -> None:
        """Wait until every spawned task, including tasks they spawn, is done"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
