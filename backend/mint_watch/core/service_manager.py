"""
Service Manager for dependency injection and lifecycle management
"""
import logging
from typing import Optional

from mint_watch.analytics.contract_classifier import ContractClassifier
from mint_watch.analytics.metadata_resolver import MetadataResolver
from mint_watch.config.constants import DEPLOYMENT_METADATA_FIELDS, MINT_METADATA_FIELDS
from mint_watch.config.settings import Settings, settings as default_settings
from mint_watch.connectors.chain.ethereum import EthereumConnector
from mint_watch.connectors.metadata.coingecko import CoinGeckoConnector
from mint_watch.connectors.metadata.etherscan import EtherscanConnector
from mint_watch.connectors.notify.discord import DiscordWebhookConnector
from mint_watch.core.data_models import WatchMode
from mint_watch.notifications.notifier import Notifier
from mint_watch.storage.cache_manager import MetadataCache
from mint_watch.workers.base_watcher import BaseWatcher
from mint_watch.workers.deployment_watcher import DeploymentWatcher
from mint_watch.workers.mint_watcher import MintWatcher

logger = logging.getLogger(__name__)


class ServiceManager:
    _instance = None

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or default_settings

        # Storage
        self.cache: Optional[MetadataCache] = None

        # Connectors
        self.chain: Optional[EthereumConnector] = None
        self.coingecko: Optional[CoinGeckoConnector] = None
        self.etherscan: Optional[EtherscanConnector] = None
        self.discord: Optional[DiscordWebhookConnector] = None

        # Pipeline
        self.classifier: Optional[ContractClassifier] = None
        self.resolver: Optional[MetadataResolver] = None
        self.notifier: Optional[Notifier] = None
        self.watcher: Optional[BaseWatcher] = None

    @classmethod
    def get_instance(cls):
        if cls._instance is None:
            cls._instance = ServiceManager()
        return cls._instance

    @property
    def mode(self) -> WatchMode:
        return self.settings.WATCH_MODE

    async def initialize(self):
        """Build the pipeline and establish the initial subscription

        Raises ConfigurationError, ConnectionError or StartupError; any of
        them aborts application startup.
        """
        logger.info(f"Initializing services in {self.mode.value} mode...")
        self.settings.validate_runtime()

        # Storage
        self.cache = MetadataCache(
            max_entries=self.settings.METADATA_CACHE_MAX_ENTRIES,
            ttl_seconds=self.settings.METADATA_CACHE_TTL_SECONDS
        )

        # Connectors
        self.chain = EthereumConnector(self.settings.RPC_HTTP_URL)
        await self.chain.connect()

        self.coingecko = CoinGeckoConnector(
            base_url=self.settings.COINGECKO_BASE_URL,
            timeout_seconds=self.settings.METADATA_TIMEOUT_SECONDS
        )
        await self.coingecko.connect()

        if self.settings.ETHERSCAN_API_KEY:
            self.etherscan = EtherscanConnector(
                api_key=self.settings.ETHERSCAN_API_KEY,
                base_url=self.settings.ETHERSCAN_BASE_URL,
                timeout_seconds=self.settings.METADATA_TIMEOUT_SECONDS
            )
            await self.etherscan.connect()
        else:
            logger.info("ETHERSCAN_API_KEY not set; Etherscan fallback disabled")

        self.discord = DiscordWebhookConnector(self.settings.DISCORD_WEBHOOK_URL)
        await self.discord.connect()

        # Pipeline
        self.classifier = ContractClassifier(self.chain)
        self.resolver = MetadataResolver(
            chain=self.chain,
            cache=self.cache,
            primary=self.coingecko,
            secondary=self.etherscan,
            onchain_fields=(
                DEPLOYMENT_METADATA_FIELDS if self.mode == WatchMode.DEPLOYMENT
                else MINT_METADATA_FIELDS
            ),
            dedupe_inflight=self.settings.DEDUPE_INFLIGHT_RESOLUTIONS
        )
        self.notifier = Notifier(
            sink=self.discord,
            classifier=self.classifier,
            history_size=self.settings.NOTIFICATION_HISTORY_SIZE
        )
        self.watcher = self._build_watcher()
        await self.watcher.start()

        logger.info("All services initialized successfully")

    def _build_watcher(self) -> BaseWatcher:
        common = dict(
            ws_url=self.settings.ETHEREUM_WS_URL,
            reconnect_delay=self.settings.RECONNECT_DELAY_SECONDS
        )
        if self.mode == WatchMode.DEPLOYMENT:
            return DeploymentWatcher(
                chain=self.chain,
                classifier=self.classifier,
                resolver=self.resolver,
                notifier=self.notifier,
                receipt_timeout=self.settings.RECEIPT_TIMEOUT_SECONDS,
                **common
            )
        return MintWatcher(
            chain=self.chain,
            resolver=self.resolver,
            notifier=self.notifier,
            **common
        )

    async def cleanup(self):
        """Cleanup all services"""
        logger.info("Cleaning up services...")

        if self.watcher:
            await self.watcher.stop()

        for connector in (self.coingecko, self.etherscan, self.discord):
            if connector:
                await connector.disconnect()

        if self.chain:
            await self.chain.disconnect()

        logger.info("Cleanup completed")
