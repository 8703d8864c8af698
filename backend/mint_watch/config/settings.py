"""
Configuration settings for ERC-20 Mint Watch
Manages environment variables and application settings
"""
from typing import List, Optional
from pydantic_settings import BaseSettings
from functools import lru_cache

from mint_watch.core.data_models import WatchMode
from mint_watch.core.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application configuration settings"""

    # Application
    APP_NAME: str = "ERC-20 Mint Watch"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"

    # API Configuration
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_PREFIX: str = "/api/v1"
    CORS_ORIGINS: List[str] = ["http://localhost:3000"]

    # Watcher
    WATCH_MODE: WatchMode = WatchMode.MINT
    RECONNECT_DELAY_SECONDS: float = 5.0
    RECEIPT_TIMEOUT_SECONDS: float = 120.0

    # Blockchain RPC Endpoints
    ETHEREUM_WS_URL: Optional[str] = None
    ETHEREUM_RPC_URL: Optional[str] = None

    # Notification sink
    DISCORD_WEBHOOK_URL: Optional[str] = None
    NOTIFICATION_HISTORY_SIZE: int = 100

    # Metadata providers
    COINGECKO_BASE_URL: str = "https://api.coingecko.com/api/v3"
    ETHERSCAN_BASE_URL: str = "https://api.etherscan.io"
    ETHERSCAN_API_KEY: Optional[str] = None
    METADATA_TIMEOUT_SECONDS: float = 5.0

    # Metadata cache (0 disables the limit)
    METADATA_CACHE_MAX_ENTRIES: int = 0
    METADATA_CACHE_TTL_SECONDS: int = 0
    DEDUPE_INFLIGHT_RESOLUTIONS: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "json"
    LOG_DIR: str = "logs"

    @property
    def RPC_HTTP_URL(self) -> Optional[str]:
        """HTTP JSON-RPC endpoint, derived from the websocket URL when not set"""
        if self.ETHEREUM_RPC_URL:
            return self.ETHEREUM_RPC_URL
        if not self.ETHEREUM_WS_URL:
            return None
        if self.ETHEREUM_WS_URL.startswith("wss://"):
            return "https://" + self.ETHEREUM_WS_URL[len("wss://"):]
        if self.ETHEREUM_WS_URL.startswith("ws://"):
            return "http://" + self.ETHEREUM_WS_URL[len("ws://"):]
        return self.ETHEREUM_WS_URL

    def validate_runtime(self) -> None:
        """Raise ConfigurationError if the watcher cannot be started"""
        missing = [
            name for name in ("ETHEREUM_WS_URL", "DISCORD_WEBHOOK_URL")
            if not getattr(self, name)
        ]
        if missing:
            raise ConfigurationError(
                f"Missing required configuration: {', '.join(missing)}",
                code="missing_config"
            )

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


# Global settings instance
settings = get_settings()
