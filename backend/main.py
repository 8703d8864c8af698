"""
Main application entry point
Starts the FastAPI status server with the chain watcher running in its lifespan
"""
import uvicorn
from contextlib import asynccontextmanager
import logging

from mint_watch.config.logging_config import setup_logging
from mint_watch.api.rest_api import app
from mint_watch.config.settings import settings
from mint_watch.core.service_manager import ServiceManager

# Setup logging
setup_logging()
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app):
    """Application lifespan manager"""
    # Startup; an exception here aborts the server with a non-zero exit
    logger.info("Starting ERC-20 %s listener...", settings.WATCH_MODE.value)
    service_manager = ServiceManager.get_instance()
    try:
        await service_manager.initialize()
    except Exception:
        logger.critical("Failed to start listener", exc_info=True)
        await service_manager.cleanup()
        raise

    yield

    # Shutdown
    await service_manager.cleanup()


# Update app with lifespan
app.router.lifespan_context = lifespan


if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host=settings.API_HOST,
        port=settings.API_PORT,
        reload=settings.DEBUG,
        lifespan="on",
        log_level=settings.LOG_LEVEL.lower()
    )
