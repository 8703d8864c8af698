"""
FastAPI REST API - status endpoints
Exposes health, cached token metadata and recent notification attempts
"""

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from typing import List
import logging

from mint_watch.config.settings import settings
from mint_watch.core.data_models import NotificationRecord, TokenMetadata
from mint_watch.core.service_manager import ServiceManager
from mint_watch.utils.helpers import get_utc_now, is_valid_address
from mint_watch.api.middleware import (
    logging_middleware,
    security_headers_middleware,
    error_handling_middleware
)

logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc"
)

app.middleware("http")(error_handling_middleware)
app.middleware("http")(logging_middleware)
app.middleware("http")(security_headers_middleware)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET"],
    allow_headers=["*"]
)


# ===== Health Check =====

@app.get("/api/health")
async def health_check():
    """Health check endpoint"""
    services = ServiceManager.get_instance()
    watcher_running = services.watcher.is_running if services.watcher else False
    return {
        "status": "healthy" if watcher_running else "degraded",
        "timestamp": get_utc_now().isoformat(),
        "version": settings.APP_VERSION,
        "mode": services.mode.value,
        "services": {
            "chain": services.chain.is_connected if services.chain else False,
            "watcher": watcher_running
        }
    }


# ===== Token Metadata =====

@app.get(f"{settings.API_PREFIX}/tokens", response_model=List[TokenMetadata])
async def list_tokens():
    """Token metadata resolved so far"""
    services = ServiceManager.get_instance()
    if not services.cache:
        return []
    return services.cache.values()


@app.get(f"{settings.API_PREFIX}/tokens/{{address}}", response_model=TokenMetadata)
async def get_token(address: str):
    """Cached metadata for one contract address"""
    if not is_valid_address(address):
        raise HTTPException(status_code=422, detail="Invalid contract address")

    services = ServiceManager.get_instance()
    metadata = services.cache.peek(address) if services.cache else None
    if metadata is None:
        raise HTTPException(status_code=404, detail="Token not in cache")
    return metadata


# ===== Notifications =====

@app.get(f"{settings.API_PREFIX}/notifications/recent", response_model=List[NotificationRecord])
async def get_recent_notifications(
    limit: int = Query(20, ge=1, le=500, description="Maximum number of results")
):
    """Most recent delivery attempts, newest first"""
    services = ServiceManager.get_instance()
    if not services.notifier:
        return []
    return services.notifier.recent(limit)


# ===== System Info =====

@app.get(f"{settings.API_PREFIX}/system/info")
async def get_system_info():
    """Get system information and statistics"""
    services = ServiceManager.get_instance()
    return {
        "version": settings.APP_VERSION,
        "environment": settings.ENVIRONMENT,
        "mode": services.mode.value,
        "cache_stats": services.cache.get_stats() if services.cache else {},
        "watcher_stats": dict(services.watcher.stats) if services.watcher else {},
        "notification_stats": dict(services.notifier.stats) if services.notifier else {},
        "timestamp": get_utc_now().isoformat()
    }
