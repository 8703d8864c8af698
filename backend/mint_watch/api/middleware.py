"""
FastAPI middleware for logging, security headers and error handling
"""
import time
import uuid
from typing import Callable
from fastapi import Request, HTTPException, status
from fastapi.responses import JSONResponse
import logging


logger = logging.getLogger(__name__)


async def logging_middleware(request: Request, call_next: Callable):
    """Request/response logging middleware"""

    # Generate request ID
    request_id = str(uuid.uuid4())
    request.state.request_id = request_id

    start_time = time.time()

    response = await call_next(request)

    duration = time.time() - start_time

    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code}",
        extra={
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(duration * 1000, 2)
        }
    )

    # Add request ID to response headers
    response.headers["X-Request-ID"] = request_id

    return response


async def security_headers_middleware(request: Request, call_next: Callable):
    """Add security headers"""
    response = await call_next(request)

    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"

    return response


async def error_handling_middleware(request: Request, call_next: Callable):
    """Global error handling middleware"""
    try:
        return await call_next(request)
    except HTTPException:
        # Let FastAPI handle HTTP exceptions
        raise
    except Exception as e:
        logger.error(f"Unhandled exception: {str(e)}", exc_info=True)

        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "Internal server error",
                "message": "An unexpected error occurred",
                "request_id": getattr(request.state, "request_id", None)
            }
        )
