import logging
import time

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


async def timing_middleware(request: Request, call_next):
    """Log every request with its duration and expose it as X-Process-Time.

    Unhandled errors are turned into a 500 here, inside the CORS layer, so
    they are timed and logged like any other response.
    """
    start = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.exception(f"Unhandled error on {request.method} {request.url.path}")
        response = JSONResponse(status_code=500, content={"error": "Internal server error"})
    elapsed = time.perf_counter() - start

    response.headers["X-Process-Time"] = f"{elapsed:.4f}"
    logger.info(
        f"{request.method} {request.url.path} {response.status_code} {elapsed * 1000:.1f}ms",
        extra={
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "duration_ms": round(elapsed * 1000, 1),
        },
    )
    return response
