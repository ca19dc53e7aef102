"""
httpx event hooks for request logging and timing.

The API client binds a request id to structlog's context around every call
and sends it as ``X-Request-ID``. These hooks time the exchange and log it,
so every line carries the same id.
"""

import time

import httpx

from eventspark.core.logging import get_logger

logger = get_logger(__name__)

_STARTED = "eventspark.started"


async def on_request(request: httpx.Request) -> None:
    request.extensions[_STARTED] = time.perf_counter()


async def on_response(response: httpx.Response) -> None:
    request = response.request
    started = request.extensions.get(_STARTED)
    duration_ms = round((time.perf_counter() - started) * 1000, 2) if started else None
    logger.info(
        "request_completed",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        duration_ms=duration_ms,
    )


EVENT_HOOKS = {"request": [on_request], "response": [on_response]}
