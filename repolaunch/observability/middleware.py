import asyncio
import logging
import time
import uuid
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

logger = logging.getLogger("repolaunch.access")


class RequestTimingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("x-request-id") or str(uuid.uuid4())
        start = time.perf_counter()

        # attach to request state for handlers if needed
        request.state.request_id = rid

        response = await call_next(request)

        dur_ms = (time.perf_counter() - start) * 1000.0
        # simple structured log line (JSON-ish)
        logger.info(
            '{"request_id":"%s","path":"%s","method":"%s","status":%d,"latency_ms":%.2f}',
            rid, request.url.path, request.method, response.status_code, dur_ms,
        )
        response.headers["x-request-id"] = rid
        return response


class RequestTimeoutMiddleware(BaseHTTPMiddleware):
    """Answer 504 when a handler has not produced a response within timeout_seconds.
    Streaming bodies are not covered once headers are out."""

    def __init__(self, app, timeout_seconds: float = 30.0):
        super().__init__(app)
        self.timeout_seconds = timeout_seconds

    async def dispatch(self, request: Request, call_next):
        try:
            return await asyncio.wait_for(call_next(request), timeout=self.timeout_seconds)
        except asyncio.TimeoutError:
            logger.warning("Request timed out: %s %s", request.method, request.url.path)
            return JSONResponse(status_code=504, content={"detail": "Request timed out"})


def get_request_id(request: Request) -> str:
    # middleware sets this
    return getattr(request.state, "request_id", "unknown")
