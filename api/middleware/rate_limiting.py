"""
Per-IP rate limit for the public booking wizard.

Fixed window counter in Redis: one key per client IP and window, incremented
on every request under /api/public/ and expired with the window. Routes behind
a Bearer token are not counted.

Redis trouble never blocks a customer: the failure is logged and the request
goes through.
"""

import logging
import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from shared.config import get_settings
from shared.redis_client import get_redis_client

logger = logging.getLogger(__name__)

PUBLIC_PATH_PREFIX = "/api/public/"


def client_ip_of(request: Request) -> str:
    """Client IP, honouring the first X-Forwarded-For hop for proxied requests."""
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def window_key(client_ip: str, window_seconds: int, now: float | None = None) -> str:
    window_index = int(time.time() if now is None else now) // window_seconds
    return f"rate_limit:public:{client_ip}:{window_index}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """429 once a client IP exceeds PUBLIC_RATE_LIMIT_MAX_REQUESTS in the current window."""

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if not request.url.path.startswith(PUBLIC_PATH_PREFIX):
            return await call_next(request)

        settings = get_settings()
        limit = settings.PUBLIC_RATE_LIMIT_MAX_REQUESTS
        window_seconds = settings.PUBLIC_RATE_LIMIT_WINDOW_SECONDS
        client_ip = client_ip_of(request)

        try:
            count = await self._hit(window_key(client_ip, window_seconds), window_seconds)
        except Exception as e:
            logger.error(
                f"Rate limit check skipped for {client_ip}: {e}",
                extra={"request_path": request.url.path},
            )
            return await call_next(request)

        if count > limit:
            logger.warning(
                f"Rate limit exceeded for {client_ip} ({count}/{limit})",
                extra={"request_path": request.url.path},
            )
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "error_code": "RATE_LIMITED",
                    "error_message": "Too many requests. Please try again shortly.",
                    "details": {"limit": limit, "window_seconds": window_seconds},
                },
                headers={"X-RateLimit-Remaining": "0", "Retry-After": str(window_seconds)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(limit - count)
        return response

    @staticmethod
    async def _hit(key: str, window_seconds: int) -> int:
        redis_client = get_redis_client()
        count = await redis_client.incr(key)
        if count == 1:
            await redis_client.expire(key, window_seconds)
        return count
