"""
Rate limiting middleware using Redis.

Fixed window per client IP. When Redis is unreachable the limiter steps
aside and requests go through.
"""
import time
from typing import Callable, Optional

import redis.asyncio as redis
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from dealdesk.api.errors import error_response
from dealdesk.core.config import settings
from dealdesk.core.errors import ErrorKind
from dealdesk.core.logging import get_logger

logger = get_logger(__name__)

EXEMPT_PREFIXES = ("/health", "/metrics")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Middleware for rate limiting API requests."""

    def __init__(
        self,
        app,
        redis_url: Optional[str] = None,
        requests: Optional[int] = None,
        window: Optional[int] = None,
    ):
        super().__init__(app)
        self.redis_url = redis_url or settings.REDIS_URL
        self.requests = requests or settings.RATE_LIMIT_REQUESTS
        self.window = window or settings.RATE_LIMIT_WINDOW
        self._redis = None

    async def _get_redis(self):
        """Get Redis connection."""
        if self._redis is None:
            try:
                self._redis = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                )
                await self._redis.ping()
            except Exception as e:
                logger.warning("Redis unavailable, rate limiting disabled", error=str(e))
                self._redis = False  # Mark as unavailable
        return self._redis if self._redis else None

    def _get_client_ip(self, request: Request) -> str:
        """Get client IP address."""
        forwarded = request.headers.get("X-Forwarded-For")
        if forwarded:
            return forwarded.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        if request.url.path.startswith(EXEMPT_PREFIXES):
            return await call_next(request)

        client = await self._get_redis()
        if not client:
            return await call_next(request)

        client_ip = self._get_client_ip(request)
        key = f"rate_limit:ip:{client_ip}"

        try:
            current = await client.get(key)
            current_count = int(current) if current else 0

            if current_count >= self.requests:
                ttl = await client.ttl(key)
                if ttl is None or ttl < 0:
                    ttl = self.window

                logger.warning("Rate limit exceeded", client_ip=client_ip, path=request.url.path)
                return error_response(
                    ErrorKind.RATE_LIMITED,
                    "Too many requests, please try again later",
                    headers={
                        "X-RateLimit-Limit": str(self.requests),
                        "X-RateLimit-Remaining": "0",
                        "X-RateLimit-Reset": str(int(time.time()) + ttl),
                        "Retry-After": str(ttl),
                    },
                )

            pipe = client.pipeline()
            pipe.incr(key)
            if current_count == 0:
                pipe.expire(key, self.window)
            await pipe.execute()
        except Exception as e:
            # Allow request if rate limiting fails
            logger.error("Rate limit error", error=str(e))
            current_count = None

        response = await call_next(request)

        response.headers["X-RateLimit-Limit"] = str(self.requests)
        if current_count is not None:
            response.headers["X-RateLimit-Remaining"] = str(max(0, self.requests - current_count - 1))
        return response
