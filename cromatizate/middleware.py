"""Middleware for rate limiting and security headers"""

import logging
import time
from collections import defaultdict, deque
from typing import Deque, Dict

from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)

INTERACTIONS_PATH = "/api/interactions"


class RateLimiter:
    """Sliding-window request counter, one per app"""

    def __init__(self, window_seconds: int = 60):
        self.window_seconds = window_seconds
        self.requests: Dict[str, Deque[float]] = defaultdict(lambda: deque(maxlen=1000))
        self.interaction_writes: Dict[str, Deque[float]] = defaultdict(
            lambda: deque(maxlen=1000)
        )

    def _allow(self, bucket: Deque[float], max_requests: int) -> bool:
        now = time.time()

        while bucket and bucket[0] < now - self.window_seconds:
            bucket.popleft()

        if len(bucket) < max_requests:
            bucket.append(now)
            return True

        return False

    def is_allowed(self, key: str, max_requests: int) -> bool:
        """Check if request is allowed within rate limit"""
        return self._allow(self.requests[key], max_requests)

    def is_interaction_allowed(self, key: str, max_per_window: int) -> bool:
        return self._allow(self.interaction_writes[key], max_per_window)


def _too_many(detail: str, retry_after: int) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_429_TOO_MANY_REQUESTS,
        content={"detail": detail},
        headers={"Retry-After": str(retry_after)},
    )


async def rate_limit_middleware(request: Request, call_next):
    """Rate limiting middleware"""
    if request.url.path == "/healthz":
        return await call_next(request)

    config = request.app.state.config
    if not config.get("security.rate_limiting.enabled", True):
        return await call_next(request)

    limiter: RateLimiter = request.app.state.rate_limiter
    client_ip = request.client.host if request.client else "unknown"

    api_limit = config.get("security.rate_limiting.api_requests_per_minute", 120)
    if not limiter.is_allowed(client_ip, api_limit):
        logger.warning(f"[api] Rate limit exceeded for {client_ip}")
        return _too_many(
            "Rate limit exceeded. Please try again later.", limiter.window_seconds
        )

    if request.url.path == INTERACTIONS_PATH and request.method == "POST":
        interaction_limit = config.get(
            "security.rate_limiting.interactions_per_minute", 30
        )
        if not limiter.is_interaction_allowed(client_ip, interaction_limit):
            logger.warning(f"[api] Interaction rate limit exceeded for {client_ip}")
            return _too_many(
                "Interaction rate limit exceeded. Please slow down.",
                limiter.window_seconds,
            )

    return await call_next(request)


async def security_headers_middleware(request: Request, call_next):
    """Add security headers to responses"""
    response = await call_next(request)

    config = request.app.state.config
    if config.get("security.security_headers.enabled", True):
        response.headers["Content-Security-Policy"] = config.get(
            "security.security_headers.content_security_policy", "default-src 'self'"
        )
        response.headers["X-Content-Type-Options"] = config.get(
            "security.security_headers.x_content_type_options", "nosniff"
        )
        response.headers["X-Frame-Options"] = config.get(
            "security.security_headers.x_frame_options", "DENY"
        )
        if "server" in response.headers:
            del response.headers["server"]

    return response
