"""
PokéCompanion Backend: Auth Rate Limiting Middleware
=====================================================

What:  Per-IP sliding window limiter for the credential endpoints
       (register and login), 5 requests per 60 seconds by default.
How:   Keeps the request timestamps of each IP in memory. On each request to
       a limited path, timestamps older than the window are dropped; if the
       remaining count reaches the limit the request is answered with 429 and
       a Retry-After header.

State is per process. Multi-worker deployments need a shared store
(e.g. Redis) to enforce one limit across workers.
"""

import logging
import time
from collections import defaultdict
from typing import Dict, Iterable, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from pokecompanion.config import settings
from pokecompanion.exceptions import RateLimitExceededError
from pokecompanion.responses import error_response

logger = logging.getLogger(__name__)

DEFAULT_LIMITED_PATHS = ("/api/auth/register", "/api/auth/login")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """
    In-memory sliding window rate limiter.

    Args:
        limited_paths: exact request paths subject to the limit
        max_requests:  requests allowed per window (default: settings)
        window:        window length in seconds (default: settings)
    """

    def __init__(
        self,
        app: ASGIApp,
        limited_paths: Iterable[str] = DEFAULT_LIMITED_PATHS,
        max_requests: Optional[int] = None,
        window: Optional[int] = None,
    ):
        super().__init__(app)
        self.limited_paths = frozenset(limited_paths)
        self.max_requests = max_requests or settings.auth_rate_limit_requests
        self.window = window or settings.auth_rate_limit_window
        self._requests: Dict[str, List[float]] = defaultdict(list)

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path not in self.limited_paths:
            return await call_next(request)

        client_ip = request.client.host if request.client else "unknown"
        now = time.time()
        window_start = now - self.window

        timestamps = [ts for ts in self._requests[client_ip] if ts > window_start]
        self._requests[client_ip] = timestamps

        if len(timestamps) >= self.max_requests:
            retry_after = int(timestamps[0] + self.window - now) + 1
            logger.warning(
                "Rate limit exceeded for IP %s on %s: %d requests in %ds window",
                client_ip,
                request.url.path,
                len(timestamps),
                self.window,
            )
            exc = RateLimitExceededError(retry_after=retry_after)
            return error_response(
                request,
                429,
                "rate_limit_exceeded",
                exc,
                include_details=True,
                headers={"Retry-After": str(retry_after)},
            )

        timestamps.append(now)
        self._cleanup_inactive_ips(window_start)
        return await call_next(request)

    def _cleanup_inactive_ips(self, window_start: float) -> None:
        inactive_ips = [
            ip for ip, timestamps in self._requests.items()
            if not timestamps or timestamps[-1] <= window_start
        ]
        for ip in inactive_ips:
            del self._requests[ip]
