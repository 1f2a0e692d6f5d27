"""Request logging with timing and slow-request warnings.

Each request outside ``log_config.excluded_paths`` produces a start line, a
completion line with status and duration, and a warning when it took longer
than ``slow_request_threshold_ms``. Lines carry the correlation id bound by
``RequestContextMiddleware``.
"""

import time
from collections.abc import Awaitable, Callable

from fastapi import Request, Response
from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from revenue.api.constants import MAX_USER_AGENT_LENGTH
from revenue.core.config import LogConfig
from revenue.core.constants import MILLISECONDS_PER_SECOND
from revenue.core.context import RequestContext


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs request start, completion and failures.

    Args:
        app: The ASGI application.
        log_config: Logging configuration.
        trust_proxy_headers: Read the client address from X-Forwarded-For.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        log_config: LogConfig,
        trust_proxy_headers: bool = False,
    ) -> None:
        super().__init__(app)
        self.log_config = log_config
        self.excluded_paths = set(log_config.excluded_paths)
        self.trust_proxy_headers = trust_proxy_headers

    def _client_ip(self, request: Request) -> str:
        if self.trust_proxy_headers:
            forwarded_for = request.headers.get("x-forwarded-for")
            if forwarded_for:
                return forwarded_for.split(",")[0].strip()
        return request.client.host if request.client else "unknown"

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Awaitable[Response]],
    ) -> Response:
        if request.url.path in self.excluded_paths:
            return await call_next(request)

        with logger.contextualize(
            request_id=RequestContext.get_request_id(),
            method=request.method,
            path=request.url.path,
            client_host=self._client_ip(request),
            user_agent=request.headers.get("user-agent", "unknown")[
                :MAX_USER_AGENT_LENGTH
            ],
        ):
            logger.info(
                "Request started",
                query_params=dict(request.query_params) or None,
            )
            start_time = time.perf_counter()

            try:
                response = await call_next(request)
            except Exception as exc:
                elapsed = time.perf_counter() - start_time
                logger.error(
                    "Request failed",
                    duration_ms=round(elapsed * MILLISECONDS_PER_SECOND, 2),
                    error_type=type(exc).__name__,
                )
                raise

            duration_ms = round(
                (time.perf_counter() - start_time) * MILLISECONDS_PER_SECOND, 2
            )
            logger.info(
                "Request completed",
                status_code=response.status_code,
                duration_ms=duration_ms,
            )
            if duration_ms > self.log_config.slow_request_threshold_ms:
                logger.warning(
                    "Slow request detected",
                    duration_ms=duration_ms,
                    threshold_ms=self.log_config.slow_request_threshold_ms,
                )
            return response
