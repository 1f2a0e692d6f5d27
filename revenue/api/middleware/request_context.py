"""Correlation and request id handling for every HTTP call.

The correlation id is taken from ``X-Correlation-ID`` when a caller sends
one and minted otherwise; the request id is always minted here. Both are
stored in context variables, bound to every Loguru line written while the
request runs, and echoed back as response headers.
"""

from loguru import logger
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from revenue.api.constants import CORRELATION_ID_HEADER, REQUEST_ID_HEADER
from revenue.core.context import (
    RequestContext,
    generate_correlation_id,
    generate_request_id,
)


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Sets up request-scoped ids before any other middleware logs."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        correlation_id = (
            request.headers.get(CORRELATION_ID_HEADER) or generate_correlation_id()
        )
        request_id = generate_request_id()

        RequestContext.set_correlation_id(correlation_id)
        RequestContext.set_request_id(request_id)
        try:
            # contextualize removes the ids again when the block exits
            with logger.contextualize(correlation_id=correlation_id):
                response = await call_next(request)
        finally:
            RequestContext.clear()

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
