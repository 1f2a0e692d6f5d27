"""Middleware and exception handlers for the HTTP layer.

- **RequestContextMiddleware**: Correlation and request ids
- **RequestLoggingMiddleware**: Request timing and slow-request warnings
- **error_handler**: Maps registry errors to HTTP status codes

The context middleware runs outermost so every log line of a request,
including the logging middleware's own, carries its ids.
"""
