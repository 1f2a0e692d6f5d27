"""API-related constants."""

API_PREFIX = "/api/v1/configurations"

# HTTP headers
CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

# Request logging
MAX_USER_AGENT_LENGTH = 200
