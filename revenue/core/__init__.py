"""Core infrastructure shared by every layer of the registry.

- **config**: Settings loaded from the environment
- **context**: Correlation and request id tracking
- **exceptions**: Error hierarchy with codes and severities
- **error_context**: Sensitive data sanitization for safe logging
- **logging**: Loguru setup with console and JSON output
- **observability**: OpenTelemetry tracing
- **types**: Type aliases for dynamic data
"""
