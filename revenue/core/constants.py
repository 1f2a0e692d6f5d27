"""Core application constants."""

# Time constants
MILLISECONDS_PER_SECOND = 1000

# Security and redaction
REDACTED = "[REDACTED]"

# Length cap for SQL statements written to logs
MAX_LOGGED_STATEMENT_LENGTH = 500
