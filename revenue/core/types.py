"""Type aliases for dynamic data structures throughout the application.

Configuration rows travel between the engine and the stores as plain
mappings keyed by column name, so the aliases below name those shapes.
"""

from typing import Any

# One stored configuration row: id, natural key, payload and interval columns
type RecordValues = dict[str, Any]

# Caller-supplied field values for create, replace and patch
type Payload = dict[str, Any]
