"""Temporal configuration registry.

Each configuration kind stores dated versions of a rate or fee keyed by a
natural key. The engine answers which version applies on a given day and
guards the validity intervals of every version it writes.
"""

from revenue.domain.registry.engine import RegistryEngine
from revenue.domain.registry.intervals import Interval, find_overlaps
from revenue.domain.registry.kinds import (
    KINDS,
    ConfigurationKind,
    RecordStatus,
    get_kind,
)
from revenue.domain.registry.records import ConfigurationRecord, derive_status
from revenue.domain.registry.store import ConfigurationStore, RecordFilter, WriteGuard

__all__ = [
    "KINDS",
    "ConfigurationKind",
    "ConfigurationRecord",
    "ConfigurationStore",
    "Interval",
    "RecordFilter",
    "RecordStatus",
    "RegistryEngine",
    "WriteGuard",
    "derive_status",
    "find_overlaps",
    "get_kind",
]
