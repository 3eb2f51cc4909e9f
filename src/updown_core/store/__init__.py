"""Pattern result caching — in-memory summaries and the persisted store."""

from updown_core.store.cache import CacheKey, PatternCache
from updown_core.store.persist import (
    SCHEMA_VERSION,
    PatternStore,
    PatternStoreDocument,
    PatternStoreRecord,
    atomic_write_text,
    store_path,
)
from updown_core.store.signature import day_signature, file_signature, window_source_signature

__all__ = [
    "CacheKey",
    "PatternCache",
    "PatternStore",
    "PatternStoreDocument",
    "PatternStoreRecord",
    "SCHEMA_VERSION",
    "atomic_write_text",
    "day_signature",
    "file_signature",
    "store_path",
    "window_source_signature",
]
