"""Core module initialization."""

from cloudops.core.audit import ActivityLog, utc_now_iso
from cloudops.core.auth import User, get_current_user
from cloudops.core.config import Settings, get_settings
from cloudops.core.store import (
    RowStore,
    StoreConnectionError,
    StoreError,
    StoreResponseError,
    get_store,
)
from cloudops.core.tag_query import filter_resources, matches, parse_query

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Auth
    "User",
    "get_current_user",
    # Store
    "RowStore",
    "StoreError",
    "StoreResponseError",
    "StoreConnectionError",
    "get_store",
    # Audit
    "ActivityLog",
    "utc_now_iso",
    # Tag queries
    "matches",
    "filter_resources",
    "parse_query",
]
