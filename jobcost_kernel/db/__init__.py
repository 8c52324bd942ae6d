"""Database layer - engine, base classes, and the tabular data store."""

from jobcost_kernel.db.base import UUID, Base, TrackedBase, UUIDString
from jobcost_kernel.db.engine import (
    create_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    session_scope,
)
from jobcost_kernel.db.store import DataStore, Row

__all__ = [
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "create_tables",
    "session_scope",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UUID",
    "DataStore",
    "Row",
]
