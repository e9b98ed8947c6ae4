"""
Database Package
Declarative base, mixins and session handling for the ledger tables.
"""

from ledgerlens.database.base import Base, TimestampMixin, UUIDMixin
from ledgerlens.database.connection import (
    close_db,
    create_session_factory,
    get_async_session,
    get_engine,
    get_session_factory,
    init_db,
    session_scope,
)

__all__ = [
    "Base",
    "TimestampMixin",
    "UUIDMixin",
    "close_db",
    "create_session_factory",
    "get_async_session",
    "get_engine",
    "get_session_factory",
    "init_db",
    "session_scope",
]
