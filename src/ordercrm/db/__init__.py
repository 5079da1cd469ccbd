"""Database layer for ordercrm."""

from ordercrm.db.base import Base
from ordercrm.db.session import (
    AsyncSessionLocal,
    create_engine,
    create_session_factory,
    engine,
    get_db,
    get_db_context,
    init_db,
)

__all__ = [
    "Base",
    "AsyncSessionLocal",
    "create_engine",
    "create_session_factory",
    "engine",
    "get_db",
    "get_db_context",
    "init_db",
]
