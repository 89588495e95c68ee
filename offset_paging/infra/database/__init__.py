"""Database infrastructure: engine/session wiring and change notifications."""

from offset_paging.infra.database.notifications import ChangeNotifier, Listener
from offset_paging.infra.database.session import (
    SessionTransacter,
    Transacter,
    create_engine,
    create_session_factory,
    enable_sqlite_transactions,
)

__all__ = [
    "ChangeNotifier",
    "Listener",
    "SessionTransacter",
    "Transacter",
    "create_engine",
    "create_session_factory",
    "enable_sqlite_transactions",
]
