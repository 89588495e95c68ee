"""Table-scoped change notifications.

A ``ChangeNotifier`` maps table names to zero-argument listeners. Paging
sources subscribe for the tables their queries read and invalidate
themselves when any of those tables change.

Notifications come from two places:

1. ``attach(engine)`` hooks SQLAlchemy connection events. Every INSERT,
   UPDATE or DELETE construct executed on the engine (Core statements and
   ORM flushes alike) records its table on the connection; the recorded
   tables are notified when the transaction commits and discarded when it
   rolls back.

   Dispatch happens in SQLAlchemy's ``commit`` event, which fires just before
   the driver commits. Listeners therefore run while the write is not yet
   visible to other connections, and a commit that then fails at the driver
   still notifies. Listener errors never abort the commit.
2. ``notify(tables)`` can be called directly, e.g. after raw ``text()``
   statements that the event hooks cannot attribute to a table.

Example:
    notifier = ChangeNotifier()
    notifier.attach(engine)

    notifier.subscribe(["users"], on_change)
    async with engine.begin() as conn:
        await conn.execute(insert(users).values(name="a"))
    # on_change() has been called once
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from typing import TYPE_CHECKING, Any

from sqlalchemy import event
from sqlalchemy.sql.dml import UpdateBase

from offset_paging.infra.metrics import paging_notifications_total

if TYPE_CHECKING:
    from sqlalchemy.engine import Connection, Engine
    from sqlalchemy.ext.asyncio import AsyncEngine

logger = logging.getLogger(__name__)

Listener = Callable[[], None]

# Key under Connection.info holding tables written in the open transaction
_PENDING_KEY = "offset_paging.pending_tables"


class ChangeNotifier:
    """Registry of table change listeners.

    Thread-safe: listeners may be added or removed while another thread
    dispatches notifications. A listener subscribed to several tables fires
    at most once per ``notify`` call.
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._listeners: dict[str, list[Listener]] = {}
        self._lock = threading.Lock()
        self._attached: list[Engine] = []

    def subscribe(self, tables: Iterable[str], listener: Listener) -> None:
        """Register ``listener`` for changes to any of ``tables``."""
        with self._lock:
            for table in tables:
                registered = self._listeners.setdefault(table, [])
                if listener not in registered:
                    registered.append(listener)

    def unsubscribe(self, tables: Iterable[str], listener: Listener) -> None:
        """Remove ``listener`` from ``tables``. Unknown pairs are ignored."""
        with self._lock:
            for table in tables:
                registered = self._listeners.get(table)
                if not registered:
                    continue
                if listener in registered:
                    registered.remove(listener)
                if not registered:
                    del self._listeners[table]

    def listener_count(self, table: str) -> int:
        """Number of listeners currently subscribed to ``table``."""
        with self._lock:
            return len(self._listeners.get(table, ()))

    def notify(self, tables: Iterable[str]) -> None:
        """Call every listener subscribed to any of ``tables`` once.

        Listeners run outside the registry lock so they may unsubscribe
        themselves. A failing listener is logged and does not stop the
        remaining ones.
        """
        table_list = list(dict.fromkeys(tables))
        to_call: list[Listener] = []
        with self._lock:
            for table in table_list:
                for listener in self._listeners.get(table, ()):
                    if listener not in to_call:
                        to_call.append(listener)

        for table in table_list:
            paging_notifications_total.labels(table=table).inc()
        logger.debug(
            "Dispatching table change notification",
            extra={"tables": table_list, "listeners": len(to_call)},
        )

        for listener in to_call:
            try:
                listener()
            except Exception:
                logger.exception(
                    "Change listener failed",
                    extra={"tables": table_list, "listener": repr(listener)},
                )

    # ------------------------------------------------------------------
    # SQLAlchemy integration
    # ------------------------------------------------------------------

    def attach(self, engine: Engine | AsyncEngine) -> None:
        """Hook DML tracking onto ``engine`` (sync or async)."""
        sync_engine = _sync_engine(engine)
        if sync_engine in self._attached:
            return
        event.listen(sync_engine, "after_execute", self._after_execute)
        event.listen(sync_engine, "commit", self._on_commit)
        event.listen(sync_engine, "rollback", self._on_rollback)
        self._attached.append(sync_engine)
        logger.debug("Change notifier attached", extra={"engine": repr(sync_engine.url)})

    def detach(self, engine: Engine | AsyncEngine) -> None:
        """Remove the hooks installed by ``attach``."""
        sync_engine = _sync_engine(engine)
        if sync_engine not in self._attached:
            return
        event.remove(sync_engine, "after_execute", self._after_execute)
        event.remove(sync_engine, "commit", self._on_commit)
        event.remove(sync_engine, "rollback", self._on_rollback)
        self._attached.remove(sync_engine)

    def _after_execute(
        self,
        conn: Connection,
        clauseelement: Any,
        multiparams: Any,
        params: Any,
        execution_options: Any,
        result: Any,
    ) -> None:
        _ = multiparams, params, execution_options, result
        if not isinstance(clauseelement, UpdateBase):
            return
        table_name = getattr(getattr(clauseelement, "table", None), "name", None)
        if table_name is None:
            return
        conn.info.setdefault(_PENDING_KEY, set()).add(table_name)

    def _on_commit(self, conn: Connection) -> None:
        # Runs before the DBAPI commit; see module docstring
        pending = conn.info.pop(_PENDING_KEY, None)
        if pending:
            self.notify(sorted(pending))

    def _on_rollback(self, conn: Connection) -> None:
        conn.info.pop(_PENDING_KEY, None)


def _sync_engine(engine: Engine | AsyncEngine) -> Engine:
    return getattr(engine, "sync_engine", engine)


__all__ = ["ChangeNotifier", "Listener"]
