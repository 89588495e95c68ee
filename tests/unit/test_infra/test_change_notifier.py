"""Unit tests for the table change notifier."""
from __future__ import annotations

import pytest
from sqlalchemy import (
    Column,
    Integer,
    MetaData,
    Table,
    create_engine,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column

from offset_paging.infra.database import ChangeNotifier
from offset_paging.infra.metrics import REGISTRY

metadata = MetaData()

widgets = Table("widgets", metadata, Column("id", Integer, primary_key=True))


class Base(DeclarativeBase):
    pass


class Gadget(Base):
    __tablename__ = "gadgets"

    id: Mapped[int] = mapped_column(primary_key=True)


@pytest.fixture
def sync_engine():
    engine = create_engine("sqlite://")
    metadata.create_all(engine)
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def attached(sync_engine):
    notifier = ChangeNotifier()
    notifier.attach(sync_engine)
    yield notifier
    notifier.detach(sync_engine)


@pytest.mark.unit
class TestSubscriptions:
    """Tests for subscribe / unsubscribe / notify."""

    def test_notify_calls_subscribed_listener(self):
        notifier = ChangeNotifier()
        calls: list[str] = []
        notifier.subscribe(["a"], lambda: calls.append("a"))

        notifier.notify(["a"])

        assert calls == ["a"]

    def test_listener_on_several_tables_fires_once_per_notify(self):
        notifier = ChangeNotifier()
        calls: list[int] = []

        def listener() -> None:
            calls.append(1)

        notifier.subscribe(["a", "b"], listener)
        notifier.notify(["a", "b"])

        assert calls == [1]

    def test_duplicate_subscription_ignored(self):
        notifier = ChangeNotifier()

        def listener() -> None:
            pass

        notifier.subscribe(["a"], listener)
        notifier.subscribe(["a"], listener)

        assert notifier.listener_count("a") == 1

    def test_unsubscribe_removes_listener(self):
        notifier = ChangeNotifier()
        calls: list[int] = []

        def listener() -> None:
            calls.append(1)

        notifier.subscribe(["a"], listener)
        notifier.unsubscribe(["a", "unknown"], listener)
        notifier.notify(["a"])

        assert calls == []
        assert notifier.listener_count("a") == 0

    def test_listener_may_unsubscribe_itself(self):
        notifier = ChangeNotifier()
        calls: list[int] = []

        def listener() -> None:
            calls.append(1)
            notifier.unsubscribe(["a"], listener)

        notifier.subscribe(["a"], listener)
        notifier.notify(["a"])
        notifier.notify(["a"])

        assert calls == [1]

    def test_failing_listener_does_not_block_others(self, caplog):
        notifier = ChangeNotifier()
        calls: list[str] = []

        def broken() -> None:
            raise RuntimeError("listener bug")

        notifier.subscribe(["a"], broken)
        notifier.subscribe(["a"], lambda: calls.append("ok"))

        notifier.notify(["a"])

        assert calls == ["ok"]
        assert "Change listener failed" in caplog.text

    def test_notifications_counted_per_table(self):
        labels = {"table": "metrics_probe"}
        before = REGISTRY.get_sample_value("paging_notifications_total", labels) or 0.0

        ChangeNotifier().notify(["metrics_probe"])

        assert REGISTRY.get_sample_value("paging_notifications_total", labels) == before + 1


@pytest.mark.unit
class TestEngineHooks:
    """Tests for DML tracking on an attached engine."""

    def test_core_insert_notifies_on_commit(self, sync_engine, attached):
        calls: list[str] = []
        attached.subscribe(["widgets"], lambda: calls.append("widgets"))

        with sync_engine.begin() as conn:
            conn.execute(insert(widgets).values(id=1))
            assert calls == []

        assert calls == ["widgets"]

    def test_select_does_not_notify(self, sync_engine, attached):
        calls: list[str] = []
        attached.subscribe(["widgets"], lambda: calls.append("widgets"))

        with sync_engine.begin() as conn:
            conn.execute(select(widgets))

        assert calls == []

    def test_rollback_discards_pending_tables(self, sync_engine, attached):
        calls: list[str] = []
        attached.subscribe(["widgets"], lambda: calls.append("widgets"))

        with sync_engine.connect() as conn:
            conn.execute(insert(widgets).values(id=2))
            conn.rollback()
            conn.execute(select(widgets))
            conn.commit()

        assert calls == []

    def test_orm_flush_notifies_on_commit(self, sync_engine, attached):
        calls: list[str] = []
        attached.subscribe(["gadgets"], lambda: calls.append("gadgets"))

        with Session(sync_engine) as session:
            session.add(Gadget(id=1))
            session.commit()
            gadget = session.get(Gadget, 1)
            session.delete(gadget)
            session.commit()

        assert calls == ["gadgets", "gadgets"]

    def test_orm_bulk_update_notifies(self, sync_engine, attached):
        with Session(sync_engine) as session:
            session.add(Gadget(id=5))
            session.commit()
        calls: list[str] = []
        attached.subscribe(["gadgets"], lambda: calls.append("gadgets"))

        with Session(sync_engine) as session:
            session.execute(update(Gadget).where(Gadget.id == 5).values(id=6))
            session.commit()

        assert calls == ["gadgets"]

    def test_commit_listeners_run_before_write_is_visible(self, tmp_path):
        engine = create_engine(f"sqlite:///{tmp_path / 'widgets.db'}")
        metadata.create_all(engine)
        notifier = ChangeNotifier()
        notifier.attach(engine)
        seen: list[int] = []

        def count_from_other_connection() -> None:
            with engine.connect() as other:
                seen.append(other.execute(select(func.count()).select_from(widgets)).scalar_one())

        def broken() -> None:
            raise RuntimeError("listener bug")

        notifier.subscribe(["widgets"], broken)
        notifier.subscribe(["widgets"], count_from_other_connection)
        try:
            with engine.begin() as conn:
                conn.execute(insert(widgets).values(id=1))

            with engine.connect() as conn:
                committed = conn.execute(select(func.count()).select_from(widgets)).scalar_one()
        finally:
            notifier.detach(engine)
            engine.dispose()

        assert seen == [0]
        assert committed == 1

    def test_detach_stops_tracking(self, sync_engine):
        notifier = ChangeNotifier()
        notifier.attach(sync_engine)
        notifier.attach(sync_engine)
        calls: list[str] = []
        notifier.subscribe(["widgets"], lambda: calls.append("widgets"))

        notifier.detach(sync_engine)
        with sync_engine.begin() as conn:
            conn.execute(insert(widgets).values(id=3))

        assert calls == []
