"""Tests for the sweep lease backends."""

from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

from sqlalchemy import select
from sqlalchemy.orm import Session

from buzzbyte_stage.models import SweepLease
from buzzbyte_stage.services import sweep_lock as sweep_lock_module
from buzzbyte_stage.services.sweep_lock import (
    DatabaseSweepLock,
    RedisSweepLock,
    get_sweep_lock,
)

NOW = datetime(2026, 3, 1, 8, 0, tzinfo=UTC)


def _lease(db_session: Session) -> SweepLease | None:
    db_session.expire_all()
    return db_session.scalars(select(SweepLease)).first()


def test_database_lock_is_exclusive(db_session: Session) -> None:
    first = DatabaseSweepLock(db_session=db_session, clock=lambda: NOW)
    second = DatabaseSweepLock(db_session=db_session, clock=lambda: NOW)

    assert first.acquire()
    assert not second.acquire()
    assert _lease(db_session).holder == first.token


def test_database_lock_release_allows_reacquire(db_session: Session) -> None:
    first = DatabaseSweepLock(db_session=db_session, clock=lambda: NOW)
    second = DatabaseSweepLock(db_session=db_session, clock=lambda: NOW)

    assert first.acquire()
    first.release()

    assert _lease(db_session) is None
    assert second.acquire()


def test_database_lock_lapses_after_ttl(db_session: Session) -> None:
    crashed = DatabaseSweepLock(
        db_session=db_session,
        ttl=timedelta(minutes=10),
        clock=lambda: NOW,
    )
    assert crashed.acquire()

    later = DatabaseSweepLock(
        db_session=db_session,
        ttl=timedelta(minutes=10),
        clock=lambda: NOW + timedelta(minutes=11),
    )
    assert later.acquire()
    assert _lease(db_session).holder == later.token


def test_stale_holder_cannot_release_new_lease(db_session: Session) -> None:
    crashed = DatabaseSweepLock(db_session=db_session, ttl=timedelta(minutes=1), clock=lambda: NOW)
    assert crashed.acquire()
    later = DatabaseSweepLock(
        db_session=db_session,
        ttl=timedelta(minutes=1),
        clock=lambda: NOW + timedelta(minutes=2),
    )
    assert later.acquire()

    crashed.release()

    assert _lease(db_session).holder == later.token


def test_redis_lock_uses_set_nx_with_expiry() -> None:
    client = MagicMock()
    client.set.return_value = True
    lock = RedisSweepLock(ttl=timedelta(seconds=30), client=client)

    assert lock.acquire()

    client.set.assert_called_once_with(lock.key, lock.token, nx=True, px=30_000)


def test_redis_lock_reports_held_lease() -> None:
    client = MagicMock()
    client.set.return_value = None
    assert not RedisSweepLock(client=client).acquire()


def test_redis_release_is_compare_and_delete() -> None:
    client = MagicMock()
    lock = RedisSweepLock(client=client)

    lock.release()

    script, numkeys, key, token = client.eval.call_args.args
    assert "redis.call(\"del\"" in script
    assert (numkeys, key, token) == (1, lock.key, lock.token)


def test_factory_follows_settings(mocker) -> None:
    mocker.patch.object(sweep_lock_module.settings, "sweep_lock_backend", "database")
    assert isinstance(get_sweep_lock(), DatabaseSweepLock)

    mocker.patch.object(sweep_lock_module.settings, "sweep_lock_backend", "redis")
    mocker.patch.object(sweep_lock_module.redis, "from_url", return_value=MagicMock())
    assert isinstance(get_sweep_lock(), RedisSweepLock)
