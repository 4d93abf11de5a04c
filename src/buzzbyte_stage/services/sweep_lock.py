"""Cluster-wide lease guarding the expiration sweep.

At most one sweeper may purge posts at a time. Two backends are provided:
a row in the ``sweep_lease`` table and a Redis key. Both leases are
time-bounded so a crashed holder never blocks future sweeps forever.
"""

from __future__ import annotations

import logging
import secrets
from datetime import datetime, timedelta
from typing import Protocol

import redis
from sqlalchemy import delete, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from buzzbyte_stage.core.settings import settings
from buzzbyte_stage.db.session import SessionLocal
from buzzbyte_stage.db.time import utcnow
from buzzbyte_stage.models import SweepLease

logger = logging.getLogger(__name__)

DEFAULT_LOCK_NAME = "post-expiry"

# Delete the key only while it still carries our token.
_RELEASE_SCRIPT = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


class SweepLock(Protocol):
    """Named, time-bounded mutual exclusion primitive."""

    def acquire(self) -> bool:
        """Try to take the lease without blocking; return True on success."""
        ...

    def release(self) -> None:
        """Give the lease back if this instance still holds it."""
        ...


class DatabaseSweepLock:
    """Lease stored as a row in ``sweep_lease``.

    Acquisition first tries to take over a lapsed row with a conditional
    UPDATE, then falls back to inserting a fresh row. A concurrent insert
    loses on the primary key and reports the lease as held.
    """

    def __init__(
        self,
        name: str = DEFAULT_LOCK_NAME,
        ttl: timedelta | None = None,
        db_session: Session | None = None,
        clock=utcnow,
    ) -> None:
        self.name = name
        self.ttl = ttl or timedelta(seconds=settings.sweep_lock_ttl_seconds)
        self.token = secrets.token_hex(16)
        self._db_session = db_session
        self._clock = clock

    def acquire(self) -> bool:
        if self._db_session is not None:
            return self._acquire_with_session(self._db_session)
        with SessionLocal() as db:
            return self._acquire_with_session(db)

    def release(self) -> None:
        if self._db_session is not None:
            self._release_with_session(self._db_session)
            return
        with SessionLocal() as db:
            self._release_with_session(db)

    def _acquire_with_session(self, db: Session) -> bool:
        now: datetime = self._clock()
        expires_at = now + self.ttl
        result = db.execute(
            update(SweepLease)
            .where(SweepLease.name == self.name, SweepLease.expires_at <= now)
            .values(holder=self.token, expires_at=expires_at)
        )
        if result.rowcount == 1:
            db.commit()
            logger.debug("Took over lapsed sweep lease %s", self.name)
            return True

        try:
            with db.begin_nested():
                db.add(SweepLease(name=self.name, holder=self.token, expires_at=expires_at))
        except IntegrityError:
            logger.info("Sweep lease %s is held by another worker", self.name)
            return False
        db.commit()
        return True

    def _release_with_session(self, db: Session) -> None:
        db.execute(
            delete(SweepLease).where(
                SweepLease.name == self.name,
                SweepLease.holder == self.token,
            )
        )
        db.commit()


class RedisSweepLock:
    """Lease stored as a Redis key set with ``NX`` and a millisecond expiry."""

    def __init__(
        self,
        name: str = DEFAULT_LOCK_NAME,
        ttl: timedelta | None = None,
        client: redis.Redis | None = None,
    ) -> None:
        self.key = f"buzzbyte:sweep-lock:{name}"
        self.ttl = ttl or timedelta(seconds=settings.sweep_lock_ttl_seconds)
        self.token = secrets.token_hex(16)
        self.client = client or redis.from_url(settings.redis_url)

    def acquire(self) -> bool:
        acquired = self.client.set(
            self.key,
            self.token,
            nx=True,
            px=int(self.ttl.total_seconds() * 1000),
        )
        if not acquired:
            logger.info("Sweep lease %s is held by another worker", self.key)
        return bool(acquired)

    def release(self) -> None:
        self.client.eval(_RELEASE_SCRIPT, 1, self.key, self.token)


def get_sweep_lock() -> SweepLock:
    """Return a fresh lock for the configured backend."""
    if settings.sweep_lock_backend == "redis":
        return RedisSweepLock()
    return DatabaseSweepLock()


__all__ = [
    "DEFAULT_LOCK_NAME",
    "DatabaseSweepLock",
    "RedisSweepLock",
    "SweepLock",
    "get_sweep_lock",
]
