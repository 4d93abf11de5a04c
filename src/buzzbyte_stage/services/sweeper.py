"""Purge of posts whose lifetime has elapsed.

The sweeper soft-deletes expired posts in keyset-paginated batches and
removes their cover images from asset storage. One run is guarded by a
cluster-wide lease so concurrent workers never purge the same rows.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from buzzbyte_stage.core.errors import AssetStorageError, SweepTimeoutError
from buzzbyte_stage.core.settings import settings
from buzzbyte_stage.db.session import SessionLocal
from buzzbyte_stage.db.time import as_utc, utcnow
from buzzbyte_stage.models import Post
from buzzbyte_stage.services.lifecycle import expiry_cutoff
from buzzbyte_stage.services.storage import AssetStorage, get_asset_storage
from buzzbyte_stage.services.sweep_lock import SweepLock, get_sweep_lock

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """Outcome of a single sweep run."""

    purged: int = 0
    asset_failures: int = 0
    batches: int = 0
    elapsed_ms: int = 0
    skipped: bool = False


class ExpirationSweeper:
    """Soft-deletes expired posts and cleans up their assets."""

    def __init__(
        self,
        db_session: Session | None = None,
        storage: AssetStorage | None = None,
        lock: SweepLock | None = None,
        *,
        batch_size: int | None = None,
        max_runtime_seconds: float | None = None,
        clock: Callable[[], datetime] = utcnow,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the sweeper.

        Args:
            db_session: Optional database session. If None, a session is opened per run.
            storage: Asset backend. Defaults to the configured backend.
            lock: Lease guarding the run. Defaults to the configured backend.
            batch_size: Posts loaded per keyset page.
            max_runtime_seconds: Wall time after which the run aborts.
            clock: Source of the current UTC time.
            timer: Monotonic timer used for the runtime guard.
        """
        self._db_session = db_session
        self.storage = storage or get_asset_storage()
        self.lock = lock or get_sweep_lock()
        self.batch_size = batch_size or settings.sweep_batch_size
        self.max_runtime_seconds = max_runtime_seconds or settings.sweep_max_runtime_seconds
        self._clock = clock
        self._timer = timer

    def run_once(self, now: datetime | None = None) -> SweepResult:
        """Run one sweep; return a skipped result when another worker holds the lease."""
        if not self.lock.acquire():
            logger.info("Expiration sweep skipped: lease held elsewhere")
            return SweepResult(skipped=True)

        try:
            if self._db_session is not None:
                return self._sweep(self._db_session, now)
            with SessionLocal() as db:
                return self._sweep(db, now)
        finally:
            self.lock.release()

    def _sweep(self, db: Session, now: datetime | None) -> SweepResult:
        started = self._timer()
        purge_time = as_utc(now or self._clock())
        cutoff = expiry_cutoff(purge_time, settings.post_ttl)
        result = SweepResult()
        last_id = 0

        while True:
            batch = list(
                db.scalars(
                    select(Post)
                    .where(
                        Post.id > last_id,
                        Post.deleted_at.is_(None),
                        Post.created_at <= cutoff,
                    )
                    .order_by(Post.id)
                    .limit(self.batch_size)
                )
            )
            if not batch:
                break
            result.batches += 1

            for post in batch:
                if self._timer() - started > self.max_runtime_seconds:
                    result.elapsed_ms = self._elapsed_ms(started)
                    logger.error(
                        "Expiration sweep exceeded %.0fs after purging %d posts",
                        self.max_runtime_seconds,
                        result.purged,
                    )
                    raise SweepTimeoutError(
                        f"Sweep exceeded {self.max_runtime_seconds}s "
                        f"({result.purged} posts purged)"
                    )
                last_id = post.id
                if not self._purge(db, post, purge_time):
                    result.asset_failures += 1
                result.purged += 1

        result.elapsed_ms = self._elapsed_ms(started)
        logger.info(
            "Expiration sweep finished: purged=%d asset_failures=%d batches=%d elapsed_ms=%d",
            result.purged,
            result.asset_failures,
            result.batches,
            result.elapsed_ms,
        )
        return result

    def _purge(self, db: Session, post: Post, purge_time: datetime) -> bool:
        """Purge one post and commit; return False if its asset could not be removed."""
        post_id = post.id
        asset_ok = True
        if post.cover_image_key:
            try:
                self.storage.delete(post.cover_image_key)
            except AssetStorageError as exc:
                asset_ok = False
                logger.warning(
                    "Failed to delete cover %s for post %d: %s",
                    post.cover_image_key,
                    post_id,
                    exc,
                )

        try:
            post.deleted_at = purge_time
            db.commit()
        except Exception:
            db.rollback()
            logger.exception("Failed to purge post %d", post_id)
            raise
        return asset_ok

    def _elapsed_ms(self, started: float) -> int:
        return int((self._timer() - started) * 1000)


__all__ = ["ExpirationSweeper", "SweepResult"]
