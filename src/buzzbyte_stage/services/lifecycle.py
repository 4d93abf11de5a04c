"""Post lifecycle policy.

Pure clock math deriving a post's temporal state from its creation time.
Nothing here touches the database or reads the wall clock: callers always
pass ``now`` so the rules stay deterministic under test.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Literal

from buzzbyte_stage.db.time import as_utc

DEFAULT_TTL = timedelta(hours=24)
DEFAULT_WARNING_WINDOW = timedelta(hours=2)

SAFE_THRESHOLD = timedelta(hours=12)
WARNING_THRESHOLD = timedelta(hours=6)
DANGER_THRESHOLD = timedelta(hours=1)

UrgencyTier = Literal["safe", "warning", "danger", "critical"]

__all__ = [
    "DEFAULT_TTL",
    "DEFAULT_WARNING_WINDOW",
    "PostLifecycle",
    "UrgencyTier",
    "compute_lifecycle",
    "expiry_cutoff",
    "is_expired",
    "remaining_time",
    "urgency_tier",
]


@dataclass(frozen=True)
class PostLifecycle:
    """Derived lifecycle state of a single post at a point in time."""

    expires_at: datetime
    remaining: timedelta
    is_expired: bool
    is_expiring_soon: bool
    urgency: UrgencyTier

    @property
    def seconds_remaining(self) -> int:
        """Whole seconds left before expiry, never negative."""
        return int(self.remaining.total_seconds())


def remaining_time(created_at: datetime, *, now: datetime, ttl: timedelta = DEFAULT_TTL) -> timedelta:
    """Return ``ttl - age`` clamped to ``[0, ttl]``."""
    age = as_utc(now) - as_utc(created_at)
    remaining = ttl - age
    if remaining < timedelta(0):
        return timedelta(0)
    if remaining > ttl:
        # Creation timestamps slightly in the future (clock skew) count as brand new.
        return ttl
    return remaining


def is_expired(created_at: datetime, *, now: datetime, ttl: timedelta = DEFAULT_TTL) -> bool:
    """Return True once ``ttl`` has elapsed; the boundary itself is expired."""
    return as_utc(now) - as_utc(created_at) >= ttl


def expiry_cutoff(now: datetime, ttl: timedelta = DEFAULT_TTL) -> datetime:
    """Return the creation time at or before which posts are expired."""
    return as_utc(now) - ttl


def urgency_tier(remaining: timedelta) -> UrgencyTier:
    """Bucket the remaining lifetime into a presentation tier."""
    if remaining >= SAFE_THRESHOLD:
        return "safe"
    if remaining >= WARNING_THRESHOLD:
        return "warning"
    if remaining >= DANGER_THRESHOLD:
        return "danger"
    return "critical"


def compute_lifecycle(
    created_at: datetime,
    *,
    now: datetime,
    ttl: timedelta = DEFAULT_TTL,
    warning_window: timedelta = DEFAULT_WARNING_WINDOW,
) -> PostLifecycle:
    """Compute the full lifecycle snapshot for a post created at ``created_at``."""
    created = as_utc(created_at)
    age = as_utc(now) - created
    remaining = remaining_time(created, now=now, ttl=ttl)
    expired = age >= ttl
    return PostLifecycle(
        expires_at=created + ttl,
        remaining=remaining,
        is_expired=expired,
        is_expiring_soon=age >= ttl - warning_window,
        urgency="critical" if expired else urgency_tier(remaining),
    )
