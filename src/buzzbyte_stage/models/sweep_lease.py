"""Model backing the database sweep lock."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from buzzbyte_stage.db.session import Base


class SweepLease(Base):
    """Named, time-bounded lease held by at most one sweeper at a time."""

    __tablename__ = "sweep_lease"

    name: Mapped[str] = mapped_column(String(64), primary_key=True)
    holder: Mapped[str] = mapped_column(String(64), nullable=False)
    # A crashed holder's lease lapses once this passes.
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
