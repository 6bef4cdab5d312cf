"""
SQLAlchemy models for status records.

One table per status collection: push batch statuses, background job
statuses, and the device installations that push cleanup deletes from.
Column names match the record keys used by the trackers, so records move
between the ORM and plain dicts without renaming.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import DateTime, Index, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from opstatus.core.storage.postgres import Base
from opstatus.core.utils.time import utcnow


class PushStatus(Base):
    """
    Lifecycle record of one push notification batch.

    Status moves pending -> running -> succeeded/failed. Counters are
    cumulative across complete() calls.
    """

    __tablename__ = "push_statuses"

    object_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    push_time: Mapped[str | None] = mapped_column(String(32), nullable=True)
    query: Mapped[str | None] = mapped_column(Text, nullable=True)
    payload: Mapped[str | None] = mapped_column(Text, nullable=True)
    source: Mapped[str | None] = mapped_column(String(50), nullable=True)
    title: Mapped[str | None] = mapped_column(Text, nullable=True)
    expiry: Mapped[Any] = mapped_column(JSONB, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    num_sent: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    num_opened: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    num_failed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    sent_per_type: Mapped[dict[str, int]] = mapped_column(JSONB, nullable=False, default=dict)
    failed_per_type: Mapped[dict[str, int]] = mapped_column(JSONB, nullable=False, default=dict)
    push_hash: Mapped[str] = mapped_column(String(32), nullable=False)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)
    acl: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)

    __table_args__ = (
        Index("ix_push_statuses_status", "status"),
        Index("ix_push_statuses_push_hash", "push_hash"),
    )

    def __repr__(self) -> str:
        return f"<PushStatus(id='{self.object_id}', status='{self.status}')>"


class JobStatus(Base):
    """
    Lifecycle record of one background job run.

    Status moves running -> succeeded/failed, with an optional progress
    message.
    """

    __tablename__ = "job_statuses"

    object_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    job_name: Mapped[str] = mapped_column(String(100), nullable=False)
    params: Mapped[Any] = mapped_column(JSONB, nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    source: Mapped[str | None] = mapped_column(String(50), nullable=True)
    message: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    finished_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    acl: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, default=dict)

    __table_args__ = (Index("ix_job_statuses_job_name", "job_name"),)

    def __repr__(self) -> str:
        return f"<JobStatus(job='{self.job_name}', status='{self.status}')>"


class Installation(Base):
    """A device registered to receive push notifications."""

    __tablename__ = "installations"

    object_id: Mapped[str] = mapped_column(String(32), primary_key=True)
    device_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    device_type: Mapped[str] = mapped_column(String(20), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )

    __table_args__ = (Index("ix_installations_device_token", "device_token"),)

    def __repr__(self) -> str:
        return f"<Installation(type='{self.device_type}', token='{self.device_token}')>"
