"""
SQLAlchemy models for status records.

This module exports all database models used by the Postgres status store.
"""

from opstatus.core.models.status import Installation, JobStatus, PushStatus

__all__ = [
    "PushStatus",
    "JobStatus",
    "Installation",
]
