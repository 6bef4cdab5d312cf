"""Ordered status tracking for push batches and background jobs."""

__version__ = "0.1.0"
