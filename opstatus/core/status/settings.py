"""
Tracker settings.

Loaded from the ``tracking`` section of the config files; environment
variables take precedence.
"""

import logging
import os
from dataclasses import dataclass

from opstatus.core.config.loader import get_config
from opstatus.core.status.results import DEFAULT_MAX_DEPTH

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


@dataclass
class TrackingConfig:
    """Configuration for status trackers."""

    max_result_depth: int = DEFAULT_MAX_DEPTH
    log_level: str = "INFO"


def load_tracking_config() -> TrackingConfig:
    """
    Load tracker configuration from environment variables and config files.

    Environment variables take precedence over config files.

    Returns:
        Tracker configuration.
    """
    config = get_config()
    tracking_config = config.get("tracking", {}) or {}

    return TrackingConfig(
        max_result_depth=int(
            os.environ.get(
                "STATUS_MAX_RESULT_DEPTH",
                tracking_config.get("max_result_depth", DEFAULT_MAX_DEPTH),
            )
        ),
        log_level=os.environ.get(
            "STATUS_LOG_LEVEL",
            tracking_config.get("log_level", "INFO"),
        ),
    )


def setup_logging(log_level: str) -> None:
    """
    Configure logging for processes that run trackers.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )
