"""
Logging setup.

Configures the loguru logger for reward calculation runs.
Sets up log rotation and retention policies.
"""

import sys

from loguru import logger

from referral_rewards.config.settings import settings


def setup_logging(
    level: str | None = None,
    log_file: str | None = None,
) -> None:
    """
    Configure logger sinks.

    Args:
        level: Minimum level (default: settings.log_level)
        log_file: Optional file sink with daily rotation
            (default: settings.log_file)
    """
    level = (level or settings.log_level).upper()
    log_file = log_file or settings.log_file

    logger.remove()
    logger.add(sys.stderr, level=level)

    if log_file:
        logger.add(
            log_file,
            rotation="1 day",
            retention="7 days",
            level=level,
            encoding="utf-8",
        )

    logger.debug(f"Logging configured (level={level}, file={log_file})")
