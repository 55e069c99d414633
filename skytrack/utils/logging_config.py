"""
Structured logging configuration for the SkyTrack service.
Provides a colored console sink plus optional JSON sinks per component.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from loguru import logger


class LogConfig:
    """Centralized logging configuration."""

    LOG_DIR = Path("data/logs")
    LOG_FORMAT = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[component]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level>"
    )
    # Prefixes of the component names handed to get_logger()
    COMPONENTS = [
        "tracking",
    ]

    @classmethod
    def setup(
        cls,
        log_level: str = "INFO",
        enable_json: bool = False,
        log_dir: Optional[Path] = None,
    ):
        """
        Set up logging for the entire application.

        Args:
            log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
            enable_json: Whether to enable JSON logging to files
            log_dir: Directory for file sinks (defaults to LOG_DIR)
        """
        logger.remove()
        logger.configure(extra={"component": "skytrack"})

        # Console handler with colors
        logger.add(
            sys.stderr,
            format=cls.LOG_FORMAT,
            level=log_level,
            colorize=True,
        )

        if enable_json:
            target_dir = log_dir or cls.LOG_DIR
            target_dir.mkdir(parents=True, exist_ok=True)

            # Component names are dotted ("tracking.resolver"); route on the prefix
            for component in cls.COMPONENTS:
                logger.add(
                    target_dir / f"{component}.jsonl",
                    format="{message}",
                    level="INFO",
                    rotation="1 day",
                    retention="30 days",
                    compression="zip",
                    serialize=True,
                    filter=lambda record, comp=component: str(
                        record["extra"].get("component", "")
                    ).split(".")[0] == comp,
                )

            logger.add(
                target_dir / "application.log",
                format=cls.LOG_FORMAT,
                level=log_level,
                rotation="500 MB",
                retention="7 days",
                compression="zip",
            )

        logger.bind(component="logging").info(f"Logging initialized at level {log_level}")


def get_logger(component: str):
    """
    Get a logger for a specific component.

    Args:
        component: Component name (e.g., 'tracking.store', 'ingestion')

    Returns:
        Configured logger instance

    Example:
        >>> from skytrack.utils.logging_config import get_logger
        >>> logger = get_logger("tracking.engine")
        >>> logger.info("Track created", track_id="t1")
    """
    return logger.bind(component=component)


# Initialize console logging on module import with default settings
# Can be reconfigured by calling LogConfig.setup() explicitly
try:
    LogConfig.setup(log_level="INFO", enable_json=False)
except Exception as e:
    logging.basicConfig(level=logging.INFO)
    logging.warning(f"Failed to initialize advanced logging: {e}")
