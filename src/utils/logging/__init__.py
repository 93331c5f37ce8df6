"""
Logging configuration for tablediff

Provides console or JSON-formatted logging with optional file rotation.
Library modules only create loggers; handlers are installed by the
application (the CLI, or the embedding program) through setup_logging.

Usage:
    import logging

    from utils.logging import setup_logging

    # Setup logging (call once at application startup)
    setup_logging(level="INFO", log_file="/var/log/tablediff/diff.log")

    # Get logger for your module
    logger = logging.getLogger(__name__)

    logger.info("Comparing tables", extra={
        "source_table": "orders_backup",
        "dest_table": "orders",
    })
"""

from .config import configure_from_env, setup_logging
from .formatters import ConsoleFormatter, JSONFormatter

__all__ = [
    "setup_logging",
    "configure_from_env",
    "JSONFormatter",
    "ConsoleFormatter",
]
