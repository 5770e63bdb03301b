"""Logging configuration with GitHub Actions annotations."""

import logging
import sys


class GitHubActionsFormatter(logging.Formatter):
    """Formats log messages as GitHub Actions commands so CI runs annotate them."""

    LEVEL_MAP = {
        logging.DEBUG: "::debug::",
        logging.INFO: "",
        logging.WARNING: "::warning::",
        logging.ERROR: "::error::",
        logging.CRITICAL: "::error::",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format the record with its workflow-command prefix."""
        prefix = self.LEVEL_MAP.get(record.levelno, "")
        message = super().format(record)
        return f"{prefix}{message}" if prefix else message


def setup_logging(debug: bool = False) -> logging.Logger:
    """
    Set up the ``spoofguard`` logger hierarchy.

    Diagnostics go to stderr so reports on stdout stay machine-readable.
    Calling this again only adjusts the level.

    Args:
        debug: Enable debug-level logging

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger("spoofguard")
    logger.setLevel(logging.DEBUG if debug else logging.INFO)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(GitHubActionsFormatter(fmt="[%(name)s] %(levelname)s: %(message)s"))
        logger.addHandler(handler)
    return logger
