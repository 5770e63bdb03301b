"""Tests for logging configuration."""

import logging

from spoofguard.logging_setup import GitHubActionsFormatter, setup_logging


def _record(level):
    return logging.LogRecord("spoofguard.risk", level, __file__, 1, "hello", None, None)


class TestGitHubActionsFormatter:
    """Tests for GitHubActionsFormatter."""

    def test_prefixes(self):
        """Test that warnings and errors become workflow commands."""
        formatter = GitHubActionsFormatter(fmt="%(message)s")
        assert formatter.format(_record(logging.WARNING)) == "::warning::hello"
        assert formatter.format(_record(logging.ERROR)) == "::error::hello"
        assert formatter.format(_record(logging.DEBUG)) == "::debug::hello"

    def test_info_unprefixed(self):
        """Test that info messages are left as-is."""
        formatter = GitHubActionsFormatter(fmt="%(message)s")
        assert formatter.format(_record(logging.INFO)) == "hello"


class TestSetupLogging:
    """Tests for setup_logging."""

    def test_levels_and_single_handler(self):
        """Test level switching without stacking handlers."""
        logger = setup_logging(debug=True)
        handlers = len(logger.handlers)
        assert logger.level == logging.DEBUG

        logger = setup_logging()
        assert logger.level == logging.INFO
        assert len(logger.handlers) == handlers
