"""
Tests for logging configuration.
"""

import pytest
import sys
import logging
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ariadne.core.logger import setup_logging, get_logger


class TestSetupLogging:
    """Tests for setup_logging function."""

    def test_setup_logging_default(self):
        """Test setup_logging with default parameters."""
        logger = setup_logging()

        assert logger.name == "ariadne"
        assert isinstance(logger, logging.Logger)
        assert logger.propagate is False

    def test_setup_logging_custom_level(self):
        """Test setup_logging with custom level."""
        logger = setup_logging(level="DEBUG")

        assert logger.level == logging.DEBUG

    def test_setup_logging_lowercase_level(self):
        """Test that level names are case-insensitive."""
        logger = setup_logging(level="warning")

        assert logger.level == logging.WARNING

    def test_setup_logging_disable_console(self):
        """Test setup_logging with console disabled."""
        logger = setup_logging(enable_console=False)

        assert logger.handlers == []

    def test_setup_logging_removes_existing_handlers(self):
        """Test that repeated setup does not stack handlers."""
        setup_logging()
        logger = setup_logging()

        assert len(logger.handlers) == 1

    def test_setup_logging_invalid_level(self):
        """Test setup_logging with invalid level."""
        logger = setup_logging(level="INVALID_LEVEL")
        assert logger.level == logging.INFO


class TestGetLogger:
    """Tests for get_logger function."""

    def test_get_logger_creates_logger(self):
        """Test that get_logger creates a namespaced logger."""
        logger = get_logger("test_module")

        assert logger.name == "ariadne.test_module"

    def test_get_logger_sets_up_main_logger(self):
        """Test that get_logger sets up main logger if needed."""
        main_logger = logging.getLogger("ariadne")
        main_logger.handlers.clear()

        get_logger("test_module")

        assert len(main_logger.handlers) > 0

    def test_get_logger_same_module_returns_same_logger(self):
        """Test that get_logger returns same logger for same module."""
        assert get_logger("test_module") is get_logger("test_module")


class TestThirdPartyLoggers:
    """Tests for the handling of HTTP library loggers."""

    def test_quiet_by_default(self):
        """Test that urllib3 is held at WARNING at INFO level."""
        setup_logging(level="INFO")
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_debug_lets_them_through(self):
        """Test that debug logging includes HTTP details."""
        setup_logging(level="DEBUG")
        assert logging.getLogger("urllib3").level == logging.DEBUG
        setup_logging(level="INFO")
