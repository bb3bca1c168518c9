"""
Tests for configuration validation utilities.
"""

import pytest
import sys
from pathlib import Path
from unittest.mock import patch, MagicMock

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from ariadne.core.validation import check_dependencies, validate_configuration, validate_and_raise
from ariadne.core.exceptions import ConfigurationError


class TestCheckDependencies:
    """Tests for check_dependencies function."""

    @patch('importlib.import_module')
    def test_check_dependencies_all_installed(self, mock_import):
        """Test check_dependencies when all dependencies are installed."""
        mock_import.return_value = MagicMock()

        all_installed, missing = check_dependencies()

        assert all_installed is True
        assert missing == []

    @patch('importlib.import_module')
    def test_check_dependencies_missing_module(self, mock_import):
        """Test check_dependencies when a module is missing."""
        def side_effect(module_name):
            if module_name == "requests":
                raise ImportError("No module named 'requests'")
            return MagicMock()

        mock_import.side_effect = side_effect

        all_installed, missing = check_dependencies()

        assert all_installed is False
        assert missing == ["requests"]


class TestValidateConfiguration:
    """Tests for validate_configuration function."""

    @pytest.fixture(autouse=True)
    def deps_installed(self):
        with patch('ariadne.core.validation.check_dependencies', return_value=(True, [])):
            yield

    def test_validate_configuration_success(self):
        """Test validate_configuration with the default configuration."""
        with patch.dict('ariadne.core.validation.LOGGING_CONFIG', {"LEVEL": "INFO"}):
            is_valid, errors = validate_configuration()

        assert is_valid is True
        assert errors == []

    def test_validate_configuration_missing_dependencies(self):
        """Test validate_configuration with missing dependencies."""
        with patch('ariadne.core.validation.check_dependencies', return_value=(False, ["rich"])):
            is_valid, errors = validate_configuration()

        assert is_valid is False
        assert any("rich" in error for error in errors)

    def test_validate_configuration_unknown_policy(self):
        """Test that an unknown merge policy is rejected."""
        with patch.dict('ariadne.core.validation.MERGE_CONFIG', {"DEFAULT_POLICY": "replace"}):
            is_valid, errors = validate_configuration()

        assert is_valid is False
        assert any("DEFAULT_POLICY" in error for error in errors)

    def test_validate_configuration_too_many_workers(self):
        """Test that the worker limit is enforced."""
        with patch.dict('ariadne.core.validation.FETCH_CONFIG', {"MAX_WORKERS": 20}):
            is_valid, errors = validate_configuration()

        assert is_valid is False
        assert any("MAX_WORKERS" in error for error in errors)

    def test_validate_configuration_bad_deadline(self):
        """Test that a non-positive deadline is rejected."""
        with patch.dict('ariadne.core.validation.FETCH_CONFIG', {"DEADLINE_SECONDS": 0}):
            is_valid, errors = validate_configuration()

        assert is_valid is False
        assert any("DEADLINE" in error for error in errors)

    def test_validate_configuration_bad_log_level(self):
        """Test that an unknown log level is rejected."""
        with patch.dict('ariadne.core.validation.LOGGING_CONFIG', {"LEVEL": "LOUD"}):
            is_valid, errors = validate_configuration()

        assert is_valid is False
        assert any("LOG_LEVEL" in error for error in errors)


class TestValidateAndRaise:
    """Tests for validate_and_raise function."""

    def test_validate_and_raise_success(self):
        """Test that a valid configuration does not raise."""
        with patch('ariadne.core.validation.validate_configuration', return_value=(True, [])):
            validate_and_raise()

    def test_validate_and_raise_failure(self):
        """Test that errors are raised as ConfigurationError."""
        with patch('ariadne.core.validation.validate_configuration', return_value=(False, ["Error 1", "Error 2"])):
            with pytest.raises(ConfigurationError) as exc_info:
                validate_and_raise()

        assert "Error 1" in str(exc_info.value)
        assert "Error 2" in str(exc_info.value)
