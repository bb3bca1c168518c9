"""
Configuration validation utilities.
"""

import importlib
from typing import List, Tuple
from .config import (
    MERGE_CONFIG,
    FETCH_CONFIG,
    LOGGING_CONFIG,
    API_LIMITS,
    REPORT_CONFIG,
    LYRICS_PLACEHOLDER_CONFIG,
)
from .exceptions import ConfigurationError

VALID_POLICIES = ["fill_missing", "overwrite"]


def check_dependencies() -> Tuple[bool, List[str]]:
    """
    Check if all required dependencies are installed.

    Returns:
        Tuple of (all_installed, list_of_missing_dependencies)
    """
    required_packages = {
        "requests": "requests",
        "rich": "rich",
    }

    missing = []
    for module_name, package_name in required_packages.items():
        try:
            importlib.import_module(module_name)
        except ImportError:
            missing.append(package_name)

    return len(missing) == 0, missing


def validate_configuration() -> Tuple[bool, List[str]]:
    """
    Validate application configuration.

    Returns:
        Tuple of (is_valid, list_of_errors)
    """
    errors = []

    deps_ok, missing_deps = check_dependencies()
    if not deps_ok:
        errors.append(
            f"Missing required dependencies: {', '.join(missing_deps)}. "
            f"Please install them with: pip install -e ."
        )

    if MERGE_CONFIG["DEFAULT_POLICY"] not in VALID_POLICIES:
        errors.append(f"DEFAULT_POLICY must be one of: {', '.join(VALID_POLICIES)}")

    if MERGE_CONFIG["MIN_CONTAINMENT_LENGTH"] < 1:
        errors.append("MIN_CONTAINMENT_LENGTH must be >= 1")

    if FETCH_CONFIG["MAX_WORKERS"] < 1:
        errors.append("FETCH MAX_WORKERS must be >= 1")

    if FETCH_CONFIG["MAX_WORKERS"] > FETCH_CONFIG["MAX_WORKERS_LIMIT"]:
        errors.append(f"FETCH MAX_WORKERS must be <= {FETCH_CONFIG['MAX_WORKERS_LIMIT']}")

    deadline = FETCH_CONFIG["DEADLINE_SECONDS"]
    if deadline is not None and deadline <= 0:
        errors.append("FETCH DEADLINE_SECONDS must be > 0")

    if API_LIMITS["MAX_RETRIES"] < 0:
        errors.append("MAX_RETRIES must be >= 0")

    if REPORT_CONFIG["MAX_SAMPLES"] < 0:
        errors.append("REPORT MAX_SAMPLES must be >= 0")

    if not LYRICS_PLACEHOLDER_CONFIG["PLACEHOLDER"].strip():
        errors.append("LYRICS PLACEHOLDER must not be empty")

    valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
    if LOGGING_CONFIG["LEVEL"] not in valid_log_levels:
        errors.append(f"LOG_LEVEL must be one of: {', '.join(valid_log_levels)}")

    is_valid = len(errors) == 0
    return is_valid, errors


def validate_and_raise():
    """
    Validate configuration and raise ConfigurationError if invalid.
    """
    is_valid, errors = validate_configuration()
    if not is_valid:
        error_msg = "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
        raise ConfigurationError(error_msg)
