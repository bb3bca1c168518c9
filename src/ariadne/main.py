"""
Ariadne - Music Catalog Merge Engine
Main entry point.
"""

import sys
from pathlib import Path

try:
    _package = __package__
except NameError:
    _package = None

if not _package:
    _script_path = Path(__file__).resolve()
    src_path = _script_path.parent.parent
    if str(src_path) not in sys.path:
        sys.path.insert(0, str(src_path))
    from ariadne.core import setup_logging
    from ariadne.core.validation import validate_and_raise
    from ariadne.ui.cli import AriadneCLI
else:
    from .core import setup_logging
    from .core.validation import validate_and_raise
    from .ui.cli import AriadneCLI

logger = setup_logging()


def main(args=None):
    """Main entry point."""
    logger.debug("Starting Ariadne")
    try:
        try:
            validate_and_raise()
            logger.debug("Configuration validation passed")
        except Exception as e:
            logger.error(f"Configuration validation failed: {e}")
            raise

        cli = AriadneCLI()
        sys.exit(cli.run(args))
    except KeyboardInterrupt:
        logger.debug("Application interrupted by user")
        raise
    finally:
        logger.debug("Application shutting down")


if __name__ == "__main__":
    main()
