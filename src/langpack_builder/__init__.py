"""
langpack-builder - Download translations and build Java properties language packs.
"""

import asyncio
import sys
from .main import main as async_main


def main() -> None:
    """Synchronous entry point that runs the async main function."""
    try:
        exit_code = asyncio.run(async_main())
    except KeyboardInterrupt:
        # Logging is set up in main(), so this should work
        import logging

        logger = logging.getLogger(__name__)
        logger.info("Build cancelled by user")
        exit_code = 1
    sys.exit(exit_code)


__all__ = ["main"]
