"""Command line entry point for the sidecar."""

import logging

from sidecar import create_sidecar
from sidecar.config import ConfigError


logger = logging.getLogger(__name__)


def main(environ=None) -> int:
    """
    Start the sidecar and block until it dies.

    Returns:
        Process exit code (non-zero on any fatal condition)
    """
    try:
        loop = create_sidecar(environ)
    except ConfigError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1
    except OSError as e:
        logger.critical(f"Fatal error: failed to prepare artifact directory: {e}")
        return 1

    try:
        loop.run_forever()
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        return 130
    except Exception as e:
        logger.critical(f"Fatal error: {e}", exc_info=True)
        return 1

    return 0
