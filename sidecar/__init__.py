import os
import logging
from logging.handlers import RotatingFileHandler

from sidecar.config import Config


def configure_logging(config: Config):
    """Configure process logging"""

    log_level = getattr(logging, config.log_level, logging.INFO)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_formatter = logging.Formatter(
        '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
    )
    console_handler.setFormatter(console_formatter)
    handlers = [console_handler]

    # File handler, only when a log directory is configured
    if config.log_dir:
        os.makedirs(config.log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(config.log_dir, 'sidecar.log'),
            maxBytes=10485760,  # 10MB
            backupCount=10
        )
        file_handler.setLevel(log_level)
        file_formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s [%(name)s.%(funcName)s:%(lineno)d] %(message)s'
        )
        file_handler.setFormatter(file_formatter)
        handlers.append(file_handler)

    logging.basicConfig(level=log_level, handlers=handlers, force=True)

    logging.getLogger(__name__).info(f"Logging configured (level: {logging.getLevelName(log_level)})")


def create_sidecar(environ=None):
    """
    Sidecar factory.

    Loads configuration, configures logging and returns a ready BackupLoop.
    Raises ConfigError before anything touches the network.
    """
    config = Config.from_env(environ)

    configure_logging(config)

    # Artifacts are written here before upload
    os.makedirs(config.artifact_dir, exist_ok=True)

    from sidecar.loop import BackupLoop
    return BackupLoop(config)
