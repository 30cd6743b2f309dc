import os
import re
from typing import Mapping, NamedTuple, Optional


class ConfigError(Exception):
    """Raised when the environment does not describe a usable configuration."""
    pass


# Go-style duration units, in seconds
_DURATION_UNITS = {
    'ns': 1e-9,
    'us': 1e-6,
    'µs': 1e-6,  # U+00B5 micro sign
    'μs': 1e-6,  # U+03BC Greek mu
    'ms': 1e-3,
    's': 1.0,
    'm': 60.0,
    'h': 3600.0,
}

_DURATION_PART = re.compile(r'(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)')


def parse_duration(text: str) -> float:
    """
    Parse a duration string such as ``1h``, ``30m``, ``1h30m`` or ``1.5s``.

    Args:
        text: Duration string

    Returns:
        Duration in seconds

    Raises:
        ConfigError: If the string is empty or malformed
    """
    value = (text or '').strip()
    if not value:
        raise ConfigError("Duration is empty")

    sign = 1.0
    if value[0] in '+-':
        sign = -1.0 if value[0] == '-' else 1.0
        value = value[1:]

    if value == '0':
        return 0.0

    total = 0.0
    position = 0
    while position < len(value):
        match = _DURATION_PART.match(value, position)
        if not match:
            raise ConfigError(f"Invalid duration: {text!r}")
        total += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
        position = match.end()

    if position == 0:
        raise ConfigError(f"Invalid duration: {text!r}")

    return sign * total


class Config(NamedTuple):
    """Sidecar configuration, loaded once at startup."""

    database_address: str
    database_username: Optional[str]
    database_password: Optional[str]
    frequency: str
    interval_seconds: float
    public_key: str
    aws_region: str
    aws_bucket: str
    bucket_folder: str
    retry_wait_seconds: int
    log_level: str = 'INFO'
    log_dir: Optional[str] = None
    artifact_dir: str = '.'

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Config':
        """
        Build configuration from environment variables.

        Args:
            environ: Mapping to read from (default: os.environ)

        Returns:
            Validated Config

        Raises:
            ConfigError: If a required value is missing or a value is malformed
        """
        if environ is None:
            environ = os.environ

        missing = [
            name for name in ('BACKUP_FREQUENCY', 'PUBLIC_KEY', 'AWS_REGION', 'AWS_BUCKET')
            if not environ.get(name)
        ]
        if missing:
            raise ConfigError(f"Missing required environment variables: {', '.join(missing)}")

        frequency = environ['BACKUP_FREQUENCY']
        try:
            interval_seconds = parse_duration(frequency)
        except ConfigError as e:
            raise ConfigError(f"Failed to parse backup frequency: {e}") from e
        if interval_seconds <= 0:
            raise ConfigError(f"Backup frequency must be positive, got {frequency!r}")

        raw_wait = environ.get('RETRY_WAIT_TIME_IN_SECONDS') or '10'
        try:
            retry_wait_seconds = int(raw_wait)
        except ValueError as e:
            raise ConfigError(f"RETRY_WAIT_TIME_IN_SECONDS must be an integer, got {raw_wait!r}") from e
        if retry_wait_seconds <= 0:
            raise ConfigError(f"RETRY_WAIT_TIME_IN_SECONDS must be positive, got {retry_wait_seconds}")

        return cls(
            database_address=environ.get('DATABASE_CONNECTIONSTRING') or 'localhost:6379',
            database_username=environ.get('DATABASE_USERNAME') or None,
            database_password=environ.get('DATABASE_PASSWORD') or None,
            frequency=frequency,
            interval_seconds=interval_seconds,
            public_key=environ['PUBLIC_KEY'].strip(),
            aws_region=environ['AWS_REGION'],
            aws_bucket=environ['AWS_BUCKET'],
            bucket_folder=environ.get('AWS_BUCKET_FOLDER', ''),
            retry_wait_seconds=retry_wait_seconds,
            log_level=(environ.get('LOG_LEVEL') or 'INFO').upper(),
            log_dir=environ.get('LOG_DIR') or None,
            artifact_dir=environ.get('ARTIFACT_DIR') or '.',
        )
