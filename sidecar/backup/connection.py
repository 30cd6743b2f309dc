"""
Store connection handling.

Wraps a single-connection redis client and exposes only the commands the
sidecar needs. Client exceptions are translated so callers can tell a lost
connection apart from every other store failure.
"""

import logging
from datetime import datetime
from typing import Any, Dict

import redis
from redis.exceptions import ConnectionError as RedisConnectionError, RedisError

from sidecar.config import Config


logger = logging.getLogger(__name__)

CLIENT_NAME = 'redis-backup-sidecar'


class StoreError(Exception):
    """Raised when a store command fails."""
    pass


class ConnectionClosedError(StoreError):
    """Raised when the store connection was reset or closed by the remote end."""
    pass


class StoreConnection:
    """
    Long-lived handle to the key-value store.

    Owned by the backup loop for the process lifetime and replaced wholesale
    on reconnect.
    """

    def __init__(self, client: redis.Redis):
        self.client = client

    def _call(self, description: str, command, *args, **kwargs):
        try:
            return command(*args, **kwargs)
        except RedisConnectionError as e:
            raise ConnectionClosedError(f"Connection lost during {description}: {e}") from e
        except RedisError as e:
            raise StoreError(f"{description} failed: {e}") from e

    def set_name(self, name: str = CLIENT_NAME):
        """Label the connection (CLIENT SETNAME)."""
        self._call('CLIENT SETNAME', self.client.client_setname, name)

    def replication_info(self) -> Dict[str, Any]:
        """Return the replication section of INFO."""
        return self._call('INFO replication', self.client.info, 'replication')

    def last_save(self) -> datetime:
        """Return the time of the last successful save (LASTSAVE)."""
        return self._call('LASTSAVE', self.client.lastsave)

    def trigger_save(self):
        """Start a background save (BGSAVE). Returns immediately."""
        return self._call('BGSAVE', self.client.bgsave)

    def working_dir(self) -> str:
        """Return the store's configured working directory (CONFIG GET dir)."""
        result = self._call('CONFIG GET dir', self.client.config_get, 'dir')
        directory = result.get('dir') if result else None
        if not directory:
            raise StoreError("CONFIG GET dir returned no directory")
        return directory

    def close(self):
        """Close the connection, ignoring errors from an already dead socket."""
        try:
            self.client.close()
        except RedisError as e:
            logger.warning(f"Error while closing store connection: {e}")


def _build_client(config: Config) -> redis.Redis:
    address = config.database_address

    if '://' in address:
        return redis.Redis.from_url(
            address,
            username=config.database_username,
            password=config.database_password,
            single_connection_client=True,
            decode_responses=True
        )

    host, _, port = address.rpartition(':')
    if not host:
        host, port = address, '6379'

    try:
        port_number = int(port)
    except ValueError:
        raise StoreError(f"Invalid store address: {address}")

    return redis.Redis(
        host=host,
        port=port_number,
        username=config.database_username,
        password=config.database_password,
        single_connection_client=True,
        decode_responses=True
    )


def connect(config: Config) -> StoreConnection:
    """
    Open and label a connection to the store.

    Args:
        config: Sidecar configuration

    Returns:
        Connected StoreConnection

    Raises:
        StoreError: If the connection cannot be opened or labelled
    """
    try:
        # A single-connection client opens its socket in the constructor
        client = _build_client(config)
    except RedisError as e:
        raise StoreError(f"Failed to connect to store at {config.database_address}: {e}") from e

    connection = StoreConnection(client)

    try:
        connection.set_name(CLIENT_NAME)
    except StoreError as e:
        connection.close()
        # Never a recoverable disconnect: nothing was connected yet
        raise StoreError(f"Failed to connect to store at {config.database_address}: {e}") from e

    logger.info(f"Connected to store at {config.database_address} as {CLIENT_NAME}")
    return connection
