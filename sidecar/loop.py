"""
Backup loop for the sidecar.

Connects once, then forever: check leadership, run a backup cycle when this
node is master, sleep for the configured interval. The only failure it
recovers from is a lost store connection, and only once per process; every
other error ends the process so the supervisor can restart it.
"""

import time
import logging
from typing import Callable, Optional

from sidecar.config import Config
from sidecar.backup.connection import connect, StoreConnection, ConnectionClosedError
from sidecar.backup.leadership import is_leader
from sidecar.backup.executor import BackupExecutor


logger = logging.getLogger(__name__)


class BackupLoop:
    """
    Process-wide control loop. Owns the store connection.
    """

    def __init__(
        self,
        config: Config,
        connector: Callable[[Config], StoreConnection] = connect,
        executor_factory=BackupExecutor,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Args:
            config: Sidecar configuration
            connector: Opens a store connection from config
            executor_factory: Builds the per-cycle executor from (connection, config, sleep=...)
            sleep: Blocking sleep used between cycles and save polls
        """
        self.config = config
        self.connector = connector
        self.executor_factory = executor_factory
        self.sleep = sleep
        self.connection: Optional[StoreConnection] = None
        self.reconnected = False

    def run_once(self) -> Optional[str]:
        """
        Run a single cycle on the current connection.

        Returns:
            Remote location of the uploaded backup, or None when not master
        """
        if not is_leader(self.connection):
            logger.info("Not a master node, skipping operation")
            return None

        executor = self.executor_factory(self.connection, self.config, sleep=self.sleep)
        return executor.execute()

    def run(self):
        """
        Connect and loop until an error escapes.

        Raises:
            StoreError: If connecting fails or a store command fails
            Exception: Any error raised by a backup cycle
        """
        self.connection = self.connector(self.config)

        try:
            while True:
                self.run_once()
                self.sleep(self.config.interval_seconds)
        finally:
            self.connection.close()
            self.connection = None

    def run_forever(self):
        """
        Run the loop, reconnecting once if the store connection is lost.

        A second lost connection, or any other error, propagates.
        """
        while True:
            try:
                self.run()
            except ConnectionClosedError as e:
                if self.reconnected:
                    raise
                self.reconnected = True
                logger.warning(f"Connection closed, reconnecting... ({e})")
