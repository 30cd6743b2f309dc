"""
Snapshot trigger and completion polling.

BGSAVE is fire-and-forget, so completion is detected by watching LASTSAVE
change. Polls back off exponentially and give up after a fixed number of
attempts.
"""

import os
import time
import logging
from datetime import datetime
from typing import Callable, Optional

from sidecar.config import Config
from .connection import StoreConnection


logger = logging.getLogger(__name__)

MAX_POLL_ATTEMPTS = 5
SNAPSHOT_FILENAME = 'dump.rdb'


class SnapshotTimeoutError(Exception):
    """Raised when the background save does not complete within the retry budget."""
    pass


class BackupCycle:
    """
    State of a single backup iteration.

    Created at the start of a cycle and dropped at its end.
    """

    def __init__(self, retry_wait_seconds: int):
        self.previous_save: Optional[datetime] = None
        self.attempt = 0
        self.wait_seconds = retry_wait_seconds
        self.snapshot_path: Optional[str] = None
        self.artifact_path: Optional[str] = None


class SnapshotPoller:
    """
    Triggers a background save and waits for it to land on disk.
    """

    def __init__(self, config: Config, sleep: Callable[[float], None] = time.sleep):
        """
        Args:
            config: Sidecar configuration (uses retry_wait_seconds)
            sleep: Blocking sleep function, replaceable in tests
        """
        self.config = config
        self.sleep = sleep

    def run(self, connection: StoreConnection, cycle: Optional[BackupCycle] = None) -> str:
        """
        Run BGSAVE and wait for LASTSAVE to move.

        Args:
            connection: Open store connection
            cycle: Cycle state to record progress in (created if omitted)

        Returns:
            Path of the raw snapshot file on the store host

        Raises:
            SnapshotTimeoutError: If LASTSAVE did not change after MAX_POLL_ATTEMPTS reads
            StoreError: If any store command fails
        """
        if cycle is None:
            cycle = BackupCycle(self.config.retry_wait_seconds)

        cycle.previous_save = connection.last_save()

        result = connection.trigger_save()
        logger.info(f"BGSAVE: {result}")

        while True:
            cycle.attempt += 1
            current = connection.last_save()

            if current != cycle.previous_save:
                break

            if cycle.attempt >= MAX_POLL_ATTEMPTS:
                # Something may be wrong with the store; stop and let an operator look
                raise SnapshotTimeoutError(
                    f"Timed out waiting for BGSAVE to complete after {cycle.attempt} attempts, "
                    f"try increasing RETRY_WAIT_TIME_IN_SECONDS"
                )

            logger.debug(f"Save not finished (attempt {cycle.attempt}), waiting {cycle.wait_seconds}s")
            self.sleep(cycle.wait_seconds)
            cycle.wait_seconds += cycle.wait_seconds

        logger.info("Successfully saved snapshot")

        cycle.snapshot_path = os.path.join(connection.working_dir(), SNAPSHOT_FILENAME)
        logger.info(f"Snapshot file: {cycle.snapshot_path}")
        return cycle.snapshot_path
