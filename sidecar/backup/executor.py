"""
Backup executor - runs one complete backup cycle.

Workflow:
1. Trigger BGSAVE and wait for LASTSAVE to change
2. Encrypt the snapshot into a local artifact
3. Upload the artifact to S3
4. Delete the local artifact

Every failure except the final cleanup propagates to the caller.
"""

import os
import time
import logging
from typing import Callable, Optional

from sidecar.config import Config
from .connection import StoreConnection
from .snapshot import BackupCycle, SnapshotPoller
from .encryption import encrypt
from .storage import S3Storage


logger = logging.getLogger(__name__)


class BackupExecutor:
    """
    Orchestrates the snapshot, encrypt and upload steps for one cycle.
    """

    def __init__(
        self,
        connection: StoreConnection,
        config: Config,
        storage: Optional[S3Storage] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Initialize backup executor.

        Args:
            connection: Open store connection, owned by the caller
            config: Sidecar configuration
            storage: Upload target (default: built from config)
            sleep: Blocking sleep used between save polls
        """
        self.connection = connection
        self.config = config
        self.storage = storage
        self.sleep = sleep
        self.cycle = BackupCycle(config.retry_wait_seconds)

    def execute(self) -> str:
        """
        Execute the backup cycle.

        Returns:
            Remote location of the uploaded artifact

        Raises:
            SnapshotTimeoutError: If the background save never completed
            StoreError: If a store command failed
            EncryptionError: If the snapshot could not be encrypted
            StorageError: If the upload failed (the local artifact is kept)
        """
        logger.info("Running backup ...")

        # Step 1: Snapshot
        poller = SnapshotPoller(self.config, sleep=self.sleep)
        snapshot_path = poller.run(self.connection, self.cycle)

        # Step 2: Encrypt
        self.cycle.artifact_path = encrypt(
            self.config.public_key,
            snapshot_path,
            self.config.artifact_dir
        )
        logger.info(f"Encrypted snapshot: {self.cycle.artifact_path}")

        # Step 3: Upload
        if self.storage is None:
            self.storage = S3Storage.from_config(self.config)
        location = self.storage.upload(self.cycle.artifact_path)
        logger.info(f"Successfully uploaded backup to {location}")

        # Step 4: Cleanup
        self._cleanup()

        logger.info(f"Backup done, waiting {self.config.frequency} for next..")
        return location

    def _cleanup(self):
        """Remove the local encrypted artifact."""
        try:
            os.remove(self.cycle.artifact_path)
        except OSError as e:
            logger.warning(f"Failed to delete encrypted backup file {self.cycle.artifact_path}: {e}")
