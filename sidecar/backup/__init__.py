"""
Backup module for the sidecar.

This module handles one backup cycle:
- Store connection and leadership detection
- BGSAVE trigger and completion polling
- age encryption
- S3 upload
"""

from .connection import connect, StoreConnection, StoreError, ConnectionClosedError
from .leadership import is_leader
from .snapshot import BackupCycle, SnapshotPoller, SnapshotTimeoutError
from .encryption import encrypt, EncryptionError
from .storage import S3Storage, StorageError
from .executor import BackupExecutor

__all__ = [
    'connect',
    'StoreConnection',
    'StoreError',
    'ConnectionClosedError',
    'is_leader',
    'BackupCycle',
    'SnapshotPoller',
    'SnapshotTimeoutError',
    'encrypt',
    'EncryptionError',
    'S3Storage',
    'StorageError',
    'BackupExecutor'
]
