"""
Snapshot encryption.

Streams the raw snapshot through an age encryptor for a single X25519
recipient and writes the result into the artifact directory as
dump-{RFC3339}.rdb.age.
"""

import os
import logging
from datetime import datetime, timezone

import pyrage
from pyrage import x25519


logger = logging.getLogger(__name__)

ARTIFACT_PREFIX = 'dump-'
ARTIFACT_SUFFIX = '.rdb.age'


class EncryptionError(Exception):
    """Raised when a snapshot cannot be encrypted."""
    pass


def generate_artifact_filename(now: datetime = None) -> str:
    """
    Generate the encrypted artifact filename.

    Format: dump-{YYYY-MM-DDTHH:MM:SSZ}.rdb.age

    Args:
        now: Timestamp to use (default: current UTC time)

    Returns:
        Filename (without path)
    """
    if now is None:
        now = datetime.now(timezone.utc)
    timestamp = now.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')
    return f"{ARTIFACT_PREFIX}{timestamp}{ARTIFACT_SUFFIX}"


def parse_recipient(public_key: str) -> x25519.Recipient:
    """
    Parse an age X25519 public key (age1...).

    Raises:
        EncryptionError: If the key is malformed
    """
    try:
        return x25519.Recipient.from_str(public_key.strip())
    except Exception as e:
        raise EncryptionError(f"Invalid recipient public key: {e}") from e


def encrypt(public_key: str, snapshot_path: str, output_dir: str = '.') -> str:
    """
    Encrypt a snapshot file for the given recipient.

    Args:
        public_key: age X25519 recipient string
        snapshot_path: Path to the raw snapshot
        output_dir: Directory to write the encrypted artifact to

    Returns:
        Path to the encrypted artifact

    Raises:
        EncryptionError: If the key, source file, or encryption fails
    """
    recipient = parse_recipient(public_key)

    artifact_path = os.path.join(output_dir, generate_artifact_filename())

    try:
        with open(snapshot_path, 'rb') as src:
            with open(artifact_path, 'wb') as dst:
                pyrage.encrypt_io(src, dst, [recipient])
        return artifact_path
    except Exception as e:
        # Remove the partial artifact so it never gets uploaded
        if os.path.exists(artifact_path):
            try:
                os.remove(artifact_path)
            except OSError as cleanup_error:
                logger.warning(f"Failed to remove partial artifact {artifact_path}: {cleanup_error}")
        raise EncryptionError(f"Failed to encrypt {snapshot_path}: {e}") from e
