"""
Shared pytest fixtures for sidecar tests.

This module provides fixtures for:
- Environment and Config values
- Mocked redis client and StoreConnection
- age identities for real encryption round-trips
- Mock S3 via moto
- Temporary snapshot files
"""

import logging
from datetime import datetime
from unittest.mock import MagicMock

import pytest
import boto3
from moto import mock_aws
from pyrage import x25519

from sidecar.config import Config
from sidecar.backup.connection import StoreConnection


@pytest.fixture
def age_identity():
    """Fresh age X25519 identity (private key)."""
    return x25519.Identity.generate()


@pytest.fixture
def public_key(age_identity):
    """Recipient string (age1...) matching age_identity."""
    return str(age_identity.to_public())


@pytest.fixture
def env(public_key):
    """
    Minimal valid environment.

    Interval: 1h, retry base wait: 10s
    """
    return {
        'DATABASE_CONNECTIONSTRING': 'localhost:6379',
        'BACKUP_FREQUENCY': '1h',
        'PUBLIC_KEY': public_key,
        'AWS_REGION': 'us-east-1',
        'AWS_BUCKET': 'test-bucket',
        'AWS_BUCKET_FOLDER': 'redis/backups',
        'RETRY_WAIT_TIME_IN_SECONDS': '10',
    }


@pytest.fixture
def config(env, tmp_path):
    """Config built from env, writing artifacts under tmp_path/artifacts."""
    artifact_dir = tmp_path / 'artifacts'
    artifact_dir.mkdir()
    return Config.from_env(env)._replace(artifact_dir=str(artifact_dir))


@pytest.fixture
def snapshot_file(tmp_path):
    """
    Fake store working directory with a dump.rdb inside.

    Returns the directory path.
    """
    data_dir = tmp_path / 'data'
    data_dir.mkdir()
    (data_dir / 'dump.rdb').write_bytes(b'REDIS0011' + b'\x00snapshot-bytes' * 256)
    return data_dir


@pytest.fixture
def mock_redis_client(snapshot_file):
    """
    MagicMock standing in for redis.Redis.

    Reports role:master, a fixed LASTSAVE, and snapshot_file as its dir.
    """
    client = MagicMock()
    client.info.return_value = {'role': 'master', 'connected_slaves': 0}
    client.lastsave.return_value = datetime(2024, 1, 15, 12, 0, 0)
    client.bgsave.return_value = True
    client.config_get.return_value = {'dir': str(snapshot_file)}
    return client


@pytest.fixture
def connection(mock_redis_client):
    """StoreConnection over the mocked redis client."""
    return StoreConnection(mock_redis_client)


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake AWS credentials so boto3 never reaches a real account."""
    monkeypatch.setenv('AWS_ACCESS_KEY_ID', 'testing')
    monkeypatch.setenv('AWS_SECRET_ACCESS_KEY', 'testing')
    monkeypatch.setenv('AWS_SECURITY_TOKEN', 'testing')
    monkeypatch.setenv('AWS_SESSION_TOKEN', 'testing')
    monkeypatch.setenv('AWS_DEFAULT_REGION', 'us-east-1')


@pytest.fixture
def mock_s3(aws_credentials):
    """
    Mock AWS S3 service using moto.

    Creates a test bucket 'test-bucket' in us-east-1 region.
    """
    with mock_aws():
        s3 = boto3.resource('s3', region_name='us-east-1')
        s3.create_bucket(Bucket='test-bucket')
        yield s3


@pytest.fixture
def restore_root_logger():
    """Put the root logger's handlers and level back after a logging test."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
