"""
Storage handler for encrypted snapshot artifacts.

Uploads to AWS S3 under a configured folder:
{prefix}/{filename}
"""

import os
import posixpath
from typing import Optional

import boto3
from boto3.s3.transfer import TransferConfig
from botocore.exceptions import ClientError, BotoCoreError


class StorageError(Exception):
    """Raised when storage operation fails."""
    pass


class S3Storage:
    """
    Handler for uploading backups to AWS S3.

    Credentials come from the default boto3 chain (environment, shared
    config, instance or task role).
    """

    # Files above the threshold go up as multipart in 10MB chunks
    transfer_config = TransferConfig(
        multipart_threshold=100 * 1024 * 1024,
        multipart_chunksize=10 * 1024 * 1024
    )

    def __init__(self, bucket_name: str, region: str, prefix: Optional[str] = ''):
        """
        Initialize S3 storage handler.

        Args:
            bucket_name: S3 bucket name
            region: AWS region
            prefix: Folder inside the bucket (may be empty)
        """
        self.bucket_name = bucket_name
        self.region = region
        self.prefix = (prefix or '').strip('/')

        try:
            self.s3_client = boto3.client('s3', region_name=region)
        except Exception as e:
            raise StorageError(f"Failed to initialize S3 client: {e}")

    @classmethod
    def from_config(cls, config) -> 'S3Storage':
        return cls(config.aws_bucket, config.aws_region, config.bucket_folder)

    def build_key(self, local_path: str) -> str:
        """Object key for a local file: the configured prefix joined with its base name."""
        return posixpath.join(self.prefix, os.path.basename(local_path))

    def upload(self, local_path: str) -> str:
        """
        Upload an artifact to S3.

        Args:
            local_path: Path to local artifact

        Returns:
            Remote location (s3://bucket/key)

        Raises:
            StorageError: If upload fails
        """
        if not os.path.exists(local_path):
            raise StorageError(f"Local file not found: {local_path}")

        s3_key = self.build_key(local_path)

        try:
            with open(local_path, 'rb') as f:
                self.s3_client.upload_fileobj(
                    f,
                    self.bucket_name,
                    s3_key,
                    Config=self.transfer_config
                )

        except ClientError as e:
            error_code = e.response.get('Error', {}).get('Code', 'Unknown')
            raise StorageError(f"S3 upload failed ({error_code}): {e}")
        except BotoCoreError as e:
            raise StorageError(f"S3 upload failed: {e}")
        except Exception as e:
            raise StorageError(f"Failed to upload to S3: {e}")

        return f"s3://{self.bucket_name}/{s3_key}"
