from __future__ import annotations

from functools import lru_cache
from typing import Optional, Tuple
from urllib.parse import urlparse

import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import settings

logger = structlog.get_logger(__name__)


class StorageError(Exception):
    pass


def parse_storage_uri(storage_uri: str) -> Tuple[str, str]:
    """Split ``s3://bucket/key`` into ``(bucket, key)``."""
    parsed = urlparse(storage_uri)
    if parsed.scheme != "s3":
        raise StorageError(f"Unsupported storage URI scheme: {storage_uri}")
    key = parsed.path.lstrip("/")
    if not parsed.netloc or not key:
        raise StorageError(f"Storage URI is missing a bucket or key: {storage_uri}")
    return parsed.netloc, key


class S3BundleStorage:
    def __init__(self, bucket: str,
                 region: str,
                 access_key: str,
                 secret_key: str,
                 endpoint_url: Optional[str] = None):
        self.bucket = bucket
        self.region = region
        self.endpoint_url = endpoint_url

        self.client = boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            aws_access_key_id=access_key,
            aws_secret_access_key=secret_key,
            config=Config(
                signature_version="s3v4",
                region_name=region,
            ),
        )

    def delete(self, storage_uri: str) -> None:
        """Delete the bundle archive behind ``storage_uri``."""
        bucket, key = parse_storage_uri(storage_uri)
        if bucket != self.bucket:
            raise StorageError(f"Bundle is stored in bucket {bucket!r}, expected {self.bucket!r}")

        try:
            self.client.delete_object(Bucket=bucket, Key=key)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"Failed to delete {storage_uri}: {e}") from e
        logger.info("bundle_object_deleted", bucket=bucket, key=key)


@lru_cache(maxsize=1)
def get_storage() -> S3BundleStorage:
    return S3BundleStorage(
        bucket=settings.S3_BUCKET_NAME,
        region=settings.AWS_REGION,
        access_key=settings.AWS_ACCESS_KEY_ID,
        secret_key=settings.AWS_SECRET_ACCESS_KEY,
        endpoint_url=settings.R2_ENDPOINT,
    )
