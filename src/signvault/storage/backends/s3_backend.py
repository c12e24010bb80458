"""
S3 Storage Backend
==================

S3-compatible storage backend. Supports Amazon S3, MinIO, and other
S3-compatible services.

Requirements:
    pip install signvault[s3]
    # or
    pip install boto3

Usage:
    from signvault.storage.backends import get_storage_backend

    # Amazon S3
    backend = get_storage_backend("s3", bucket="my-vault", region="us-east-1")

    # MinIO
    backend = get_storage_backend(
        "s3",
        bucket="local-vault",
        endpoint_url="http://minio.internal:9000",
        access_key="minioadmin",
        secret_key="minioadmin",
        use_ssl=False,
    )
"""

import logging
from typing import Optional

from ...error_handling import NotFoundError, VaultStorageError, with_error_handling
from .base import StorageBackend

logger = logging.getLogger(__name__)


# Check for boto3 availability
try:
    import boto3
    from botocore.exceptions import ClientError

    BOTO3_AVAILABLE = True
except ImportError:
    BOTO3_AVAILABLE = False
    boto3 = None
    ClientError = None


def _error_code(error: Exception) -> str:
    return error.response.get("Error", {}).get("Code", "")


class S3StorageBackend(StorageBackend):
    """
    S3-compatible storage backend.

    Artifacts are stored as objects under ``{prefix}{key}``.

    Attributes:
        bucket: S3 bucket name
        prefix: Optional prefix (folder) for all objects
        region: AWS region (default: us-east-1)
        endpoint_url: Custom endpoint URL for S3-compatible services (MinIO)
    """

    def __init__(
        self,
        bucket: str,
        prefix: str = "",
        region: str = "us-east-1",
        endpoint_url: Optional[str] = None,
        use_ssl: bool = True,
        access_key: Optional[str] = None,
        secret_key: Optional[str] = None,
        **kwargs,
    ):
        """
        Initialize S3 storage backend.

        Args:
            bucket: S3 bucket name
            prefix: Optional key prefix (e.g., "vault/v1/")
            region: AWS region (default: us-east-1)
            endpoint_url: Custom endpoint for S3-compatible services (MinIO)
            use_ssl: Use HTTPS (default: True)
            access_key: AWS access key (optional, falls back to credential chain)
            secret_key: AWS secret key (optional, falls back to credential chain)
            **kwargs: Additional boto3 client options
        """
        if not BOTO3_AVAILABLE:
            raise ImportError(
                "boto3 is required for S3 backend. "
                "Install with: pip install signvault[s3] or pip install boto3"
            )

        self.bucket = bucket
        self.prefix = prefix.rstrip("/") + "/" if prefix else ""
        self.region = region
        self.endpoint_url = endpoint_url

        client_kwargs = {"region_name": region, "use_ssl": use_ssl}
        if endpoint_url:
            client_kwargs["endpoint_url"] = endpoint_url

        # Only add credentials if explicitly provided
        # Otherwise boto3 will use its credential chain
        if access_key and secret_key:
            client_kwargs["aws_access_key_id"] = access_key
            client_kwargs["aws_secret_access_key"] = secret_key
        client_kwargs.update(kwargs)

        self._client = boto3.client("s3", **client_kwargs)

        logger.debug(
            f"S3StorageBackend initialized: bucket={bucket}, prefix={self.prefix}, "
            f"region={region}, endpoint={endpoint_url}"
        )

    def _get_s3_key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    def describe(self, key: str) -> str:
        return f"s3://{self.bucket}/{self._get_s3_key(key)}"

    @with_error_handling(VaultStorageError)
    def write(self, key: str, data: bytes) -> str:
        """Put artifact object."""
        s3_key = self._get_s3_key(key)
        try:
            self._client.put_object(Bucket=self.bucket, Key=s3_key, Body=data)
        except ClientError as e:
            raise VaultStorageError(
                f"Failed to write artifact to S3: {e}", {"path": self.describe(key)}
            ) from e

        logger.debug(f"Wrote {len(data)} bytes to {self.describe(key)}")
        return self.describe(key)

    @with_error_handling(VaultStorageError)
    def read(self, key: str) -> bytes:
        """Get artifact object."""
        s3_key = self._get_s3_key(key)
        try:
            response = self._client.get_object(Bucket=self.bucket, Key=s3_key)
        except ClientError as e:
            if _error_code(e) in ("NoSuchKey", "404"):
                raise NotFoundError(
                    f"{self.describe(key)} not found.", {"path": self.describe(key)}
                ) from e
            raise VaultStorageError(
                f"Failed to read artifact from S3: {e}", {"path": self.describe(key)}
            ) from e
        return response["Body"].read()

    @with_error_handling(VaultStorageError)
    def exists(self, key: str) -> bool:
        """Check if artifact object exists."""
        try:
            self._client.head_object(Bucket=self.bucket, Key=self._get_s3_key(key))
            return True
        except ClientError as e:
            if _error_code(e) in ("NoSuchKey", "404"):
                return False
            raise VaultStorageError(
                f"Failed to check artifact in S3: {e}", {"path": self.describe(key)}
            ) from e

    @with_error_handling(VaultStorageError)
    def delete(self, key: str) -> bool:
        """Delete artifact object."""
        if not self.exists(key):
            return False
        try:
            self._client.delete_object(Bucket=self.bucket, Key=self._get_s3_key(key))
        except ClientError as e:
            raise VaultStorageError(
                f"Failed to delete artifact from S3: {e}", {"path": self.describe(key)}
            ) from e
        logger.debug(f"Deleted {self.describe(key)}")
        return True

    def close(self) -> None:
        """Close the underlying boto3 client."""
        close = getattr(self._client, "close", None)
        if callable(close):
            close()
