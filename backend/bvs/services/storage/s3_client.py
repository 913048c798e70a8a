"""
AWS S3 client wrapper with error handling.

This module provides a thin wrapper over the boto3 S3 client with retry logic
for transient failures and translation of botocore errors into the BVS
storage exceptions.
"""

import time
from functools import lru_cache
from typing import Any, Optional

import boto3
from botocore.exceptions import (
    BotoCoreError,
    ClientError,
    ConnectionError as BotoConnectionError,
    EndpointConnectionError,
)

from bvs.core.config import get_settings
from bvs.core.exceptions import FileNotFoundInStorageError, StorageError
from bvs.core.logging import get_logger

logger = get_logger(__name__)

_NOT_FOUND_CODES = frozenset({"NoSuchKey", "404", "NotFound"})
_RETRYABLE_CODES = frozenset(
    {
        "SlowDown",
        "Throttling",
        "ThrottlingException",
        "RequestTimeout",
        "InternalError",
        "ServiceUnavailable",
        "500",
        "503",
    }
)


class S3Client:
    """
    AWS S3 client wrapper with error handling and retry logic.

    All objects live in a single bucket; keys are supplied by the caller.
    """

    def __init__(
        self,
        bucket_name: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        region_name: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        max_retries: int = 3,
        retry_backoff: float = 0.5,
    ) -> None:
        """
        Initialize S3 client.

        Args:
            bucket_name: Target bucket (defaults to settings)
            aws_access_key_id: AWS access key ID (defaults to settings)
            aws_secret_access_key: AWS secret access key (defaults to settings)
            region_name: AWS region name (defaults to settings)
            endpoint_url: Custom endpoint, e.g. LocalStack or MinIO
            max_retries: Maximum number of attempts per call
            retry_backoff: Initial backoff time in seconds for retries
        """
        settings = get_settings()

        self.bucket_name = bucket_name or settings.s3_bucket_name
        self.max_retries = max_retries
        self.retry_backoff = retry_backoff

        self._client = boto3.client(
            "s3",
            aws_access_key_id=aws_access_key_id or settings.aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key
            or settings.aws_secret_access_key,
            region_name=region_name or settings.aws_region,
            endpoint_url=endpoint_url or settings.aws_endpoint_url,
        )

        logger.info(
            "S3 client initialized",
            bucket=self.bucket_name,
            region=region_name or settings.aws_region,
            max_retries=max_retries,
        )

    def _call(self, operation: str, key: str, **params: Any) -> Any:
        """
        Invoke an S3 operation with retries.

        Raises:
            FileNotFoundInStorageError: If the key does not exist
            StorageError: On any other failure, after retries where allowed
        """
        method = getattr(self._client, operation)
        last_exception: Optional[Exception] = None

        for attempt in range(self.max_retries):
            try:
                return method(Bucket=self.bucket_name, Key=key, **params)

            except ClientError as e:
                error_code = str(e.response.get("Error", {}).get("Code", "Unknown"))
                error_message = e.response.get("Error", {}).get("Message", str(e))

                if error_code in _NOT_FOUND_CODES:
                    raise FileNotFoundInStorageError(key) from e

                logger.warning(
                    "S3 client error",
                    operation=operation,
                    attempt=attempt + 1,
                    key=key,
                    error_code=error_code,
                    error_message=error_message,
                )
                last_exception = e

                if error_code not in _RETRYABLE_CODES:
                    raise StorageError(
                        f"S3 {operation} failed: {error_message}",
                        error_code=error_code,
                        key=key,
                    ) from e

            except (BotoConnectionError, EndpointConnectionError, BotoCoreError) as e:
                logger.warning(
                    "S3 connection error",
                    operation=operation,
                    attempt=attempt + 1,
                    key=key,
                    error=str(e),
                )
                last_exception = e

            if attempt < self.max_retries - 1:
                time.sleep(self.retry_backoff * (2**attempt))

        raise StorageError(
            f"S3 {operation} failed after {self.max_retries} attempts",
            key=key,
            last_error=str(last_exception),
        ) from last_exception

    def put_object(
        self,
        key: str,
        body: bytes,
        content_type: str,
        metadata: Optional[dict[str, str]] = None,
    ) -> dict[str, Any]:
        """
        Upload an object.

        Returns:
            Dictionary with the key and the ETag reported by S3
        """
        response = self._call(
            "put_object",
            key,
            Body=body,
            ContentType=content_type,
            Metadata=metadata or {},
        )
        logger.info("Object uploaded to S3", key=key, size=len(body))
        return {"key": key, "etag": response.get("ETag", "").strip('"')}

    def get_object(self, key: str) -> dict[str, Any]:
        """
        Download an object.

        Returns:
            Dictionary with ``body`` bytes, ``content_type`` and ``metadata``
        """
        response = self._call("get_object", key)
        body = response["Body"].read()
        return {
            "body": body,
            "content_type": response.get("ContentType", "application/octet-stream"),
            "metadata": response.get("Metadata", {}),
            "last_modified": response.get("LastModified"),
        }

    def head_object(self, key: str) -> dict[str, Any]:
        """Fetch object metadata without the content."""
        response = self._call("head_object", key)
        return {
            "size": response.get("ContentLength", 0),
            "content_type": response.get("ContentType", "application/octet-stream"),
            "metadata": response.get("Metadata", {}),
            "last_modified": response.get("LastModified"),
        }

    def delete_object(self, key: str) -> None:
        self._call("delete_object", key)
        logger.info("Object deleted from S3", key=key)

    def generate_presigned_url(self, key: str, expires_in: int) -> str:
        """
        Build a presigned GET URL.

        Signing is local, so no retries are involved.

        Raises:
            StorageError: If the URL cannot be generated
        """
        try:
            return self._client.generate_presigned_url(
                "get_object",
                Params={"Bucket": self.bucket_name, "Key": key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to generate presigned URL", key=key, error=str(e))
            raise StorageError(
                "Failed to generate download URL",
                key=key,
            ) from e


@lru_cache
def get_s3_client() -> S3Client:
    """Get the shared S3 client instance."""
    return S3Client()
