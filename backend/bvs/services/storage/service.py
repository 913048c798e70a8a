"""
Storage service for uploaded files.

Files are stored in S3 under system generated ``STR-...`` identifiers. The
original filename, checksum and upload time travel with the object as S3
user metadata, so no database table is involved.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
from urllib.parse import quote, unquote

from bvs.core import ids
from bvs.core.config import get_settings
from bvs.core.exceptions import (
    FileNotFoundInStorageError,
    FileTooLargeError,
    InvalidFileTypeError,
    ValidationError,
)
from bvs.core.logging import get_logger, log_performance
from bvs.core.security import sha256_hex
from bvs.services.storage.s3_client import S3Client

logger = get_logger(__name__)

_META_FILENAME = "filename"
_META_CHECKSUM = "checksum"
_META_UPLOADED_AT = "uploaded-at"


@dataclass(frozen=True)
class StoredObject:
    """Metadata of a stored file."""

    id: str
    filename: str
    content_type: str
    size: int
    checksum: str
    uploaded_at: Optional[datetime] = None


@dataclass(frozen=True)
class DownloadedObject:
    info: StoredObject
    content: bytes


def _parse_uploaded_at(value: Optional[str], fallback: Optional[datetime]) -> Optional[datetime]:
    if value:
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            logger.debug("Ignoring malformed upload timestamp", value=value)
    return fallback


class StorageService:
    """Business logic for storing and retrieving files."""

    def __init__(self, client: S3Client):
        self.client = client
        self.settings = get_settings()

    def _check_id(self, object_id: str) -> None:
        # Anything that is not one of our identifiers cannot exist in the bucket.
        if not ids.is_valid(object_id, self.settings.storage_id_prefix):
            raise FileNotFoundInStorageError(object_id)

    def _to_stored_object(self, object_id: str, head: dict) -> StoredObject:
        metadata = head.get("metadata", {})
        return StoredObject(
            id=object_id,
            filename=unquote(metadata.get(_META_FILENAME, object_id)),
            content_type=head.get("content_type", "application/octet-stream"),
            size=head.get("size", 0),
            checksum=metadata.get(_META_CHECKSUM, ""),
            uploaded_at=_parse_uploaded_at(
                metadata.get(_META_UPLOADED_AT), head.get("last_modified")
            ),
        )

    def upload_file(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
    ) -> StoredObject:
        """
        Store a file under a new identifier.

        Args:
            filename: Original filename, kept as metadata
            content: File content
            content_type: MIME type, defaults to application/octet-stream

        Returns:
            Metadata of the stored file

        Raises:
            ValidationError: If the filename or content is empty
            FileTooLargeError: If the content exceeds the size limit
            InvalidFileTypeError: If the content type is not accepted
            StorageError: If S3 rejects the upload
        """
        if not filename:
            raise ValidationError("Filename is required", field_name="filename")
        if not content:
            raise ValidationError("File is empty", field_name="file")

        size = len(content)
        if size > self.settings.storage_max_file_size:
            raise FileTooLargeError(size, self.settings.storage_max_file_size)

        content_type = content_type or "application/octet-stream"
        if content_type not in self.settings.storage_allowed_content_types:
            raise InvalidFileTypeError(content_type)

        object_id = ids.generate(
            self.settings.storage_id_prefix,
            self.settings.id_suffix_length,
        )
        checksum = sha256_hex(content)
        uploaded_at = datetime.now(timezone.utc)

        with log_performance(logger, "storage.upload", object_id=object_id, size=size):
            self.client.put_object(
                object_id,
                content,
                content_type,
                metadata={
                    _META_FILENAME: quote(filename),
                    _META_CHECKSUM: checksum,
                    _META_UPLOADED_AT: uploaded_at.isoformat(),
                },
            )

        logger.info(
            "File stored",
            object_id=object_id,
            filename=filename,
            content_type=content_type,
            size=size,
        )
        return StoredObject(
            id=object_id,
            filename=filename,
            content_type=content_type,
            size=size,
            checksum=checksum,
            uploaded_at=uploaded_at,
        )

    def download_file(self, object_id: str) -> DownloadedObject:
        """
        Fetch a stored file with its metadata.

        Raises:
            FileNotFoundInStorageError: If the id is malformed or unknown
        """
        self._check_id(object_id)
        response = self.client.get_object(object_id)
        content = response["body"]
        info = self._to_stored_object(
            object_id,
            {
                "size": len(content),
                "content_type": response.get("content_type"),
                "metadata": response.get("metadata", {}),
                "last_modified": response.get("last_modified"),
            },
        )
        return DownloadedObject(info=info, content=content)

    def get_file_info(self, object_id: str) -> StoredObject:
        self._check_id(object_id)
        return self._to_stored_object(object_id, self.client.head_object(object_id))

    def get_download_url(self, object_id: str) -> str:
        """
        Build a presigned download URL for an existing file.

        Raises:
            FileNotFoundInStorageError: If the id is malformed or unknown
        """
        self._check_id(object_id)
        # Presigning never contacts S3, so confirm existence first.
        self.client.head_object(object_id)
        return self.client.generate_presigned_url(
            object_id,
            self.settings.presigned_url_expiration,
        )

    def delete_file(self, object_id: str) -> None:
        """
        Remove a stored file.

        Raises:
            FileNotFoundInStorageError: If the id is malformed or unknown
        """
        self._check_id(object_id)
        self.client.head_object(object_id)
        self.client.delete_object(object_id)
        logger.info("File deleted", object_id=object_id)
