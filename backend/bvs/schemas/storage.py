"""Storage schemas for file metadata responses."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class StoredObjectResponse(BaseModel):
    """Metadata of a stored file."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="System generated object identifier")
    filename: str = Field(..., description="Original filename")
    content_type: str
    size: int = Field(..., ge=0, description="Size in bytes")
    checksum: str = Field(..., description="SHA-256 of the content")
    uploaded_at: Optional[datetime] = None


class DownloadUrlResponse(BaseModel):
    """Presigned download link."""

    id: str
    url: str
    expires_in: int = Field(..., description="Seconds until the URL expires")
