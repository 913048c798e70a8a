"""
FastAPI dependencies for database sessions and services.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from bvs.database.connection import get_db
from bvs.services.storage.s3_client import S3Client, get_s3_client
from bvs.services.storage.service import StorageService
from bvs.services.users.service import UserService

DatabaseSession = Annotated[AsyncSession, Depends(get_db)]


async def get_user_service(db: DatabaseSession) -> UserService:
    """Dependency for user service initialization."""
    return UserService(session=db)


def get_storage_service(
    client: Annotated[S3Client, Depends(get_s3_client)],
) -> StorageService:
    """Dependency for storage service initialization."""
    return StorageService(client)


UserServiceDep = Annotated[UserService, Depends(get_user_service)]
StorageServiceDep = Annotated[StorageService, Depends(get_storage_service)]
