"""
API v1 package initialization.
"""

from bvs.api.v1.storage import router as storage_router
from bvs.api.v1.users import router as users_router

__all__ = ["storage_router", "users_router"]
