"""
Response envelopes shared by all BVS services.

``ApiResponse`` wraps single payloads with a success flag and message;
``PageResponse`` carries one page of a larger result set.
"""

import math
from datetime import datetime, timezone
from typing import Generic, Optional, Sequence, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ApiResponse(BaseModel, Generic[T]):
    """Standard API response wrapper."""

    success: bool = Field(..., description="Whether the request succeeded")
    message: str = Field(..., description="Human readable outcome")
    data: Optional[T] = Field(None, description="Response payload")
    timestamp: datetime = Field(default_factory=_utcnow)

    @classmethod
    def ok(cls, data: Optional[T] = None, message: str = "Success") -> "ApiResponse[T]":
        return cls(success=True, message=message, data=data)


class PageResponse(BaseModel, Generic[T]):
    """
    One page of results.

    Page numbers are 0-indexed.
    """

    content: list[T] = Field(default_factory=list)
    page_number: int = Field(..., ge=0)
    page_size: int = Field(..., ge=1)
    total_elements: int = Field(..., ge=0)
    total_pages: int = Field(..., ge=0)
    first: bool
    last: bool
    has_next: bool
    has_previous: bool

    @classmethod
    def build(
        cls,
        content: Sequence[T],
        page_number: int,
        page_size: int,
        total_elements: int,
    ) -> "PageResponse[T]":
        """
        Build a page and derive its navigation flags.

        Args:
            content: Items on this page
            page_number: 0-indexed page number
            page_size: Requested page size
            total_elements: Number of items across all pages

        Returns:
            PageResponse with computed totals and flags
        """
        total_pages = math.ceil(total_elements / page_size) if total_elements else 0
        return cls(
            content=list(content),
            page_number=page_number,
            page_size=page_size,
            total_elements=total_elements,
            total_pages=total_pages,
            first=page_number == 0,
            last=page_number >= total_pages - 1,
            has_next=page_number < total_pages - 1,
            has_previous=page_number > 0,
        )
