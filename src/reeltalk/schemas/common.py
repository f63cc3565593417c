"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field


class Pagination(BaseModel):
    """Page-number pagination metadata for bookmark listings."""

    page: int
    limit: int
    total: int
    total_pages: int


class ErrorResponse(BaseModel):
    """Body returned for every error response."""

    detail: str = Field(..., description="Human-readable description of the failure.")
