"""Pydantic schemas for the HTTP API layer."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class IngestStatus(str, Enum):
    """Outcome of handling one upload."""

    empty = "empty"
    stored = "stored"


class IngestSummary(BaseModel):
    """What happened to a single uploaded payload."""

    status: IngestStatus
    byte_count: int = Field(..., ge=0, description="Size of the request body.")
    sample_count: int = Field(default=0, ge=0)
    channel_count: int = Field(default=0, ge=0)
    trailing_bytes: int = Field(
        default=0, ge=0, description="Bytes past the length declared by the header."
    )
    path: Optional[str] = Field(
        default=None, description="Destination file, when rows were written."
    )
    header_written: bool = False


class HealthStatus(BaseModel):
    """Health check payload."""

    status: str = "ok"
    data_dir: str
