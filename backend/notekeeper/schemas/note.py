"""
Notekeeper Backend: Pydantic Request/Response Schemas
======================================================

What:  Pydantic models defining the note value object and the API contract.
How:   FastAPI validates request bodies against NoteCreate/NoteUpdate and
       serializes NoteResponse. Both stores return NoteResponse instances,
       so callers see the same shape whichever backend is configured.

Design Decision:
    Schemas are separate from the SQLAlchemy model: the in-memory store has
    no ORM at all, and the API never exposes ORM instances.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator


# ══════════════════════════════════════════════════════════════════════════
# Request Models: what clients send
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(BaseModel):
    """
    Payload for POST /api/v1/notes.

    Fields omitted from the JSON body default to the empty string; the
    stores accept empty titles and contents. Non-string values are rejected
    by pydantic and surface as a 400 validation error.
    """
    title: str = Field(default="", description="Note title")
    content: str = Field(default="", description="Note body text")


class NoteUpdate(NoteCreate):
    """Payload for PATCH/PUT /api/v1/notes/{id}: replaces title and content."""


# ══════════════════════════════════════════════════════════════════════════
# Response Models: what the API (and every store) returns
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """
    Full representation of a note, as returned by every NoteStore operation.

    Invariants:
        - id is positive and never changes
        - created_at is set once at creation
        - updated_at >= created_at whenever present
    """
    id: int = Field(description="Store-assigned note identifier")
    title: str = Field(description="Note title")
    content: str = Field(description="Note body text")
    created_at: datetime = Field(description="When the note was created (UTC ISO 8601)")
    updated_at: Optional[datetime] = Field(
        default=None,
        description="When the note was last modified (UTC ISO 8601)",
    )

    model_config = {"from_attributes": True}

    @field_validator("created_at", "updated_at")
    @classmethod
    def ensure_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Engines without timezone support return naive values; those are UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v


# ══════════════════════════════════════════════════════════════════════════
# Error & Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error body for all API errors.

    Example:
        {
            "error": "not_found",
            "message": "note with ID '999' was not found",
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and store status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    store: str = Field(description="Configured note store backend: sql, memory")
    store_status: str = Field(description="Store connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
