"""
Jotter Backend — Pydantic Request/Response Schemas
====================================================

What:  Pydantic models defining the API contract between frontend and backend.
Why:   Strict input validation, automatic serialization, and OpenAPI doc generation.
How:   FastAPI uses these models to validate request bodies, serialize responses,
       and generate the OpenAPI document.

Design Decision:
    Request bodies never carry a user id. Ownership comes from the session
    cookie only, so there is no field a client could use to write into
    another user's notes. extra="forbid" makes an attempt fail loudly (422)
    instead of being silently dropped.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class LoginRequest(BaseModel):
    """
    Body of POST /auth.

    A missing idToken is accepted here and rejected by the identity verifier,
    so every failed login answers 401 the same way.
    """
    id_token: str = Field(default="", alias="idToken", description="Third-party ID token")

    model_config = ConfigDict(populate_by_name=True)


class NoteCreate(BaseModel):
    """Body of POST /notes."""
    title: str = Field(description="Note title")
    content: str = Field(description="Note body")

    model_config = ConfigDict(extra="forbid")


class NoteUpdate(BaseModel):
    """Body of PUT /notes. Replaces title and content of the note with this id."""
    id: int = Field(description="Id of a note owned by the caller")
    title: str = Field(description="New title")
    content: str = Field(description="New body")

    model_config = ConfigDict(extra="forbid")


class NoteDelete(BaseModel):
    """Body of DELETE /notes."""
    id: int = Field(description="Id of a note owned by the caller")

    model_config = ConfigDict(extra="forbid")


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteResponse(BaseModel):
    """
    What:  Full representation of a stored note.
    Who:   Returned by GET (as array items), POST and PUT /notes.
    """
    id: int = Field(description="Store-assigned note id")
    user_id: str = Field(description="Owner account id")
    title: str
    content: str
    created_at: datetime = Field(description="When the note was created (UTC ISO 8601)")
    updated_at: datetime = Field(description="Last modification time (UTC ISO 8601)")

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    status: str = Field(default="success")


# ══════════════════════════════════════════════════════════════════════════
# Error Response Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "unauthorized", "not_found")
        message: Human-readable description for display to users
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "not_found",
            "message": "Note not found",
            "request_id": "3f2a9c1d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer health checks.
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    identity_provider: str = Field(description="Identity provider: configured, not_configured")
    uptime_seconds: float = Field(description="Seconds since service started")
