"""
Shelter Pets Backend: Pydantic Request/Response Schemas
========================================================

What:  Pydantic models defining the API contract for pet records.
How:   FastAPI validates request bodies against PetCreate / PetUpdate,
       serializes PetResponse, and builds the OpenAPI docs from all of them.

Schemas are separate from the SQLAlchemy model: the API exposes `image` as a
public URL path while the table stores a path relative to STORAGE_ROOT, and
the response mood is the derived one rather than the stored column.
"""

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from petshelter.services.mood import Mood, normalize_mood


def _strip_required_text(v: Optional[str], field: str) -> str:
    if v is None:
        raise ValueError(f"'{field}' cannot be null")
    if not isinstance(v, str):
        return v  # left to the str type check
    stripped = v.strip()
    if not stripped:
        raise ValueError(f"'{field}' must not be empty")
    return stripped


def _coerce_mood(v):
    if isinstance(v, str):
        mood = normalize_mood(v)
        if mood is None:
            allowed = ", ".join(m.value for m in Mood)
            raise ValueError(f"Invalid mood '{v}'. Must be one of: {allowed}")
        return mood
    return v


# ══════════════════════════════════════════════════════════════════════════
# Request Models
# ══════════════════════════════════════════════════════════════════════════


class PetCreate(BaseModel):
    """
    Body of POST /pets.

    name, species, age and personality are required; mood defaults to happy.
    Unknown keys (including adopted / adopted_at) are dropped. Age must be a
    real integer: strict mode refuses booleans and numeric strings.
    """
    name: str = Field(max_length=100, description="Pet name")
    species: str = Field(max_length=100, description="Species, e.g. dog or cat")
    age: int = Field(ge=0, strict=True, description="Age in years (a JSON integer)")
    personality: str = Field(description="Free-text personality description")
    mood: Mood = Field(
        default=Mood.HAPPY,
        description=(
            "Initial mood label, stored with the record. Responses and "
            "/pets/filter/{mood} report the mood derived from the days since "
            "creation (happy, excited or sad; happy once adopted), so this "
            "value is not returned."
        ),
    )

    @field_validator("name", "species", "personality", mode="before")
    @classmethod
    def validate_text(cls, v, info):
        return _strip_required_text(v, info.field_name)

    @field_validator("mood", mode="before")
    @classmethod
    def validate_mood(cls, v):
        return _coerce_mood(v)


class PetUpdate(BaseModel):
    """
    Body of PUT /pets/{id}: a partial update.

    Only the keys present in the request are applied, so `{"age": 0}` sets
    the age to zero while `{}` changes nothing. An explicit null for any of
    these fields is rejected. Adoption fields and mood are not accepted here
    and are silently dropped if sent.
    """
    name: Optional[str] = Field(default=None, max_length=100)
    species: Optional[str] = Field(default=None, max_length=100)
    age: Optional[int] = Field(default=None, ge=0, strict=True)
    personality: Optional[str] = Field(default=None)

    @field_validator("name", "species", "personality", mode="before")
    @classmethod
    def validate_text(cls, v, info):
        return _strip_required_text(v, info.field_name)

    @field_validator("age", mode="before")
    @classmethod
    def validate_age_not_null(cls, v):
        if v is None:
            raise ValueError("'age' cannot be null")
        return v

    def changes(self) -> dict:
        """The fields the client actually sent, keyed by column name."""
        return self.model_dump(exclude_unset=True)


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class PetResponse(BaseModel):
    """
    Full representation of a pet record.

    `mood` is the derived mood at read time for available pets and the
    pinned 'happy' for adopted ones.
    """
    id: uuid.UUID = Field(description="Unique pet identifier")
    name: str
    species: str
    age: int
    personality: str
    mood: Mood = Field(description="Current mood")
    image: Optional[str] = Field(
        default=None,
        description="URL path of the pet's image under /uploads, or null",
    )
    adopted: bool
    created_at: datetime = Field(description="When the pet was added (UTC)")
    adopted_at: Optional[datetime] = Field(
        default=None,
        description="When the pet was adopted (UTC), or null",
    )


class DeleteResponse(BaseModel):
    """Returned by DELETE /pets/{id}."""
    message: str = Field(default="Pet deleted successfully")
    id: uuid.UUID


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "not_found")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which field failed validation)
        request_id: Correlation ID for tracing this error in server logs
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Health check response showing service and database status."""
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
