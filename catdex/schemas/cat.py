"""
Catdex — Pydantic Request/Response Schemas
============================================

What:  The API contract for records, creation input and error bodies.
Why:   Keeps the JSON shape independent of the ORM model and documents it in OpenAPI.
"""

from typing import Optional

from pydantic import BaseModel, Field


# ══════════════════════════════════════════════════════════════════════════
# Record Models
# ══════════════════════════════════════════════════════════════════════════


class CatResponse(BaseModel):
    """
    What:  A stored record as returned by GET /api/cats and GET /api/cat/{id}.
    """
    id: int = Field(description="Server-assigned identifier")
    name: str = Field(description="Display name")
    image_path: str = Field(description="Public URL path of the image, e.g. /image/<name>.png")

    model_config = {"from_attributes": True}


class NewCat(BaseModel):
    """
    What:  Creation input for the repository. Same shape as CatResponse minus `id`,
           which the database assigns.
    """
    name: str = Field(min_length=1)
    image_path: str = Field(min_length=1)


# ══════════════════════════════════════════════════════════════════════════
# Error / Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for all API errors.

    Example:
        {
            "error": "validation_error",
            "message": "Cat ID must be an integer between 1 and 150",
            "details": {"field": "id"},
            "request_id": "1a2b3c4d"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
