"""
PokéCompanion Backend: Shared Pydantic Schemas
===============================================

What:  Base model, success envelope and error/health payloads shared by every
       route module.
How:   Field names are snake_case in Python and camelCase on the wire
       (`searchTerm`, `createdAt`), matching what the frontend consumes.
       FastAPI serializes response models by alias, and request bodies are
       accepted in either spelling.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class DataResponse(BaseModel, Generic[T]):
    """
    Success envelope: {"message": "...", "data": ...}

    Example:
        {"message": "Search history fetched", "data": [{"id": 1, "searchTerm": "pikachu", ...}]}
    """
    message: str = Field(description="Human-readable success message")
    data: T


class MessageResponse(BaseModel):
    """Success response without a payload (deletions, password change)."""
    message: str = Field(description="Human-readable success message")


class ErrorResponse(BaseModel):
    """
    Error format returned by every exception handler.

    Example:
        {
            "error": "forbidden",
            "message": "You do not have permission to modify this search history entry",
            "request_id": "3f2a9c1b"
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
