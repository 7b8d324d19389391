"""
Pydantic schemas for request/response validation.

This module contains:
- The Message record passed between the handler, the service and the store
- Response models for the health and error payloads
"""

from typing import Optional

from pydantic import BaseModel, Field


# =============================================================================
# Message Record
# =============================================================================

class Message(BaseModel):
    """
    A stored message.

    Validates:
    - id: optional on creation, at most 60 characters (VARCHAR(60) column)
    - text: non-empty string

    Instances are immutable; use model_copy(update=...) to assign an id.
    """
    id: Optional[str] = Field(
        None,
        max_length=60,
        description="Unique message identifier, generated when absent"
    )
    text: str = Field(
        ...,
        min_length=1,
        description="Message content"
    )

    model_config = {
        "frozen": True,
        "from_attributes": True,  # Allow creating from ORM rows
        "json_schema_extra": {
            "examples": [
                {"text": "Hello!"},
                {"id": "m1", "text": "Bonjour!"},
            ]
        }
    }


# =============================================================================
# Pydantic Response Models
# =============================================================================

class ErrorResponse(BaseModel):
    """Response model for error responses."""
    detail: str = Field(..., description="Error description")


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""
    status: str = Field(..., description="Health status")
    reason: Optional[str] = Field(None, description="Reason if not ready")
