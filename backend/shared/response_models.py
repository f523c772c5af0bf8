"""
Common API response models.
"""

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain acknowledgement for mutations without a body."""

    success: bool = Field(default=True, description="Whether the operation was successful")
    message: str = Field(default="Operation completed successfully", description="Response message")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str = Field(..., description="Service status")
    service: str = Field(..., description="Service name")
    version: str | None = Field(None, description="Service version")
