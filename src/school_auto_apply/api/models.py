"""API models for request/response schemas."""

import re
from typing import Any, Dict, List, Optional
from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class LoginOverride(BaseModel):
    """Per-run credentials supplied by the caller."""
    model_config = ConfigDict(extra="forbid")

    email: Optional[str] = Field(None, description="Login email")
    username: Optional[str] = Field(None, description="Login username")
    password: Optional[str] = Field(None, description="Login password")
    extra: Optional[Dict[str, str]] = Field(None, description="Site-specific login values")

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _EMAIL_PATTERN.match(value):
            raise ValueError("Invalid email address")
        return value


class AutoApplyRequest(BaseModel):
    """Request to run the automation script of a school for the current user."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    school_id: str = Field(..., min_length=1, description="Target school identifier")
    template_id: str = Field(..., min_length=1, description="Stored template identifier")
    user_login: Optional[LoginOverride] = Field(None, description="Optional login override")


class ScriptInfo(BaseModel):
    """Registered automation script."""
    id: str = Field(..., description="School identifier")
    name: str = Field(..., description="Human-readable name")
    description: Optional[str] = Field(None, description="Script description")
    supports_login: bool = Field(False, description="Whether the script can log in")


class ScriptListResponse(BaseModel):
    """Registered scripts."""
    scripts: List[ScriptInfo] = Field(..., description="Registered scripts")
    total_count: int = Field(..., description="Number of registered scripts")


class HealthCheck(BaseModel):
    """Health check response."""
    status: str = Field(..., description="Service status")
    timestamp: datetime = Field(..., description="Check timestamp")
    version: str = Field(..., description="Service version")
    components: Dict[str, str] = Field(..., description="Component status")


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str = Field(..., description="Error type")
    message: str = Field(..., description="Error message")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error details")
    timestamp: datetime = Field(..., description="Error timestamp")
