"""
Cachegate shared data models.

These models define the structure of all data passed between
components in the Cachegate system.
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
PASSWORD_MIN_LENGTH = 8


# Enums


class CacheStatus(str, Enum):
    """Outcome of a cache probe."""

    HIT = "cache_hit"
    MISS = "cache_miss"


# Request Models (API Input)


class RegisterRequest(BaseModel):
    """Request to register a new user."""

    name: str = Field(..., description="Display name", min_length=1, max_length=255)
    email: str = Field(..., description="Login email", max_length=255, pattern=EMAIL_PATTERN)
    password: str = Field(..., description="Plain password", min_length=PASSWORD_MIN_LENGTH)
    password_confirmation: Optional[str] = Field(None, description="Must equal password")

    @field_validator("name", "email", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        """Trim surrounding whitespace (passwords are left untouched)."""
        if isinstance(v, str):
            return v.strip()
        return v


class LoginRequest(BaseModel):
    """Request to log in with email and password."""

    email: str = Field(..., description="Login email", pattern=EMAIL_PATTERN)
    password: str = Field(..., description="Plain password", min_length=PASSWORD_MIN_LENGTH)

    @field_validator("email", mode="before")
    @classmethod
    def strip_whitespace(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


# Response Models (API Output)


class User(BaseModel):
    """Public view of a user record."""

    id: int
    name: str
    email: str
    email_verified_at: Optional[str] = None
    created_at: str
    updated_at: str


class AuthResponse(BaseModel):
    """Response after register or login."""

    user: User
    token: str
    token_type: str = "Bearer"


class UserResponse(BaseModel):
    """Response for the current user lookup."""

    user: User


class MessageResponse(BaseModel):
    """Plain message response."""

    message: str


class CacheEntryModel(BaseModel):
    """The record held in the cache slot."""

    unique_id: str
    created_at: str
    created_timestamp: int
    expires_at: str


class CacheProbeResult(BaseModel):
    """Outcome of POST /test-cache."""

    status: CacheStatus
    message: str
    data: CacheEntryModel
    cache_remaining_seconds: int = Field(..., ge=0)


class CacheStats(BaseModel):
    """Age of the cache slot; only `exists` is set when the slot is empty."""

    exists: bool
    entry: Optional[CacheEntryModel] = None
    elapsed_seconds: Optional[int] = Field(None, ge=0)
    remaining_seconds: Optional[int] = Field(None, ge=0)
    progress_percentage: Optional[float] = Field(None, ge=0, le=100)


class CacheTestResponse(BaseModel):
    """Response of POST /test-cache."""

    message: str
    result: CacheProbeResult
    timestamp: datetime


class CacheStatsResponse(BaseModel):
    """Response of GET /cache-stats."""

    message: str
    stats: CacheStats
    timestamp: datetime


class CacheClearResponse(BaseModel):
    """Response of DELETE /clear-cache."""

    message: str
    success: bool
    timestamp: datetime


class JobDispatchResponse(BaseModel):
    """Response of POST /test-job."""

    message: str
    task_id: str


class HealthResponse(BaseModel):
    """Health check response."""

    ok: bool = True
    time: datetime


# Error Models


class ErrorResponse(BaseModel):
    """Unexpected failure response."""

    message: str = Field(..., description="What failed")
    error: Optional[str] = Field(default=None, description="Underlying error")


class ValidationErrorResponse(BaseModel):
    """Input validation failure response."""

    message: str = "Validation failed"
    errors: Dict[str, List[str]]
