"""
API Module - Black Box Interface

Purpose: Request and response contracts of the HTTP API
Interface: Pydantic models shared by the endpoints and modules
Hidden: Field validation rules

The API module only describes data - it contains no business logic.
All logic is delegated to appropriate modules.
"""

from .models import (
    AuthResponse,
    CacheClearResponse,
    CacheProbeResult,
    CacheStats,
    CacheStatsResponse,
    CacheStatus,
    CacheTestResponse,
    ErrorResponse,
    HealthResponse,
    JobDispatchResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    User,
    UserResponse,
    ValidationErrorResponse,
)

__all__ = [
    "AuthResponse",
    "CacheClearResponse",
    "CacheProbeResult",
    "CacheStats",
    "CacheStatsResponse",
    "CacheStatus",
    "CacheTestResponse",
    "ErrorResponse",
    "HealthResponse",
    "JobDispatchResponse",
    "LoginRequest",
    "MessageResponse",
    "RegisterRequest",
    "User",
    "UserResponse",
    "ValidationErrorResponse",
]
