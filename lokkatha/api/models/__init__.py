"""Pydantic models for repository payloads, records and auth responses."""

from .enums import Region
from .requests import (
    LoginRequest,
    RegisterRequest,
    TaleCreate,
    TaleFilters,
    TaleUpdate,
    UserCreate,
)
from .responses import (
    AnalyticsEventRecord,
    AuthorSummary,
    AuthPagesResponse,
    Identity,
    LoginResponse,
    SessionResponse,
    SessionUser,
    TaleRecord,
    UserRecord,
)

__all__ = [
    "Region",
    # Inputs
    "UserCreate",
    "TaleCreate",
    "TaleUpdate",
    "TaleFilters",
    "LoginRequest",
    "RegisterRequest",
    # Records
    "UserRecord",
    "AuthorSummary",
    "TaleRecord",
    "AnalyticsEventRecord",
    # Auth
    "Identity",
    "SessionUser",
    "SessionResponse",
    "LoginResponse",
    "AuthPagesResponse",
]
