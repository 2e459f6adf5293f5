"""Pydantic models returned by repositories and the auth layer."""

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel

from .enums import Region


class UserRecord(BaseModel):
    """Raw user record. Includes the password hash needed for verification."""

    id: str
    name: str
    email: str
    password: str
    institution: Optional[str] = None
    created_at: datetime


class AuthorSummary(BaseModel):
    """Reduced author projection attached to tales.

    List views only carry ``name``; single-tale reads add email and institution.
    """

    id: str
    name: str
    email: Optional[str] = None
    institution: Optional[str] = None


class TaleRecord(BaseModel):
    """A stored tale with its author resolved."""

    id: str
    title: str
    story: str
    cultural_context: Optional[str] = None
    region: Region
    author_id: str
    author: Optional[AuthorSummary] = None  # None when the author no longer exists
    image_url: Optional[str] = None
    audio_url: Optional[str] = None
    is_public: bool = True
    views: int = 0
    created_at: datetime
    updated_at: datetime


class AnalyticsEventRecord(BaseModel):
    """An append-only analytics fact."""

    id: str
    type: str
    tale_id: Optional[str] = None
    user_id: Optional[str] = None
    metadata: Any = None
    timestamp: datetime


class Identity(BaseModel):
    """Public identity produced by a successful credential check."""

    id: str
    email: str
    name: str
    institution: Optional[str] = None


class SessionUser(BaseModel):
    """User block of the session exposed to callers."""

    name: Optional[str] = None
    email: Optional[str] = None
    id: Optional[str] = None
    institution: Optional[str] = None


class SessionResponse(BaseModel):
    """Session object projected from a verified token."""

    user: SessionUser
    expires: datetime


class LoginResponse(BaseModel):
    """Login response with session token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int


class AuthPagesResponse(BaseModel):
    """Redirect targets for the sign-in and sign-up flows."""

    sign_in: str
    sign_up: str
