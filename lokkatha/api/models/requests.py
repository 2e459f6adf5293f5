"""Pydantic models for repository and API inputs.

Field caps mirror the storage constraints so invalid payloads fail at
construction time, before any query is sent.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .enums import Region

TITLE_MAX_LENGTH = 100
STORY_MAX_LENGTH = 5000
CULTURAL_CONTEXT_MAX_LENGTH = 1000


class UserCreate(BaseModel):
    """Fields for a new user. ``password`` is the already-hashed credential."""

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=1)
    institution: Optional[str] = None


class TaleCreate(BaseModel):
    """Request body for creating a new tale."""

    model_config = ConfigDict(use_enum_values=True)

    title: str = Field(..., min_length=1, max_length=TITLE_MAX_LENGTH)
    story: str = Field(..., min_length=1, max_length=STORY_MAX_LENGTH)
    cultural_context: Optional[str] = Field(None, max_length=CULTURAL_CONTEXT_MAX_LENGTH)
    region: Region
    author_id: str = Field(..., min_length=1)
    image_url: Optional[str] = None
    audio_url: Optional[str] = None
    is_public: bool = True


class TaleUpdate(BaseModel):
    """Partial tale update. Only fields explicitly set are written."""

    model_config = ConfigDict(use_enum_values=True)

    title: Optional[str] = Field(None, min_length=1, max_length=TITLE_MAX_LENGTH)
    story: Optional[str] = Field(None, min_length=1, max_length=STORY_MAX_LENGTH)
    cultural_context: Optional[str] = Field(None, max_length=CULTURAL_CONTEXT_MAX_LENGTH)
    region: Optional[Region] = None
    image_url: Optional[str] = None
    audio_url: Optional[str] = None
    is_public: Optional[bool] = None

    @field_validator("title", "story", "region", "is_public")
    @classmethod
    def reject_null(cls, value):
        # Omit a field to leave it unchanged; these columns can't be cleared
        if value is None:
            raise ValueError("may be omitted but not set to null")
        return value


class TaleFilters(BaseModel):
    """Optional filters for public tale listings."""

    model_config = ConfigDict(use_enum_values=True)

    search: Optional[str] = None
    region: Optional[Region] = None


class LoginRequest(BaseModel):
    """Login request with email/password credentials."""

    email: str = ""
    password: str = ""


class RegisterRequest(BaseModel):
    """Sign-up request. The password is hashed before it is stored."""

    name: str = Field(..., min_length=1)
    email: str = Field(..., min_length=3)
    password: str = Field(..., min_length=8)
    institution: Optional[str] = None
