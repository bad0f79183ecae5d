"""User schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class FormConfig(BaseModel):
    """Public form configuration."""

    model_config = ConfigDict(from_attributes=True)

    form_title: str
    form_description: str | None = None
    form_is_active: bool
    accepting_applications: bool


class FormConfigUpdate(BaseModel):
    """Request body for PUT /users/me/form-config. Omitted fields are unchanged."""

    form_title: str | None = Field(None, min_length=1, max_length=200)
    form_description: str | None = Field(None, max_length=2000)
    form_is_active: bool | None = None
    accepting_applications: bool | None = None


class UserProfile(BaseModel):
    """Owner profile returned by GET /users/me."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    username: str
    full_name: str | None = None
    organization_name: str | None = None
    is_active: bool
    form_title: str
    form_description: str | None = None
    form_is_active: bool
    accepting_applications: bool
    form_url: str = ""
    created_at: datetime


class ProfileUpdate(BaseModel):
    """Request body for PUT /users/me. Omitted fields are unchanged."""

    username: str | None = Field(
        None, min_length=3, max_length=50, pattern=r"^[A-Za-z0-9_.-]+$"
    )
    full_name: str | None = Field(None, max_length=200)
    organization_name: str | None = Field(None, max_length=200)


class PasswordChange(BaseModel):
    """Request body for PUT /users/me/password."""

    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8, max_length=128)
