"""User and auth schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Credentials(BaseModel):
    """Email and password submitted to register or log in."""

    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=8, max_length=128)


class User(BaseModel):
    """Schema for user response."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    created_at: datetime
    updated_at: datetime


class AuthToken(BaseModel):
    """Issued bearer token."""

    user: User
    token: str
    token_type: str = "bearer"
    expires_at: datetime
