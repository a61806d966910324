"""
Authentication request/response schemas.
"""

from datetime import datetime

from pydantic import EmailStr, Field, field_validator

from pokecompanion.schemas.common import CamelModel


class RegisterRequest(CamelModel):
    username: str = Field(min_length=3, max_length=256)
    email: EmailStr
    password: str = Field(min_length=6, max_length=128)

    @field_validator("username", "email", mode="before")
    @classmethod
    def strip_text(cls, v):
        return v.strip() if isinstance(v, str) else v


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=128)

    @field_validator("email", mode="before")
    @classmethod
    def strip_email(cls, v):
        return v.strip() if isinstance(v, str) else v


class ChangePasswordRequest(CamelModel):
    old_password: str = Field(min_length=1, max_length=128)
    new_password: str = Field(min_length=6, max_length=128)


class UserResponse(CamelModel):
    id: int
    username: str
    email: str


class ProfileResponse(UserResponse):
    created_at: datetime


class LoginResult(CamelModel):
    token: str = Field(description="Bearer access token (HS256 JWT)")
    user: UserResponse
