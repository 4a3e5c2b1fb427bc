"""Request models for authentication and account endpoints."""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, ValidationInfo, field_validator

USERNAME_PATTERN = r"^[a-zA-Z0-9_]+$"
PHONE_PATTERN = r"^1[3-9]\d{9}$"


class CodePurpose(str, enum.Enum):
    LOGIN = "login"
    RESET_PASSWORD = "reset_password"


class RegisterRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    username: str = Field(..., min_length=3, max_length=20, pattern=USERNAME_PATTERN)
    name: str = Field(..., min_length=1, max_length=50)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=PHONE_PATTERN)
    password: str = Field(..., min_length=6, max_length=20)
    password_confirmation: str

    @field_validator("email", "phone", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("password_confirmation")
    @classmethod
    def _passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if "password" in info.data and value != info.data["password"]:
            raise ValueError("Password confirmation does not match")
        return value


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    password: str = Field(..., min_length=6)


class SendEmailCodeRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    purpose: CodePurpose = Field(CodePurpose.LOGIN, alias="type")


class EmailLoginRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    code: str = Field(..., min_length=6, max_length=6)


class ResetPasswordRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    code: str = Field(..., min_length=6, max_length=6)
    password: str = Field(..., min_length=6, max_length=20)
    password_confirmation: str

    @field_validator("password_confirmation")
    @classmethod
    def _passwords_match(cls, value: str, info: ValidationInfo) -> str:
        if "password" in info.data and value != info.data["password"]:
            raise ValueError("Password confirmation does not match")
        return value


class AssignRoleRequest(BaseModel):
    user_id: int = Field(..., ge=1)
    role: str = Field(..., min_length=1, max_length=64)
