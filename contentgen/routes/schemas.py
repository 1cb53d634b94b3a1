"""Request and response models shared by the routers."""
import html
import re
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


USERNAME_RE = re.compile(r"^[A-Za-z0-9_]+$")


def _check_username(value: str) -> str:
    value = value.strip()
    if not 3 <= len(value) <= 50:
        raise ValueError("Username must be between 3 and 50 characters")
    if not USERNAME_RE.match(value):
        raise ValueError(
            "Username can only contain letters, numbers, and underscores")
    return value


class RegisterRequest(BaseModel):
    username: str
    email: EmailStr
    password: str = Field(..., min_length=6, max_length=72)

    @field_validator("username")
    @classmethod
    def username_rules(cls, value: str) -> str:
        return _check_username(value)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("password")
    @classmethod
    def password_strength(cls, value: str) -> str:
        if not (re.search(r"[a-z]", value) and re.search(r"[A-Z]", value)
                and re.search(r"\d", value)):
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase letter, and one number")
        return value


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class UpdateProfileRequest(BaseModel):
    username: str | None = None
    email: EmailStr | None = None

    @field_validator("username")
    @classmethod
    def username_rules(cls, value: str | None) -> str | None:
        return None if value is None else _check_username(value)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str | None) -> str | None:
        return None if value is None else value.strip().lower()


class UserProfile(BaseModel):
    id: int
    username: str
    email: EmailStr

    model_config = ConfigDict(from_attributes=True)


class GenerateRequest(BaseModel):
    userId: int = Field(..., ge=1)
    type: Literal["image", "video"]
    description: str

    @field_validator("description")
    @classmethod
    def clean_description(cls, value: str) -> str:
        value = value.strip()
        if not 3 <= len(value) <= 500:
            raise ValueError("Description must be between 3 and 500 characters")
        return html.escape(value)


class SaveContentRequest(BaseModel):
    userId: int = Field(..., ge=1)
    type: Literal["image", "video"]
    description: str = Field("", max_length=500)
    url: str | None = None


class ContentOut(BaseModel):
    id: int
    userId: int = Field(validation_alias="user_id")
    type: str
    title: str
    description: str
    url: str | None
    createdAt: datetime = Field(validation_alias="created_at")

    model_config = ConfigDict(from_attributes=True)


class SubscriptionOut(BaseModel):
    id: int
    userId: int = Field(validation_alias="user_id")
    status: str
    startDate: datetime = Field(validation_alias="start_date")
    endDate: datetime = Field(validation_alias="end_date")

    model_config = ConfigDict(from_attributes=True)


class UserIdRequest(BaseModel):
    userId: int = Field(..., ge=1)


class ActivateRequest(UserIdRequest):
    paymentMethod: str | None = Field(None, max_length=64)


class FeedbackRequest(BaseModel):
    userId: int | None = Field(None, ge=1)
    message: str

    @field_validator("message")
    @classmethod
    def message_length(cls, value: str) -> str:
        value = value.strip()
        if not 1 <= len(value) <= 2000:
            raise ValueError("Message must be between 1 and 2000 characters")
        return value


class FeedbackOut(BaseModel):
    id: int
    userId: int | None = Field(validation_alias="user_id")
    description: str
    createdAt: datetime = Field(validation_alias="created_at")

    model_config = ConfigDict(from_attributes=True)
