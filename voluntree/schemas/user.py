"""Pydantic schemas for user payloads and responses."""

from __future__ import annotations

import datetime as dt
import re
import unicodedata
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, EmailStr, Field, field_validator, model_validator

from voluntree.core.sanitize import (
    clean_csv_list,
    clean_email,
    clean_multiline,
    clean_single_line,
    parse_coordinates,
)
from voluntree.models.enums import ALLOWED_INTERESTS
from voluntree.schemas.common import CamelModel

USERNAME_RE = re.compile(r"^[a-z0-9](?:[a-z0-9]|-(?=[a-z0-9])){2,38}$")
MIN_PASSWORD_LEN = 6
MAX_PASSWORD_LEN = 128
MAX_BIO_LEN = 200
MAX_NAME_LEN = 255


def _check_password(value: str) -> str:
    if any(unicodedata.category(ch) == "Cc" for ch in value):
        raise ValueError("password_contains_control_chars")
    if not value.strip():
        raise ValueError("password_required")
    return value


def _check_interests(values: list[str]) -> list[str]:
    invalid = [item for item in values if item not in ALLOWED_INTERESTS]
    if invalid:
        raise ValueError(f"invalid_interest: {invalid[0]}")
    return values


def _check_coordinates(value: list[Any] | None) -> list[float] | None:
    if value is None:
        return None
    if len(value) != 2:
        raise ValueError("coordinates_must_be_lng_lat")
    try:
        lng, lat = float(value[0]), float(value[1])
    except (TypeError, ValueError) as exc:
        raise ValueError("coordinates_must_be_numbers") from exc
    if not (-180 <= lng <= 180) or not (-90 <= lat <= 90):
        raise ValueError("invalid_longitude_latitude")
    return [lng, lat]


class UserCreate(CamelModel):
    username: str = Field(min_length=3, max_length=39)
    email: EmailStr
    fullname: str = Field(min_length=1, max_length=MAX_NAME_LEN)
    password: str = Field(min_length=MIN_PASSWORD_LEN, max_length=MAX_PASSWORD_LEN)
    bio: str = Field(default="", max_length=MAX_BIO_LEN)
    interests: list[str] = Field(default_factory=list)
    location: str = Field(default="", max_length=255)
    location_coordinates: list[float] | None = None

    @field_validator("username", mode="before")
    @classmethod
    def normalize_username(cls, value: Any) -> str:
        return clean_single_line(value).lower()

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        if not USERNAME_RE.fullmatch(value):
            raise ValueError("invalid_username")
        return value

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, value: Any) -> str:
        return clean_email(value)

    @field_validator("fullname", "location", mode="before")
    @classmethod
    def normalize_single_line(cls, value: Any) -> str:
        return clean_single_line(value)

    @field_validator("bio", mode="before")
    @classmethod
    def normalize_bio(cls, value: Any) -> str:
        return clean_multiline(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _check_password(value)

    @field_validator("interests", mode="before")
    @classmethod
    def normalize_interests(cls, value: Any) -> list[str]:
        return _check_interests(clean_csv_list(value))

    @field_validator("location_coordinates", mode="before")
    @classmethod
    def normalize_coordinates(cls, value: Any) -> list[float] | None:
        return _check_coordinates(parse_coordinates(value))


class UserLogin(CamelModel):
    identifier: str = Field(
        min_length=1,
        max_length=255,
        validation_alias=AliasChoices("identifier", "userId", "user_id", "email", "username"),
    )
    password: str = Field(min_length=1, max_length=MAX_PASSWORD_LEN)

    @field_validator("identifier", mode="before")
    @classmethod
    def normalize_identifier(cls, value: Any) -> str:
        return clean_single_line(value)


class ChangePasswordRequest(CamelModel):
    old_password: str = Field(default="", max_length=MAX_PASSWORD_LEN)
    new_password: str = Field(default="", max_length=MAX_PASSWORD_LEN)


class UserDetailsUpdate(CamelModel):
    fullname: str | None = Field(default=None, max_length=MAX_NAME_LEN)
    bio: str | None = Field(default=None, max_length=MAX_BIO_LEN)
    location: str | None = Field(default=None, max_length=255)
    location_coordinates: list[float] | None = None
    interests: list[str] | None = None

    @field_validator("fullname", "location", mode="before")
    @classmethod
    def normalize_single_line(cls, value: Any) -> str | None:
        return clean_single_line(value) or None

    @field_validator("bio", mode="before")
    @classmethod
    def normalize_bio(cls, value: Any) -> str | None:
        return clean_multiline(value) or None

    @field_validator("interests", mode="before")
    @classmethod
    def normalize_interests(cls, value: Any) -> list[str] | None:
        return _check_interests(clean_csv_list(value)) or None

    @field_validator("location_coordinates", mode="before")
    @classmethod
    def normalize_coordinates(cls, value: Any) -> list[float] | None:
        return _check_coordinates(parse_coordinates(value))

    @model_validator(mode="after")
    def require_one_field(self) -> "UserDetailsUpdate":
        if not any(
            (self.fullname, self.bio, self.location, self.location_coordinates, self.interests)
        ):
            raise ValueError("at_least_one_field_required")
        return self


class UserOut(CamelModel):
    """Sanitized user record: never carries the password or session fields."""

    id: UUID
    username: str
    email: str
    fullname: str
    avatar: str
    cover_image: str = ""
    bio: str = ""
    interests: list[str] = Field(default_factory=list)
    is_verified: bool = False
    trust_score: float = 0
    impact_score: float = 0
    location: str = ""
    location_coordinates: list[float] | None = None
    created_at: dt.datetime
    updated_at: dt.datetime


class UserSummary(CamelModel):
    id: UUID
    username: str
    fullname: str
    avatar: str
