"""Shared enum values used by the database models and schemas."""

from __future__ import annotations

import enum


class Interest(str, enum.Enum):
    environment = "environment"
    education = "education"
    health = "health"
    community = "community"
    technology = "technology"
    other = "other"


class MemberRole(str, enum.Enum):
    volunteer = "volunteer"
    manager = "manager"
    admin = "admin"


class ImageKind(str, enum.Enum):
    avatar = "avatar"
    cover_image = "cover_image"


ALLOWED_INTERESTS = frozenset(item.value for item in Interest)
