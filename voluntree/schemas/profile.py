"""Schemas for the public profile view."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from pydantic import Field

from voluntree.models.enums import MemberRole
from voluntree.schemas.common import CamelModel


class ProjectOut(CamelModel):
    id: UUID
    title: str
    description: str
    cover_image: str
    tags: list[str] = Field(default_factory=list)
    location: str
    volunteer_required: bool = False
    created_at: dt.datetime


class PostOut(CamelModel):
    id: UUID
    title: str
    content: str
    media_files: list[str] = Field(default_factory=list)
    created_at: dt.datetime


class MembershipOut(CamelModel):
    id: UUID
    project_id: UUID
    role: MemberRole
    custom_role: str | None = None
    current_membership: bool = True
    created_at: dt.datetime


class ProfileOut(CamelModel):
    id: UUID
    username: str
    fullname: str
    email: str
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
    own_projects: list[ProjectOut] = Field(default_factory=list)
    user_posts: list[PostOut] = Field(default_factory=list)
    joined_projects: list[MembershipOut] = Field(default_factory=list)
    followers_count: int = 0
    following_count: int = 0
    is_following: bool = False
