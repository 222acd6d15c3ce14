"""Schemas for follow edges and follower/following listings."""

from __future__ import annotations

import datetime as dt
from uuid import UUID

from voluntree.schemas.common import CamelModel
from voluntree.schemas.user import UserSummary


class FollowOut(CamelModel):
    edge_id: UUID
    follower: UUID
    following: UUID
    created_at: dt.datetime


class FollowEntryOut(CamelModel):
    edge_id: UUID
    counterpart: UserSummary
    created_at: dt.datetime


class FollowPageOut(CamelModel):
    items: list[FollowEntryOut]
    count: int
    total: int
    offset: int = 0
    limit: int | None = None
