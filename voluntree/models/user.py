"""User model: identity root and single-slot refresh token revocation record."""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import JSON, Boolean, DateTime, Float, Integer, String, Text, event
from sqlalchemy.orm import Mapped, mapped_column, relationship

from voluntree.core.security import hash_password
from voluntree.db.base import Base

if TYPE_CHECKING:
    from voluntree.models.member import Member
    from voluntree.models.post import Post
    from voluntree.models.project import Project


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class User(Base):
    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    username: Mapped[str] = mapped_column(String(39), unique=True, index=True, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    fullname: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    avatar: Mapped[str] = mapped_column(String(1024), nullable=False)
    cover_image: Mapped[str] = mapped_column(String(1024), default="", nullable=False)
    bio: Mapped[str] = mapped_column(Text, default="", nullable=False)
    interests: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    is_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    trust_score: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    impact_score: Mapped[float] = mapped_column(Float, default=0, nullable=False)
    location: Mapped[str] = mapped_column(String(255), default="", nullable=False)
    location_coordinates: Mapped[list[float] | None] = mapped_column(JSON, nullable=True)
    refresh_token_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    refresh_token_issued_at: Mapped[dt.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[dt.datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    projects: Mapped[list["Project"]] = relationship(back_populates="owner", order_by="Project.created_at.desc()")
    posts: Mapped[list["Post"]] = relationship(back_populates="author", order_by="Post.created_at.desc()")
    memberships: Mapped[list["Member"]] = relationship(back_populates="member", order_by="Member.created_at.desc()")

    __mapper_args__ = {"version_id_col": version}

    @property
    def password(self) -> str:
        raise AttributeError("password: write-only field")

    @password.setter
    def password(self, raw: str) -> None:
        self._pending_password = raw
        # Marks the row dirty so the flush reaches the hashing hook below.
        self.password_hash = ""


@event.listens_for(User, "before_insert")
@event.listens_for(User, "before_update")
def _hash_pending_password(mapper, connection, target: User) -> None:  # noqa: ANN001
    raw = target.__dict__.pop("_pending_password", None)
    if raw is not None:
        target.password_hash = hash_password(raw)
