"""Project membership of a user."""

from __future__ import annotations

import datetime as dt
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from voluntree.db.base import Base
from voluntree.models.enums import MemberRole

if TYPE_CHECKING:
    from voluntree.models.project import Project
    from voluntree.models.user import User


def utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


class Member(Base):
    __tablename__ = "members"
    __table_args__ = (
        Index("ix_members_project_id_member_id", "project_id", "member_id"),
    )

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    project_id: Mapped[UUID] = mapped_column(ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    member_id: Mapped[UUID] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    role: Mapped[MemberRole] = mapped_column(
        Enum(MemberRole, name="member_role", values_callable=lambda x: [e.value for e in x]),
        default=MemberRole.volunteer,
        nullable=False,
    )
    custom_role: Mapped[str | None] = mapped_column(String(50), nullable=True)
    current_membership: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)

    member: Mapped["User"] = relationship(back_populates="memberships")
    project: Mapped["Project"] = relationship()
