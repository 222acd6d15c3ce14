"""Social graph: follow/unfollow edges and follower listings.

The application-level existence checks only give friendlier errors; the
unique index on ``(follower_id, following_id)`` is what keeps the edge set
free of duplicates when two requests race.
"""

from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from voluntree.core.exceptions import ConflictError, InternalError, InvalidOperationError, NotFoundError
from voluntree.models import Follow, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FollowEntry:
    edge_id: UUID
    counterpart: User
    created_at: dt.datetime


def resolve_user(db: Session, target: str | UUID) -> User:
    if isinstance(target, UUID):
        user = db.get(User, target)
    else:
        user = db.query(User).filter(User.username == target.strip().lower()).first()
    if not user:
        raise NotFoundError("user_not_found", details={"user": str(target)})
    return user


def find_edge(db: Session, follower_id: UUID, following_id: UUID) -> Follow | None:
    return (
        db.query(Follow)
        .filter(Follow.follower_id == follower_id, Follow.following_id == following_id)
        .first()
    )


def follow_user(db: Session, follower: User, target: str | UUID) -> Follow:
    followed = resolve_user(db, target)
    if followed.id == follower.id:
        raise InvalidOperationError("cannot_follow_self")

    if find_edge(db, follower.id, followed.id):
        raise ConflictError("already_following", details={"username": followed.username})

    edge = Follow(follower_id=follower.id, following_id=followed.id)
    db.add(edge)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost the race against a concurrent follow for the same pair.
        db.rollback()
        logger.warning("Follow rejected by unique index: %s -> %s", follower.username, followed.username)
        raise ConflictError("already_following", details={"username": followed.username}) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError("failed_to_follow_user") from exc
    db.refresh(edge)
    logger.info("User %s followed %s", follower.username, followed.username)
    return edge


def unfollow_user(db: Session, follower: User, target: str | UUID) -> None:
    followed = resolve_user(db, target)
    if followed.id == follower.id:
        raise InvalidOperationError("cannot_unfollow_self")

    if not find_edge(db, follower.id, followed.id):
        raise NotFoundError("not_following", details={"username": followed.username})

    try:
        (
            db.query(Follow)
            .filter(Follow.follower_id == follower.id, Follow.following_id == followed.id)
            .delete(synchronize_session="fetch")
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError("failed_to_unfollow_user") from exc

    if find_edge(db, follower.id, followed.id):
        logger.error("Edge still visible after delete: %s -> %s", follower.username, followed.username)
        raise InternalError("failed_to_unfollow_user")
    logger.info("User %s unfollowed %s", follower.username, followed.username)


def _list_edges(
    db: Session,
    username: str,
    *,
    followers: bool,
    offset: int = 0,
    limit: int | None = None,
) -> tuple[list[FollowEntry], int]:
    subject = resolve_user(db, username)
    if followers:
        subject_col, counterpart_col = Follow.following_id, Follow.follower_id
    else:
        subject_col, counterpart_col = Follow.follower_id, Follow.following_id

    total = db.query(func.count(Follow.id)).filter(subject_col == subject.id).scalar() or 0
    query = (
        db.query(Follow, User)
        .join(User, User.id == counterpart_col)
        .filter(subject_col == subject.id)
        .order_by(Follow.created_at.desc(), Follow.id.desc())
        .offset(max(offset, 0))
    )
    if limit is not None:
        query = query.limit(limit)
    entries = [
        FollowEntry(edge_id=edge.id, counterpart=user, created_at=edge.created_at)
        for edge, user in query.all()
    ]
    return entries, total


def list_followers(
    db: Session, username: str, *, offset: int = 0, limit: int | None = None
) -> tuple[list[FollowEntry], int]:
    return _list_edges(db, username, followers=True, offset=offset, limit=limit)


def list_followings(
    db: Session, username: str, *, offset: int = 0, limit: int | None = None
) -> tuple[list[FollowEntry], int]:
    return _list_edges(db, username, followers=False, offset=offset, limit=limit)
