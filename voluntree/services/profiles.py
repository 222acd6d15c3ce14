"""Public profile aggregation."""

from __future__ import annotations

import logging
from uuid import UUID

from sqlalchemy import exists, false, func, select
from sqlalchemy.orm import Session, selectinload

from voluntree.core.exceptions import NotFoundError
from voluntree.models import Follow, Member, User
from voluntree.schemas.profile import MembershipOut, PostOut, ProfileOut, ProjectOut

logger = logging.getLogger(__name__)


def get_profile(db: Session, viewer_id: UUID | None, username: str) -> ProfileOut:
    """Build the public profile of ``username`` as seen by ``viewer_id``.

    Counts and the viewer's follow flag are computed in the same statement as
    the user lookup, so they reflect one consistent read.
    """
    followers_count = (
        select(func.count(Follow.id)).where(Follow.following_id == User.id).correlate(User).scalar_subquery()
    )
    following_count = (
        select(func.count(Follow.id)).where(Follow.follower_id == User.id).correlate(User).scalar_subquery()
    )
    if viewer_id is None:
        is_following = false()
    else:
        is_following = exists().where(Follow.follower_id == viewer_id, Follow.following_id == User.id)

    stmt = (
        select(
            User,
            followers_count.label("followers_count"),
            following_count.label("following_count"),
            is_following.label("is_following"),
        )
        .where(User.username == username.strip().lower())
        .options(
            selectinload(User.projects),
            selectinload(User.posts),
            selectinload(User.memberships).selectinload(Member.project),
        )
    )
    row = db.execute(stmt).first()
    if row is None:
        raise NotFoundError("user_not_found", details={"username": username})

    user, n_followers, n_following, following = row
    profile = ProfileOut(
        id=user.id,
        username=user.username,
        fullname=user.fullname,
        email=user.email,
        avatar=user.avatar,
        cover_image=user.cover_image,
        bio=user.bio,
        interests=user.interests or [],
        is_verified=user.is_verified,
        trust_score=user.trust_score,
        impact_score=user.impact_score,
        location=user.location,
        location_coordinates=user.location_coordinates,
        created_at=user.created_at,
        own_projects=[ProjectOut.model_validate(project) for project in user.projects],
        user_posts=[PostOut.model_validate(post) for post in user.posts],
        joined_projects=[MembershipOut.model_validate(membership) for membership in user.memberships],
        followers_count=n_followers or 0,
        following_count=n_following or 0,
        is_following=bool(following),
    )
    logger.debug("Profile built for %s (viewer=%s)", user.username, viewer_id)
    return profile
