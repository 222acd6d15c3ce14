"""Service helpers for account maintenance (details and images)."""

from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from voluntree.core.exceptions import ConflictError, InternalError, ValidationError
from voluntree.models import User
from voluntree.models.enums import ImageKind
from voluntree.schemas.user import UserDetailsUpdate
from voluntree.storage.blob import BlobStore, BlobStoreError, cleanup_files, discard_blobs

logger = logging.getLogger(__name__)


def _commit_user(db: Session, user: User, failure: str) -> User:
    try:
        db.commit()
    except StaleDataError as exc:
        db.rollback()
        raise ConflictError("concurrent_update", details={"user_id": str(user.id)}) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError(failure) from exc
    db.refresh(user)
    return user


def update_user_details(db: Session, user: User, payload: UserDetailsUpdate) -> User:
    if payload.fullname:
        user.fullname = payload.fullname
    if payload.bio:
        user.bio = payload.bio
    if payload.location:
        user.location = payload.location
    if payload.location_coordinates:
        user.location_coordinates = payload.location_coordinates
    if payload.interests:
        user.interests = payload.interests
    user = _commit_user(db, user, "failed_to_update_user_details")
    logger.info("User details updated: %s", user.username)
    return user


def update_user_image(
    db: Session,
    blob_store: BlobStore,
    user: User,
    local_path: str | None,
    kind: ImageKind,
) -> User:
    if not local_path:
        raise ValidationError("image_file_required", details={"field": kind.value})

    try:
        try:
            blob = blob_store.upload(local_path)
        except BlobStoreError as exc:
            raise InternalError(f"{kind.value}_upload_failed") from exc

        previous = user.avatar if kind is ImageKind.avatar else user.cover_image
        setattr(user, kind.value, blob.url)
        try:
            user = _commit_user(db, user, f"failed_to_update_{kind.value}")
        except Exception:
            discard_blobs(blob_store, blob)
            raise
    finally:
        cleanup_files(blob_store, local_path)

    logger.info("User %s updated: %s (was %s)", kind.value, user.username, previous or "-")
    return user
