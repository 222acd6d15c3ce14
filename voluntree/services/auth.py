"""Session lifecycle: registration, login, refresh rotation, logout, password change.

Each user row carries one revocation slot (``refresh_token_hash``). Login and
refresh replace it with a single UPDATE, logout clears it, and only the refresh
token whose fingerprint matches the slot can be rotated. These writes leave
``User.version`` alone: it guards profile edits, and a login on another device
must not fail an in-flight password or details change.
"""

from __future__ import annotations

import datetime as dt
import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from voluntree.core.config import settings
from voluntree.core.exceptions import (
    AuthenticationException,
    ConflictError,
    InternalError,
    InvalidCredentialError,
    NotFoundError,
    ValidationError,
)
from voluntree.core.security import (
    REFRESH_TOKEN_TYPE,
    create_access_token,
    create_refresh_token,
    decode_token,
    fingerprint_token,
    token_matches,
    verify_password,
)
from voluntree.models import User
from voluntree.schemas.user import MIN_PASSWORD_LEN, UserCreate
from voluntree.storage.blob import BlobStore, BlobStoreError, StoredBlob, cleanup_files, discard_blobs

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


@dataclass(frozen=True)
class AuthTokens:
    access_token: str
    refresh_token: str
    user: User


@dataclass(frozen=True)
class RegistrationFiles:
    avatar: str | None = None
    cover_image: str | None = None


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def validation_details(exc: PydanticValidationError) -> dict[str, Any]:
    errors = {}
    for error in exc.errors():
        field = ".".join(str(part) for part in error.get("loc", ())) or "body"
        errors.setdefault(field, error.get("msg", "invalid"))
    return {"errors": errors}


def find_user_by_identifier(db: Session, identifier: str) -> User | None:
    cleaned = identifier.strip()
    if EMAIL_RE.match(cleaned):
        return db.query(User).filter(User.email == cleaned.lower()).first()
    return db.query(User).filter(User.username == cleaned.lower()).first()


def _mint_tokens(user: User) -> tuple[str, str]:
    try:
        return create_access_token(user), create_refresh_token(user)
    except Exception as exc:
        logger.exception("Token signing failed for user %s", user.id)
        raise InternalError("failed_to_generate_tokens") from exc


def register_user(
    db: Session,
    blob_store: BlobStore,
    form: Mapping[str, Any],
    files: RegistrationFiles,
) -> User:
    """Create a user from form fields and received image files.

    Any failure deletes the received files and destroys blobs uploaded during
    this call, so a rejected registration never leaves orphans behind.
    """
    uploaded: list[StoredBlob] = []
    try:
        if not files.avatar:
            raise ValidationError("avatar_required", details={"field": "avatar"})

        try:
            payload = UserCreate.model_validate(dict(form))
        except PydanticValidationError as exc:
            raise ValidationError("invalid_registration", details=validation_details(exc)) from exc

        existing = (
            db.query(User.id)
            .filter(or_(User.username == payload.username, User.email == payload.email))
            .first()
        )
        if existing:
            logger.warning("Registration rejected: username or email taken (%s)", payload.username)
            raise ConflictError(
                "username_or_email_exists",
                details={"username": payload.username, "email": payload.email},
            )

        try:
            avatar = blob_store.upload(files.avatar)
            uploaded.append(avatar)
        except BlobStoreError as exc:
            raise InternalError("avatar_upload_failed") from exc

        cover_url = ""
        if files.cover_image:
            try:
                cover = blob_store.upload(files.cover_image)
                uploaded.append(cover)
                cover_url = cover.url
            except BlobStoreError as exc:
                raise InternalError("cover_image_upload_failed") from exc

        user = User(
            username=payload.username,
            email=payload.email,
            fullname=payload.fullname,
            password=payload.password,
            avatar=avatar.url,
            cover_image=cover_url,
            bio=payload.bio,
            interests=payload.interests,
            location=payload.location,
            location_coordinates=payload.location_coordinates,
        )
        db.add(user)
        try:
            db.commit()
        except IntegrityError as exc:
            db.rollback()
            raise ConflictError("username_or_email_exists", details={"username": payload.username}) from exc
        except SQLAlchemyError as exc:
            db.rollback()
            raise InternalError("failed_to_create_user") from exc
        db.refresh(user)
    except Exception:
        discard_blobs(blob_store, *uploaded)
        raise
    finally:
        cleanup_files(blob_store, files.avatar, files.cover_image)

    logger.info("User created: %s", user.username)
    return user


def login_user(db: Session, identifier: str, password: str) -> AuthTokens:
    if not identifier or not password:
        raise ValidationError("identifier_and_password_required")

    user = find_user_by_identifier(db, identifier)
    if not user:
        logger.warning("Login failed: user not found (%s)", identifier)
        raise NotFoundError("user_not_found")
    if not verify_password(password, user.password_hash):
        logger.warning("Login failed: invalid password (%s)", user.username)
        raise InvalidCredentialError("invalid_password")

    tokens = issue_auth_tokens(db, user)
    logger.info("User logged in: %s", user.username)
    return tokens


def issue_auth_tokens(db: Session, user: User) -> AuthTokens:
    """Mint a new pair and unconditionally replace the user's revocation slot."""
    access_token, refresh_token = _mint_tokens(user)
    try:
        db.execute(
            update(User)
            .where(User.id == user.id)
            .values(
                refresh_token_hash=fingerprint_token(refresh_token),
                refresh_token_issued_at=_utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to persist refresh token for %s", user.id)
        raise InternalError("failed_to_persist_session") from exc
    db.refresh(user)
    return AuthTokens(access_token=access_token, refresh_token=refresh_token, user=user)


def logout_user(db: Session, user_id: UUID | None) -> None:
    if not user_id:
        raise AuthenticationException("not_authenticated")
    try:
        db.execute(
            update(User)
            .where(User.id == user_id)
            .values(refresh_token_hash=None, refresh_token_issued_at=None)
            .execution_options(synchronize_session=False)
        )
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError("failed_to_logout") from exc
    logger.info("User logged out: %s", user_id)


def _parse_subject(payload: dict[str, Any]) -> UUID:
    try:
        return UUID(str(payload.get("sub")))
    except ValueError as exc:
        raise InvalidCredentialError("invalid_refresh_token") from exc


def rotate_refresh_token(db: Session, incoming_refresh_token: str | None) -> AuthTokens:
    if not incoming_refresh_token:
        raise InvalidCredentialError("refresh_token_missing")

    payload = decode_token(incoming_refresh_token, REFRESH_TOKEN_TYPE)
    user = db.get(User, _parse_subject(payload))
    if not user:
        raise InvalidCredentialError("invalid_refresh_token")

    current_fingerprint = user.refresh_token_hash
    if not token_matches(incoming_refresh_token, current_fingerprint):
        logger.warning("Refresh rejected: token superseded or revoked (%s)", user.username)
        raise InvalidCredentialError("refresh_token_mismatch")

    access_token, refresh_token = _mint_tokens(user)
    try:
        # Compare-and-swap: only the caller still holding the stored token wins.
        result = db.execute(
            update(User)
            .where(User.id == user.id, User.refresh_token_hash == current_fingerprint)
            .values(
                refresh_token_hash=fingerprint_token(refresh_token),
                refresh_token_issued_at=_utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        swapped = result.rowcount
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to persist rotated refresh token for %s", user.id)
        raise InternalError("failed_to_persist_session") from exc

    if swapped != 1:
        logger.warning("Refresh rejected: concurrent rotation won (%s)", user.username)
        raise InvalidCredentialError("refresh_token_mismatch")

    db.refresh(user)
    logger.info("Refresh token rotated: %s", user.username)
    return AuthTokens(access_token=access_token, refresh_token=refresh_token, user=user)


def change_password(db: Session, user_id: UUID | None, old_password: str, new_password: str) -> User:
    if not user_id:
        raise AuthenticationException("not_authenticated")
    if not old_password or not new_password:
        raise ValidationError("old_and_new_password_required")
    if old_password == new_password:
        raise ValidationError("new_password_must_differ")
    if len(new_password) < MIN_PASSWORD_LEN:
        raise ValidationError("new_password_too_short", details={"min_length": MIN_PASSWORD_LEN})

    user = db.get(User, user_id)
    if not user:
        raise NotFoundError("user_not_found")
    if not verify_password(old_password, user.password_hash):
        logger.warning("Password change rejected: old password incorrect (%s)", user.username)
        raise InvalidCredentialError("old_password_incorrect")

    user.password = new_password
    if settings.REVOKE_SESSIONS_ON_PASSWORD_CHANGE:
        user.refresh_token_hash = None
        user.refresh_token_issued_at = None
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        raise InternalError("failed_to_change_password") from exc
    db.refresh(user)
    logger.info("Password changed: %s", user.username)
    return user
