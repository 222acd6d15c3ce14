"""Session endpoints (register, login, logout, refresh, change password)."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.orm import Session

from voluntree.core.config import settings
from voluntree.core.deps import get_current_user, get_refresh_token
from voluntree.db.session import get_db
from voluntree.models.user import User
from voluntree.schemas.auth import AuthSessionOut, PasswordChangedOut
from voluntree.schemas.common import ApiResponse, ok
from voluntree.schemas.user import ChangePasswordRequest, UserLogin, UserOut
from voluntree.services import auth as auth_service
from voluntree.storage.blob import BlobStore, cleanup_files, get_blob_store
from voluntree.storage.uploads import save_upload

router = APIRouter()
logger = logging.getLogger(__name__)


def _set_auth_cookies(response: Response, *, access_token: str, refresh_token: str) -> None:
    response.set_cookie(
        settings.ACCESS_COOKIE_NAME,
        access_token,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        path="/",
        max_age=int(settings.ACCESS_TOKEN_EXPIRY.total_seconds()),
    )
    response.set_cookie(
        settings.REFRESH_COOKIE_NAME,
        refresh_token,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        path="/",
        max_age=int(settings.REFRESH_TOKEN_EXPIRY.total_seconds()),
    )


def _clear_auth_cookies(response: Response) -> None:
    response.delete_cookie(settings.ACCESS_COOKIE_NAME, path="/")
    response.delete_cookie(settings.REFRESH_COOKIE_NAME, path="/")


def _session_payload(response: Response, tokens: auth_service.AuthTokens) -> AuthSessionOut:
    _set_auth_cookies(response, access_token=tokens.access_token, refresh_token=tokens.refresh_token)
    return AuthSessionOut(
        user=UserOut.model_validate(tokens.user),
        access_token=tokens.access_token,
        refresh_token=tokens.refresh_token,
    )


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=ApiResponse[UserOut])
def register_user(
    username: str = Form(""),
    email: str = Form(""),
    fullname: str = Form(""),
    password: str = Form(""),
    bio: str = Form(""),
    interests: str = Form(""),
    location: str = Form(""),
    location_coordinates: str | None = Form(None, alias="locationCoordinates"),
    avatar: UploadFile | None = File(None),
    cover_image: UploadFile | None = File(None, alias="coverImage"),
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> ApiResponse[UserOut]:
    avatar_path = save_upload(avatar)
    try:
        cover_path = save_upload(cover_image)
    except Exception:
        cleanup_files(blob_store, avatar_path)
        raise

    form = {
        "username": username,
        "email": email,
        "fullname": fullname,
        "password": password,
        "bio": bio,
        "interests": interests,
        "location": location,
        "location_coordinates": location_coordinates,
    }
    user = auth_service.register_user(
        db,
        blob_store,
        form,
        auth_service.RegistrationFiles(avatar=avatar_path, cover_image=cover_path),
    )
    return ok(UserOut.model_validate(user), "user registered successfully", status.HTTP_201_CREATED)


@router.post("/login", response_model=ApiResponse[AuthSessionOut])
def login_user(
    payload: UserLogin,
    response: Response,
    db: Session = Depends(get_db),
) -> ApiResponse[AuthSessionOut]:
    tokens = auth_service.login_user(db, payload.identifier, payload.password)
    return ok(_session_payload(response, tokens), "user logged in successfully")


@router.post("/logout", response_model=ApiResponse[dict])
def logout_user(
    response: Response,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[dict]:
    auth_service.logout_user(db, user.id)
    _clear_auth_cookies(response)
    return ok({}, "user logged out successfully")


@router.post("/refresh-token", response_model=ApiResponse[AuthSessionOut])
def refresh_session(
    response: Response,
    refresh_token: str | None = Depends(get_refresh_token),
    db: Session = Depends(get_db),
) -> ApiResponse[AuthSessionOut]:
    tokens = auth_service.rotate_refresh_token(db, refresh_token)
    return ok(_session_payload(response, tokens), "access token refreshed")


@router.post("/change-password", response_model=ApiResponse[PasswordChangedOut])
def change_password(
    payload: ChangePasswordRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ApiResponse[PasswordChangedOut]:
    updated = auth_service.change_password(db, user.id, payload.old_password, payload.new_password)
    return ok(PasswordChangedOut(user=UserOut.model_validate(updated)), "password changed successfully")
