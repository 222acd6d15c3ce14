"""Common FastAPI dependencies for authentication."""

from __future__ import annotations

from uuid import UUID

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from voluntree.core.config import settings
from voluntree.core.exceptions import AuthenticationException, InvalidCredentialError
from voluntree.core.security import ACCESS_TOKEN_TYPE, decode_token
from voluntree.db.session import get_db
from voluntree.models.user import User


def _extract_bearer_token(request: Request) -> str | None:
    authorization = request.headers.get("Authorization", "")
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer":
        return None
    cleaned = token.strip()
    return cleaned or None


def get_access_token(request: Request) -> str | None:
    return _extract_bearer_token(request) or request.cookies.get(settings.ACCESS_COOKIE_NAME)


def get_refresh_token(request: Request) -> str | None:
    return request.cookies.get(settings.REFRESH_COOKIE_NAME) or _extract_bearer_token(request)


def get_current_user(request: Request, db: Session = Depends(get_db)) -> User:
    token = get_access_token(request)
    if not token:
        raise AuthenticationException("not_authenticated")

    payload = decode_token(token, ACCESS_TOKEN_TYPE)
    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError as exc:
        raise InvalidCredentialError("invalid_access_token") from exc

    user = db.get(User, user_id)
    if not user:
        raise InvalidCredentialError("invalid_access_token", details={"reason": "user_not_found"})
    return user
