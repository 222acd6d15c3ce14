"""Security helpers for hashing passwords and issuing JWTs.

Access and refresh tokens are signed with two independent secrets so a leaked
access key cannot mint refresh tokens. Only the refresh token is revocable:
its SHA-256 fingerprint is kept on the user row and compared in constant time.
"""

from __future__ import annotations

import datetime as dt
import hashlib
import hmac
from typing import Any, Protocol
from uuid import uuid4

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext

from voluntree.core.config import settings
from voluntree.core.exceptions import ExpiredCredentialError, InvalidCredentialError

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")
ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenSubject(Protocol):
    id: Any
    username: str
    email: str
    fullname: str


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str | None) -> bool:
    if not hashed:
        return False
    return pwd_context.verify(password, hashed)


def _secret_for(token_type: str) -> str:
    if token_type == ACCESS_TOKEN_TYPE:
        return settings.ACCESS_TOKEN_SECRET
    if token_type == REFRESH_TOKEN_TYPE:
        return settings.REFRESH_TOKEN_SECRET
    raise ValueError(f"unknown token type: {token_type}")


def _create_token(data: dict[str, Any], *, expires_delta: dt.timedelta, token_type: str) -> str:
    to_encode = data.copy()
    now = dt.datetime.now(dt.timezone.utc)
    expire = now + expires_delta
    to_encode.update({"type": token_type, "jti": str(uuid4()), "iat": int(now.timestamp()), "exp": expire})
    return jwt.encode(to_encode, _secret_for(token_type), algorithm=settings.JWT_ALGORITHM)


def create_access_token(user: TokenSubject, expires_delta: dt.timedelta | None = None) -> str:
    claims = {
        "sub": str(user.id),
        "username": user.username,
        "email": user.email,
        "fullname": user.fullname,
    }
    return _create_token(
        claims,
        expires_delta=expires_delta or settings.ACCESS_TOKEN_EXPIRY,
        token_type=ACCESS_TOKEN_TYPE,
    )


def create_refresh_token(user: TokenSubject, expires_delta: dt.timedelta | None = None) -> str:
    return _create_token(
        {"sub": str(user.id)},
        expires_delta=expires_delta or settings.REFRESH_TOKEN_EXPIRY,
        token_type=REFRESH_TOKEN_TYPE,
    )


def decode_token(token: str, token_type: str = ACCESS_TOKEN_TYPE) -> dict[str, Any]:
    try:
        payload = jwt.decode(
            token,
            _secret_for(token_type),
            algorithms=[settings.JWT_ALGORITHM],
        )
    except ExpiredSignatureError as exc:
        raise ExpiredCredentialError(f"{token_type}_token_expired") from exc
    except JWTError as exc:
        raise InvalidCredentialError(f"invalid_{token_type}_token") from exc

    if payload.get("type") != token_type or not payload.get("sub"):
        raise InvalidCredentialError(f"invalid_{token_type}_token")
    return payload


def fingerprint_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def token_matches(token: str, fingerprint: str | None) -> bool:
    if not fingerprint:
        return False
    return hmac.compare_digest(fingerprint_token(token), fingerprint)
