"""Auth-related schemas (login and refresh responses)."""

from __future__ import annotations

from voluntree.schemas.common import CamelModel
from voluntree.schemas.user import UserOut


class AuthSessionOut(CamelModel):
    user: UserOut
    access_token: str
    refresh_token: str


class PasswordChangedOut(CamelModel):
    user: UserOut
