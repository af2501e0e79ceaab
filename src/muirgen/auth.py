"""Password hashing and bearer token issue/verification."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

import jwt
from passlib.context import CryptContext

from .config import settings
from .errors import AuthError

logger = logging.getLogger(__name__)

pwd_context = CryptContext(
    schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds
)


@dataclass(frozen=True)
class TokenClaims:
    """Identity carried by a session token."""

    user_uuid: str
    handle: str
    is_admin: bool
    expires_at: datetime


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return pwd_context.verify(password, password_hash)
    except (ValueError, TypeError):
        # Unparseable stored hash counts as a failed match.
        return False


def issue_token(
    user_uuid: str, handle: str, is_admin: bool, now: datetime | None = None
) -> str:
    """Return a signed token for the user, valid for the configured days."""
    issued = now or datetime.now(timezone.utc)
    payload = {
        "sub": user_uuid,
        "handle": handle,
        "isAdmin": bool(is_admin),
        "iat": issued,
        "exp": issued + timedelta(days=settings.token_expire_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> TokenClaims:
    """Check signature, structure and expiry of ``token``.

    Raises :class:`AuthError` for any failure; the caller decides whether that
    means "not logged in" or a 401 response.
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"require": ["exp", "sub"]},
        )
    except jwt.ExpiredSignatureError as exc:
        raise AuthError("Session Expired") from exc
    except jwt.PyJWTError as exc:
        raise AuthError("Invalid token") from exc

    handle = payload.get("handle")
    if not isinstance(handle, str):
        raise AuthError("Invalid token")
    return TokenClaims(
        user_uuid=str(payload["sub"]),
        handle=handle,
        is_admin=bool(payload.get("isAdmin", False)),
        expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
    )


def check_principal_active(
    claims: TokenClaims, lookup: Callable[[str], Optional[Any]]
) -> Any:
    """Confirm the principal named by ``claims`` still exists and is active.

    ``lookup`` returns the active user for a uuid, or ``None``. A signature-valid
    token for a deactivated or deleted user is rejected here.
    """
    user = lookup(claims.user_uuid)
    if user is None:
        logger.info("token principal %s no longer active", claims.user_uuid)
        raise AuthError("Access Denied")
    return user


def verify_token(token: str, lookup: Callable[[str], Optional[Any]]) -> TokenClaims:
    claims = decode_token(token)
    check_principal_active(claims, lookup)
    return claims
