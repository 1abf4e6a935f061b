"""Credential checks and access tokens."""

from __future__ import annotations

import hashlib
import hmac
import logging
import secrets
from datetime import datetime, timedelta, timezone

from fastapi import Request
from jose import JWTError, jwt

from histsync.storage.models import Principal
from histsync.storage.users import UserRepository

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
PBKDF2_ITERATIONS = 200_000


class AuthError(Exception):
    """Authentication or authorization failure, rendered as ``{"code", "message"}``."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(message)
        self.code = code
        self.message = message


def hash_password(password: str) -> str:
    """Hash a password as ``salt$hash`` using salted PBKDF2-SHA256."""
    salt = secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return f"{salt}${digest.hex()}"


def verify_password(password: str, hashed_password: str) -> bool:
    salt, sep, expected = hashed_password.partition("$")
    if not sep:
        return False
    digest = hashlib.pbkdf2_hmac("sha256", password.encode(), salt.encode(), PBKDF2_ITERATIONS)
    return hmac.compare_digest(digest.hex(), expected)


async def authenticate(users: UserRepository, username: str, password: str) -> bool:
    """Check a username/password pair against the stored hash."""
    stored = await users.get_password_hash(username)
    if stored is None:
        return False
    return verify_password(password, stored)


def create_access_token(principal: Principal, secret: str, hours: int) -> str:
    expire = datetime.now(timezone.utc) + timedelta(hours=hours)
    claims = {
        "username": principal.username,
        "systemName": principal.system_name,
        "exp": expire,
    }
    return jwt.encode(claims, secret, algorithm=ALGORITHM)


def verify_token(token: str, secret: str) -> Principal:
    """Decode a token into the principal it was issued for."""
    try:
        payload = jwt.decode(token, secret, algorithms=[ALGORITHM])
    except JWTError as e:
        logger.info("Rejected token: %s", e)
        raise AuthError(401, "token is invalid or expired") from e

    username = payload.get("username")
    if not isinstance(username, str) or not username:
        raise AuthError(401, "token is missing the username claim")
    return Principal(username=username, system_name=payload.get("systemName") or "")


def extract_token(request: Request) -> str:
    """Find the token in the Authorization header, the ``token`` query or the ``jwt`` cookie."""
    header = request.headers.get("Authorization", "")
    scheme, _, value = header.partition(" ")
    if scheme == "Bearer" and value:
        return value.strip()
    if token := request.query_params.get("token"):
        return token
    return request.cookies.get("jwt", "")


async def get_principal(request: Request) -> Principal:
    """FastAPI dependency resolving the verified principal of a request."""
    token = extract_token(request)
    if not token:
        raise AuthError(401, "auth header is empty")
    return verify_token(token, request.app.state.secret)
