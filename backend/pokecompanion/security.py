"""
PokéCompanion Backend: Password Hashing and Access Tokens
==========================================================

What:  bcrypt password hashing and HS256 JWT issuing/verification.
How:   bcrypt is CPU-bound, so hashing and checking run in Starlette's thread
       pool instead of on the event loop. Tokens carry the user id and
       username and expire after `jwt_expires_days`.
Who:   AuthService (hash/verify/issue) and the get_current_user dependency
       (decode).
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict

import bcrypt
import jwt
from starlette.concurrency import run_in_threadpool

from pokecompanion.config import settings
from pokecompanion.exceptions import AuthenticationError


def _hash_password_sync(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.bcrypt_rounds)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def _verify_password_sync(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


async def hash_password(password: str) -> str:
    return await run_in_threadpool(_hash_password_sync, password)


async def verify_password(password: str, password_hash: str) -> bool:
    return await run_in_threadpool(_verify_password_sync, password, password_hash)


def create_access_token(user_id: int, username: str) -> str:
    """
    Issue a signed access token.

    Payload: {"id": <user id>, "username": <username>, "iat": ..., "exp": ...}
    """
    if not settings.jwt_secret:
        raise RuntimeError("JWT_SECRET is not configured")
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "username": username,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expires_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Verify signature and expiry and return the payload.

    Raises:
        AuthenticationError: invalid or expired token, or a payload without
                             an integer `id` and a `username`.
    """
    if not settings.jwt_secret:
        raise RuntimeError("JWT_SECRET is not configured")
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.ExpiredSignatureError as e:
        raise AuthenticationError(message="Token has expired") from e
    except jwt.InvalidTokenError as e:
        raise AuthenticationError(message="Invalid or expired token") from e

    if not isinstance(payload.get("id"), int) or not payload.get("username"):
        raise AuthenticationError(message="Token payload is invalid")
    return payload
