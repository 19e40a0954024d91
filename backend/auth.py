from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Header

from backend import repositories as repo
from backend.errors import Unauthorized
from backend.settings import get_settings

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("Stored password hash is malformed")
        return False


def create_token(user_id: str) -> str:
    settings = get_settings()
    now = datetime.now(timezone.utc)
    payload = {
        "id": user_id,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expires_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> str:
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:
        logger.info("Token verification failed: %s", exc.__class__.__name__)
        raise Unauthorized("Not authorized, token failed") from exc
    user_id = payload.get("id")
    if not user_id:
        raise Unauthorized("Not authorized, token failed")
    return str(user_id)


async def require_user(
    authorization: str | None = Header(default=None, alias="Authorization"),
) -> str:
    if not authorization or not authorization.startswith("Bearer "):
        raise Unauthorized("Not authorized, no token")
    token = authorization[len("Bearer ") :].strip()
    if not token:
        raise Unauthorized("Not authorized, no token")
    user_id = decode_token(token)
    if not await repo.get_user(user_id):
        raise Unauthorized("Not authorized, user not found")
    return user_id
