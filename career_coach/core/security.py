from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt
from fastapi import Depends, HTTPException, Request, status

from career_coach.core.config import settings
from career_coach.core.store import CoachStore

logger = logging.getLogger(__name__)


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        logger.warning("password_hash_invalid")
        return False


def issue_token(user_id: str, email: str) -> str:
    expires = datetime.now(timezone.utc) + timedelta(days=settings.jwt_ttl_days)
    payload = {"userId": user_id, "email": email, "exp": int(expires.timestamp())}
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> str | None:
    """Return the user id carried by a token, or ``None`` when it is invalid or expired."""
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:
        logger.info("token_rejected reason=%s", type(exc).__name__)
        return None
    user_id = payload.get("userId")
    return str(user_id) if user_id else None


def get_store(request: Request) -> CoachStore:
    return request.app.state.store


def bearer_user_id(request: Request) -> str | None:
    header = request.headers.get("authorization", "").strip()
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return decode_token(token.strip())


def resolve_user_id(token_user_id: str | None, body_user_id: str | None = None) -> str:
    """Body ``userId`` first, then the bearer token, else the shared guest account."""
    if body_user_id and body_user_id.strip():
        return body_user_id.strip()
    return token_user_id or settings.guest_user_id


def require_user_id(user_id: str | None = Depends(bearer_user_id)) -> str:
    if not user_id:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user_id
