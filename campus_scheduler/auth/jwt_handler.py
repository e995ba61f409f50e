from datetime import datetime, timedelta, timezone

import jwt

from campus_scheduler.core import config

REQUIRED_CLAIMS = ["sub", "exp"]


def create_access_token(user_id: int, role: str, expires_minutes: int | None = None) -> str:
    issued_at = datetime.now(timezone.utc)
    lifetime = config.JWT_EXPIRES_MINUTES if expires_minutes is None else expires_minutes
    payload = {
        "sub": str(user_id),
        "role": role,
        "iat": issued_at,
        "exp": issued_at + timedelta(minutes=lifetime),
    }
    return jwt.encode(payload, config.JWT_SECRET_KEY, algorithm=config.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    """Verify signature and expiry; tokens missing a subject are rejected as invalid."""
    return jwt.decode(
        token,
        config.JWT_SECRET_KEY,
        algorithms=[config.JWT_ALGORITHM],
        options={"require": REQUIRED_CLAIMS},
    )
