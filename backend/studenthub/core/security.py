"""
Security utilities: JWT handling for identifying the current student.

Tokens are issued by the student-hub auth service; this backend only verifies them.
"""

from datetime import datetime, timedelta, timezone

from jose import jwt, JWTError

from studenthub.config import get_settings


def create_access_token(student_id: str, extra_data: dict | None = None) -> str:
    """Create a JWT access token whose `sub` is the student id."""
    settings = get_settings()

    payload = {
        "sub": str(student_id),
        "exp": datetime.now(timezone.utc) + timedelta(minutes=settings.JWT_EXPIRY_MINUTES),
        "iat": datetime.now(timezone.utc),
    }
    if extra_data:
        payload.update(extra_data)

    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict | None:
    """Decode and validate a JWT token. Returns payload or None if invalid."""
    settings = get_settings()
    try:
        return jwt.decode(
            token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        return None
