"""
FastAPI dependency injection functions.
"""

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client

from studenthub.core.database import get_supabase_client
from studenthub.core.exceptions import InvalidTokenError
from studenthub.core.security import decode_access_token

# Bearer token scheme for Swagger UI
bearer_scheme = HTTPBearer()


def get_db() -> Client:
    """Dependency: get Supabase client."""
    return get_supabase_client()


async def get_current_student_id(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> str:
    """Dependency: extract the student id (`sub` claim) from the bearer JWT.

    Raises:
        HTTPException 401: If token is invalid, expired, or has no subject.
    """
    payload = decode_access_token(credentials.credentials)
    if payload is None or not payload.get("sub"):
        error = InvalidTokenError()
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=error.message,
            headers={"WWW-Authenticate": "Bearer"},
        )

    return payload["sub"]
