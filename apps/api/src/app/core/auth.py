"""
Authentication and Authorization Module

Provides authentication dependencies for FastAPI endpoints.
Tokens are issued by the platform auth service; this module only validates
them (see security.py) and turns their claims into the calling principal.

The attendance endpoints need three facts about the caller: who they are,
their role, and which school (tenant) they belong to.
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.security import decode_token
from app.modules.users.models import ATTENDANCE_ROLES, UserRole

logger = logging.getLogger(__name__)

# Security scheme for OpenAPI documentation.
# auto_error is off so a missing header is reported as 401, not 403.
security = HTTPBearer(
    auto_error=False,
    description="JWT Bearer token for authentication",
)


@dataclass
class CurrentUser:
    """
    Represents the authenticated caller.

    Populated from JWT claims after token validation.

    Attributes:
        id: User's unique identifier (UUID string)
        email: User's email address
        role: User's role (teacher, school_admin, ...)
        school_id: Tenant the user belongs to, if any
        name: User's display name (optional)
    """

    id: str
    email: str
    role: str
    school_id: str | None = None
    name: str | None = None

    def __str__(self) -> str:
        return f"CurrentUser(id={self.id}, role={self.role}, school_id={self.school_id})"


def _unauthorized(error: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"error": error, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )


def _validate_jwt_token(token: str) -> CurrentUser:
    """
    Validate JWT token and extract user claims.

    Args:
        token: JWT token string from Authorization header

    Returns:
        CurrentUser built from the token claims

    Raises:
        HTTPException 401: If token is invalid, expired or has bad claims
    """
    payload = decode_token(token)

    if payload is None:
        logger.warning("Invalid or expired JWT token")
        raise _unauthorized("UNAUTHORIZED", "Invalid or expired authentication token.")

    # Verify token type is access token
    token_type = payload.get("type", "access")
    if token_type != "access":
        logger.warning(f"Invalid token type: {token_type}")
        raise _unauthorized("INVALID_TOKEN_TYPE", "This endpoint requires an access token.")

    try:
        user_id_str = payload.get("sub")
        if not user_id_str:
            raise ValueError("Missing 'sub' claim in token")
        user_id = str(UUID(user_id_str))

        school_id_str = payload.get("school_id")
        school_id = str(UUID(school_id_str)) if school_id_str else None

        return CurrentUser(
            id=user_id,
            email=payload.get("email", ""),
            role=payload.get("role", ""),
            school_id=school_id,
            name=payload.get("name"),
        )

    except (ValueError, TypeError) as e:
        logger.warning(f"Invalid token claims: {e}")
        raise _unauthorized(
            "INVALID_TOKEN_CLAIMS", "Token contains invalid or missing claims."
        ) from e


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(security),
) -> CurrentUser:
    """
    FastAPI dependency that validates the bearer token and returns the caller.

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
    """
    if credentials is None or not credentials.credentials:
        raise _unauthorized("UNAUTHORIZED", "Authentication is required.")

    return _validate_jwt_token(credentials.credentials)


async def get_current_teacher(
    user: CurrentUser = Depends(get_current_user),
) -> CurrentUser:
    """
    FastAPI dependency for attendance endpoints.

    Usage:
        @router.get("/teacher/attendance")
        async def daily_view(teacher: CurrentUser = Depends(get_current_teacher)):
            # teacher.id, teacher.school_id are available

    Raises:
        HTTPException 401: If token is missing, invalid, or expired
        HTTPException 403: If the user may not record attendance or has no school
    """
    try:
        role = UserRole(user.role)
    except ValueError:
        role = None

    if role not in ATTENDANCE_ROLES:
        logger.warning(
            f"Access denied: User {user.id} has role '{user.role}', "
            "attendance requires teacher or school_admin"
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "FORBIDDEN",
                "message": "Teacher access is required for this endpoint.",
            },
        )

    if not user.school_id:
        logger.warning(f"Access denied: User {user.id} has no school assigned")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "FORBIDDEN",
                "message": "User is not associated with a school.",
            },
        )

    logger.debug(f"Authenticated teacher: {user.id} (school {user.school_id})")
    return user


__all__ = [
    "CurrentUser",
    "get_current_user",
    "get_current_teacher",
]
