"""FastAPI dependencies."""

from collections.abc import Callable
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import ValidationError

from hospitalrun.core.security import decode_access_token
from hospitalrun.database import AppointmentStore, get_store
from hospitalrun.schemas.auth import AuthenticatedUser, TokenClaims, UserRole
from hospitalrun.services.appointment_service import AppointmentService

# Security
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> AuthenticatedUser:
    """
    Resolve the caller from a JWT bearer token.

    Args:
        credentials: Bearer token credentials

    Returns:
        Caller identity with role and tenant

    Raises:
        HTTPException: If the token is missing, invalid or expired
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(credentials.credentials)

    if payload is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        claims = TokenClaims.model_validate(payload)
    except ValidationError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token is missing role or tenant claims",
            headers={"WWW-Authenticate": "Bearer"},
        ) from None

    return AuthenticatedUser.from_claims(claims)


def require_roles(*roles: UserRole) -> Callable[..., AuthenticatedUser]:
    """
    Build a dependency that only admits callers holding one of ``roles``.

    Args:
        roles: Roles allowed on the route

    Returns:
        Dependency returning the authenticated caller
    """
    allowed = frozenset(roles)

    async def dependency(
        user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    ) -> AuthenticatedUser:
        if user.role not in allowed:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied",
            )
        return user

    return dependency


def get_appointment_service(
    store: Annotated[AppointmentStore, Depends(get_store)],
) -> AppointmentService:
    """Build the appointment service over the current store."""
    return AppointmentService(store)


# Type aliases for dependency injection
Store = Annotated[AppointmentStore, Depends(get_store)]
AppointmentReader = Annotated[
    AuthenticatedUser,
    Depends(
        require_roles(UserRole.ADMIN, UserRole.DOCTOR, UserRole.NURSE, UserRole.RECEPTIONIST)
    ),
]
AppointmentEditor = Annotated[
    AuthenticatedUser,
    Depends(require_roles(UserRole.ADMIN, UserRole.DOCTOR, UserRole.NURSE)),
]
AppointmentRemover = Annotated[
    AuthenticatedUser,
    Depends(require_roles(UserRole.ADMIN, UserRole.DOCTOR)),
]
Appointments = Annotated[AppointmentService, Depends(get_appointment_service)]
