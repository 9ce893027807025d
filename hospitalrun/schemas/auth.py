"""Authentication and tenancy schemas."""

from enum import Enum

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    """Staff role enumeration."""

    ADMIN = "admin"
    DOCTOR = "doctor"
    NURSE = "nurse"
    RECEPTIONIST = "receptionist"


class TenantId(BaseModel):
    """Hospital/organization pair that scopes data visibility."""

    hospital_id: str = Field(..., min_length=1)
    organization_id: str = Field(..., min_length=1)

    model_config = {"frozen": True}

    def __str__(self) -> str:
        return f"{self.organization_id}/{self.hospital_id}"


class TokenClaims(BaseModel):
    """Claims expected in an access token."""

    sub: str = Field(..., min_length=1)
    role: UserRole
    hospital_id: str = Field(..., min_length=1)
    organization_id: str = Field(..., min_length=1)
    username: str | None = None


class AuthenticatedUser(BaseModel):
    """Caller identity resolved from a bearer token."""

    id: str
    role: UserRole
    tenant: TenantId
    username: str | None = None

    model_config = {"frozen": True}

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "AuthenticatedUser":
        """Build the caller identity from validated token claims."""
        return cls(
            id=claims.sub,
            role=claims.role,
            tenant=TenantId(
                hospital_id=claims.hospital_id,
                organization_id=claims.organization_id,
            ),
            username=claims.username,
        )
