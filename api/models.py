"""
API request and response models for AuthGate REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py, which
own the internal domain representation. Route handlers map between the two.

Request models do NOT enforce the username/password rules -- that is the
validator's job, so the client gets the full list of violations in one
response instead of Pydantic's first-failure view. Only type and a generous
size cap are checked here.

Separation of concerns: auth/ models = domain truth; api/ models = API contract.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from auth.models import TokenClaims, UserProfile

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class CredentialsRequest(BaseModel):
    """Request body for POST /api/v1/auth/register and /login."""

    username: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=1024)


class VerifyRequest(BaseModel):
    """Request body for POST /api/v1/auth/verify."""

    token: str = Field(default="", max_length=4096)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class UserOut(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    username: str
    created_at: Optional[str] = None

    @classmethod
    def from_profile(cls, profile: UserProfile) -> "UserOut":
        return cls(id=profile.id, username=profile.username, created_at=profile.created_at)


class RegisterResponse(BaseModel):
    message: str = "User registered successfully"
    user_id: str
    username: str


class LoginResponse(BaseModel):
    message: str = "Login successful"
    access_token: str
    token_type: str = "bearer"  # noqa: S105 # nosec B105 -- token type name, not a password
    expires_in: int
    user: UserOut


class TokenUser(BaseModel):
    id: str
    username: str

    @classmethod
    def from_claims(cls, claims: TokenClaims) -> "TokenUser":
        return cls(id=claims.user_id, username=claims.username)


class VerifyResponse(BaseModel):
    message: str = "Token is valid"
    valid: bool = True
    user: TokenUser
    expires_at: float


class ProfileResponse(BaseModel):
    message: str = "Profile retrieved successfully"
    user: UserOut


class HealthResponse(BaseModel):
    status: str = "healthy"
    version: str
    components: dict[str, str] = Field(default_factory=dict)


# ---------------------------------------------------------------------------
# Error envelope
# ---------------------------------------------------------------------------


class ErrorDetail(BaseModel):
    code: str
    message: str
    detail: Optional[Any] = None


class ErrorResponse(BaseModel):
    """Every non-2xx response body has exactly this shape."""

    error: ErrorDetail
