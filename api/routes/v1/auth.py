"""
api/routes/v1/auth.py -- Authentication REST endpoints.

Routes:
  POST /api/v1/auth/register  -- create an account
  POST /api/v1/auth/login     -- password login; returns a bearer token
  POST /api/v1/auth/verify    -- decode a token supplied in the body
  GET  /api/v1/auth/profile   -- current user's profile (requires bearer token)

All business rules live in auth.service.AuthService. Handlers only translate
between HTTP and the service: they pick the client identifier, call one
service method, and shape the response. AuthError exceptions propagate to the
handler registered in api/main.py, which renders the shared error envelope.

Handlers are plain `def` so FastAPI runs them in its worker thread pool --
bcrypt is CPU-bound and must not block the event loop.

Security:
  [H2] POST /register and /login carry the coarse slowapi per-IP cap in
       addition to AuthService's failed-attempt limiter.
  [M5] Cache-Control: no-store on login responses.
  X-RateLimit-Limit / X-RateLimit-Remaining report the failed-attempt quota.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from slowapi.util import get_remote_address

from api.limiter import REQUEST_RATE_LIMIT, limiter
from api.models import (
    CredentialsRequest,
    LoginResponse,
    ProfileResponse,
    RegisterResponse,
    TokenUser,
    UserOut,
    VerifyRequest,
    VerifyResponse,
)
from auth.dependencies import get_auth_service, get_current_claims
from auth.errors import AuthError, InvalidToken
from auth.models import TokenClaims
from auth.service import LOGIN_ENDPOINT, REGISTER_ENDPOINT, AuthService

# Auth policy:
# - POST /api/v1/auth/register: public
# - POST /api/v1/auth/login:    public
# - POST /api/v1/auth/verify:   public -- the token is the credential
# - GET  /api/v1/auth/profile:  requires bearer token (get_current_claims)
router = APIRouter()


def _client_id(request: Request) -> str:
    return get_remote_address(request) or "unknown"


def _quota_headers(service: AuthService, identifier: str, endpoint: str) -> dict[str, str]:
    status = service.rate_limit_status(identifier, endpoint)
    return {
        "X-RateLimit-Limit": str(status.limit),
        "X-RateLimit-Remaining": str(status.remaining),
    }


@limiter.limit(REQUEST_RATE_LIMIT)  # [H2] must be ABOVE @router to preserve FastAPI introspection
@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(
    request: Request,
    body: CredentialsRequest,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Register a new user. All validation problems are reported at once."""
    identifier = _client_id(request)
    try:
        profile = service.register(body.username, body.password, identifier)
    except AuthError as exc:
        exc.headers = _quota_headers(service, identifier, REGISTER_ENDPOINT)
        raise

    return JSONResponse(
        status_code=201,
        content=RegisterResponse(user_id=profile.id, username=profile.username).model_dump(),
        headers=_quota_headers(service, identifier, REGISTER_ENDPOINT),
    )


@limiter.limit(REQUEST_RATE_LIMIT)  # [H2]
@router.post("/auth/login", response_model=LoginResponse)
def login(
    request: Request,
    body: CredentialsRequest,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    """Authenticate with username and password; return a bearer token.

    Wrong username and wrong password produce the same 401 body.
    """
    identifier = _client_id(request)
    try:
        result = service.login(body.username, body.password, identifier)
    except AuthError as exc:
        exc.headers = _quota_headers(service, identifier, LOGIN_ENDPOINT)
        raise

    headers = _quota_headers(service, identifier, LOGIN_ENDPOINT)
    headers["Cache-Control"] = "no-store"  # [M5]
    return JSONResponse(
        status_code=200,
        content=LoginResponse(
            access_token=result.token,
            token_type=result.token_type,
            expires_in=result.expires_in,
            user=UserOut.from_profile(result.user),
        ).model_dump(),
        headers=headers,
    )


@router.post("/auth/verify", response_model=VerifyResponse)
def verify(body: VerifyRequest, service: AuthService = Depends(get_auth_service)) -> VerifyResponse:
    """Report whether a token is valid and whom it identifies."""
    if not body.token:
        raise InvalidToken("Token is required", status_code=400)
    claims = service.verify(body.token)
    return VerifyResponse(user=TokenUser.from_claims(claims), expires_at=claims.expires_at)


@router.get("/auth/profile", response_model=ProfileResponse)
def profile(
    claims: TokenClaims = Depends(get_current_claims),
    service: AuthService = Depends(get_auth_service),
) -> ProfileResponse:
    """Return the profile of the user the bearer token identifies."""
    return ProfileResponse(user=UserOut.from_profile(service.get_profile(claims.username)))
