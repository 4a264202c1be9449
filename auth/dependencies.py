"""
auth/dependencies.py -- FastAPI Depends() helpers for authentication.

get_auth_service() returns the AuthService wired into app.state by the
lifespan (or by a test fixture).

get_current_claims() reads "Authorization: Bearer <token>":
  - header missing or not exactly "Bearer <token>" -> TokenRequired (401),
    without attempting verification.
  - token present but invalid or expired            -> InvalidToken (403).

Layer rule: no imports from api/.
  auth/dependencies.py may import from fastapi (for Depends/Request)
  because this module is part of the FastAPI dependency injection system.
"""

from __future__ import annotations

from http import HTTPStatus

from fastapi import Depends, Request

from auth.errors import InvalidToken, TokenRequired
from auth.models import TokenClaims
from auth.service import AuthService
from auth.tokens import TokenService


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_current_claims(
    request: Request,
    service: AuthService = Depends(get_auth_service),
) -> TokenClaims:
    """Require a valid bearer token.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(claims: TokenClaims = Depends(get_current_claims)): ...
    """
    token = TokenService.extract_bearer(request.headers.get("Authorization"))
    if token is None:
        raise TokenRequired()
    try:
        return service.verify(token)
    except InvalidToken as exc:
        raise InvalidToken(status_code=HTTPStatus.FORBIDDEN) from exc
