"""
api/routes/v1/auth.py -- Registration, login and token introspection endpoints.

Routes:
  POST /api/v1/auth/register  -- create an account; 201
  POST /api/v1/auth/login     -- password login; returns a bearer token
  GET  /api/v1/auth/me        -- claims of the presented token (requires auth)

Security:
  Login returns the same 401 body for an unknown username and for a wrong
  password ("bad_credentials"). The route never learns why a login was
  denied -- Denied carries no fields.
  Cache-Control: no-store on every login response, success or failure.
  register and login are sync `def` so bcrypt runs in the thread pool instead
  of blocking the event loop.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse

from api.models import CredentialsRequest, LoginResponse, MeResponse, RegisterResponse
from auth.dependencies import get_current_claims
from auth.errors import (
    AuthenticationDenied,
    InvalidCredentialsInput,
    SystemFailure,
    UsernameTaken,
)
from auth.models import TokenClaims
from auth.service import Authenticated, CredentialService, Denied

# Auth policy:
# - POST /api/v1/auth/register:  public
# - POST /api/v1/auth/login:     public
# - GET  /api/v1/auth/me:        requires bearer token (get_current_claims)
router = APIRouter()


def _error(status_code: int, code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"code": code, "message": message})


@router.post("/auth/register", response_model=RegisterResponse, status_code=201)
def register(request: Request, body: CredentialsRequest) -> RegisterResponse:
    """Create a new account with the default role.

    Unlike login, registration may reveal that a username is taken (409).
    """
    service: CredentialService = request.app.state.credential_service
    try:
        account = service.registration.register(body.username, body.password)
    except InvalidCredentialsInput as exc:
        raise _error(422, exc.code, exc.message) from exc
    except UsernameTaken as exc:
        raise _error(409, exc.code, exc.message) from exc
    except SystemFailure as exc:
        raise _error(500, exc.code, exc.message) from exc
    return RegisterResponse(username=account.username, role=account.role)


@router.post("/auth/login", response_model=LoginResponse)
def login(request: Request, body: CredentialsRequest) -> JSONResponse:
    """Authenticate with username and password; return a signed bearer token.

    Matches on the flow's tagged result. A SystemFault is logged by the flow
    with its reason; the caller only sees a 503 that says nothing about the
    account.
    """
    service: CredentialService = request.app.state.credential_service
    result = service.authentication.authenticate(body.username, body.password)

    if isinstance(result, Authenticated):
        resp = JSONResponse(
            status_code=200,
            content=LoginResponse(
                access_token=result.token,
                token_type="bearer",  # noqa: S106 # nosec B106 -- OAuth token type, not a password
                expires_in=request.app.state.token_issuer.expire_seconds,
                username=result.username,
                role=result.role,
            ).model_dump(),
        )
    elif isinstance(result, Denied):
        denied = AuthenticationDenied()
        resp = JSONResponse(
            status_code=401,
            content={"error": {"code": denied.code, "message": denied.message}},
            headers={"WWW-Authenticate": "Bearer"},
        )
    else:
        failure = SystemFailure()
        resp = JSONResponse(
            status_code=503,
            content={"error": {"code": "service_unavailable", "message": failure.message}},
        )
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.get("/auth/me", response_model=MeResponse)
async def me(claims: TokenClaims = Depends(get_current_claims)) -> MeResponse:
    """Return the identity carried by the presented bearer token."""
    return MeResponse(
        username=claims.username,
        role=claims.role,
        issued_at=claims.issued_at.isoformat(),
        expires_at=claims.expires_at.isoformat(),
    )
