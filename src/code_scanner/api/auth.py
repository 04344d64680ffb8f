"""Authentication endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from code_scanner.api.models import (
    LoginRequest,
    LoginResponse,
    SignupRequest,
    UserPayload,
)
from code_scanner.errors import (
    EmailTakenError,
    InvalidCredentialsError,
    RegistrationError,
    TransientError,
    UsernameTakenError,
)

if TYPE_CHECKING:
    from code_scanner.containers import AppContainer

router = APIRouter(prefix="/auth", tags=["auth"])


def bearer_token(authorization: str | None = Header(default=None)) -> str | None:
    """Extract the token from an ``Authorization: Bearer`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def _unavailable(exc: TransientError) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)
    )


@router.post("/login")
async def login(body: LoginRequest, request: Request) -> LoginResponse:
    """Exchange credentials for a session token."""
    container: AppContainer = request.app.state.container
    try:
        grant = container.account_service.authenticate(body.username, body.password)
    except InvalidCredentialsError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc)
        ) from exc
    except TransientError as exc:
        raise _unavailable(exc) from exc
    return LoginResponse(
        token=grant.token, user=UserPayload.from_identity(grant.identity)
    )


@router.post("/signup", status_code=status.HTTP_201_CREATED)
async def signup(body: SignupRequest, request: Request) -> dict[str, object]:
    """Register a new account."""
    container: AppContainer = request.app.state.container
    try:
        container.account_service.register(body.username, body.email, body.password)
    except (UsernameTakenError, EmailTakenError) as exc:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT, detail=str(exc)
        ) from exc
    except RegistrationError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    except TransientError as exc:
        raise _unavailable(exc) from exc
    return {"success": True, "message": "Account created successfully. Please login."}


@router.get("/validate")
async def validate(
    request: Request, token: str | None = Depends(bearer_token)
) -> dict[str, object]:
    """Confirm that the bearer token is still recognised."""
    container: AppContainer = request.app.state.container
    try:
        grant = container.account_service.verify(token or "")
    except TransientError as exc:
        raise _unavailable(exc) from exc
    if grant is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
    user = UserPayload.from_identity(grant.identity)
    return {"valid": True, "user": user.model_dump(mode="json")}


@router.post("/logout")
async def logout(
    request: Request, token: str | None = Depends(bearer_token)
) -> dict[str, str]:
    """Revoke the bearer token."""
    container: AppContainer = request.app.state.container
    if token:
        try:
            container.account_service.revoke(token)
        except TransientError as exc:
            raise _unavailable(exc) from exc
    return {"status": "ok"}
