"""HTTP route definitions for the identity service."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from ..domain.contracts import SessionView
from ..domain.errors import AuthError
from ..domain.service import AuthService

logger = logging.getLogger(__name__)

router = APIRouter()


class SessionViewResponse(BaseModel):
    """Serialised representation of a `SessionView`."""

    access_token: str
    profile_img: str | None = None
    username: str
    fullname: str

    @classmethod
    def from_domain(cls, view: SessionView) -> "SessionViewResponse":
        """Build a response model from the domain session view."""
        return cls(
            access_token=view.access_token,
            profile_img=view.profile_img,
            username=view.username,
            fullname=view.fullname,
        )


class SignupRequest(BaseModel):
    """Payload accepted when creating a password account."""

    # missing fields fall through to the ordered signup checks
    fullname: str = ""
    email: str = ""
    password: str = ""


class SigninRequest(BaseModel):
    """Credentials for a password signin."""

    email: str = ""
    password: str = ""


class GoogleAuthRequest(BaseModel):
    """Identity provider token presented for federated signin."""

    access_token: str = ""


def get_service(request: Request) -> AuthService:
    """Resolve the `AuthService` stored on the FastAPI application state."""
    service: AuthService = request.app.state.auth_service
    return service


@router.post("/signup", response_model=SessionViewResponse)
def signup(
    payload: SignupRequest,
    service: AuthService = Depends(get_service),
) -> SessionViewResponse:
    """Create a password account and return its session."""
    view = service.signup(payload.fullname, payload.email, payload.password)
    return SessionViewResponse.from_domain(view)


@router.post("/signin", response_model=SessionViewResponse)
def signin(
    payload: SigninRequest,
    service: AuthService = Depends(get_service),
) -> SessionViewResponse:
    """Authenticate with email and password."""
    view = service.signin(payload.email, payload.password)
    return SessionViewResponse.from_domain(view)


@router.post("/google-auth", response_model=SessionViewResponse)
def google_auth(
    payload: GoogleAuthRequest,
    service: AuthService = Depends(get_service),
) -> SessionViewResponse:
    """Authenticate with an identity provider token, creating the account on first use."""
    view = service.federated_signin(payload.access_token)
    return SessionViewResponse.from_domain(view)


def install_error_handlers(app: FastAPI) -> None:
    """Render auth failures and malformed bodies as ``{"error": message}``."""

    @app.exception_handler(AuthError)
    async def _auth_error(request: Request, exc: AuthError) -> JSONResponse:
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        logger.info("malformed request body on %s", request.url.path)
        return JSONResponse(
            status_code=status.HTTP_403_FORBIDDEN,
            content={"error": "malformed request body"},
        )
