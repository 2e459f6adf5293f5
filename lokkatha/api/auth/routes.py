"""Authentication routes for email/password login and sessions."""

from fastapi import APIRouter, HTTPException, status

from ..config import SESSION_MAX_AGE_DAYS
from ..database.errors import DuplicateEmailError
from ..dependencies import Authenticator, CurrentSession
from ..models.requests import LoginRequest, RegisterRequest
from ..models.responses import AuthPagesResponse, Identity, LoginResponse, SessionResponse
from .credentials import AUTH_PAGES

router = APIRouter(prefix="/api/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(request: LoginRequest, auth: Authenticator) -> LoginResponse:
    """Exchange email and password for a session token.

    The token should be included in the Authorization header for all
    subsequent requests. Every failure returns the same 401.
    """
    token = await auth.login(request.email, request.password)
    if token is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return LoginResponse(access_token=token, expires_in=SESSION_MAX_AGE_DAYS * 24 * 60 * 60)


@router.post("/register", response_model=Identity, status_code=status.HTTP_201_CREATED)
async def register(request: RegisterRequest, auth: Authenticator) -> Identity:
    """Create an account. Sign in afterwards through ``/login``."""
    try:
        return await auth.register(
            name=request.name,
            email=request.email,
            password=request.password,
            institution=request.institution,
        )
    except DuplicateEmailError:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )


@router.get("/session", response_model=SessionResponse)
async def get_session(session: CurrentSession) -> SessionResponse:
    """Return the session carried by the bearer token."""
    return session


@router.get("/pages", response_model=AuthPagesResponse)
async def get_pages() -> AuthPagesResponse:
    """Redirect targets for the sign-in and sign-up flows."""
    return AuthPagesResponse(**AUTH_PAGES)
