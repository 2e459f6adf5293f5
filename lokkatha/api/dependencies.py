"""FastAPI dependency injection for the database handle, repositories and auth."""

from typing import Annotated, Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from .auth.credentials import CredentialsAuthenticator
from .database.analytics_repository import AnalyticsRepository
from .database.db import Database
from .database.tale_repository import TaleRepository
from .database.user_repository import UserRepository
from .models.responses import SessionResponse

# Security scheme for bearer token authentication (401 raised below, not by the scheme)
security = HTTPBearer(auto_error=False)


# Database handle - created once by the app lifespan
def get_database(request: Request) -> Database:
    """Get the process-wide Database handle."""
    return request.app.state.db


def get_user_repository(db: Annotated[Database, Depends(get_database)]) -> UserRepository:
    """Get a UserRepository bound to the shared database handle."""
    return UserRepository(db)


def get_analytics_repository(
    db: Annotated[Database, Depends(get_database)]
) -> AnalyticsRepository:
    """Get an AnalyticsRepository bound to the shared database handle."""
    return AnalyticsRepository(db)


def get_tale_repository(
    db: Annotated[Database, Depends(get_database)],
    analytics: Annotated[AnalyticsRepository, Depends(get_analytics_repository)],
) -> TaleRepository:
    """Get a TaleRepository that records views through the analytics repository."""
    return TaleRepository(db, analytics)


def get_authenticator(
    users: Annotated[UserRepository, Depends(get_user_repository)]
) -> CredentialsAuthenticator:
    """Get a CredentialsAuthenticator backed by the user repository."""
    return CredentialsAuthenticator(users)


# Type aliases for cleaner route signatures
Users = Annotated[UserRepository, Depends(get_user_repository)]
Tales = Annotated[TaleRepository, Depends(get_tale_repository)]
Analytics = Annotated[AnalyticsRepository, Depends(get_analytics_repository)]
Authenticator = Annotated[CredentialsAuthenticator, Depends(get_authenticator)]


# Authentication dependency
async def get_current_session(
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
    auth: Authenticator,
) -> SessionResponse:
    """Verify the bearer token and return the session it carries.

    Raises:
        HTTPException: 401 if the token is missing, invalid or expired
    """
    session = auth.read_session(credentials.credentials) if credentials else None
    if session is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return session


# Type alias for the authenticated session
CurrentSession = Annotated[SessionResponse, Depends(get_current_session)]
