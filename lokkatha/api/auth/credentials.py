"""Email/password authentication and session shaping.

A login runs in two phases. ``authorize`` checks the credentials and yields a
public identity; the identity is then folded into a signed token whose custom
claims are projected back onto the session on every later request. Sessions
live entirely in the token, so there is no server-side revocation: logging out
means the client discards its token.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from ..config import SIGN_IN_PAGE, SIGN_UP_PAGE
from ..database.user_repository import UserRepository
from ..models.requests import UserCreate
from ..models.responses import Identity, SessionResponse, SessionUser
from .passwords import dummy_verify, hash_password, verify_password
from .tokens import create_access_token, verify_token

logger = logging.getLogger(__name__)

SESSION_STRATEGY = "jwt"

AUTH_PAGES = {
    "sign_in": SIGN_IN_PAGE,
    "sign_up": SIGN_UP_PAGE,
}


class CredentialsAuthenticator:
    """Validates credentials against the user store and issues session tokens."""

    def __init__(self, users: UserRepository):
        self.users = users

    async def authorize(self, email: Optional[str], password: Optional[str]) -> Optional[Identity]:
        """Return the user's public identity, or None if authentication fails.

        Every failure (missing credentials, unknown email, wrong password,
        or an internal error) produces the same None.
        """
        if not email or not password:
            return None

        try:
            user = await self.users.get_user_by_email(email)
            if user is None:
                # bcrypt is CPU-bound; run it off the event loop
                await asyncio.to_thread(dummy_verify)
                return None

            if not await asyncio.to_thread(verify_password, password, user.password):
                return None

            return Identity(
                id=user.id,
                email=user.email,
                name=user.name,
                institution=user.institution,
            )
        except Exception as e:
            logger.exception("Auth error", extra={"error_type": type(e).__name__})
            return None

    def jwt_callback(self, token: dict[str, Any], identity: Optional[Identity] = None) -> dict[str, Any]:
        """Fold a freshly authorized identity's custom claims into the token."""
        if identity is not None:
            token["id"] = identity.id
            token["institution"] = identity.institution
        return token

    def session_callback(self, session: SessionResponse, token: dict[str, Any]) -> SessionResponse:
        """Project the token's custom claims onto the session exposed to callers."""
        if token:
            session.user.id = token.get("id")
            session.user.institution = token.get("institution")
        return session

    def issue_session_token(self, identity: Identity) -> str:
        """Create the signed session token for an authorized identity."""
        claims = {
            "sub": identity.id,
            "name": identity.name,
            "email": identity.email,
        }
        return create_access_token(self.jwt_callback(claims, identity))

    def read_session(self, token: str) -> Optional[SessionResponse]:
        """Verify a presented token and build the caller-visible session."""
        claims = verify_token(token)
        if claims is None:
            return None

        session = SessionResponse(
            user=SessionUser(name=claims.get("name"), email=claims.get("email")),
            expires=datetime.fromtimestamp(claims["exp"], tz=timezone.utc),
        )
        return self.session_callback(session, claims)

    async def login(self, email: Optional[str], password: Optional[str]) -> Optional[str]:
        """Authorize and, on success, return a new session token."""
        identity = await self.authorize(email, password)
        if identity is None:
            logger.info("Login failed")
            return None
        logger.info("Login succeeded", extra={"user_id": identity.id})
        return self.issue_session_token(identity)

    async def register(
        self,
        name: str,
        email: str,
        password: str,
        institution: Optional[str] = None,
    ) -> Identity:
        """Create an account with a hashed password.

        Raises:
            DuplicateEmailError: If the email is already registered.
        """
        password_hash = await asyncio.to_thread(hash_password, password)
        user = await self.users.create_user(
            UserCreate(
                name=name,
                email=email,
                password=password_hash,
                institution=institution,
            )
        )
        return Identity(
            id=user.id,
            email=user.email,
            name=user.name,
            institution=user.institution,
        )
