"""Repository for user records using raw asyncpg SQL."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Optional

import asyncpg

from ..models.requests import UserCreate
from ..models.responses import UserRecord
from .db import Database
from .errors import DRIVER_ERRORS, DuplicateEmailError, translate_error

logger = logging.getLogger(__name__)

_USER_COLUMNS = "id, name, email, password, institution, created_at"


class UserRepository:
    """Repository for user persistence operations."""

    def __init__(self, db: Database):
        self.db = db

    async def create_user(self, user: UserCreate) -> UserRecord:
        """Insert a new user.

        Raises:
            DuplicateEmailError: If the email is already registered.
        """
        pool = await self.db.connect()
        user_id = str(uuid.uuid4())
        try:
            row = await pool.fetchrow(
                f"""
                INSERT INTO users (id, name, email, password, institution, created_at)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING {_USER_COLUMNS}
                """,
                user_id,
                user.name,
                user.email,
                user.password,
                user.institution,
                datetime.now(timezone.utc),
            )
        except asyncpg.UniqueViolationError as e:
            logger.warning("Registration rejected: email already in use", extra={"operation": "create_user"})
            raise DuplicateEmailError(user.email) from e
        except DRIVER_ERRORS as e:
            raise translate_error(e, "create_user") from e

        logger.info("User created", extra={"user_id": user_id})
        return UserRecord(**dict(row))

    async def get_user_by_email(self, email: str) -> Optional[UserRecord]:
        """Get a user by email, or None if no account uses it."""
        return await self._fetch_one("email", email, "get_user_by_email")

    async def get_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        """Get a user by ID, or None if it doesn't exist."""
        return await self._fetch_one("id", user_id, "get_user_by_id")

    async def _fetch_one(self, column: str, value: str, operation: str) -> Optional[UserRecord]:
        pool = await self.db.connect()
        try:
            row = await pool.fetchrow(
                f"SELECT {_USER_COLUMNS} FROM users WHERE {column} = $1",
                value,
            )
        except DRIVER_ERRORS as e:
            raise translate_error(e, operation) from e
        if not row:
            return None
        return UserRecord(**dict(row))
