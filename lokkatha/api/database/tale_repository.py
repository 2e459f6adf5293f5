"""Repository for tale CRUD operations using raw asyncpg SQL."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional, Union

from ..config import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from ..models.requests import TaleCreate, TaleFilters, TaleUpdate
from ..models.responses import AuthorSummary, TaleRecord
from .analytics_repository import AnalyticsRepository
from .db import Database
from .errors import DRIVER_ERRORS, translate_error

logger = logging.getLogger(__name__)

# Author projections: single-tale reads carry contact details, list views only the name
_AUTHOR_DETAIL = "u.name AS author_name, u.email AS author_email, u.institution AS author_institution"
_AUTHOR_NAME = "u.name AS author_name"

_TALE_INSERT_COLUMNS = (
    "id, title, story, cultural_context, region, author_id, "
    "image_url, audio_url, is_public, views, created_at, updated_at"
)

TALE_VIEW_EVENT = "tale_view"

FiltersArg = Union[TaleFilters, dict[str, Any], None]


def _escape_like(term: str) -> str:
    """Build an ILIKE pattern that matches ``term`` literally as a substring."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _public_where(filters: TaleFilters, params: list[Any]) -> str:
    """Build the WHERE clause for public listings, appending bind values to params."""
    clauses = ["t.is_public"]
    if filters.search:
        params.append(_escape_like(filters.search))
        n = len(params)
        clauses.append(f"(t.title ILIKE ${n} OR t.story ILIKE ${n})")
    if filters.region:
        params.append(filters.region)
        clauses.append(f"t.region = ${len(params)}")
    return " AND ".join(clauses)


def _coerce_filters(filters: FiltersArg) -> TaleFilters:
    if filters is None:
        return TaleFilters()
    if isinstance(filters, TaleFilters):
        return filters
    return TaleFilters(**filters)


def _row_to_tale(row) -> TaleRecord:
    """Convert an asyncpg Record (tale joined with author columns) to a TaleRecord."""
    data = dict(row)
    author_name = data.pop("author_name", None)
    author_email = data.pop("author_email", None)
    author_institution = data.pop("author_institution", None)

    # users.name is NOT NULL, so a missing name means the author row is gone
    author = None
    if author_name is not None:
        author = AuthorSummary(
            id=data["author_id"],
            name=author_name,
            email=author_email,
            institution=author_institution,
        )
    return TaleRecord(**data, author=author)


class TaleRepository:
    """Repository for tale persistence operations."""

    def __init__(self, db: Database, analytics: AnalyticsRepository):
        self.db = db
        self.analytics = analytics

    async def create_tale(self, tale: TaleCreate) -> TaleRecord:
        """Insert a new tale.

        The author id is stored as given; a tale whose author doesn't exist is
        returned with ``author=None``.
        """
        pool = await self.db.connect()
        tale_id = str(uuid.uuid4())
        now = datetime.now(timezone.utc)
        try:
            row = await pool.fetchrow(
                f"""
                WITH inserted AS (
                    INSERT INTO tales ({_TALE_INSERT_COLUMNS})
                    VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, 0, $10, $10)
                    RETURNING *
                )
                SELECT t.*, {_AUTHOR_DETAIL}
                FROM inserted t
                LEFT JOIN users u ON u.id = t.author_id
                """,
                tale_id,
                tale.title,
                tale.story,
                tale.cultural_context,
                tale.region,
                tale.author_id,
                tale.image_url,
                tale.audio_url,
                tale.is_public,
                now,
            )
        except DRIVER_ERRORS as e:
            raise translate_error(e, "create_tale") from e

        logger.info("Tale created", extra={"tale_id": tale_id, "user_id": tale.author_id})
        return _row_to_tale(row)

    async def get_tale_by_id(self, tale_id: str) -> Optional[TaleRecord]:
        """Get a tale by ID with its author's name, email and institution."""
        pool = await self.db.connect()
        try:
            row = await pool.fetchrow(
                f"""
                SELECT t.*, {_AUTHOR_DETAIL}
                FROM tales t
                LEFT JOIN users u ON u.id = t.author_id
                WHERE t.id = $1
                """,
                tale_id,
            )
        except DRIVER_ERRORS as e:
            raise translate_error(e, "get_tale_by_id") from e
        if not row:
            return None
        return _row_to_tale(row)

    async def update_tale(self, tale_id: str, changes: TaleUpdate) -> Optional[TaleRecord]:
        """Apply a partial update and return the post-update tale.

        ``updated_at`` is stamped on every call, even when no field changes.
        Returns None (and writes nothing) if the tale doesn't exist.
        """
        fields = changes.model_dump(exclude_unset=True)
        params: list[Any] = [tale_id]
        assignments = []
        # Column names come from TaleUpdate's declared fields, never from input keys
        for column in TaleUpdate.model_fields:
            if column in fields:
                params.append(fields[column])
                assignments.append(f"{column} = ${len(params)}")
        params.append(datetime.now(timezone.utc))
        assignments.append(f"updated_at = ${len(params)}")

        pool = await self.db.connect()
        try:
            row = await pool.fetchrow(
                f"""
                WITH updated AS (
                    UPDATE tales
                    SET {", ".join(assignments)}
                    WHERE id = $1
                    RETURNING *
                )
                SELECT t.*, {_AUTHOR_DETAIL}
                FROM updated t
                LEFT JOIN users u ON u.id = t.author_id
                """,
                *params,
            )
        except DRIVER_ERRORS as e:
            raise translate_error(e, "update_tale") from e
        if not row:
            return None
        return _row_to_tale(row)

    async def delete_tale(self, tale_id: str) -> Optional[TaleRecord]:
        """Delete a tale. Returns the removed tale, or None if it was already gone."""
        pool = await self.db.connect()
        try:
            row = await pool.fetchrow(
                f"""
                WITH deleted AS (
                    DELETE FROM tales WHERE id = $1 RETURNING *
                )
                SELECT t.*, {_AUTHOR_DETAIL}
                FROM deleted t
                LEFT JOIN users u ON u.id = t.author_id
                """,
                tale_id,
            )
        except DRIVER_ERRORS as e:
            raise translate_error(e, "delete_tale") from e
        if not row:
            return None
        logger.info("Tale deleted", extra={"tale_id": tale_id})
        return _row_to_tale(row)

    async def get_public_tales(
        self,
        limit: int = DEFAULT_PAGE_SIZE,
        page: int = 1,
        filters: FiltersArg = None,
    ) -> list[TaleRecord]:
        """List public tales newest first, one 1-based page at a time.

        ``search`` matches title or story as a case-insensitive substring and
        ``region`` matches exactly. Out-of-range paging is clamped: a page
        below 1 reads page 1, a non-positive limit yields an empty page, and
        limits above MAX_PAGE_SIZE are capped.
        """
        filters = _coerce_filters(filters)
        if limit <= 0:
            return []
        limit = min(limit, MAX_PAGE_SIZE)
        page = max(page, 1)

        params: list[Any] = []
        where = _public_where(filters, params)
        params.append(limit)
        limit_param = len(params)
        params.append((page - 1) * limit)
        offset_param = len(params)

        pool = await self.db.connect()
        try:
            rows = await pool.fetch(
                f"""
                SELECT t.*, {_AUTHOR_NAME}
                FROM tales t
                LEFT JOIN users u ON u.id = t.author_id
                WHERE {where}
                ORDER BY t.created_at DESC, t.id DESC
                LIMIT ${limit_param} OFFSET ${offset_param}
                """,
                *params,
            )
        except DRIVER_ERRORS as e:
            raise translate_error(e, "get_public_tales") from e

        return [_row_to_tale(r) for r in rows]

    async def get_user_tales(self, user_id: str) -> list[TaleRecord]:
        """List every tale by an author, public or private, newest first."""
        pool = await self.db.connect()
        try:
            rows = await pool.fetch(
                f"""
                SELECT t.*, {_AUTHOR_NAME}
                FROM tales t
                LEFT JOIN users u ON u.id = t.author_id
                WHERE t.author_id = $1
                ORDER BY t.created_at DESC, t.id DESC
                """,
                user_id,
            )
        except DRIVER_ERRORS as e:
            raise translate_error(e, "get_user_tales") from e

        return [_row_to_tale(r) for r in rows]

    async def get_tales_count(self, filters: FiltersArg = None) -> int:
        """Count public tales, optionally narrowed by the listing filters."""
        filters = _coerce_filters(filters)
        params: list[Any] = []
        where = _public_where(filters, params)

        pool = await self.db.connect()
        try:
            total = await pool.fetchval(
                f"SELECT COUNT(*) FROM tales t WHERE {where}",
                *params,
            )
        except DRIVER_ERRORS as e:
            raise translate_error(e, "get_tales_count") from e
        return total or 0

    async def increment_tale_views(self, tale_id: str) -> None:
        """Add one view to a tale and record a ``tale_view`` analytics event.

        The increment is a single atomic UPDATE. The two writes are not
        transactional: if recording the event fails, the view stays counted
        and the error propagates.
        """
        pool = await self.db.connect()
        try:
            result = await pool.execute(
                "UPDATE tales SET views = views + 1 WHERE id = $1",
                tale_id,
            )
        except DRIVER_ERRORS as e:
            raise translate_error(e, "increment_tale_views") from e

        # Result is like "UPDATE 1" or "UPDATE 0"
        if result.split()[-1] == "0":
            logger.warning("View recorded for unknown tale", extra={"tale_id": tale_id})

        await self.analytics.record_analytics(TALE_VIEW_EVENT, {"tale_id": tale_id})
