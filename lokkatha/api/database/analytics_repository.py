"""Append-only analytics event log."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from ..models.responses import AnalyticsEventRecord
from .db import Database
from .errors import DRIVER_ERRORS, translate_error

logger = logging.getLogger(__name__)

_EVENT_COLUMNS = "id, type, tale_id, user_id, metadata, timestamp"


class AnalyticsRepository:
    """Records analytics events. Tale and user ids are stored as plain lookups."""

    def __init__(self, db: Database):
        self.db = db

    async def record_analytics(
        self,
        event_type: str,
        data: Optional[dict[str, Any]] = None,
    ) -> AnalyticsEventRecord:
        """Append one event stamped with the current time.

        ``tale_id``, ``user_id`` and ``metadata`` keys of ``data`` map onto
        their own columns; any other key is merged into ``metadata``.

        Raises:
            ValueError: If event_type is empty.
        """
        if not isinstance(event_type, str) or not event_type:
            raise ValueError("Analytics event type is required")

        fields = dict(data or {})
        tale_id = fields.pop("tale_id", None)
        user_id = fields.pop("user_id", None)
        metadata = fields.pop("metadata", None)
        if fields:
            if metadata is None:
                metadata = fields
            elif isinstance(metadata, dict):
                metadata = {**metadata, **fields}
            else:
                metadata = {"value": metadata, **fields}

        pool = await self.db.connect()
        try:
            row = await pool.fetchrow(
                f"""
                INSERT INTO analytics (id, type, tale_id, user_id, metadata, timestamp)
                VALUES ($1, $2, $3, $4, $5, $6)
                RETURNING {_EVENT_COLUMNS}
                """,
                str(uuid.uuid4()),
                event_type,
                str(tale_id) if tale_id is not None else None,
                str(user_id) if user_id is not None else None,
                metadata,
                datetime.now(timezone.utc),
            )
        except DRIVER_ERRORS as e:
            raise translate_error(e, "record_analytics") from e

        return AnalyticsEventRecord(**dict(row))

    async def get_events(
        self,
        event_type: Optional[str] = None,
        tale_id: Optional[str] = None,
        limit: int = 100,
    ) -> list[AnalyticsEventRecord]:
        """List events newest first, optionally filtered by type and tale."""
        clauses = []
        params: list[Any] = []
        if event_type:
            params.append(event_type)
            clauses.append(f"type = ${len(params)}")
        if tale_id:
            params.append(tale_id)
            clauses.append(f"tale_id = ${len(params)}")
        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(max(limit, 0))

        pool = await self.db.connect()
        try:
            rows = await pool.fetch(
                f"""
                SELECT {_EVENT_COLUMNS} FROM analytics
                {where}
                ORDER BY timestamp DESC
                LIMIT ${len(params)}
                """,
                *params,
            )
        except DRIVER_ERRORS as e:
            raise translate_error(e, "get_events") from e

        return [AnalyticsEventRecord(**dict(r)) for r in rows]
