"""PostgreSQL connection management using an asyncpg pool.

One ``Database`` handle is owned per process (the API lifespan creates it and
stores it on ``app.state``) and passed to every repository. The pool behind it
is opened lazily on first use, and at most one connection attempt is ever in
flight: callers that arrive while the pool is being opened await the same
attempt.
"""

import asyncio
import json
import logging
import time
from typing import Optional

import asyncpg
from sqlalchemy.dialects import postgresql
from sqlalchemy.schema import CreateIndex, CreateTable

from ..config import DB_COMMAND_TIMEOUT, DB_POOL_MAX_SIZE, DB_POOL_MIN_SIZE
from .errors import StorageUnavailableError
from .models import Base

logger = logging.getLogger(__name__)

# Arbitrary key for pg_advisory_xact_lock so concurrent processes don't race on DDL
SCHEMA_LOCK_ID = 7_204_211

def schema_statements() -> list[str]:
    """Compile the ORM models into idempotent PostgreSQL DDL."""
    dialect = postgresql.dialect()
    statements = []
    for table in Base.metadata.sorted_tables:
        statements.append(str(CreateTable(table, if_not_exists=True).compile(dialect=dialect)))
        for index in sorted(table.indexes, key=lambda idx: idx.name):
            statements.append(str(CreateIndex(index, if_not_exists=True).compile(dialect=dialect)))
    return statements

async def init_db(conn: asyncpg.Connection) -> None:
    """Initialize database - create all tables and indexes if missing."""
    async with conn.transaction():
        await conn.execute("SELECT pg_advisory_xact_lock($1)", SCHEMA_LOCK_ID)
        for statement in schema_statements():
            await conn.execute(statement)

async def _init_connection(conn: asyncpg.Connection) -> None:
    """Decode jsonb columns to Python objects on every pooled connection."""
    await conn.set_type_codec(
        "jsonb", encoder=json.dumps, decoder=json.loads, schema="pg_catalog"
    )

def _retrieve_exception(task: asyncio.Task) -> None:
    """Mark a failed attempt's exception as seen even if every waiter was cancelled."""
    if not task.cancelled():
        task.exception()

class Database:
    """Lazily connected, process-wide handle to the asyncpg pool."""

    def __init__(
        self,
        dsn: str,
        *,
        min_size: int = DB_POOL_MIN_SIZE,
        max_size: int = DB_POOL_MAX_SIZE,
        command_timeout: float = DB_COMMAND_TIMEOUT,
        create_schema: bool = True,
    ):
        self.dsn = dsn
        self.min_size = min_size
        self.max_size = max_size
        self.command_timeout = command_timeout
        self.create_schema = create_schema
        self._pool: Optional[asyncpg.Pool] = None
        self._pending: Optional[asyncio.Task] = None

    @property
    def is_connected(self) -> bool:
        return self._pool is not None

    @property
    def pool(self) -> asyncpg.Pool:
        """Get the live pool. Raises if ``connect()`` has not completed."""
        if self._pool is None:
            raise RuntimeError("Database not connected. Await Database.connect() first.")
        return self._pool

    async def connect(self) -> asyncpg.Pool:
        """Return the shared pool, opening it on first use.

        Safe to call from many tasks at once. If the attempt fails every
        waiting caller receives ``StorageUnavailableError`` and the next call
        starts a fresh attempt.
        """
        if self._pool is not None:
            return self._pool

        if self._pending is None:
            self._pending = asyncio.ensure_future(self._open_pool())
            self._pending.add_done_callback(_retrieve_exception)

        # Shield so one cancelled caller doesn't abort the attempt for everyone
        return await asyncio.shield(self._pending)

    def _finish_attempt(self) -> None:
        # close() may already have detached this attempt and a new one started
        if self._pending is asyncio.current_task():
            self._pending = None

    async def _open_pool(self) -> asyncpg.Pool:
        start = time.monotonic()
        logger.info("Opening database connection pool", extra={"operation": "connect"})
        pool = None
        try:
            pool = await asyncpg.create_pool(
                self.dsn,
                min_size=self.min_size,
                max_size=self.max_size,
                command_timeout=self.command_timeout,
                init=_init_connection,
            )
            if self.create_schema:
                async with pool.acquire() as conn:
                    await init_db(conn)
        except asyncio.CancelledError:
            self._finish_attempt()
            if pool is not None:
                await pool.close()
            logger.info("Database connection attempt cancelled", extra={"operation": "connect"})
            raise
        except Exception as e:
            self._finish_attempt()
            if pool is not None:
                await pool.close()
            logger.error(
                f"Database connection failed: {e}",
                extra={"operation": "connect", "error_type": type(e).__name__},
            )
            raise StorageUnavailableError(f"Could not connect to database: {e}", "connect") from e

        self._pool = pool
        self._finish_attempt()
        logger.info(
            "Database connection pool ready",
            extra={"operation": "connect", "duration": round(time.monotonic() - start, 3)},
        )
        return pool

    async def close(self) -> None:
        """Close the pool, abandoning any attempt still in flight.

        A later ``connect()`` opens a new one.
        """
        pending, self._pending = self._pending, None
        if pending is not None:
            pending.cancel()
            # wait() rather than await so a cancelled attempt doesn't raise here
            await asyncio.wait([pending])

        pool, self._pool = self._pool, None
        if pool is not None:
            await pool.close()
            logger.info("Database connection pool closed")
