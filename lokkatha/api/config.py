"""API configuration constants.

Single source of truth for environment-driven settings used across the data
and authentication layers.
"""

import os
import re

from dotenv import find_dotenv, load_dotenv

# Load .env from project root (find_dotenv searches parent directories)
load_dotenv(find_dotenv())

# Database
DATABASE_URL = os.getenv("DATABASE_URL", "")
DB_POOL_MIN_SIZE = int(os.getenv("DB_POOL_MIN_SIZE", "1"))
DB_POOL_MAX_SIZE = int(os.getenv("DB_POOL_MAX_SIZE", "10"))
DB_COMMAND_TIMEOUT = float(os.getenv("DB_COMMAND_TIMEOUT", "30"))

# Sessions
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-in-production")
JWT_ALGORITHM = "HS256"
SESSION_MAX_AGE_DAYS = int(os.getenv("SESSION_MAX_AGE_DAYS", "30"))

# Redirect targets for the sign-in and sign-up flows
SIGN_IN_PAGE = "/login"
SIGN_UP_PAGE = "/register"

# Tale listing
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

# Comma-separated origins allowed by CORS
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "*").split(",") if o.strip()]

# Logging
LOG_FORMAT = os.getenv("LOG_FORMAT", "json")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def require_database_url(url: str | None = None) -> str:
    """Return the asyncpg DSN, failing hard when none is configured.

    Accepts SQLAlchemy-style ``postgresql+asyncpg://`` URLs as well and strips
    the driver suffix, since asyncpg only understands plain ``postgresql://``.

    Raises:
        RuntimeError: If DATABASE_URL is not set.
    """
    dsn = url if url is not None else DATABASE_URL
    if not dsn:
        raise RuntimeError(
            "Database not configured. Set DATABASE_URL environment variable "
            "to a PostgreSQL connection string."
        )
    return re.sub(r"^postgresql\+asyncpg://", "postgresql://", dsn)
