"""Database module for user, tale and analytics persistence."""

from .analytics_repository import AnalyticsRepository
from .db import Database, init_db, schema_statements
from .errors import (
    ConstraintViolationError,
    DuplicateEmailError,
    RepositoryError,
    StorageUnavailableError,
)
from .models import AnalyticsEvent, Base, Tale, User
from .tale_repository import TaleRepository
from .user_repository import UserRepository

__all__ = [
    # Connection management
    "Database",
    "init_db",
    "schema_statements",
    "Base",
    # Models
    "User",
    "Tale",
    "AnalyticsEvent",
    # Repositories
    "UserRepository",
    "TaleRepository",
    "AnalyticsRepository",
    # Errors
    "RepositoryError",
    "ConstraintViolationError",
    "DuplicateEmailError",
    "StorageUnavailableError",
]
