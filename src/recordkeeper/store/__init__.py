"""Record Store - Persistent storage for students and users."""

from recordkeeper.store.database import Database
from recordkeeper.store.models import (
    DeleteOutcome,
    Role,
    Student,
    User,
    UserRecord,
)
from recordkeeper.store.store import RecordStore

__all__ = [
    "Database",
    "DeleteOutcome",
    "RecordStore",
    "Role",
    "Student",
    "User",
    "UserRecord",
]
