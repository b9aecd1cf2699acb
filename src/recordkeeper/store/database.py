"""Database connection manager for the Record Store."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING

from sqlalchemy import create_engine, event
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

from recordkeeper.config import MEMORY_DB, validate_db_path
from recordkeeper.exceptions import StorageError
from recordkeeper.logging import get_logger, sanitize_for_log, truncate_output
from recordkeeper.store.models import Base

if TYPE_CHECKING:
    from sqlalchemy import Engine

logger = get_logger("store.database")


def _unicode_lower(value: object) -> object:
    return value.lower() if isinstance(value, str) else value


class Database:
    """Database connection manager.

    File databases open a fresh connection per session and release it on
    close. In-memory databases keep one shared connection, otherwise the
    data would vanish between operations.
    """

    def __init__(self, db_path: str = "recordkeeper.db") -> None:
        """Initialize database connection.

        Args:
            db_path: Path to SQLite database file. Use ":memory:" for in-memory DB.

        Raises:
            InvalidDatabasePathError: If the path has an unrecognized extension.
        """
        self.db_path = validate_db_path(db_path)
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def engine(self) -> Engine:
        """Get or create the database engine."""
        if self._engine is None:
            if self.db_path == MEMORY_DB:
                self._engine = create_engine(
                    "sqlite:///:memory:",
                    echo=False,
                    poolclass=StaticPool,
                    connect_args={"check_same_thread": False},
                )
            else:
                Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
                self._engine = create_engine(
                    f"sqlite:///{self.db_path}",
                    echo=False,
                    poolclass=NullPool,
                )

            @event.listens_for(self._engine, "connect")
            def register_functions(dbapi_connection: object, _connection_record: object) -> None:
                # SQLite's built-in lower() only folds ASCII letters
                dbapi_connection.create_function(  # type: ignore[attr-defined]
                    "lower", 1, _unicode_lower, deterministic=True
                )

        return self._engine

    @property
    def session_factory(self) -> sessionmaker[Session]:
        """Get or create the session factory."""
        if self._session_factory is None:
            self._session_factory = sessionmaker(
                bind=self.engine,
                expire_on_commit=False,
            )
        return self._session_factory

    def create_tables(self) -> None:
        """Create all tables if they don't exist.

        Raises:
            StorageError: If the database cannot be opened or written.
        """
        try:
            Base.metadata.create_all(self.engine)
        except SQLAlchemyError as e:
            logger.error("Failed to create tables: %s", sanitize_for_log(str(e)))
            raise StorageError(f"Could not initialise database '{self.db_path}'") from e

    def drop_tables(self) -> None:
        """Drop all tables. Use with caution!"""
        Base.metadata.drop_all(self.engine)

    def get_session(self) -> Session:
        """Get a new database session.

        Returns:
            A new SQLAlchemy session.
        """
        return self.session_factory()

    @contextmanager
    def session_scope(self, operation: str) -> Iterator[Session]:
        """Run one operation in its own session.

        The session is rolled back unless the caller committed, and is
        always closed. Driver errors surface as StorageError.

        Args:
            operation: Name used in log and error messages.

        Yields:
            A new SQLAlchemy session.

        Raises:
            StorageError: If any statement fails.
        """
        session = self.get_session()
        try:
            yield session
        except SQLAlchemyError as e:
            session.rollback()
            logger.error(
                "Storage failure during %s: %s",
                operation,
                truncate_output(sanitize_for_log(str(e))),
            )
            raise StorageError(f"Storage failure during {operation}") from e
        finally:
            session.close()

    def close(self) -> None:
        """Close the database connection."""
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
