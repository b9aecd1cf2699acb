"""Shared pytest fixtures and configuration."""

import logging
from collections.abc import Iterator
from datetime import date

import pytest

from recordkeeper.credentials import MIN_ROUNDS, PasswordCodec
from recordkeeper.store import RecordStore, Role, Student


# Register custom markers
def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: fast tests with no external dependencies")
    config.addinivalue_line("markers", "integration: component interaction tests")


@pytest.fixture(autouse=True)
def reset_recordkeeper_logger() -> Iterator[None]:
    """Detach handlers added by setup_logging so tests don't share log files."""
    yield
    logger = logging.getLogger("recordkeeper")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def codec() -> PasswordCodec:
    """Codec at the lowest allowed cost to keep tests quick."""
    return PasswordCodec(rounds=MIN_ROUNDS)


@pytest.fixture
def store(codec: PasswordCodec) -> Iterator[RecordStore]:
    """Create an in-memory RecordStore for testing."""
    record_store = RecordStore(":memory:", codec=codec)
    yield record_store
    record_store.close()


@pytest.fixture
def make_student():
    """Factory for Student records with sensible defaults."""

    def _make(**overrides) -> Student:
        fields = {
            "first_name": "Alice",
            "last_name": "Smith",
            "date_of_birth": date(2005, 3, 14),
            "height": 165.5,
            "postcode": "SW1A 1AA",
            "address_line": "10 Downing Street",
            "contact_phone": "07700 900123",
            "contact_email": "alice@example.com",
        }
        fields.update(overrides)
        return Student(**fields)

    return _make


@pytest.fixture
def admin_id(store: RecordStore) -> int:
    """Seed one admin account (admin@example.com / admin-pass)."""
    return store.add_user("admin@example.com", "admin-pass", Role.ADMIN)
