"""Configuration loading for Record Keeper."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from recordkeeper.credentials import DEFAULT_ROUNDS, MIN_ROUNDS
from recordkeeper.exceptions import ConfigError, InvalidDatabasePathError

DB_PATH_ENV_VAR = "SMS_DB_PATH"
VALID_DB_EXTENSIONS = (".sqlite", ".sqlite3", ".db")
MEMORY_DB = ":memory:"

DEFAULT_MAX_LOGIN_ATTEMPTS = 3


def validate_db_path(db_path: str | Path) -> str:
    """Check that the database location has a recognized extension.

    Args:
        db_path: Path to the SQLite database file, or ":memory:".

    Returns:
        The path as a string.

    Raises:
        InvalidDatabasePathError: If the extension is not recognized.
    """
    db_path = str(db_path)
    if db_path == MEMORY_DB:
        return db_path
    if Path(db_path).suffix.lower() not in VALID_DB_EXTENSIONS:
        allowed = ", ".join(f"`{ext}`" for ext in VALID_DB_EXTENSIONS)
        raise InvalidDatabasePathError(
            f"The database path '{db_path}' is invalid; must end with {allowed}."
        )
    return db_path


@dataclass
class AuthConfig:
    """Login and hashing settings."""

    max_login_attempts: int = DEFAULT_MAX_LOGIN_ATTEMPTS
    hash_rounds: int = DEFAULT_ROUNDS


@dataclass
class LoggingConfig:
    """Log file settings. None defers to the environment defaults."""

    dir: str | None = None
    level: str | None = None


@dataclass
class AppConfig:
    """Record Keeper configuration."""

    db_path: str | None = None
    auth: AuthConfig = field(default_factory=AuthConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AppConfig:
        """Create config from dictionary.

        Args:
            data: Configuration dictionary from YAML.

        Returns:
            Parsed configuration object.

        Raises:
            ConfigError: If a section or value is invalid.
        """
        database_data = _section(data, "database")
        auth_data = _section(data, "auth")
        logging_data = _section(data, "logging")

        auth = AuthConfig(
            max_login_attempts=_int_value(
                auth_data, "max_login_attempts", DEFAULT_MAX_LOGIN_ATTEMPTS
            ),
            hash_rounds=_int_value(auth_data, "hash_rounds", DEFAULT_ROUNDS),
        )
        if auth.max_login_attempts < 1:
            raise ConfigError("auth.max_login_attempts must be at least 1")
        if auth.hash_rounds < MIN_ROUNDS:
            raise ConfigError(f"auth.hash_rounds must be at least {MIN_ROUNDS}")

        db_path = database_data.get("path")
        if db_path is not None:
            db_path = str(db_path)

        level = logging_data.get("level")
        log_dir = logging_data.get("dir")
        return cls(
            db_path=db_path,
            auth=auth,
            logging=LoggingConfig(
                dir=str(log_dir) if log_dir is not None else None,
                level=str(level) if level is not None else None,
            ),
        )

    def resolve_db_path(self, override: str | None = None) -> str:
        """Pick the database location and validate it.

        Precedence: explicit override, then the SMS_DB_PATH environment
        variable, then the configured path.

        Raises:
            ConfigError: If no location is available.
            InvalidDatabasePathError: If the location has a bad extension.
        """
        db_path = override or os.environ.get(DB_PATH_ENV_VAR) or self.db_path
        if not db_path:
            raise ConfigError(
                f"No database path configured; set `{DB_PATH_ENV_VAR}` or pass --db."
            )
        return validate_db_path(db_path)


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping, got {type(section).__name__}")
    return section


def _int_value(section: dict[str, Any], key: str, default: int) -> int:
    value = section.get(key, default)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigError(f"'{key}' must be an integer, got {value!r}")
    return value


def load_config(config_path: Path | str | None = None) -> AppConfig:
    """Load Record Keeper configuration from a YAML file.

    Args:
        config_path: Path to a YAML file. None returns the defaults.

    Returns:
        Parsed configuration object.

    Raises:
        ConfigError: If the file doesn't exist or is invalid.
    """
    if config_path is None:
        return AppConfig()

    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {config_path}: {e}") from e

    if data is None:
        return AppConfig()
    if not isinstance(data, dict):
        raise ConfigError(f"Configuration must be a YAML mapping, got {type(data).__name__}")

    return AppConfig.from_dict(data)
