"""CLI entry point for Record Keeper."""

from __future__ import annotations

import sys
from pathlib import Path

import click

from recordkeeper import __version__
from recordkeeper.auth import Authenticator, GatedStore, Identity
from recordkeeper.cli import console
from recordkeeper.cli.menus import StudentMenu
from recordkeeper.cli.prompts import FieldKind, read_field
from recordkeeper.config import DB_PATH_ENV_VAR, AppConfig, load_config
from recordkeeper.credentials import PasswordCodec
from recordkeeper.exceptions import (
    InvalidCredentialsError,
    LockedOutError,
    StorageError,
    ValidationError,
)
from recordkeeper.logging import get_logger, setup_logging
from recordkeeper.store import RecordStore, Role

logger = get_logger("cli")

db_option = click.option(
    "--db",
    "db_path",
    default=None,
    help=f"Path to the SQLite database (.sqlite, .sqlite3 or .db); overrides ${DB_PATH_ENV_VAR}",
)
config_option = click.option(
    "-c",
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Path to a YAML configuration file",
)
verbose_option = click.option("-v", "--verbose", is_flag=True, help="Log at DEBUG level")


def open_store(
    config_path: Path | None, db_path: str | None, verbose: bool
) -> tuple[AppConfig, RecordStore]:
    """Load configuration, start logging and open the store.

    Exits the process with status 1 on a configuration or storage failure.
    """
    try:
        config = load_config(config_path)
        resolved = config.resolve_db_path(db_path)
    except ValidationError as e:
        console.fatal(str(e))

    setup_logging(
        log_dir=config.logging.dir,
        level="DEBUG" if verbose else config.logging.level,
    )

    try:
        store = RecordStore(resolved, codec=PasswordCodec(config.auth.hash_rounds))
    except StorageError as e:
        console.fatal(str(e))
    logger.info("Opened database %s", resolved)
    return config, store


def login(authenticator: Authenticator) -> Identity | None:
    """Prompt for credentials until login succeeds or the session locks.

    Returns:
        The logged-in Identity, or None once locked out.
    """
    session = authenticator.new_session()
    console.info("Before you begin, please login.")
    while True:
        email = read_field(FieldKind.TEXT, "Enter your email")
        password = read_field(FieldKind.TEXT, "Enter your password", hide_input=True)
        try:
            return authenticator.login(session, email, password)
        except LockedOutError:
            return None
        except InvalidCredentialsError as e:
            console.error(str(e))
            console.info(f"You have {e.attempts_remaining} attempt(s) remaining.")
        except StorageError as e:
            console.error(f"{e}. Please try again.")


@click.group()
@click.version_option(version=__version__, prog_name="recordkeeper")
def main() -> None:
    """Record Keeper - manage student records from the console."""
    pass


@main.command()
@db_option
@config_option
@verbose_option
def run(db_path: str | None, config_path: Path | None, verbose: bool) -> None:
    """Log in and open the student menu."""
    config, store = open_store(config_path, db_path, verbose)
    try:
        authenticator = Authenticator(store, max_attempts=config.auth.max_login_attempts)
        identity = login(authenticator)
        if identity is None:
            console.fatal("You have exceeded the maximum number of login attempts.")
        StudentMenu(GatedStore(store, identity)).run()
    finally:
        store.close()


@main.command("init-db")
@db_option
@config_option
@verbose_option
def init_db(db_path: str | None, config_path: Path | None, verbose: bool) -> None:
    """Create the tables and the first administrator."""
    _, store = open_store(config_path, db_path, verbose)
    try:
        if store.count_admins() > 0:
            console.info("The database already has an administrator.")
            return

        console.info("No administrator found; creating one.")
        email = read_field(FieldKind.EMAIL, "Enter the administrator's email")
        if store.user_exists(email):
            console.fatal(f"A user with email '{email}' already exists.")
        password = click.prompt(
            click.style("Enter the administrator's password >>>", fg="cyan"),
            hide_input=True,
            confirmation_prompt=True,
            prompt_suffix=" ",
        )
        user_id = store.add_user(email, password, Role.ADMIN)
        console.success(f"Administrator {email} created (ID {user_id}).")
    except (StorageError, ValidationError) as e:
        console.fatal(str(e))
    finally:
        store.close()


if __name__ == "__main__":
    sys.exit(main())
