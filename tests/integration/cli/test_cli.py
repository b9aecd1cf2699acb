"""Integration tests for the recordkeeper command line."""

from pathlib import Path
from textwrap import dedent

import pytest
from click.testing import CliRunner

from recordkeeper import __version__
from recordkeeper.cli import main
from recordkeeper.credentials import MIN_ROUNDS, PasswordCodec
from recordkeeper.store import RecordStore, Role


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("SMS_DB_PATH", raising=False)
    monkeypatch.delenv("RECORDKEEPER_LOG_LEVEL", raising=False)


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "students.sqlite3"


@pytest.fixture
def config_path(tmp_path: Path) -> Path:
    """Config with the cheapest allowed hash cost and logs under tmp_path."""
    path = tmp_path / "recordkeeper.yaml"
    path.write_text(
        dedent(f"""
            auth:
              hash_rounds: {MIN_ROUNDS}
            logging:
              dir: {tmp_path / "logs"}
        """).strip()
    )
    return path


@pytest.fixture
def seeded(db_path: Path) -> Path:
    """Database with one admin and one regular user."""
    store = RecordStore(str(db_path), codec=PasswordCodec(MIN_ROUNDS))
    store.add_user("admin@example.com", "admin-pass", Role.ADMIN)
    store.add_user("user@example.com", "user-pass", Role.USER)
    store.close()
    return db_path


def run_session(runner: CliRunner, db_path: Path, config_path: Path, *lines: str):
    return runner.invoke(
        main,
        ["run", "--db", str(db_path), "--config", str(config_path)],
        input="\n".join(lines) + "\n",
    )


@pytest.mark.integration
class TestMain:
    """Tests for the command group."""

    def test_version(self, runner: CliRunner) -> None:
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_missing_db_path_is_fatal(self, runner: CliRunner, config_path: Path) -> None:
        result = runner.invoke(main, ["run", "--config", str(config_path)])

        assert result.exit_code == 1
        assert "SMS_DB_PATH" in result.output

    def test_db_path_from_environment(
        self,
        runner: CliRunner,
        seeded: Path,
        config_path: Path,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("SMS_DB_PATH", str(seeded))

        result = runner.invoke(
            main,
            ["run", "--config", str(config_path)],
            input="admin@example.com\nadmin-pass\n8\n",
        )

        assert result.exit_code == 0
        assert "Goodbye" in result.output

    def test_bad_extension_is_fatal(
        self, runner: CliRunner, tmp_path: Path, config_path: Path
    ) -> None:
        result = runner.invoke(
            main, ["run", "--db", str(tmp_path / "students.txt"), "--config", str(config_path)]
        )

        assert result.exit_code == 1
        assert "must end with" in result.output
        assert not (tmp_path / "students.txt").exists()


@pytest.mark.integration
class TestInitDb:
    """Tests for init-db."""

    def test_creates_first_admin(
        self, runner: CliRunner, db_path: Path, config_path: Path
    ) -> None:
        result = runner.invoke(
            main,
            ["init-db", "--db", str(db_path), "--config", str(config_path)],
            input="root@example.com\nroot-pass\nroot-pass\n",
        )

        assert result.exit_code == 0, result.output
        assert "Administrator root@example.com created" in result.output

        store = RecordStore(str(db_path))
        try:
            record = store.get_user_by_email("root@example.com")
            assert record.role is Role.ADMIN
            assert store.codec.verify("root-pass", record.password_hash)
        finally:
            store.close()

    def test_existing_admin_left_alone(
        self, runner: CliRunner, seeded: Path, config_path: Path
    ) -> None:
        result = runner.invoke(main, ["init-db", "--db", str(seeded), "--config", str(config_path)])

        assert result.exit_code == 0
        assert "already has an administrator" in result.output

    def test_writes_log_file(
        self, runner: CliRunner, seeded: Path, config_path: Path, tmp_path: Path
    ) -> None:
        runner.invoke(main, ["init-db", "--db", str(seeded), "--config", str(config_path)])

        assert "Opened database" in (tmp_path / "logs" / "recordkeeper.log").read_text()


@pytest.mark.integration
class TestLogin:
    """Tests for the login flow."""

    def test_login_then_exit(self, runner: CliRunner, seeded: Path, config_path: Path) -> None:
        result = run_session(runner, seeded, config_path, "admin@example.com", "admin-pass", "8")

        assert result.exit_code == 0, result.output
        assert "logged in as 'admin@example.com'" in result.output
        assert "Goodbye" in result.output

    def test_wrong_password_then_success(
        self, runner: CliRunner, seeded: Path, config_path: Path
    ) -> None:
        result = run_session(
            runner,
            seeded,
            config_path,
            "admin@example.com",
            "nope",
            "admin@example.com",
            "admin-pass",
            "8",
        )

        assert result.exit_code == 0
        assert "Invalid email or password." in result.output
        assert "2 attempt(s) remaining" in result.output

    def test_three_failures_exit_with_error(
        self, runner: CliRunner, seeded: Path, config_path: Path
    ) -> None:
        result = run_session(
            runner,
            seeded,
            config_path,
            "admin@example.com",
            "bad",
            "ghost@example.com",
            "bad",
            "user@example.com",
            "bad",
        )

        assert result.exit_code == 1
        assert "exceeded the maximum number of login attempts" in result.output
        assert "Student Menu" not in result.output


@pytest.mark.integration
class TestMenus:
    """End-to-end menu sessions."""

    def test_admin_adds_and_lists_student(
        self, runner: CliRunner, seeded: Path, config_path: Path
    ) -> None:
        result = run_session(
            runner,
            seeded,
            config_path,
            "admin@example.com",
            "admin-pass",
            "4",
            "Alice",
            "Smith",
            "2005-03-14",
            "165.5",
            "sw1a 1aa",
            "10 Downing Street",
            "07700 900123",
            "alice@example.com",
            "1",
            "8",
        )

        assert result.exit_code == 0, result.output
        assert "Student Alice Smith added successfully" in result.output
        assert "SW1A 1AA" in result.output
        assert "Count: 1" in result.output

    def test_invalid_field_is_asked_again(
        self, runner: CliRunner, seeded: Path, config_path: Path
    ) -> None:
        result = run_session(
            runner,
            seeded,
            config_path,
            "admin@example.com",
            "admin-pass",
            "4",
            "Alice",
            "Smith",
            "14/03/2005",
            "2005-03-14",
            "165.5",
            "SW1A 1AA",
            "10 Downing Street",
            "07700 900123",
            "alice@example.com",
            "8",
        )

        assert result.exit_code == 0, result.output
        assert "Dates must be written as yyyy-mm-dd." in result.output
        assert "added successfully" in result.output

    def test_regular_user_denied_writes(
        self, runner: CliRunner, seeded: Path, config_path: Path
    ) -> None:
        result = run_session(
            runner, seeded, config_path, "user@example.com", "user-pass", "4", "6", "8"
        )

        assert result.exit_code == 0
        assert result.output.count("Operation not permitted.") == 2

    def test_invalid_choice(self, runner: CliRunner, seeded: Path, config_path: Path) -> None:
        result = run_session(
            runner, seeded, config_path, "admin@example.com", "admin-pass", "42", "abc", "8"
        )

        assert result.output.count("Invalid choice, please try again.") == 2

    def test_search_without_filters(
        self, runner: CliRunner, seeded: Path, config_path: Path
    ) -> None:
        result = run_session(
            runner, seeded, config_path, "user@example.com", "user-pass", "3", "", "", "", "8"
        )

        assert result.exit_code == 0
        assert "Enter at least one filter" in result.output

    def test_last_admin_cannot_be_deleted(
        self, runner: CliRunner, seeded: Path, config_path: Path
    ) -> None:
        result = run_session(
            runner, seeded, config_path, "admin@example.com", "admin-pass", "7", "5", "1", "6", "8"
        )

        assert result.exit_code == 0, result.output
        assert "Cannot delete the last admin user." in result.output

    def test_deleting_own_account_signs_out(
        self, runner: CliRunner, seeded: Path, config_path: Path
    ) -> None:
        store = RecordStore(str(seeded), codec=PasswordCodec(MIN_ROUNDS))
        store.add_user("second@example.com", "second-pass", Role.ADMIN)
        store.close()

        result = run_session(
            runner, seeded, config_path, "second@example.com", "second-pass", "7", "5", "3"
        )

        assert result.exit_code == 0, result.output
        assert "have been signed out" in result.output
        assert "Goodbye" in result.output

    def test_user_views_only_own_account(
        self, runner: CliRunner, seeded: Path, config_path: Path
    ) -> None:
        result = run_session(
            runner, seeded, config_path, "user@example.com", "user-pass", "7", "1", "6", "8"
        )

        assert result.exit_code == 0, result.output
        assert "user@example.com" in result.output
        assert "admin@example.com" not in result.output
