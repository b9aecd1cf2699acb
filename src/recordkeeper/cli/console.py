"""Colored console messages and plain-text tables."""

from __future__ import annotations

import sys
from collections.abc import Sequence
from typing import Any, NoReturn

import click

from recordkeeper.store import Student, User


def info(message: str) -> None:
    click.echo(click.style(f"[INFO] {message}", fg="white"))


def success(message: str) -> None:
    click.echo(click.style(f"[SUCCESS] {message}", fg="green"))


def warning(message: str) -> None:
    click.echo(click.style(f"[WARNING] {message}", fg="yellow"))


def error(message: str) -> None:
    click.echo(click.style(f"[ERROR] {message}", fg="red"), err=True)


def fatal(message: str, code: int = 1) -> NoReturn:
    """Print a fatal error and exit."""
    click.echo(click.style(f"[FATAL] {message}", fg="red", bold=True), err=True)
    sys.exit(code)


def line(message: str = "", dimmed: bool = False) -> None:
    click.echo(click.style(message, dim=True) if dimmed else message)


def render_table(headers: Sequence[str], rows: Sequence[Sequence[Any]]) -> str:
    """Render rows as a bordered plain-text table.

    Args:
        headers: Column titles.
        rows: One sequence of cell values per row.

    Returns:
        The table as a multi-line string.
    """
    cells = [[str(value) for value in row] for row in rows]
    widths = [len(h) for h in headers]
    for row in cells:
        for i, value in enumerate(row):
            widths[i] = max(widths[i], len(value))

    border = "+" + "+".join("-" * (w + 2) for w in widths) + "+"

    def fmt(values: Sequence[str]) -> str:
        return "| " + " | ".join(v.ljust(w) for v, w in zip(values, widths, strict=True)) + " |"

    out = [border, fmt(headers), border]
    out.extend(fmt(row) for row in cells)
    out.append(border)
    out.append(f"Count: {len(cells)}")
    return "\n".join(out)


STUDENT_HEADERS = (
    "ID",
    "First",
    "Last",
    "Date of Birth",
    "Height (cm)",
    "Email",
    "Phone",
    "Address",
    "Postcode",
)


def students_table(students: Sequence[Student]) -> str:
    return render_table(
        STUDENT_HEADERS,
        [
            (
                s.id,
                s.first_name,
                s.last_name,
                s.date_of_birth.isoformat(),
                f"{s.height:g}",
                s.contact_email,
                s.contact_phone,
                s.address_line,
                s.postcode,
            )
            for s in students
        ],
    )


def users_table(users: Sequence[User]) -> str:
    return render_table(("ID", "Email", "Role"), [(u.id, u.email, u.role.value) for u in users])
