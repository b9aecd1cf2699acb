"""Typed input prompts.

Each kind of field maps to one parser. Parsers take the stripped input text
and return the typed value or raise ValidationError.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import date
from enum import StrEnum
from typing import Any

import click

from recordkeeper.cli import console
from recordkeeper.exceptions import ValidationError
from recordkeeper.store import Role

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
# UK style: outward code, optional space, inward code
POSTCODE_RE = re.compile(r"^[A-Za-z]{1,2}\d[A-Za-z\d]?\s?\d[A-Za-z]{2}$")
DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class FieldKind(StrEnum):
    """Kinds of console input."""

    TEXT = "text"
    EMAIL = "email"
    POSTCODE = "postcode"
    DATE = "date"
    HEIGHT = "height"
    INTEGER = "integer"
    ROLE = "role"


def parse_text(raw: str) -> str:
    return raw


def parse_email(raw: str) -> str:
    if not EMAIL_RE.match(raw):
        raise ValidationError(f"'{raw}' is not a valid email address.")
    return raw


def parse_postcode(raw: str) -> str:
    if not POSTCODE_RE.match(raw):
        raise ValidationError(f"'{raw}' is not a valid postcode.")
    return raw.upper()


def parse_date(raw: str) -> date:
    if not DATE_RE.match(raw):
        raise ValidationError("Dates must be written as yyyy-mm-dd.")
    try:
        return date.fromisoformat(raw)
    except ValueError as e:
        raise ValidationError(f"'{raw}' is not a real date.") from e


def parse_height(raw: str) -> float:
    try:
        value = float(raw)
    except ValueError as e:
        raise ValidationError(f"'{raw}' is not a number.") from e
    if not 0 < value < 500:
        raise ValidationError("Height must be between 0 and 500 cm.")
    return value


def parse_integer(raw: str) -> int:
    try:
        return int(raw)
    except ValueError as e:
        raise ValidationError(f"'{raw}' is not a whole number.") from e


def parse_role(raw: str) -> Role:
    try:
        return Role(raw.lower())
    except ValueError as e:
        choices = " or ".join(r.value for r in Role)
        raise ValidationError(f"Role must be {choices}.") from e


PARSERS: dict[FieldKind, Callable[[str], Any]] = {
    FieldKind.TEXT: parse_text,
    FieldKind.EMAIL: parse_email,
    FieldKind.POSTCODE: parse_postcode,
    FieldKind.DATE: parse_date,
    FieldKind.HEIGHT: parse_height,
    FieldKind.INTEGER: parse_integer,
    FieldKind.ROLE: parse_role,
}


def parse(kind: FieldKind, raw: str) -> Any:
    """Parse raw input text as the given kind."""
    return PARSERS[kind](raw.strip())


def read_field(
    kind: FieldKind,
    label: str,
    optional: bool = False,
    hide_input: bool = False,
) -> Any:
    """Prompt until the input parses.

    Args:
        kind: How to parse the input.
        label: Prompt text.
        optional: Whether empty input is accepted (returns None).
        hide_input: Whether to hide typed characters.

    Returns:
        The parsed value, or None for empty optional input.
    """
    if optional:
        label = f"{label} (leave empty to skip)"
    while True:
        raw = click.prompt(
            click.style(f"{label} >>>", fg="cyan"),
            default="" if optional else None,
            show_default=False,
            hide_input=hide_input,
            prompt_suffix=" ",
        ).strip()
        if not raw:
            if optional:
                return None
            console.error("A value is required.")
            continue
        try:
            return parse(kind, raw)
        except ValidationError as e:
            console.error(str(e))
