"""SQLAlchemy models and record types for the Record Store."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import StrEnum
from typing import Any

from sqlalchemy import Float, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Role(StrEnum):
    """User role enum."""

    ADMIN = "admin"
    USER = "user"


class DeleteOutcome(StrEnum):
    """Result of a user deletion."""

    DELETED = "deleted"
    NOT_FOUND = "not_found"
    REJECTED_LAST_ADMIN = "rejected_last_admin"


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class StudentRow(Base):
    """Student table. date_of_birth holds ISO 8601 text."""

    __tablename__ = "Student"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)
    height: Mapped[float] = mapped_column(Float, nullable=False)
    date_of_birth: Mapped[str] = mapped_column(Text, nullable=False)
    postcode: Mapped[str] = mapped_column(Text, nullable=False, default="")
    address_line: Mapped[str] = mapped_column(Text, nullable=False, default="")
    contact_phone_number: Mapped[str] = mapped_column(Text, nullable=False, default="")
    contact_email: Mapped[str] = mapped_column(Text, nullable=False, default="")

    def __repr__(self) -> str:
        return (
            f"<StudentRow(id={self.id!r}, first_name={self.first_name!r}, "
            f"last_name={self.last_name!r})>"
        )


class UserRow(Base):
    """User table. password holds the digest, never plaintext."""

    __tablename__ = "User"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(Text, nullable=False)
    password: Mapped[str] = mapped_column(Text, nullable=False)
    role: Mapped[str] = mapped_column(Text, nullable=False)
    salt: Mapped[str] = mapped_column(Text, nullable=False)

    def __init__(
        self,
        email: str,
        password: str,
        salt: str,
        role: Role = Role.USER,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self.email = email
        self.password = password
        self.salt = salt
        self.role = role.value

    def __repr__(self) -> str:
        return f"<UserRow(id={self.id!r}, email={self.email!r}, role={self.role!r})>"


@dataclass
class Student:
    """A student record. id is None until the store assigns one."""

    first_name: str
    last_name: str
    date_of_birth: date
    height: float
    postcode: str = ""
    address_line: str = ""
    contact_phone: str = ""
    contact_email: str = ""
    id: int | None = None


@dataclass(frozen=True)
class User:
    """A user account without credential material."""

    id: int
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass(frozen=True)
class UserRecord:
    """A user account with its stored credential material."""

    id: int
    email: str
    role: Role
    password_hash: str
    salt: str

    def __repr__(self) -> str:
        return f"UserRecord(id={self.id!r}, email={self.email!r}, role={self.role!r})"
