"""RecordStore - Main API for student and user persistence."""

from __future__ import annotations

import math
from datetime import date

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import aliased

from recordkeeper.credentials import PasswordCodec
from recordkeeper.exceptions import (
    NothingToUpdateError,
    StudentNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from recordkeeper.logging import get_logger
from recordkeeper.store.database import Database
from recordkeeper.store.models import (
    DeleteOutcome,
    Role,
    Student,
    StudentRow,
    User,
    UserRecord,
    UserRow,
)

logger = get_logger("store")


def _blank_to_none(value: str | None) -> str | None:
    if value is None:
        return None
    value = value.strip()
    return value or None


def _validate_student(student: Student) -> None:
    if not student.first_name or not student.first_name.strip():
        raise ValidationError("First name must not be empty")
    if not student.last_name or not student.last_name.strip():
        raise ValidationError("Last name must not be empty")
    if not isinstance(student.date_of_birth, date):
        raise ValidationError("Date of birth must be a date")
    height = student.height
    if (
        isinstance(height, bool)
        or not isinstance(height, (int, float))
        or not math.isfinite(height)
        or height <= 0
    ):
        raise ValidationError("Height must be a positive number of centimeters")


def _coerce_role(role: Role | str) -> Role:
    try:
        return Role(role)
    except ValueError as e:
        raise ValidationError(f"Unknown role '{role}'") from e


def _student_from_row(row: StudentRow) -> Student | None:
    """Build a Student from a row, or None if its date is unreadable."""
    try:
        date_of_birth = date.fromisoformat(row.date_of_birth)
    except (TypeError, ValueError):
        logger.warning(
            "Skipping student %s: unparseable date_of_birth %r", row.id, row.date_of_birth
        )
        return None
    return Student(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        date_of_birth=date_of_birth,
        height=row.height,
        postcode=row.postcode,
        address_line=row.address_line,
        contact_phone=row.contact_phone_number,
        contact_email=row.contact_email,
    )


def _apply_student(row: StudentRow, student: Student) -> None:
    row.first_name = student.first_name.strip()
    row.last_name = student.last_name.strip()
    row.height = float(student.height)
    row.date_of_birth = student.date_of_birth.isoformat()
    row.postcode = student.postcode
    row.address_line = student.address_line
    row.contact_phone_number = student.contact_phone
    row.contact_email = student.contact_email


def _role_of(row: UserRow) -> Role | None:
    try:
        return Role(row.role)
    except ValueError:
        logger.warning("Ignoring user %s: unknown role %r", row.id, row.role)
        return None


class RecordStore:
    """Main API for Record Store operations.

    Provides CRUD operations for Students and Users. Every call runs in its
    own session and returns plain records, never live ORM rows.
    """

    def __init__(
        self,
        db_path: str = "recordkeeper.db",
        codec: PasswordCodec | None = None,
    ) -> None:
        """Initialize Record Store with SQLite database.

        Creates database and tables if they don't exist.

        Args:
            db_path: Path to SQLite database file
            codec: Password codec for new digests (default cost if omitted)

        Raises:
            InvalidDatabasePathError: If db_path has an unrecognized extension
            StorageError: If the database cannot be initialised
        """
        self._db = Database(db_path)
        self._db.create_tables()
        self._codec = codec if codec is not None else PasswordCodec()

    @property
    def codec(self) -> PasswordCodec:
        return self._codec

    def close(self) -> None:
        """Close the database connection."""
        self._db.close()

    # --- Student Operations ---

    def list_students(self) -> list[Student]:
        """List all students.

        Rows whose date of birth cannot be parsed are skipped.

        Returns:
            List of students, ordered by id
        """
        with self._db.session_scope("list_students") as session:
            rows = session.execute(select(StudentRow).order_by(StudentRow.id)).scalars()
            return [s for s in map(_student_from_row, rows) if s is not None]

    def add_student(self, student: Student) -> int:
        """Add a new student.

        The student's id is ignored; the store assigns one.

        Args:
            student: The student to insert

        Returns:
            The new student's id

        Raises:
            ValidationError: If names are empty or height is not positive
        """
        _validate_student(student)
        with self._db.session_scope("add_student") as session:
            row = StudentRow()
            _apply_student(row, student)
            session.add(row)
            session.commit()
            logger.info("Added student %s", row.id)
            return row.id

    def get_student(self, student_id: int) -> Student | None:
        """Get student by ID.

        Args:
            student_id: The student's unique ID

        Returns:
            The Student, or None if it doesn't exist or its row is unreadable
        """
        with self._db.session_scope("get_student") as session:
            row = session.get(StudentRow, student_id)
            if row is None:
                return None
            return _student_from_row(row)

    def update_student(self, student: Student) -> None:
        """Replace every field of an existing student except its id.

        Args:
            student: The student with the new values; id selects the row

        Raises:
            ValidationError: If names are empty or height is not positive
            StudentNotFoundError: If student doesn't exist
        """
        _validate_student(student)
        if student.id is None:
            raise StudentNotFoundError("Student has no id")
        with self._db.session_scope("update_student") as session:
            row = session.get(StudentRow, student.id)
            if row is None:
                raise StudentNotFoundError(f"Student with id '{student.id}' not found")

            _apply_student(row, student)
            session.commit()
            logger.info("Updated student %s", student.id)

    def delete_student(self, student_id: int) -> None:
        """Delete a student.

        Args:
            student_id: The student's unique ID

        Raises:
            StudentNotFoundError: If student doesn't exist
        """
        with self._db.session_scope("delete_student") as session:
            row = session.get(StudentRow, student_id)
            if row is None:
                raise StudentNotFoundError(f"Student with id '{student_id}' not found")

            session.delete(row)
            session.commit()
            logger.info("Deleted student %s", student_id)

    def search_students(
        self,
        first_name: str | None = None,
        last_name: str | None = None,
        postcode: str | None = None,
    ) -> list[Student]:
        """Search students. Every supplied filter narrows the result.

        Names match case-insensitively and exactly; postcode matches a
        case-insensitive substring. Blank filters count as not supplied,
        and with no filter at all nothing is returned.

        Args:
            first_name: Exact first name (optional)
            last_name: Exact last name (optional)
            postcode: Part of the postcode (optional)

        Returns:
            Matching students, ordered by id
        """
        first_name = _blank_to_none(first_name)
        last_name = _blank_to_none(last_name)
        postcode = _blank_to_none(postcode)

        conditions = []
        if first_name is not None:
            conditions.append(func.lower(StudentRow.first_name) == first_name.lower())
        if last_name is not None:
            conditions.append(func.lower(StudentRow.last_name) == last_name.lower())
        if postcode is not None:
            conditions.append(
                func.lower(StudentRow.postcode).contains(postcode.lower(), autoescape=True)
            )

        if not conditions:
            logger.debug("Student search without filters; returning nothing")
            return []

        with self._db.session_scope("search_students") as session:
            stmt = select(StudentRow).where(*conditions).order_by(StudentRow.id)
            rows = session.execute(stmt).scalars()
            return [s for s in map(_student_from_row, rows) if s is not None]

    # --- User Operations ---

    def get_user_by_email(self, email: str) -> UserRecord | None:
        """Get a user and its credential material by email.

        Emails compare case-insensitively. If duplicates exist the oldest
        account wins.

        Args:
            email: The user's email

        Returns:
            The UserRecord, or None if no usable account exists
        """
        email = _blank_to_none(email)
        if email is None:
            return None
        with self._db.session_scope("get_user_by_email") as session:
            stmt = (
                select(UserRow)
                .where(func.lower(UserRow.email) == email.lower())
                .order_by(UserRow.id)
                .limit(1)
            )
            row = session.execute(stmt).scalars().first()
            if row is None:
                return None
            role = _role_of(row)
            if role is None:
                return None
            return UserRecord(
                id=row.id,
                email=row.email,
                role=role,
                password_hash=row.password,
                salt=row.salt,
            )

    def user_exists(self, email: str) -> bool:
        """Check whether any user has this email (case-insensitive)."""
        email = _blank_to_none(email)
        if email is None:
            return False
        with self._db.session_scope("user_exists") as session:
            stmt = select(func.count(UserRow.id)).where(func.lower(UserRow.email) == email.lower())
            return (session.execute(stmt).scalar() or 0) > 0

    def get_user(self, user_id: int) -> User | None:
        """Get user by ID.

        Args:
            user_id: The user's unique ID

        Returns:
            The User, or None if it doesn't exist
        """
        with self._db.session_scope("get_user") as session:
            row = session.get(UserRow, user_id)
            if row is None:
                return None
            role = _role_of(row)
            if role is None:
                return None
            return User(id=row.id, email=row.email, role=role)

    def list_users(self) -> list[User]:
        """List all users.

        Returns:
            List of users without credential material, ordered by id
        """
        with self._db.session_scope("list_users") as session:
            rows = session.execute(select(UserRow).order_by(UserRow.id)).scalars()
            users = []
            for row in rows:
                role = _role_of(row)
                if role is not None:
                    users.append(User(id=row.id, email=row.email, role=role))
            return users

    def count_admins(self) -> int:
        """Count users with the admin role."""
        with self._db.session_scope("count_admins") as session:
            stmt = select(func.count(UserRow.id)).where(UserRow.role == Role.ADMIN.value)
            return session.execute(stmt).scalar() or 0

    def add_user(self, email: str, password: str, role: Role | str = Role.USER) -> int:
        """Create a new user with a freshly salted password digest.

        Email uniqueness is the caller's responsibility.

        Args:
            email: The user's email
            password: The plaintext password (never stored)
            role: The user's role

        Returns:
            The new user's id

        Raises:
            ValidationError: If email or password is empty, or role is unknown
        """
        email = _blank_to_none(email)
        if email is None:
            raise ValidationError("Email must not be empty")
        if not password:
            raise ValidationError("Password must not be empty")
        role = _coerce_role(role)

        salt = self._codec.generate_salt()
        digest = self._codec.hash(password, salt)

        with self._db.session_scope("add_user") as session:
            row = UserRow(email=email, password=digest, salt=salt, role=role)
            session.add(row)
            session.commit()
            logger.info("Added user %s with role %s", row.id, role.value)
            return row.id

    def update_user(
        self,
        user_id: int,
        new_email: str | None = None,
        new_password: str | None = None,
    ) -> None:
        """Update user fields. Only provided fields are updated.

        A new password gets a new salt.

        Args:
            user_id: The user's unique ID
            new_email: New email (optional)
            new_password: New plaintext password (optional)

        Raises:
            NothingToUpdateError: If neither field is provided
            UserNotFoundError: If user doesn't exist
        """
        new_email = _blank_to_none(new_email)
        if not new_password:
            new_password = None
        if new_email is None and new_password is None:
            raise NothingToUpdateError("No values provided; user details not updated")

        with self._db.session_scope("update_user") as session:
            row = session.get(UserRow, user_id)
            if row is None:
                raise UserNotFoundError(f"User with id '{user_id}' not found")

            if new_email is not None:
                row.email = new_email
            if new_password is not None:
                row.salt = self._codec.generate_salt()
                row.password = self._codec.hash(new_password, row.salt)

            session.commit()
            logger.info(
                "Updated user %s (email=%s, password=%s)",
                user_id,
                new_email is not None,
                new_password is not None,
            )

    def delete_user(self, user_id: int) -> DeleteOutcome:
        """Delete a user unless it is the last admin.

        The admin count is checked inside the DELETE statement itself, so
        no other write can slip between the check and the delete.

        Args:
            user_id: The user's unique ID

        Returns:
            DELETED, NOT_FOUND, or REJECTED_LAST_ADMIN
        """
        admins = aliased(UserRow)
        admin_count = (
            select(func.count(admins.id))
            .where(admins.role == Role.ADMIN.value)
            .scalar_subquery()
        )
        stmt = (
            delete(UserRow)
            .where(
                UserRow.id == user_id,
                or_(UserRow.role != Role.ADMIN.value, admin_count > 1),
            )
            .execution_options(synchronize_session=False)
        )

        with self._db.session_scope("delete_user") as session:
            result = session.execute(stmt)
            if result.rowcount > 0:
                session.commit()
                logger.info("Deleted user %s", user_id)
                return DeleteOutcome.DELETED

            exists = session.execute(
                select(func.count(UserRow.id)).where(UserRow.id == user_id)
            ).scalar()
            session.rollback()
            if exists:
                logger.warning("Refused to delete user %s: last admin", user_id)
                return DeleteOutcome.REJECTED_LAST_ADMIN
            return DeleteOutcome.NOT_FOUND
