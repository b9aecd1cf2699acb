"""Authorization Gate - role-based access to store operations."""

from __future__ import annotations

from dataclasses import replace
from enum import StrEnum

from recordkeeper.auth.models import Identity
from recordkeeper.exceptions import EmailExistsError, PermissionDeniedError
from recordkeeper.logging import get_logger
from recordkeeper.store import DeleteOutcome, RecordStore, Role, Student, User

logger = get_logger("auth.gate")


class Operation(StrEnum):
    """Operations subject to authorization."""

    LIST_STUDENTS = "list_students"
    VIEW_STUDENT = "view_student"
    SEARCH_STUDENTS = "search_students"
    ADD_STUDENT = "add_student"
    UPDATE_STUDENT = "update_student"
    DELETE_STUDENT = "delete_student"
    LIST_USERS = "list_users"
    VIEW_OWN_ACCOUNT = "view_own_account"
    UPDATE_OWN_ACCOUNT = "update_own_account"
    ADD_USER = "add_user"
    UPDATE_USER = "update_user"
    DELETE_USER = "delete_user"


class Decision(StrEnum):
    """Authorization decision."""

    ALLOW = "allow"
    DENY = "deny"


STUDENT_READ_OPERATIONS = frozenset(
    {Operation.LIST_STUDENTS, Operation.VIEW_STUDENT, Operation.SEARCH_STUDENTS}
)

CAPABILITIES: dict[Role, frozenset[Operation]] = {
    Role.ADMIN: frozenset(Operation),
    Role.USER: STUDENT_READ_OPERATIONS
    | {Operation.VIEW_OWN_ACCOUNT, Operation.UPDATE_OWN_ACCOUNT},
}


def authorize(identity: Identity, operation: Operation) -> Decision:
    """Decide whether an identity may perform an operation.

    Depends only on the identity's role and the operation.
    """
    if operation in CAPABILITIES.get(identity.role, frozenset()):
        return Decision.ALLOW
    return Decision.DENY


def is_allowed(identity: Identity, operation: Operation) -> bool:
    return authorize(identity, operation) is Decision.ALLOW


def require(identity: Identity, operation: Operation) -> None:
    """Raise PermissionDeniedError unless the operation is allowed.

    The error is identical for every denied operation.
    """
    if authorize(identity, operation) is Decision.DENY:
        logger.warning("Denied %s to user %s (%s)", operation.value, identity.id, identity.role)
        raise PermissionDeniedError()


class GatedStore:
    """RecordStore facade that checks the identity before every call."""

    def __init__(self, store: RecordStore, identity: Identity) -> None:
        self._store = store
        self._identity = identity

    @property
    def identity(self) -> Identity:
        return self._identity

    def can(self, operation: Operation) -> bool:
        """Check an operation without raising."""
        return is_allowed(self._identity, operation)

    # --- Students ---

    def list_students(self) -> list[Student]:
        require(self._identity, Operation.LIST_STUDENTS)
        return self._store.list_students()

    def get_student(self, student_id: int) -> Student | None:
        require(self._identity, Operation.VIEW_STUDENT)
        return self._store.get_student(student_id)

    def search_students(
        self,
        first_name: str | None = None,
        last_name: str | None = None,
        postcode: str | None = None,
    ) -> list[Student]:
        require(self._identity, Operation.SEARCH_STUDENTS)
        return self._store.search_students(first_name, last_name, postcode)

    def add_student(self, student: Student) -> int:
        require(self._identity, Operation.ADD_STUDENT)
        return self._store.add_student(student)

    def update_student(self, student: Student) -> None:
        require(self._identity, Operation.UPDATE_STUDENT)
        self._store.update_student(student)

    def delete_student(self, student_id: int) -> None:
        require(self._identity, Operation.DELETE_STUDENT)
        self._store.delete_student(student_id)

    # --- Users ---

    def list_users(self) -> list[User]:
        require(self._identity, Operation.LIST_USERS)
        return self._store.list_users()

    def get_own_account(self) -> User | None:
        require(self._identity, Operation.VIEW_OWN_ACCOUNT)
        return self._store.get_user(self._identity.id)

    def add_user(self, email: str, password: str, role: Role | str = Role.USER) -> int:
        """Create a user.

        Raises:
            PermissionDeniedError: If the identity is not an admin.
            EmailExistsError: If the email is already taken.
        """
        require(self._identity, Operation.ADD_USER)
        if self._store.user_exists(email):
            raise EmailExistsError(f"A user with email '{email.strip()}' already exists")
        return self._store.add_user(email, password, role)

    def update_user(
        self,
        user_id: int,
        new_email: str | None = None,
        new_password: str | None = None,
    ) -> None:
        """Update a user's email and/or password.

        Updating your own account needs UPDATE_OWN_ACCOUNT; anyone else's
        needs UPDATE_USER.

        Raises:
            PermissionDeniedError: If the identity may not update this user.
            EmailExistsError: If the new email belongs to another user.
            NothingToUpdateError: If neither field is provided.
            UserNotFoundError: If the user doesn't exist.
        """
        own = user_id == self._identity.id
        require(self._identity, Operation.UPDATE_OWN_ACCOUNT if own else Operation.UPDATE_USER)

        new_email = new_email.strip() if new_email else None
        if new_email:
            current = self._store.get_user(user_id)
            changing = current is None or current.email.lower() != new_email.lower()
            if changing and self._store.user_exists(new_email):
                raise EmailExistsError(f"A user with email '{new_email}' already exists")

        self._store.update_user(user_id, new_email, new_password)

        if own and new_email:
            self._identity = replace(self._identity, email=new_email)

    def delete_user(self, user_id: int) -> DeleteOutcome:
        require(self._identity, Operation.DELETE_USER)
        return self._store.delete_user(user_id)
