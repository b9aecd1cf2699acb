"""Interactive student and user menus."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, replace

import click

from recordkeeper.auth import GatedStore, Operation
from recordkeeper.cli import console
from recordkeeper.cli.prompts import FieldKind, read_field
from recordkeeper.exceptions import (
    NothingToUpdateError,
    PermissionDeniedError,
    RecordKeeperError,
    StorageError,
)
from recordkeeper.logging import get_logger
from recordkeeper.store import DeleteOutcome, Student

logger = get_logger("cli.menus")

KEEP = "(leave empty to keep the current value)"


@dataclass(frozen=True)
class MenuOption:
    """One numbered menu entry.

    Attributes:
        label: Text shown in the menu.
        action: Handler; returns True to leave the menu.
        operation: Operation that must be allowed, or None if always shown.
    """

    label: str
    action: Callable[[], bool | None]
    operation: Operation | None = None


class Menu:
    """Numbered menu loop with uniform error reporting."""

    title = "Menu"

    def __init__(self, gated: GatedStore) -> None:
        self.gated = gated

    def options(self) -> list[MenuOption]:
        raise NotImplementedError

    def display(self, options: list[MenuOption]) -> None:
        console.line(f"\n-------- {self.title} --------")
        for number, option in enumerate(options, start=1):
            allowed = option.operation is None or self.gated.can(option.operation)
            console.line(f"{number}. {option.label}", dimmed=not allowed)
        console.line("-" * (len(self.title) + 18))

    def run(self) -> None:
        """Show the menu until an action asks to leave."""
        while True:
            options = self.options()
            self.display(options)
            raw = click.prompt(
                click.style(f"Enter your choice (1-{len(options)}) >>>", fg="cyan"),
                prompt_suffix=" ",
            ).strip()
            if not raw.isdigit() or not 1 <= int(raw) <= len(options):
                console.error("Invalid choice, please try again.")
                continue

            option = options[int(raw) - 1]
            if option.operation is not None and not self.gated.can(option.operation):
                console.error(str(PermissionDeniedError()))
                continue
            if self.dispatch(option):
                return

    def dispatch(self, option: MenuOption) -> bool:
        """Run one action and report any failure without ending the session."""
        try:
            return bool(option.action())
        except StorageError as e:
            console.error(f"{e}. Please try again.")
        except RecordKeeperError as e:
            console.error(str(e))
        return False


class StudentMenu(Menu):
    """Main menu: student records plus the way into account management."""

    title = "Student Menu"

    def greet(self) -> None:
        identity = self.gated.identity
        console.info("Hello! Welcome to Student Management System.")
        console.info(f"You are logged in as '{identity.email}'.")
        if identity.is_admin:
            console.info("Admin users can add, modify and delete students and users.")
        else:
            console.info("Regular users only have read access to students.")
        console.info("Please select an option from the menu to start.")

    def run(self) -> None:
        self.greet()
        super().run()
        console.info("Goodbye! Thank you for using Student Management System.")

    def options(self) -> list[MenuOption]:
        admin = self.gated.identity.is_admin
        return [
            MenuOption("View all students", self.view_all, Operation.LIST_STUDENTS),
            MenuOption("Search for a student by ID", self.view_one, Operation.VIEW_STUDENT),
            MenuOption(
                "Search for students by name or postcode",
                self.search,
                Operation.SEARCH_STUDENTS,
            ),
            MenuOption("Add a new student", self.add, Operation.ADD_STUDENT),
            MenuOption("Modify a student's details", self.modify, Operation.UPDATE_STUDENT),
            MenuOption("Delete a student", self.delete, Operation.DELETE_STUDENT),
            MenuOption("Manage users" if admin else "Manage your account", self.manage_users),
            MenuOption("Exit", lambda: True),
        ]

    def view_all(self) -> None:
        students = self.gated.list_students()
        if not students:
            console.info("No students found.")
            return
        console.line(console.students_table(students))

    def view_one(self) -> None:
        student_id = read_field(FieldKind.INTEGER, "Enter the student's ID")
        student = self.gated.get_student(student_id)
        if student is None:
            console.error("Student not found.")
            return
        console.line(console.students_table([student]))

    def search(self) -> None:
        console.line("==== Search for students by name or postcode ====")
        first_name = read_field(FieldKind.TEXT, "Enter the student's first name", optional=True)
        last_name = read_field(FieldKind.TEXT, "Enter the student's last name", optional=True)
        postcode = read_field(FieldKind.TEXT, "Enter part of the postcode", optional=True)

        students = self.gated.search_students(first_name, last_name, postcode)
        if not students:
            if first_name is None and last_name is None and postcode is None:
                console.warning("Enter at least one filter to search.")
            else:
                console.info("No students found with the provided criteria.")
            return
        console.line(console.students_table(students))

    def add(self) -> None:
        console.line("==== Add a new student ====")
        student = Student(
            first_name=read_field(FieldKind.TEXT, "Enter the student's first name"),
            last_name=read_field(FieldKind.TEXT, "Enter the student's last name"),
            date_of_birth=read_field(
                FieldKind.DATE, "Enter the student's date of birth [yyyy-mm-dd]"
            ),
            height=read_field(FieldKind.HEIGHT, "Enter the student's height [in cm]"),
            postcode=read_field(FieldKind.POSTCODE, "Enter the student's postcode"),
            address_line=read_field(FieldKind.TEXT, "Enter the student's address line"),
            contact_phone=read_field(FieldKind.TEXT, "Enter the student's contact phone"),
            contact_email=read_field(FieldKind.EMAIL, "Enter the student's contact email"),
        )
        student_id = self.gated.add_student(student)
        console.success(
            f"Student {student.first_name} {student.last_name} added successfully (ID {student_id})."
        )

    def modify(self) -> None:
        console.line("==== Modify a student's details ====")
        student_id = read_field(FieldKind.INTEGER, "Enter the student's ID")
        student = self.gated.get_student(student_id)
        if student is None:
            console.error("Student not found.")
            return

        fields = [
            ("first_name", FieldKind.TEXT, "first name"),
            ("last_name", FieldKind.TEXT, "last name"),
            ("date_of_birth", FieldKind.DATE, "date of birth [yyyy-mm-dd]"),
            ("height", FieldKind.HEIGHT, "height [in cm]"),
            ("postcode", FieldKind.POSTCODE, "postcode"),
            ("address_line", FieldKind.TEXT, "address line"),
            ("contact_phone", FieldKind.TEXT, "contact phone"),
            ("contact_email", FieldKind.EMAIL, "contact email"),
        ]
        changes = {}
        for name, kind, description in fields:
            value = read_field(kind, f"Enter the student's {description} {KEEP}", optional=True)
            if value is not None:
                changes[name] = value

        if not changes:
            console.warning("No values provided, student not modified.")
            return

        updated = replace(student, **changes)
        self.gated.update_student(updated)
        console.success(f"Student {updated.first_name} {updated.last_name} modified successfully.")

    def delete(self) -> None:
        console.line("==== Delete a student ====")
        student_id = read_field(FieldKind.INTEGER, "Enter the student's ID")
        student = self.gated.get_student(student_id)
        if student is None:
            console.error("Student not found.")
            return
        self.gated.delete_student(student_id)
        console.success(f"Student {student.first_name} {student.last_name} deleted successfully.")

    def manage_users(self) -> bool:
        """Open the user menu; leave the session if the account was deleted."""
        return UserMenu(self.gated).run_until_signed_out()


class UserMenu(Menu):
    """Account management. Admins manage everyone, users only themselves."""

    title = "User Menu"

    def __init__(self, gated: GatedStore) -> None:
        super().__init__(gated)
        self.signed_out = False

    def run_until_signed_out(self) -> bool:
        """Run the menu.

        Returns:
            True if the current account no longer exists.
        """
        identity = self.gated.identity
        console.info(f"Welcome to the user management wizard, {identity.email}!")
        if identity.is_admin:
            console.info("You are an admin user, so have write access to all users.")
        else:
            console.info("You are a standard user, so only have write access to your own details.")
        self.run()
        return self.signed_out

    def options(self) -> list[MenuOption]:
        admin = self.gated.identity.is_admin
        return [
            MenuOption(
                "View all users" if admin else "View your account",
                self.view_users,
                Operation.LIST_USERS if admin else Operation.VIEW_OWN_ACCOUNT,
            ),
            MenuOption("Update your details", self.update_self, Operation.UPDATE_OWN_ACCOUNT),
            MenuOption("Update another user's details", self.update_other, Operation.UPDATE_USER),
            MenuOption("Add a new user", self.add, Operation.ADD_USER),
            MenuOption("Delete a user", self.delete, Operation.DELETE_USER),
            MenuOption("Back", lambda: True),
        ]

    def view_users(self) -> None:
        if self.gated.can(Operation.LIST_USERS):
            users = self.gated.list_users()
        else:
            own = self.gated.get_own_account()
            users = [own] if own is not None else []
        if not users:
            console.info("There are no users in the system.")
            return
        console.line(console.users_table(users))

    def _update(self, user_id: int) -> None:
        email = read_field(FieldKind.EMAIL, f"Enter the new email address {KEEP}", optional=True)
        password = read_field(
            FieldKind.TEXT, f"Enter the new password {KEEP}", optional=True, hide_input=True
        )
        try:
            self.gated.update_user(user_id, email, password)
        except NothingToUpdateError:
            console.warning("No values provided, user details not updated.")
            return
        console.success("Details updated successfully.")

    def update_self(self) -> None:
        self._update(self.gated.identity.id)

    def update_other(self) -> None:
        user_id = read_field(FieldKind.INTEGER, "Enter the ID of the user to update")
        self._update(user_id)

    def add(self) -> None:
        email = read_field(FieldKind.EMAIL, "Enter the email address of the new user")
        role = read_field(FieldKind.ROLE, "Enter the role of the new user [user or admin]")
        password = read_field(FieldKind.TEXT, "Enter the password of the new user", hide_input=True)
        user_id = self.gated.add_user(email, password, role)
        console.success(f"User added successfully (ID {user_id}).")

    def delete(self) -> bool:
        user_id = read_field(FieldKind.INTEGER, "Enter the ID of the user to delete")
        outcome = self.gated.delete_user(user_id)
        if outcome is DeleteOutcome.REJECTED_LAST_ADMIN:
            console.error("Cannot delete the last admin user.")
        elif outcome is DeleteOutcome.NOT_FOUND:
            console.error("User does not exist.")
        else:
            console.success("User deleted successfully.")
            if user_id == self.gated.identity.id:
                logger.info("User %s deleted their own account", user_id)
                console.warning("You deleted your own account and have been signed out.")
                self.signed_out = True
                return True
        return False
