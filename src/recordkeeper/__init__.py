"""Record Keeper - role-gated student and user records on SQLite."""

__version__ = "0.1.0"
