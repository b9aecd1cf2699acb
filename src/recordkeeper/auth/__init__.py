"""Authentication and authorization for the record store."""

from recordkeeper.auth.authenticator import Authenticator
from recordkeeper.auth.gate import (
    CAPABILITIES,
    Decision,
    GatedStore,
    Operation,
    authorize,
    is_allowed,
    require,
)
from recordkeeper.auth.models import AuthState, Identity, LoginSession

__all__ = [
    "CAPABILITIES",
    "AuthState",
    "Authenticator",
    "Decision",
    "GatedStore",
    "Identity",
    "LoginSession",
    "Operation",
    "authorize",
    "is_allowed",
    "require",
]
