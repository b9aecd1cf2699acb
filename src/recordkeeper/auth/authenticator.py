"""Authenticator - turns email and password into an Identity."""

from __future__ import annotations

from recordkeeper.auth.models import AuthState, Identity, LoginSession
from recordkeeper.credentials import PasswordCodec
from recordkeeper.exceptions import AuthError, InvalidCredentialsError, LockedOutError
from recordkeeper.logging import get_logger
from recordkeeper.store import RecordStore

logger = get_logger("auth.authenticator")

DEFAULT_MAX_ATTEMPTS = 3

# Verified against when the email is unknown, so both failure paths cost
# one key derivation.
_DUMMY_PASSWORD = "recordkeeper-unknown-account"


class Authenticator:
    """Checks credentials against the store with a bounded number of tries.

    The authenticator holds no session state itself; each caller keeps a
    LoginSession from new_session() and passes it to login().
    """

    def __init__(
        self,
        store: RecordStore,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        codec: PasswordCodec | None = None,
    ) -> None:
        """Initialize the authenticator.

        Args:
            store: Record store to look users up in.
            max_attempts: Failed attempts allowed per session.
            codec: Codec used for verification (defaults to the store's).
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._store = store
        self._codec = codec if codec is not None else store.codec
        self._max_attempts = max_attempts
        self._dummy_digest: str | None = None

    def new_session(self) -> LoginSession:
        """Start a login session awaiting credentials."""
        return LoginSession(max_attempts=self._max_attempts)

    def login(self, session: LoginSession, email: str, password: str) -> Identity:
        """Make one login attempt.

        Args:
            session: The caller's login session; updated in place.
            email: The user's email.
            password: The user's password.

        Returns:
            The Identity of the logged-in user.

        Raises:
            LockedOutError: If the session is locked out, or this failure
                used up the last attempt. The session is over.
            InvalidCredentialsError: If the credentials did not match and
                attempts remain. Same error for unknown email and bad password.
            AuthError: If the session is already authenticated.
            StorageError: If the lookup failed; the attempt is not counted.
        """
        if session.state is AuthState.LOCKED_OUT:
            logger.warning("Login attempt on a locked-out session refused")
            raise LockedOutError()
        if session.state is AuthState.AUTHENTICATED:
            raise AuthError("Session is already authenticated.")

        record = self._store.get_user_by_email(email)
        if record is None:
            self._codec.verify(password, self._get_dummy_digest())
            matched = False
        else:
            matched = self._codec.verify(password, record.password_hash)

        if matched and record is not None:
            identity = Identity.from_record(record)
            session.state = AuthState.AUTHENTICATED
            session.identity = identity
            logger.info("User %s logged in as %s", identity.id, identity.role.value)
            return identity

        session.failed_attempts += 1
        logger.warning(
            "Failed login for %r (%d/%d)", email, session.failed_attempts, session.max_attempts
        )
        if session.failed_attempts >= session.max_attempts:
            session.state = AuthState.LOCKED_OUT
            logger.warning("Login session locked out after %d attempts", session.failed_attempts)
            raise LockedOutError()
        raise InvalidCredentialsError(session.attempts_remaining)

    def _get_dummy_digest(self) -> str:
        if self._dummy_digest is None:
            self._dummy_digest = self._codec.hash(_DUMMY_PASSWORD, self._codec.generate_salt())
        return self._dummy_digest
