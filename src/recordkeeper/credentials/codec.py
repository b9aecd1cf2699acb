"""Password hashing and verification.

Digests use passlib's ``pbkdf2_sha256`` modular-crypt format,
``$pbkdf2-sha256$<rounds>$<salt>$<checksum>``, so verification needs nothing
but the digest itself. Salts are 128 random bits kept as hex text.
"""

from __future__ import annotations

import secrets

from passlib.hash import pbkdf2_sha256

from recordkeeper.logging import get_logger

logger = get_logger("credentials")

MIN_ROUNDS = 100_000
DEFAULT_ROUNDS = 310_000
SALT_BYTES = 16


def generate_salt() -> str:
    """Generate a random 128-bit salt.

    Returns:
        The salt as 32 lowercase hex characters.
    """
    return secrets.token_hex(SALT_BYTES)


class PasswordCodec:
    """Hashes and verifies passwords with PBKDF2-HMAC-SHA256."""

    def __init__(self, rounds: int = DEFAULT_ROUNDS) -> None:
        """Initialize the codec.

        Args:
            rounds: PBKDF2 iteration count for new digests.

        Raises:
            ValueError: If rounds is below MIN_ROUNDS.
        """
        if rounds < MIN_ROUNDS:
            raise ValueError(f"rounds must be at least {MIN_ROUNDS}, got {rounds}")
        self.rounds = rounds

    def hash(self, plaintext: str, salt: str) -> str:
        """Derive a self-describing digest for a password.

        Args:
            plaintext: The password.
            salt: Hex-encoded salt, usually from generate_salt().

        Returns:
            The digest string.

        Raises:
            ValueError: If salt is not valid hex.
        """
        salt_bytes = bytes.fromhex(salt)
        return pbkdf2_sha256.using(rounds=self.rounds, salt=salt_bytes).hash(plaintext)

    def verify(self, candidate: str, digest: str | None) -> bool:
        """Check a password against a stored digest.

        A digest that cannot be parsed counts as a mismatch.

        Args:
            candidate: The password to check.
            digest: The stored digest.

        Returns:
            True if the password matches.
        """
        if not isinstance(digest, str) or not pbkdf2_sha256.identify(digest):
            logger.warning("Stored password digest is not in a recognized format")
            return False
        try:
            return pbkdf2_sha256.verify(candidate, digest)
        except (ValueError, TypeError):
            logger.warning("Stored password digest could not be parsed")
            return False

    @staticmethod
    def generate_salt() -> str:
        """Generate a random 128-bit hex salt."""
        return generate_salt()
