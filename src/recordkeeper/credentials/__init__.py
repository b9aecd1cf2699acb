"""Credential Codec - password digests and salts."""

from recordkeeper.credentials.codec import (
    DEFAULT_ROUNDS,
    MIN_ROUNDS,
    PasswordCodec,
    generate_salt,
)

__all__ = [
    "DEFAULT_ROUNDS",
    "MIN_ROUNDS",
    "PasswordCodec",
    "generate_salt",
]
