"""Unit tests for the password codec."""

import pytest

from recordkeeper.credentials import (
    MIN_ROUNDS,
    PasswordCodec,
    generate_salt,
)


@pytest.mark.unit
class TestGenerateSalt:
    """Tests for generate_salt."""

    def test_salt_is_128_bits_of_hex(self) -> None:
        salt = generate_salt()

        assert len(salt) == 32
        assert bytes.fromhex(salt)

    def test_salts_are_unique(self) -> None:
        assert len({generate_salt() for _ in range(50)}) == 50

    def test_codec_exposes_generator(self) -> None:
        assert len(PasswordCodec.generate_salt()) == 32


@pytest.mark.unit
class TestHash:
    """Tests for PasswordCodec.hash."""

    def test_digest_is_self_describing(self, codec: PasswordCodec) -> None:
        digest = codec.hash("hunter2", generate_salt())

        assert digest.startswith(f"$pbkdf2-sha256${MIN_ROUNDS}$")

    def test_digest_never_contains_plaintext(self, codec: PasswordCodec) -> None:
        digest = codec.hash("plaintext-password", generate_salt())

        assert "plaintext-password" not in digest

    def test_same_salt_same_digest(self, codec: PasswordCodec) -> None:
        salt = generate_salt()

        assert codec.hash("pw", salt) == codec.hash("pw", salt)

    def test_different_salt_different_digest(self, codec: PasswordCodec) -> None:
        assert codec.hash("pw", generate_salt()) != codec.hash("pw", generate_salt())

    def test_salt_with_high_bytes(self, codec: PasswordCodec) -> None:
        """Bytes above 0x7f survive the hex round trip."""
        salt = "ff" * 16
        digest = codec.hash("pw", salt)

        assert codec.verify("pw", digest)

    def test_invalid_hex_salt_raises(self, codec: PasswordCodec) -> None:
        with pytest.raises(ValueError):
            codec.hash("pw", "not-hex")

    def test_rounds_below_minimum_rejected(self) -> None:
        with pytest.raises(ValueError, match="at least"):
            PasswordCodec(rounds=MIN_ROUNDS - 1)


@pytest.mark.unit
class TestVerify:
    """Tests for PasswordCodec.verify."""

    def test_correct_password(self, codec: PasswordCodec) -> None:
        digest = codec.hash("correct horse", generate_salt())

        assert codec.verify("correct horse", digest) is True

    def test_wrong_password(self, codec: PasswordCodec) -> None:
        digest = codec.hash("correct horse", generate_salt())

        assert codec.verify("battery staple", digest) is False

    def test_unicode_password(self, codec: PasswordCodec) -> None:
        digest = codec.hash("pässwörd-密码", generate_salt())

        assert codec.verify("pässwörd-密码", digest) is True
        assert codec.verify("passwort-密码", digest) is False

    def test_verifies_digest_from_other_cost(self, codec: PasswordCodec) -> None:
        """Rounds come from the digest, not from the verifying codec."""
        digest = PasswordCodec(rounds=MIN_ROUNDS + 1).hash("pw", generate_salt())

        assert codec.verify("pw", digest) is True

    @pytest.mark.parametrize(
        "digest",
        [
            "",
            "plaintext",
            "$pbkdf2-sha256$abc$def$ghi",
            "$pbkdf2-sha256$100000$",
            "$2b$12$abcdefghijklmnopqrstuu",
            None,
        ],
    )
    def test_malformed_digest_fails_closed(self, codec: PasswordCodec, digest) -> None:
        assert codec.verify("pw", digest) is False
