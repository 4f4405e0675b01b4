"""Salted, adaptive password hashing backed by bcrypt."""

from __future__ import annotations

import bcrypt

from ..domain.errors import ServerError, ValidationError, ValidationFailure

# bcrypt only consumes the first 72 bytes of its input
MAX_PASSWORD_BYTES = 72


class PasswordHasher:
    """Hash and verify credentials with a configurable bcrypt work factor."""

    def __init__(self, rounds: int = 10) -> None:
        self._rounds = rounds

    def hash(self, plaintext: str) -> str:
        """Return a bcrypt digest embedding a fresh random salt.

        Raises
        ------
        ValidationError
            When ``plaintext`` is longer than ``MAX_PASSWORD_BYTES`` once UTF-8 encoded.
        """
        encoded = plaintext.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            raise ValidationError(
                f"Password must be at most {MAX_PASSWORD_BYTES} bytes",
                reason=ValidationFailure.password_too_long,
            )
        salt = bcrypt.gensalt(rounds=self._rounds)
        return bcrypt.hashpw(encoded, salt).decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        """Check ``plaintext`` against ``digest`` using the salt stored in the digest.

        Over-long passwords can never have been hashed, so they simply do not match.

        Raises
        ------
        ServerError
            When ``digest`` is not a well-formed bcrypt hash.
        """
        encoded = plaintext.encode("utf-8")
        if len(encoded) > MAX_PASSWORD_BYTES:
            return False
        try:
            return bcrypt.checkpw(encoded, digest.encode("utf-8"))
        except ValueError as exc:
            raise ServerError("stored password hash is malformed") from exc
