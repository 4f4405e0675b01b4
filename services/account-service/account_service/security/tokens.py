"""Utilities for issuing and validating session JWTs."""

from __future__ import annotations

import secrets
import time
from typing import Any

import jwt

from ..domain.errors import AuthError, AuthFailure, ConfigurationError

_ALGORITHM = "HS256"


class TokenIssuer:
    """Stateless HS256 signer/validator for bearer session tokens."""

    def __init__(self, *, secret: str, issuer: str, ttl_seconds: int) -> None:
        if not secret:
            raise ConfigurationError("a token signing secret is required")
        self._secret = secret
        self._issuer = issuer
        self.ttl_seconds = ttl_seconds

    def issue(self, account_id: str) -> str:
        """Create a signed JWT representing an authenticated account.

        Parameters
        ----------
        account_id:
            Account identifier to embed in the token `sub` claim.

        Returns
        -------
        str
            The encoded JWT, valid for ``ttl_seconds`` from now.
        """
        now = int(time.time())
        payload: dict[str, Any] = {
            "iss": self._issuer,
            "sub": account_id,
            "iat": now,
            "exp": now + self.ttl_seconds,
            "jti": secrets.token_hex(8),
        }
        return jwt.encode(payload, self._secret, algorithm=_ALGORITHM)

    def validate(self, token: str) -> str:
        """Verify signature, issuer and expiry, returning the embedded account id.

        Raises
        ------
        AuthError
            With reason ``invalid_or_expired`` for any decoding failure.
        """
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[_ALGORITHM],
                issuer=self._issuer,
                options={"require": ["exp", "sub"]},
            )
        except jwt.PyJWTError as exc:
            raise AuthError(reason=AuthFailure.invalid_or_expired) from exc
        return str(claims["sub"])
