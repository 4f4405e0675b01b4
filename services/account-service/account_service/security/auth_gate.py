"""Per-request authorization of bearer session tokens."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol

from ..domain.account import Account
from ..domain.errors import AuthError, AuthFailure
from .tokens import TokenIssuer

logger = logging.getLogger(__name__)


class AccountLookup(Protocol):
    def get_by_id(self, account_id: str) -> Account | None: ...


@dataclass(frozen=True, slots=True)
class AuthenticatedAccount:
    """Identity resolved for the current request."""

    account: Account
    token: str

    @property
    def account_id(self) -> str:
        return self.account.account_id


def extract_token(authorization: str | None) -> str | None:
    """Return the token from an ``Authorization`` header value.

    Accepts ``Bearer <token>`` as well as a bare token.
    """
    if not authorization:
        return None
    value = authorization.strip()
    scheme, _, credentials = value.partition(" ")
    if scheme.lower() == "bearer":
        value = credentials.strip()
    return value or None


class AuthGate:
    """Resolve a request's bearer token into the account it belongs to.

    A token is accepted only while it is the account's stored session token,
    so logging out (or logging in again) retires previously issued tokens
    even before they expire.
    """

    def __init__(self, tokens: TokenIssuer, accounts: AccountLookup) -> None:
        self._tokens = tokens
        self._accounts = accounts

    def authenticate(self, authorization: str | None) -> AuthenticatedAccount:
        token = extract_token(authorization)
        if token is None:
            raise AuthError("No token provided", reason=AuthFailure.no_token)

        try:
            account_id = self._tokens.validate(token)
        except AuthError as exc:
            raise AuthError(reason=AuthFailure.invalid_token) from exc

        account = self._accounts.get_by_id(account_id)
        if account is None:
            logger.info("token presented for missing account %s", account_id)
            raise AuthError(reason=AuthFailure.user_not_found)

        if account.session_token != token:
            raise AuthError(reason=AuthFailure.session_not_current)

        return AuthenticatedAccount(account=account, token=token)
