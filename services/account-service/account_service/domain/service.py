"""Account service orchestrating persistence, hashing, sessions and verification."""

from __future__ import annotations

import hashlib
import logging
import secrets
from dataclasses import dataclass
from typing import Protocol

from .account import Account
from .contracts import CreateAccountInput, NewAccountRecord
from .errors import AuthError, AuthFailure, ConflictError
from .verification import VerificationFlow
from ..security.passwords import PasswordHasher
from ..security.tokens import TokenIssuer

logger = logging.getLogger(__name__)

GRAVATAR_BASE = "https://www.gravatar.com/avatar"


class AccountStore(Protocol):
    def create_account(self, record: NewAccountRecord) -> Account: ...

    def get_by_id(self, account_id: str) -> Account | None: ...

    def get_by_email(self, email: str) -> Account | None: ...

    def set_session_token(self, account_id: str, token: str | None) -> None: ...


@dataclass(slots=True)
class LoginResult:
    """Session token handed back to a client after a successful login."""

    token: str
    expires_in: int
    account: Account


def normalise_email(email: str) -> str:
    return email.strip().lower()


def default_avatar_url(email: str) -> str:
    """Return the gravatar identicon URL for ``email``."""
    digest = hashlib.md5(normalise_email(email).encode("utf-8"), usedforsecurity=False).hexdigest()
    return f"{GRAVATAR_BASE}/{digest}"


class AccountService:
    """Signup, login/logout and verification workflows."""

    def __init__(
        self,
        repository: AccountStore,
        hasher: PasswordHasher,
        tokens: TokenIssuer,
        verification: VerificationFlow,
    ) -> None:
        """Store dependencies used to orchestrate persistence and token issuance."""
        self._repository = repository
        self._hasher = hasher
        self._tokens = tokens
        self._verification = verification

    @property
    def verification(self) -> VerificationFlow:
        return self._verification

    def create_account(self, payload: CreateAccountInput) -> Account:
        """Persist a new unverified account; the email must not be registered yet."""
        email = normalise_email(payload.email)
        if self._repository.get_by_email(email) is not None:
            raise ConflictError()

        account = self._repository.create_account(
            NewAccountRecord(
                email=email,
                password_hash=self._hasher.hash(payload.password),
                verification_token=secrets.token_urlsafe(32),
                avatar_url=default_avatar_url(email),
            )
        )
        logger.info("account %s created", account.account_id)
        return account

    def signup(self, payload: CreateAccountInput) -> Account:
        """Create the account and mail its verification link."""
        account = self.create_account(payload)
        self._verification.send_verification_email(account)
        return account

    def get_account(self, account_id: str) -> Account | None:
        return self._repository.get_by_id(account_id)

    def login(self, email: str, password: str) -> LoginResult:
        account = self._repository.get_by_email(normalise_email(email))
        if account is None or not self._hasher.verify(password, account.password_hash):
            logger.warning("rejected login attempt")
            raise AuthError("Email or password is wrong", reason=AuthFailure.bad_credentials)

        token = self._tokens.issue(account.account_id)
        self._repository.set_session_token(account.account_id, token)
        account.session_token = token
        logger.info("account %s logged in", account.account_id)
        return LoginResult(token=token, expires_in=self._tokens.ttl_seconds, account=account)

    def logout(self, account: Account) -> None:
        self._repository.set_session_token(account.account_id, None)
        account.session_token = None
        logger.info("account %s logged out", account.account_id)
