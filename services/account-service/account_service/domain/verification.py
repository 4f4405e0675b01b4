"""Email verification lifecycle: unverified -> verified via one-time tokens."""

from __future__ import annotations

import logging
from email.message import EmailMessage
from typing import Protocol

from .account import Account
from .contracts import Mailer
from .errors import (
    AccountServiceError,
    AuthError,
    AuthFailure,
    NotFoundError,
    ServerError,
    ValidationError,
    ValidationFailure,
)

logger = logging.getLogger(__name__)

VERIFY_PATH = "/api/users/verify"


class VerificationStore(Protocol):
    def get_by_email(self, email: str) -> Account | None: ...

    def get_by_verification_token(self, token: str) -> Account | None: ...

    def mark_verified(self, account_id: str) -> bool: ...


class VerificationFlow:
    """Send verification links and confirm them."""

    def __init__(self, repository: VerificationStore, mailer: Mailer, public_base_url: str) -> None:
        self._repository = repository
        self._mailer = mailer
        self._base_url = public_base_url.rstrip("/")

    def verification_link(self, token: str) -> str:
        return f"{self._base_url}{VERIFY_PATH}/{token}"

    def send_verification_email(self, account: Account) -> None:
        """Mail the confirmation link for an unverified account.

        Transport failures surface as ``ServerError``.
        """
        if account.verified or not account.verification_token:
            raise ValidationError(
                "Verification has already been passed", reason=ValidationFailure.already_verified
            )

        message = EmailMessage()
        message["To"] = account.email
        message["Subject"] = "Verification email"
        link = self.verification_link(account.verification_token)
        message.set_content(f"Confirm your registration: {link}")
        message.add_alternative(
            f'<a target="_blank" href="{link}">Click to confirm registration</a>',
            subtype="html",
        )

        try:
            self._mailer.send(message)
        except AccountServiceError:
            raise
        except Exception as exc:
            raise ServerError("failed to send verification email") from exc
        logger.info("verification email sent for account %s", account.account_id)

    def resend(self, email: str) -> None:
        account = self._repository.get_by_email(email.strip().lower())
        if account is None:
            raise AuthError(reason=AuthFailure.unknown_email)
        self.send_verification_email(account)

    def confirm(self, token: str) -> Account:
        """Consume ``token``; a token can only ever be confirmed once."""
        account = self._repository.get_by_verification_token(token)
        if account is None:
            raise NotFoundError("User not found")
        if not self._repository.mark_verified(account.account_id):
            # lost a race with a concurrent confirmation of the same token
            raise NotFoundError("User not found")
        account.verified = True
        account.verification_token = None
        logger.info("account %s verified", account.account_id)
        return account
