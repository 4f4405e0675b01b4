"""Construct the service graph and attach it to a FastAPI application."""

from __future__ import annotations

from fastapi import FastAPI

from .config import Settings
from .domain.avatars import AvatarPipeline
from .domain.contacts import ContactService, ContactStore
from .domain.contracts import Mailer
from .domain.service import AccountService, AccountStore
from .domain.verification import VerificationFlow
from .security.auth_gate import AuthGate
from .security.passwords import PasswordHasher
from .security.tokens import TokenIssuer


def install_services(
    app: FastAPI,
    settings: Settings,
    *,
    accounts: AccountStore,
    contacts: ContactStore,
    mailer: Mailer,
) -> None:
    """Build every service from ``settings`` and store it on ``app.state``."""
    tokens = TokenIssuer(
        secret=settings.jwt_secret,
        issuer=settings.jwt_issuer,
        ttl_seconds=settings.jwt_ttl_seconds,
    )
    verification = VerificationFlow(accounts, mailer, settings.public_base_url)
    avatar_pipeline = AvatarPipeline(
        accounts,
        tmp_dir=settings.tmp_dir,
        avatars_dir=settings.avatars_dir,
        size=settings.avatar_size,
        max_bytes=settings.avatar_max_bytes,
    )
    avatar_pipeline.ensure_directories()

    app.state.settings = settings
    app.state.account_service = AccountService(
        accounts,
        PasswordHasher(rounds=settings.bcrypt_rounds),
        tokens,
        verification,
    )
    app.state.auth_gate = AuthGate(tokens, accounts)
    app.state.avatar_pipeline = avatar_pipeline
    app.state.contact_service = ContactService(contacts)
