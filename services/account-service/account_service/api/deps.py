"""FastAPI dependencies resolving services and the authenticated account."""

from __future__ import annotations

from fastapi import Depends, Header, Request

from ..domain.avatars import AvatarPipeline
from ..domain.contacts import ContactService
from ..domain.service import AccountService
from ..security.auth_gate import AuthenticatedAccount, AuthGate


def get_service(request: Request) -> AccountService:
    """Resolve the `AccountService` stored on the FastAPI application state."""
    service: AccountService = request.app.state.account_service
    return service


def get_auth_gate(request: Request) -> AuthGate:
    gate: AuthGate = request.app.state.auth_gate
    return gate


def get_avatar_pipeline(request: Request) -> AvatarPipeline:
    pipeline: AvatarPipeline = request.app.state.avatar_pipeline
    return pipeline


def get_contact_service(request: Request) -> ContactService:
    service: ContactService = request.app.state.contact_service
    return service


def require_account(
    authorization: str | None = Header(default=None),
    gate: AuthGate = Depends(get_auth_gate),
) -> AuthenticatedAccount:
    """Authorize the request and hand the resolved identity to the route."""
    return gate.authenticate(authorization)
