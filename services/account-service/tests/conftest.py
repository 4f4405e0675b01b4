from __future__ import annotations

import copy
import uuid
from datetime import datetime, timezone
from email.message import EmailMessage
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from account_service.api import contacts as contacts_api
from account_service.api import routes
from account_service.api.errors import register_exception_handlers
from account_service.bootstrap import install_services
from account_service.config import Settings
from account_service.domain.account import Account
from account_service.domain.contact import Contact
from account_service.domain.contracts import CreateContactInput, NewAccountRecord
from account_service.domain.errors import ConflictError


class FakeAccountRepository:
    """In-memory repository mimicking the Postgres-backed account store."""

    def __init__(self) -> None:
        self._accounts: dict[str, Account] = {}

    def create_account(self, record: NewAccountRecord) -> Account:
        if any(account.email == record.email for account in self._accounts.values()):
            raise ConflictError()
        account = Account(
            account_id=str(uuid.uuid4()),
            email=record.email,
            password_hash=record.password_hash,
            created_at=datetime.now(timezone.utc),
            avatar_url=record.avatar_url,
            verification_token=record.verification_token,
        )
        self._accounts[account.account_id] = account
        return copy.copy(account)

    def _find(self, **criteria: Any) -> Account | None:
        for account in self._accounts.values():
            if all(getattr(account, key) == value for key, value in criteria.items()):
                return copy.copy(account)
        return None

    def get_by_id(self, account_id: str) -> Account | None:
        return self._find(account_id=account_id)

    def get_by_email(self, email: str) -> Account | None:
        return self._find(email=email)

    def get_by_session_token(self, token: str) -> Account | None:
        return self._find(session_token=token)

    def get_by_verification_token(self, token: str) -> Account | None:
        return self._find(verification_token=token)

    def set_session_token(self, account_id: str, token: str | None) -> None:
        if account_id in self._accounts:
            self._accounts[account_id].session_token = token

    def mark_verified(self, account_id: str) -> bool:
        account = self._accounts.get(account_id)
        if account is None or account.verified:
            return False
        account.verified = True
        account.verification_token = None
        return True

    def set_avatar_url(self, account_id: str, avatar_url: str) -> None:
        if account_id in self._accounts:
            self._accounts[account_id].avatar_url = avatar_url

    def all(self) -> list[Account]:
        return list(self._accounts.values())


class FakeContactRepository:
    def __init__(self) -> None:
        self._contacts: dict[str, Contact] = {}

    def list_contacts(self, owner_id: str, favorite: bool | None = None) -> list[Contact]:
        results = [contact for contact in self._contacts.values() if contact.owner_id == owner_id]
        if favorite is not None:
            results = [contact for contact in results if contact.favorite == favorite]
        return [copy.copy(contact) for contact in results]

    def get_contact(self, contact_id: str, owner_id: str) -> Contact | None:
        contact = self._contacts.get(contact_id)
        if contact is None or contact.owner_id != owner_id:
            return None
        return copy.copy(contact)

    def add_contact(self, owner_id: str, payload: CreateContactInput) -> Contact:
        contact = Contact(
            contact_id=str(uuid.uuid4()),
            owner_id=owner_id,
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            created_at=datetime.now(timezone.utc),
            favorite=payload.favorite,
        )
        self._contacts[contact.contact_id] = contact
        return copy.copy(contact)

    def update_contact(self, contact_id: str, owner_id: str, changes: dict[str, Any]) -> Contact | None:
        contact = self._contacts.get(contact_id)
        if contact is None or contact.owner_id != owner_id:
            return None
        for key, value in changes.items():
            setattr(contact, key, value)
        return copy.copy(contact)

    def remove_contact(self, contact_id: str, owner_id: str) -> bool:
        contact = self._contacts.get(contact_id)
        if contact is None or contact.owner_id != owner_id:
            return False
        del self._contacts[contact_id]
        return True


class RecordingMailer:
    """Mailer double that keeps every message instead of sending it."""

    def __init__(self) -> None:
        self.messages: list[EmailMessage] = []
        self.failure: Exception | None = None

    def send(self, message: EmailMessage) -> None:
        if self.failure is not None:
            raise self.failure
        self.messages.append(message)

    def last_body(self) -> str:
        return self.messages[-1].get_body(preferencelist=("plain",)).get_content()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        jwt_secret="test-secret",
        jwt_issuer="account-service-test",
        bcrypt_rounds=4,
        public_base_url="http://testserver",
        tmp_dir=str(tmp_path / "tmp"),
        avatars_dir=str(tmp_path / "avatars"),
    )


@pytest.fixture
def accounts() -> FakeAccountRepository:
    return FakeAccountRepository()


@pytest.fixture
def contact_repository() -> FakeContactRepository:
    return FakeContactRepository()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def app(settings, accounts, contact_repository, mailer) -> FastAPI:
    app = FastAPI()
    register_exception_handlers(app)
    app.include_router(routes.router)
    app.include_router(contacts_api.router)
    install_services(app, settings, accounts=accounts, contacts=contact_repository, mailer=mailer)
    return app


@pytest.fixture
def api_client(app):
    """Provide a FastAPI test client with isolated state."""
    with TestClient(app) as client:
        yield client


def signup_and_login(client: TestClient, email: str = "user@example.com", password: str = "pw123456") -> str:
    """Register ``email`` and return a bearer token for it."""
    assert client.post("/api/users/signup", json={"email": email, "password": password}).status_code == 200
    response = client.post("/api/users/login", json={"email": email, "password": password})
    assert response.status_code == 200
    return response.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
