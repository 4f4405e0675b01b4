"""Owner-scoped contact management."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from .contact import Contact
from .contracts import CreateContactInput, UpdateContactInput
from .errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class ContactStore(Protocol):
    def list_contacts(self, owner_id: str, favorite: bool | None = None) -> list[Contact]: ...

    def get_contact(self, contact_id: str, owner_id: str) -> Contact | None: ...

    def add_contact(self, owner_id: str, payload: CreateContactInput) -> Contact: ...

    def update_contact(self, contact_id: str, owner_id: str, changes: dict[str, Any]) -> Contact | None: ...

    def remove_contact(self, contact_id: str, owner_id: str) -> bool: ...


class ContactService:
    """Contact CRUD where every operation is restricted to the owning account."""

    def __init__(self, repository: ContactStore) -> None:
        self._repository = repository

    def list_contacts(self, owner_id: str, favorite: bool | None = None) -> list[Contact]:
        return self._repository.list_contacts(owner_id, favorite)

    def get_contact(self, contact_id: str, owner_id: str) -> Contact:
        contact = self._repository.get_contact(contact_id, owner_id)
        if contact is None:
            raise NotFoundError()
        return contact

    def add_contact(self, owner_id: str, payload: CreateContactInput) -> Contact:
        contact = self._repository.add_contact(owner_id, payload)
        logger.info("contact %s added for account %s", contact.contact_id, owner_id)
        return contact

    def update_contact(self, contact_id: str, owner_id: str, payload: UpdateContactInput) -> Contact:
        changes = payload.changes()
        if not changes:
            raise ValidationError("missing fields")
        contact = self._repository.update_contact(contact_id, owner_id, changes)
        if contact is None:
            raise NotFoundError()
        return contact

    def update_status(self, contact_id: str, owner_id: str, favorite: bool) -> Contact:
        return self.update_contact(contact_id, owner_id, UpdateContactInput(favorite=favorite))

    def remove_contact(self, contact_id: str, owner_id: str) -> None:
        if not self._repository.remove_contact(contact_id, owner_id):
            raise NotFoundError()
        logger.info("contact %s removed for account %s", contact_id, owner_id)
