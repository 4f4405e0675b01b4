"""HTTP route definitions for the authenticated account's contacts."""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, Query, status
from pydantic import BaseModel, EmailStr, Field

from ..domain.contact import Contact
from ..domain.contacts import ContactService
from ..domain.contracts import CreateContactInput, UpdateContactInput
from ..security.auth_gate import AuthenticatedAccount
from .deps import get_contact_service, require_account

router = APIRouter(prefix="/api/contacts", tags=["contacts"])


class ContactResponse(BaseModel):
    contact_id: str
    name: str
    email: str
    phone: str
    favorite: bool
    created_at: datetime

    @classmethod
    def from_domain(cls, contact: Contact) -> "ContactResponse":
        return cls(
            contact_id=contact.contact_id,
            name=contact.name,
            email=contact.email,
            phone=contact.phone,
            favorite=contact.favorite,
            created_at=contact.created_at,
        )


class CreateContactRequest(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: str = Field(..., min_length=1)
    favorite: bool = False


class UpdateContactRequest(BaseModel):
    """Partial update; omitted fields keep their current value."""

    name: str | None = Field(default=None, min_length=1)
    email: EmailStr | None = None
    phone: str | None = Field(default=None, min_length=1)
    favorite: bool | None = None


class FavoriteRequest(BaseModel):
    favorite: bool


class MessageResponse(BaseModel):
    message: str


@router.get("", response_model=list[ContactResponse])
def list_contacts(
    favorite: bool | None = Query(default=None),
    identity: AuthenticatedAccount = Depends(require_account),
    service: ContactService = Depends(get_contact_service),
) -> list[ContactResponse]:
    contacts = service.list_contacts(identity.account_id, favorite)
    return [ContactResponse.from_domain(contact) for contact in contacts]


@router.get("/{contact_id}", response_model=ContactResponse)
def get_contact(
    contact_id: str,
    identity: AuthenticatedAccount = Depends(require_account),
    service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    return ContactResponse.from_domain(service.get_contact(contact_id, identity.account_id))


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
def add_contact(
    payload: CreateContactRequest,
    identity: AuthenticatedAccount = Depends(require_account),
    service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    contact = service.add_contact(
        identity.account_id,
        CreateContactInput(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            favorite=payload.favorite,
        ),
    )
    return ContactResponse.from_domain(contact)


@router.put("/{contact_id}", response_model=ContactResponse)
def update_contact(
    contact_id: str,
    payload: UpdateContactRequest,
    identity: AuthenticatedAccount = Depends(require_account),
    service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    """Update any subset of a contact's fields; an empty body is rejected."""
    contact = service.update_contact(
        contact_id,
        identity.account_id,
        UpdateContactInput(
            name=payload.name,
            email=payload.email,
            phone=payload.phone,
            favorite=payload.favorite,
        ),
    )
    return ContactResponse.from_domain(contact)


@router.patch("/{contact_id}/favorite", response_model=ContactResponse)
def update_status(
    contact_id: str,
    payload: FavoriteRequest,
    identity: AuthenticatedAccount = Depends(require_account),
    service: ContactService = Depends(get_contact_service),
) -> ContactResponse:
    contact = service.update_status(contact_id, identity.account_id, payload.favorite)
    return ContactResponse.from_domain(contact)


@router.delete("/{contact_id}", response_model=MessageResponse)
def remove_contact(
    contact_id: str,
    identity: AuthenticatedAccount = Depends(require_account),
    service: ContactService = Depends(get_contact_service),
) -> MessageResponse:
    service.remove_contact(contact_id, identity.account_id)
    return MessageResponse(message="contact deleted")
