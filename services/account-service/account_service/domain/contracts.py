"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass
from email.message import EmailMessage
from typing import BinaryIO, Protocol


@dataclass(slots=True)
class CreateAccountInput:
    """Validated credentials required to register an account."""

    email: str
    password: str


@dataclass(slots=True)
class NewAccountRecord:
    """Fully prepared account row handed to the repository for insertion."""

    email: str
    password_hash: str
    verification_token: str
    avatar_url: str


@dataclass(slots=True)
class CreateContactInput:
    name: str
    email: str
    phone: str
    favorite: bool = False


@dataclass(slots=True)
class UpdateContactInput:
    """Partial contact update; ``None`` leaves a field unchanged."""

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    favorite: bool | None = None

    def changes(self) -> dict[str, object]:
        return {
            key: value
            for key, value in (
                ("name", self.name),
                ("email", self.email),
                ("phone", self.phone),
                ("favorite", self.favorite),
            )
            if value is not None
        }


@dataclass(slots=True)
class AvatarUpload:
    """Uploaded avatar payload as received from the HTTP layer."""

    account_id: str
    filename: str
    stream: BinaryIO
    previous_url: str | None = None


class Mailer(Protocol):
    """Outbound email collaborator."""

    def send(self, message: EmailMessage) -> None:
        """Deliver ``message`` or raise on transport failure."""
