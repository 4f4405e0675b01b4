from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class Contact:
    """Address-book entry owned by an account."""

    contact_id: str
    owner_id: str
    name: str
    email: str
    phone: str
    created_at: datetime
    favorite: bool = False
