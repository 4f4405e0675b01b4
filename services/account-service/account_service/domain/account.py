from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class SubscriptionTier(str, Enum):
    starter = "starter"
    pro = "pro"
    business = "business"


@dataclass(slots=True)
class Account:
    """Aggregate root for a user identity and its session/verification state."""

    account_id: str
    email: str
    password_hash: str
    created_at: datetime
    subscription: SubscriptionTier = SubscriptionTier.starter
    session_token: str | None = None
    avatar_url: str | None = None
    verified: bool = False
    verification_token: str | None = None

