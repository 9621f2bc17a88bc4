from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(slots=True)
class Account:
    """Aggregate root for a publishing identity.

    ``password_secret`` is only set for password accounts; accounts created
    through the identity provider carry ``federated_auth=True`` and no secret.
    """

    account_id: str
    email: str
    username: str
    fullname: str
    created_at: datetime
    password_secret: str | None = None
    profile_img: str | None = None
    federated_auth: bool = False
