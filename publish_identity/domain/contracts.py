"""Domain-level request contracts shared by multiple layers."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class NewAccount:
    """Fully prepared account fields handed to the store for insertion."""

    email: str
    username: str
    fullname: str
    password_secret: str | None = None
    profile_img: str | None = None
    federated_auth: bool = False


@dataclass(slots=True, frozen=True)
class VerifiedIdentity:
    """Claims extracted from a verified identity provider assertion."""

    email: str
    name: str
    picture: str | None = None


@dataclass(slots=True, frozen=True)
class SessionView:
    """Caller-facing result of every successful authentication."""

    access_token: str
    profile_img: str | None
    username: str
    fullname: str
