"""Signup payload checks, applied in order before any external call."""

from __future__ import annotations

import re

from .errors import InvalidInput

EMAIL_PATTERN = re.compile(r"\w+([.-]\w+)*@\w+([.-]\w+)*(\.\w{2,3})+", re.ASCII)
PASSWORD_PATTERN = re.compile(r"(?=.*\d)(?=.*[a-z])(?=.*[A-Z]).{6,20}", re.ASCII)

MIN_FULLNAME_LENGTH = 3


def validate_signup(fullname: str, email: str, password: str) -> None:
    """Raise ``InvalidInput`` for the first defect found in a signup payload."""
    if len(fullname) < MIN_FULLNAME_LENGTH:
        raise InvalidInput("fullname must be at least 3 letters long")
    if not email:
        raise InvalidInput("email is required")
    if not EMAIL_PATTERN.fullmatch(email):
        raise InvalidInput("invalid email")
    if not PASSWORD_PATTERN.fullmatch(password):
        raise InvalidInput(
            "password should be 6 to 20 characters long with a numeric, "
            "1 lowercase and 1 uppercase letter"
        )
