"""Login field heuristics."""

from __future__ import annotations

from typing import Callable, Optional

from ..analyzer.models import FormField, FormSnapshot

_IDENTIFIER_HINTS = ("user", "email", "login")


def _text_with(attr: str) -> Callable[[FormField], bool]:
    def match(f: FormField) -> bool:
        value = getattr(f, attr).lower()
        return f.type == "text" and any(hint in value for hint in _IDENTIFIER_HINTS)

    return match


# Checked in order; the first match with a value wins
IDENTIFIER_MATCHERS: list[Callable[[FormField], bool]] = [
    lambda f: f.type == "email",
    _text_with("name"),
    _text_with("id"),
    lambda f: f.autocomplete in ("username", "email"),
]


def find_password_field(form: FormSnapshot) -> Optional[FormField]:
    """First password input that carries a value."""
    for f in form.fields:
        if f.type == "password" and f.value:
            return f
    return None


def find_identifier_field(form: FormSnapshot, password: Optional[FormField] = None) -> Optional[FormField]:
    """Locate the username/identifier input for a login form."""
    for matcher in IDENTIFIER_MATCHERS:
        for f in form.fields:
            if f.type != "password" and f.value and matcher(f):
                return f

    # Fallback: first text/email input before the password field
    for f in form.fields:
        if password is not None and f is password:
            break
        if f.type in ("text", "email"):
            return f if f.value else None
    return None
