from __future__ import annotations

import math
import re


_TAG_RE = re.compile(r"<[^>]*>")
_SLUG_RE = re.compile(r"[^a-z0-9]+")
_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

WORDS_PER_MINUTE = 200


def strip_tags(html: str | None) -> str:
    """Drop anything that looks like a markup tag. Not an HTML parser."""
    return _TAG_RE.sub("", html or "")


def slugify(text: str | None) -> str:
    """Lowercase, collapse non-alphanumeric runs to '-', trim dashes."""
    s = _SLUG_RE.sub("-", (text or "").lower())
    return s.strip("-")


def estimated_read_time(content: str | None) -> int:
    """Minutes to read `content` at 200 wpm, never less than 1."""
    words = strip_tags(content).split()
    return max(1, math.ceil(len(words) / WORDS_PER_MINUTE))


def is_valid_email(email: str | None) -> bool:
    return bool(_EMAIL_RE.match(email or ""))


def validate_registration(email: str, password: str, full_name: str) -> str | None:
    """Return the first validation error message, or None when input is acceptable."""
    if not is_valid_email(email):
        return "Invalid email format"
    if len(password or "") < 6:
        return "Password must be at least 6 characters long"
    if len((full_name or "").strip()) < 2:
        return "Full name must be at least 2 characters long"
    return None
