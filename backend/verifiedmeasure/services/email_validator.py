"""Work-email check used by signup and login forms."""

import re

PERSONAL_DOMAINS = frozenset({
    "gmail.com",
    "yahoo.com",
    "hotmail.com",
    "outlook.com",
    "icloud.com",
    "aol.com",
    "proton.me",
    "protonmail.com",
    "gmx.com",
    "live.com",
})

_EMAIL_RE = re.compile(r"^[^@]+@([^@]+)$")


def is_work_email(email: str) -> bool:
    """True when the address is well-formed and not on a personal-mail domain."""
    match = _EMAIL_RE.match((email or "").strip().lower())
    if not match:
        return False
    return match.group(1) not in PERSONAL_DOMAINS
