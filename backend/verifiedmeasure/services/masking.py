"""Redaction of lead fields for users without entitlement."""

import re
from typing import Any, Dict, Optional

PLACEHOLDER = "—"


def mask_company(name: Optional[str]) -> str:
    s = (name or "").strip()
    if not s:
        return PLACEHOLDER
    if len(s) <= 2:
        return s[0] + "*"
    if len(s) <= 5:
        return s[:2] + "*" * (len(s) - 2)
    return s[:3] + "*" * min(6, len(s) - 3)


def _mask_part(part: str, cap: int) -> str:
    if len(part) <= 2:
        return part[:1] + "*"
    return part[0] + "*" * min(cap, len(part) - 1)


def mask_email(email: Optional[str]) -> str:
    s = (email or "").strip()
    if not s:
        return PLACEHOLDER
    at = s.find("@")
    if at <= 0:
        return "***@***"

    local = s[:at]
    domain = s[at + 1:]
    dot = domain.rfind(".")
    domain_name = domain[:dot] if dot > 0 else domain
    tld = domain[dot:] if dot > 0 else ""

    return f"{_mask_part(local, 4)}@{_mask_part(domain_name, 6)}{tld}"


def mask_phone(phone: Optional[str]) -> str:
    s = (phone or "").strip()
    if not s:
        return PLACEHOLDER
    digits = re.sub(r"\D", "", s)
    if len(digits) < 4:
        return "***"
    return f"***-***-**{digits[-2:]}"


def redact_lead(lead: Dict[str, Any]) -> Dict[str, Any]:
    """Preview rendering of a lead the viewer is not entitled to."""
    return {
        **lead,
        "company": mask_company(lead.get("company")),
        "website": None,
        "email": mask_email(lead.get("email")),
        "phone": mask_phone(lead.get("phone")),
        "meta": {},
    }
