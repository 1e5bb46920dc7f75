from __future__ import annotations

import re

from ..core.exceptions import ValidationError

_ADDRESS_RE = re.compile(r"^0x[0-9a-f]{40}$")


def require_non_empty(value: str, field_name: str) -> str:
    if not value or not str(value).strip():
        raise ValidationError(f"{field_name} is required")
    return str(value).strip()


def normalize_address(value: str, field_name: str = "address") -> str:
    """Addresses are case-insensitive; the lowercase form is canonical."""
    v = require_non_empty(value, field_name).lower()
    if not _ADDRESS_RE.match(v):
        raise ValidationError(f"{field_name} is not a valid account address")
    return v
