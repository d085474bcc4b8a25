"""Domain input validation performed before any network call."""

from __future__ import annotations

import re

_SCHEME_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
# Optional subdomain labels, a 3-63 character main label, then one or more
# alphabetic suffix labels ("com", "co.uk").
_DOMAIN_PATTERN = re.compile(
    r"(?:[a-z0-9](?:[a-z0-9-]{0,61}[a-z0-9])?\.)*"
    r"[a-z0-9][a-z0-9-]{1,61}[a-z0-9]"
    r"(?:\.[a-z]{2,})+",
    re.IGNORECASE,
)


def clean_domain(value: str) -> str:
    """Strip an optional ``http://`` or ``https://`` prefix."""

    return _SCHEME_PATTERN.sub("", value, count=1)


def validate_domain(value: object) -> bool:
    if not isinstance(value, str):
        return False
    return _DOMAIN_PATTERN.fullmatch(clean_domain(value)) is not None


__all__ = ["clean_domain", "validate_domain"]
