"""
Input Normalizers

This module provides normalization functions for the two user-supplied
strings on the redirect path: the alias taken from the URL path and the
stored target URL.

Both are normalized at read time. Targets are stored exactly as they were
submitted, so a scheme may be missing.
"""

import re
from typing import Optional

SCHEME_PATTERN = re.compile(r"^https?://", re.IGNORECASE)
DEFAULT_SCHEME = "https://"


def normalize_alias(alias: Optional[str]) -> Optional[str]:
    """
    Normalize a raw alias path segment.

    Removes every slash and surrounding whitespace.

    Args:
        alias: The raw path segment

    Returns:
        The normalized alias, or None when nothing is left
    """
    if not alias or not isinstance(alias, str):
        return None

    normalized = alias.replace("/", "").strip()
    return normalized or None


def normalize_target(target: str) -> str:
    """
    Make a stored target URL safe to use in a Location header.

    Example:
        normalize_target("example.com/a") -> "https://example.com/a"
        normalize_target("http://example.com") -> "http://example.com"
    """
    target = target.strip()
    if not SCHEME_PATTERN.match(target):
        target = DEFAULT_SCHEME + target
    return target
