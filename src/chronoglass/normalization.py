"""Utilities to normalize user-entered titles."""

from __future__ import annotations

import re
from typing import Optional

_WHITESPACE_PATTERN = re.compile(r"\s+")
_MAX_TITLE_LENGTH = 200


def normalize_title(title: Optional[str]) -> Optional[str]:
    """Collapse whitespace and trim a sub-activity title; blank becomes ``None``."""
    if not title:
        return None
    normalized = _WHITESPACE_PATTERN.sub(" ", title).strip()
    if len(normalized) > _MAX_TITLE_LENGTH:
        normalized = normalized[:_MAX_TITLE_LENGTH].rstrip()
    return normalized or None
