"""Cleanup for free-text fields coming from upstream quote data."""

import re

_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")


def sanitize_text(text: str | None, max_length: int = 200) -> str | None:
    """
    Strip control characters and cap the length of an untrusted string.

    Blank results collapse to None so they count as missing.
    """
    if text is None:
        return None
    cleaned = _CONTROL_CHARS.sub("", str(text)).strip()
    if len(cleaned) > max_length:
        cleaned = cleaned[:max_length].rstrip() + "..."
    return cleaned or None
