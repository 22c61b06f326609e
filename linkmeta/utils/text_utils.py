import html
import re
from typing import Optional

_WHITESPACE_RE = re.compile(r"\s+")

ELLIPSIS = "..."


def normalize_text(text: Optional[str]) -> Optional[str]:
    """Decode entities, collapse runs of whitespace and trim. Empty results become None."""
    if text is None:
        return None
    cleaned = _WHITESPACE_RE.sub(" ", html.unescape(str(text))).strip()
    return cleaned or None


def truncate(text: str, max_length: int) -> str:
    """Cut text to max_length characters, marking the cut with an ellipsis"""
    if len(text) <= max_length:
        return text
    return text[:max_length].rstrip() + ELLIPSIS
