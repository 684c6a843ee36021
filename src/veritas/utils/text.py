from __future__ import annotations

ELLIPSIS = "…"


def truncate(text: str, max_len: int) -> str:
    """Cut text to max_len characters, marking the cut with an ellipsis."""
    if not text or len(text) <= max_len:
        return text
    return text[:max_len] + ELLIPSIS
