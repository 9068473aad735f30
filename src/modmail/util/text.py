"""Helpers for turning Discord messages into relayable text."""

from __future__ import annotations

from typing import Iterable, List

DISCORD_MESSAGE_LIMIT = 2000


def flatten_content(text: str | None, attachment_urls: Iterable[str] = ()) -> str:
    """Join message text and attachment URLs, one URL per line."""
    parts = [text.strip()] if text and text.strip() else []
    parts.extend(url for url in attachment_urls if url)
    return "\n".join(parts)


def chunk_content(content: str, limit: int = DISCORD_MESSAGE_LIMIT) -> List[str]:
    """
    Split ``content`` into pieces no longer than ``limit``.

    Splits prefer the last newline, then the last space, inside each window so
    words and URLs are only cut when a single token exceeds the limit. Only the
    separator at a split point is consumed; indentation and blank lines the
    member wrote are kept. Pieces that are pure whitespace are not sent.
    """
    if limit <= 0:
        raise ValueError("limit must be positive")

    chunks: List[str] = []
    remaining = content
    while len(remaining) > limit:
        window = remaining[:limit]
        cut = window.rfind("\n")
        if cut <= 0:
            cut = window.rfind(" ")
        if cut > 0:
            piece, remaining = remaining[:cut], remaining[cut + 1:]
        else:
            piece, remaining = window, remaining[limit:]
        if piece.strip():
            chunks.append(piece)
    if remaining.strip():
        chunks.append(remaining)
    return chunks


def preview(content: str, length: int = 80) -> str:
    """Single-line truncated preview for DEBUG logs."""
    flat = " ".join(content.split())
    return flat if len(flat) <= length else flat[: length - 1] + "…"
