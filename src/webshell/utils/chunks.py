"""Helpers for showing byte chunks in logs and on screen."""

from __future__ import annotations

import json

from webshell.domain.models import ByteChunk


def describe_chunk(chunk: ByteChunk) -> str:
    """Render a chunk as a JSON string literal.

    Control bytes and escape sequences come out escaped
    (``"\\u001b[A"``) while printable text stays readable.
    """
    return json.dumps(chunk.decode("utf-8", errors="replace"), ensure_ascii=False)


def first_code_point(chunk: ByteChunk) -> int | None:
    """Code point of the first character in the chunk, if any."""
    text = chunk.decode("utf-8", errors="replace")
    if not text:
        return None
    return ord(text[0])
