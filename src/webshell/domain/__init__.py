"""Domain models for webshell.

Core value types shared by the bridge, the transports and the endpoint.
All structured models use Pydantic v2.
"""

from webshell.domain.models import (
    ByteChunk,
    FrameMode,
    InputPolicy,
    SessionSnapshot,
    SessionState,
    SessionStats,
)

__all__ = [
    "ByteChunk",
    "FrameMode",
    "InputPolicy",
    "SessionSnapshot",
    "SessionState",
    "SessionStats",
]
