"""Core domain models for the webshell bridge.

These models describe what flows through a session: opaque byte chunks,
the session lifecycle state, the policy for input produced before the
connection is open, and the counters reported when a session ends.
"""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, Field

# An opaque run of bytes: UTF-8 text, control bytes or escape sequences.
# The bridge never splits, merges or inspects one.
ByteChunk = bytes


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class SessionState(str, enum.Enum):
    """Lifecycle of a single bridge session."""

    CONNECTING = "connecting"  # Transport connection not yet established
    OPEN = "open"  # Both relay directions active
    CLOSED = "closed"  # Graceful shutdown by either peer
    FAILED = "failed"  # Transport-level failure

    @property
    def is_terminal(self) -> bool:
        return self in (SessionState.CLOSED, SessionState.FAILED)


class InputPolicy(str, enum.Enum):
    """What to do with emulator input produced while still connecting."""

    DROP = "drop"
    BUFFER = "buffer"


class FrameMode(str, enum.Enum):
    """WebSocket frame type used for shell output on the endpoint."""

    BINARY = "binary"
    TEXT = "text"


# ---------------------------------------------------------------------------
# Session reporting
# ---------------------------------------------------------------------------


class SessionStats(BaseModel):
    """Relay counters for one session."""

    chunks_sent: int = Field(default=0, ge=0)
    bytes_sent: int = Field(default=0, ge=0)
    chunks_received: int = Field(default=0, ge=0)
    bytes_received: int = Field(default=0, ge=0)
    chunks_dropped: int = Field(default=0, ge=0)


class SessionSnapshot(BaseModel):
    """Point-in-time view of a session, returned when it finishes."""

    session_id: str
    state: SessionState
    started_at: datetime
    ended_at: datetime | None = None
    failure: str | None = Field(
        default=None, description="Description of the cause when state is failed"
    )
    stats: SessionStats = Field(default_factory=SessionStats)
