"""Client bridge module for webshell.

Relays byte chunks between a terminal emulator and a transport,
preserving content and order in both directions.

Public API:
    Session -- One emulator relayed to one transport connection
    SessionError -- Raised when the session API is misused
"""

from webshell.bridge.session import Session, SessionError

__all__ = ["Session", "SessionError"]
