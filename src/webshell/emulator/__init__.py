"""Terminal emulator module for webshell.

Defines the contract the bridge needs from a terminal emulator and
provides the host terminal as a concrete implementation.

Public API:
    TerminalEmulator -- Abstract base class
    LocalTerminal -- The process's own stdin/stdout in raw mode
"""

from webshell.emulator.base import TerminalEmulator

__all__ = ["LocalTerminal", "TerminalEmulator"]


def __getattr__(name: str) -> type:
    """Lazy import for the POSIX-only terminal implementation."""
    if name == "LocalTerminal":
        from webshell.emulator.stdio import LocalTerminal
        return LocalTerminal
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
