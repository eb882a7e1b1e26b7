"""Abstract base class for the terminal emulator side of a session.

The emulator renders inbound bytes and produces outbound bytes from
user input. The bridge only needs three things from it: a ``write()``
call, a subscription that delivers input chunks as they are produced,
and an attach step that binds it to a display surface.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Callable

from webshell.domain.models import ByteChunk

logger = logging.getLogger(__name__)

InputHandler = Callable[[ByteChunk], None]
EndHandler = Callable[[], None]


class TerminalEmulator(ABC):
    """Abstract interface for a terminal emulator.

    Subclasses call ``emit_input()`` for every byte sequence the user
    produces (printable keys, escape sequences for special keys, pasted
    text) and ``emit_end()`` when no more input will ever arrive.

    Example usage::

        with LocalTerminal() as terminal:
            unsubscribe = terminal.on_input(session.on_emulator_input)
            terminal.write(b"\\x1b[1;3;31mhello\\x1b[0m")
    """

    def __init__(self) -> None:
        self._input_handlers: list[InputHandler] = []
        self._end_handlers: list[EndHandler] = []
        self._is_attached = False

    @property
    def is_attached(self) -> bool:
        """Whether the emulator is bound to its display surface."""
        return self._is_attached

    @abstractmethod
    def attach(self) -> None:
        """Bind the emulator to its display surface and start producing input."""
        ...

    @abstractmethod
    def detach(self) -> None:
        """Stop producing input and release the display surface.

        Should be safe to call multiple times.
        """
        ...

    @abstractmethod
    def write(self, chunk: ByteChunk) -> None:
        """Render a chunk of bytes exactly as received."""
        ...

    def on_input(self, handler: InputHandler) -> Callable[[], None]:
        """Subscribe to input chunks. Returns a callable that unsubscribes."""
        self._input_handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._input_handlers:
                self._input_handlers.remove(handler)

        return unsubscribe

    def on_end(self, handler: EndHandler) -> Callable[[], None]:
        """Subscribe to the end of the input stream."""
        self._end_handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._end_handlers:
                self._end_handlers.remove(handler)

        return unsubscribe

    def emit_input(self, chunk: ByteChunk) -> None:
        for handler in list(self._input_handlers):
            handler(chunk)

    def emit_end(self) -> None:
        logger.debug("Emulator input ended")
        for handler in list(self._end_handlers):
            handler()

    def __enter__(self) -> TerminalEmulator:
        self.attach()
        return self

    def __exit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        self.detach()
