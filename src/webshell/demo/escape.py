"""Escape-sequence playback.

Writes a showcase string to an emulator one character at a time so the
effect of each escape sequence is visible as it is rendered. This is a
presentation aid only: the bridge itself never splits chunks.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from webshell.emulator.base import TerminalEmulator

logger = logging.getLogger(__name__)

# Awaited between two characters; controls animation speed only
Pacer = Callable[[], Awaitable[None]]

DEFAULT_CHAR_DELAY = 0.002

DEMO_TEXT = (
    "This is a plain UTF-8 string; the terminal renders it as-is.\r\n"
    "Inside a terminal, a line break needs both \\r (carriage return) and \\n (line feed).\r\n"
    "Text can be decorated with escape codes, e.g.: \x1b[1;3;31mbold italic red foreground\x1b[0m\r\n"
    "    \\x1B (ESC) tells the terminal that an escape command follows\r\n"
    "    [ marks a control sequence (CSI) that takes parameters\r\n"
    "    1;3;31 means 1 = bold, 3 = italic, 31 = red foreground\r\n"
    "    m ends the parameters and applies them\r\n"
    "    any UTF-8 text after it is rendered with those attributes\r\n"
    "    finally \\x1B[0m is another CSI command; 0 resets every attribute\r\n"
    "    in short: \\x1B[n;n;...m sets how the following text is rendered\r\n"
    "Besides CSI there are many other commands, such as:\r\n"
    "    \\x1bc clears the screen, much like `clear`\r\n"
    "    \\x1bD (index) and \\x1bE (next line) move the cursor\r\n"
    "    cursor movement:\r\n"
    "        \\x1B[1A up one row\r\n"
    "        \\x1B[1B down one row\r\n"
    "        \\x1B[1C right one column\r\n"
    "        \\x1B[1D left one column *\x1b[1B\x1b[1C"
    "this line should start below and to the right of the *\r\n"
)


def fixed_delay(seconds: float) -> Pacer:
    """Build a pacer that sleeps for a fixed time."""

    async def pace() -> None:
        await asyncio.sleep(seconds)

    return pace


async def play(
    emulator: TerminalEmulator,
    text: str = DEMO_TEXT,
    pacer: Pacer | None = None,
) -> int:
    """Write ``text`` to the emulator one Unicode character at a time.

    Each character is UTF-8 encoded and written as its own chunk, in
    source order. The pacer, if any, is awaited between characters and
    has no effect on what is written.

    Returns:
        The number of characters written.
    """
    count = 0
    for char in text:
        if count and pacer is not None:
            await pacer()
        emulator.write(char.encode("utf-8"))
        count += 1
    logger.debug("Played %d characters", count)
    return count
