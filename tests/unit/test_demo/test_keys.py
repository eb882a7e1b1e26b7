"""Tests for the key inspector."""

from __future__ import annotations

import asyncio

import pytest

from webshell.demo.keys import PROMPT, KeyInspector, format_chunk


class TestFormatChunk:
    def test_printable_key(self) -> None:
        assert format_chunk(b"a") == '"a" 97'

    def test_arrow_key_escape_sequence(self) -> None:
        assert format_chunk(b"\x1b[A") == '"\\u001b[A" 27'

    def test_carriage_return(self) -> None:
        assert format_chunk(b"\r") == '"\\r" 13'

    def test_non_ascii_stays_readable(self) -> None:
        assert format_chunk("é".encode("utf-8")) == '"é" 233'

    def test_empty_chunk(self) -> None:
        assert format_chunk(b"") == '""'


class TestKeyInspector:
    @pytest.mark.asyncio
    async def test_reports_each_chunk_until_ctrl_c(self, emulator) -> None:
        inspector = KeyInspector(emulator)
        task = asyncio.create_task(inspector.run())
        await asyncio.sleep(0)

        emulator.type(b"x")
        emulator.type(b"\x03")
        seen = await asyncio.wait_for(task, timeout=2.0)

        assert seen == 2
        assert emulator.written == [
            PROMPT.encode("utf-8"),
            b'"x" 120\r\n',
            b'"\\u0003" 3\r\n',
        ]

    @pytest.mark.asyncio
    async def test_stops_at_end_of_input(self, emulator) -> None:
        inspector = KeyInspector(emulator)
        task = asyncio.create_task(inspector.run())
        await asyncio.sleep(0)

        emulator.emit_end()

        assert await asyncio.wait_for(task, timeout=2.0) == 0

    @pytest.mark.asyncio
    async def test_unsubscribes_after_run(self, emulator) -> None:
        inspector = KeyInspector(emulator)
        task = asyncio.create_task(inspector.run())
        await asyncio.sleep(0)
        emulator.type(b"\x03")
        await task

        emulator.type(b"after")

        assert inspector.seen == 1
