"""Demonstrations for webshell.

Small standalone programs that show what travels over the bridge: an
escape-sequence showcase played back character by character, and an
inspector that prints the bytes produced by each key press.
"""

from webshell.demo.escape import DEMO_TEXT, fixed_delay, play
from webshell.demo.keys import KeyInspector, format_chunk

__all__ = ["DEMO_TEXT", "KeyInspector", "fixed_delay", "format_chunk", "play"]
