"""webshell -- Terminal-to-WebSocket bridge.

This package relays raw terminal byte streams between a local terminal
emulator and a remote shell session over a WebSocket. Keystrokes flow
out, rendered output and escape sequences flow back, and neither side
is ever parsed or rewritten by the bridge.
"""

__version__ = "0.1.0"
