"""Remote bridge endpoint for webshell.

Serves a WebSocket route that gives each connection its own shell on a
pseudo-terminal and relays raw bytes between the two in both
directions.
"""
