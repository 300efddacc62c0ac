"""Overlay Relay — real-time event fan-out for browser overlays.

A local websocket relay that stream overlays (OBS browser sources and the
like) subscribe to. Host applications push chat lines, notifications and
emote-wall updates; the relay fans each one out to every overlay listening
on that category.
"""

__version__ = "0.1.0"
