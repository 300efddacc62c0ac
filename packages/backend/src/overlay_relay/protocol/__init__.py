"""Wire protocol — categories, envelope models, serialization.

Learn: Nothing in this package touches the network. The realtime package
consumes these types; host applications use them to build events.
"""

from overlay_relay.protocol.categories import LAYOUTS, Category, FieldLayout
from overlay_relay.protocol.envelope import (
    ChatMessage,
    Emote,
    Envelope,
    GenericEnvelope,
    Notification,
    pack,
    unpack,
)
from overlay_relay.protocol.serializer import decode, encode

__all__ = [
    "LAYOUTS",
    "Category",
    "ChatMessage",
    "Emote",
    "Envelope",
    "FieldLayout",
    "GenericEnvelope",
    "Notification",
    "decode",
    "encode",
    "pack",
    "unpack",
]
