"""Envelope models — the in-memory form of one outbound event.

Learn: Two wire shapes are supported, and a deployment picks one:

- Named-field form: one model per event kind (ChatMessage, Notification,
  Emote). Self-describing JSON, e.g. {"user": ..., "content": ...}.
- Generic form: a single GenericEnvelope carrying ordered string, int and
  bool sequences plus the category code. Field order comes from
  protocol.categories.LAYOUTS.

The variant is tagged rather than inherited: every model knows its
category, and pack()/unpack() convert between the two shapes explicitly.
"""

from typing import ClassVar, Union

from pydantic import BaseModel, Field

from overlay_relay.errors import EnvelopeDecodeError
from overlay_relay.protocol.categories import LAYOUTS, Category

DEFAULT_DURATION_MS = 3000


# ─── Named-field form ────────────────────────────────────

class ChatMessage(BaseModel):
    category: ClassVar[Category] = Category.CHAT

    user: str | None = None
    user_color: str | None = Field(default=None, alias="userColor")
    content: str | None = None
    duration: int = DEFAULT_DURATION_MS

    model_config = {"populate_by_name": True}


class Notification(BaseModel):
    category: ClassVar[Category] = Category.NOTIFICATION

    title: str | None = None
    content: str | None = None
    duration: int = DEFAULT_DURATION_MS

    model_config = {"populate_by_name": True}


class Emote(BaseModel):
    category: ClassVar[Category] = Category.EMOTE_WALL

    url: str | None = None
    count: int = 0

    model_config = {"populate_by_name": True}


NamedEnvelope = Union[ChatMessage, Notification, Emote]

NAMED_MODELS: dict[Category, type[BaseModel]] = {
    Category.CHAT: ChatMessage,
    Category.NOTIFICATION: Notification,
    Category.EMOTE_WALL: Emote,
}


# ─── Generic form ────────────────────────────────────────

class GenericEnvelope(BaseModel):
    """Category-tagged ordered value lists.

    Values must be appended in the category's layout order — the payload
    has no field names, so the receiving overlay reads them by position.
    """

    category: Category = Field(alias="type")
    string_values: list[str] = Field(default_factory=list, alias="stringValues")
    int_values: list[int] = Field(default_factory=list, alias="intValues")
    bool_values: list[bool] = Field(default_factory=list, alias="boolValues")

    model_config = {"populate_by_name": True}

    def add_string(self, value: str) -> "GenericEnvelope":
        self.string_values.append(value)
        return self

    def add_int(self, value: int) -> "GenericEnvelope":
        self.int_values.append(value)
        return self

    def add_bool(self, value: bool) -> "GenericEnvelope":
        self.bool_values.append(value)
        return self


Envelope = Union[ChatMessage, Notification, Emote, GenericEnvelope]


def pack(envelope: NamedEnvelope) -> GenericEnvelope:
    """Convert a named-field envelope to the generic form using its layout."""
    layout = LAYOUTS[envelope.category]
    generic = GenericEnvelope(category=envelope.category)
    for name in layout.strings:
        value = getattr(envelope, name)
        generic.add_string("" if value is None else value)
    for name in layout.ints:
        generic.add_int(getattr(envelope, name))
    for name in layout.bools:
        generic.add_bool(getattr(envelope, name))
    return generic


def unpack(generic: GenericEnvelope) -> NamedEnvelope:
    """Rebuild the named-field envelope from a generic one.

    Raises EnvelopeDecodeError when a sequence does not match the layout.
    """
    layout = LAYOUTS[generic.category]
    fields: dict = {}
    for names, values, kind in (
        (layout.strings, generic.string_values, "string"),
        (layout.ints, generic.int_values, "int"),
        (layout.bools, generic.bool_values, "bool"),
    ):
        if len(values) != len(names):
            raise EnvelopeDecodeError(
                f"{generic.category.name} expects {len(names)} {kind} values, "
                f"got {len(values)}"
            )
        fields.update(zip(names, values))
    return NAMED_MODELS[generic.category](**fields)
