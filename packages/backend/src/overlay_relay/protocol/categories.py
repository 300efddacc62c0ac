"""Subscription categories and their generic wire layouts.

Learn: An overlay picks exactly one category when it connects
(`/ws?type=chat`) and only ever receives events of that category.
The integer value of each member is the `type` code written into
generic-form payloads, so members must never be renumbered.

The generic form carries no field names. Each category therefore has a
fixed layout — the order in which values are appended to the string,
int and bool sequences. Overlay scripts index into those sequences
positionally, so changing a layout is a breaking wire change.
"""

from dataclasses import dataclass
from enum import IntEnum

from overlay_relay.errors import UnknownCategoryError


class Category(IntEnum):
    CHAT = 0
    NOTIFICATION = 1
    EMOTE_WALL = 2

    @property
    def slug(self) -> str:
        """Lower-case name without separators, as used in query strings."""
        return self.name.replace("_", "").lower()

    @classmethod
    def parse(cls, value: str | None) -> "Category":
        """Resolve a category name, case-insensitively.

        Accepts "Chat", "chat", "EmoteWall", "emote_wall" and so on.
        Numeric strings are rejected: clients subscribe by name.
        """
        if not value:
            raise UnknownCategoryError(value)
        key = value.strip().replace("_", "").replace("-", "").lower()
        for member in cls:
            if member.slug == key:
                return member
        raise UnknownCategoryError(value)

    @classmethod
    def from_code(cls, code: int) -> "Category":
        try:
            return cls(code)
        except ValueError:
            raise UnknownCategoryError(code) from None


@dataclass(frozen=True)
class FieldLayout:
    """Positional field names for each generic-form sequence."""
    strings: tuple[str, ...] = ()
    ints: tuple[str, ...] = ()
    bools: tuple[str, ...] = ()


# ─── Wire contract ───────────────────────────────────────
# Names are the attribute names of the matching named-field model.

LAYOUTS: dict[Category, FieldLayout] = {
    Category.CHAT: FieldLayout(
        strings=("user", "content", "user_color"),
        ints=("duration",),
    ),
    Category.NOTIFICATION: FieldLayout(
        strings=("title", "content"),
        ints=("duration",),
    ),
    Category.EMOTE_WALL: FieldLayout(
        strings=("url",),
        ints=("count",),
    ),
}
