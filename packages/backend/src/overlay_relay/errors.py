"""Exception hierarchy.

Learn: Only protocol-level mistakes surface as exceptions. Transport
failures on individual connections are handled inside the broadcaster and
the connection lifecycle — they never reach the code that publishes events.
"""


class OverlayRelayError(Exception):
    """Base class for all relay errors."""


class UnknownCategoryError(OverlayRelayError, ValueError):
    """A category name or code does not match any known category."""

    def __init__(self, value):
        self.value = value
        super().__init__(f"Unknown category: {value!r}")


class EnvelopeDecodeError(OverlayRelayError, ValueError):
    """A payload could not be decoded into an envelope."""
