"""Envelope <-> bytes.

Pure functions, no I/O. Encoding uses the wire aliases (userColor,
stringValues, ...) and compact JSON so the same bytes can be sent to
every subscriber of a broadcast.
"""

import json

from pydantic import ValidationError

from overlay_relay.errors import EnvelopeDecodeError
from overlay_relay.protocol.categories import Category
from overlay_relay.protocol.envelope import NAMED_MODELS, Envelope, GenericEnvelope

_GENERIC_KEYS = frozenset({"stringValues", "intValues", "boolValues"})


def encode(envelope: Envelope) -> bytes:
    """Serialize an envelope to UTF-8 JSON."""
    return envelope.model_dump_json(by_alias=True).encode("utf-8")


def decode(data: bytes | str, category: Category | None = None) -> Envelope:
    """Parse a payload back into an envelope.

    Generic payloads are recognised by their value-list keys and carry
    their own category. Named payloads are not self-tagged, so the caller
    must say which category they belong to.
    """
    try:
        obj = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise EnvelopeDecodeError(f"Invalid JSON payload: {e}") from e
    if not isinstance(obj, dict):
        raise EnvelopeDecodeError("Payload must be a JSON object")

    try:
        if _GENERIC_KEYS & obj.keys():
            envelope = GenericEnvelope.model_validate(obj)
            if category is not None and envelope.category != category:
                raise EnvelopeDecodeError(
                    f"Payload is {envelope.category.name}, expected {category.name}"
                )
            return envelope
        if category is None:
            raise EnvelopeDecodeError("Named payloads need an explicit category")
        return NAMED_MODELS[category].model_validate(obj)
    except ValidationError as e:
        raise EnvelopeDecodeError(str(e)) from e
