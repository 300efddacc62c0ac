"""Pydantic schemas for the publish API.

Learn: These are request/response bodies for /api/v1/messages/*, not the
wire envelopes overlays receive (see protocol.envelope). The server turns
each request into an envelope in the deployment's wire format.
"""

from typing import Optional

from pydantic import BaseModel, Field

_COLOR = r"^#[0-9a-fA-F]{6}$"


class ChatPublish(BaseModel):
    user: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1)
    color: Optional[str] = Field(None, pattern=_COLOR)


class NotificationPublish(BaseModel):
    user: str = Field(..., min_length=1, max_length=200)
    title: str = Field(..., min_length=1)
    message: str = Field(default="")
    color: Optional[str] = Field(None, pattern=_COLOR)


class EmotePublish(BaseModel):
    url: str = Field(..., min_length=1)
    count: int = Field(default=1, ge=1, le=100)


class GenericPublish(BaseModel):
    """Raw generic-form event. Values must follow the category's layout."""
    category: str
    string_values: list[str] = Field(default_factory=list, alias="stringValues")
    int_values: list[int] = Field(default_factory=list, alias="intValues")
    bool_values: list[bool] = Field(default_factory=list, alias="boolValues")

    model_config = {"populate_by_name": True}


class BroadcastRead(BaseModel):
    category: str
    recipients: int
    delivered: int
    skipped: int
    dropped: int
