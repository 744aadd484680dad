"""Schemas for the chat endpoint (AI SDK UI message shape)."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator


class MessagePart(BaseModel):
    """
    One part of a UI message. Only "text" and "file" parts carry meaning here;
    other part types (e.g. "step-start", "reasoning") are accepted and ignored.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str = Field(..., min_length=1, description="Part type, e.g. 'text' or 'file'.")
    text: str | None = Field(None, description="Text content for 'text' parts.")
    media_type: str | None = Field(
        None, alias="mediaType", description="IANA media type for 'file' parts, e.g. image/png."
    )
    url: str | None = Field(None, description="File URL or data URL for 'file' parts.")
    filename: str | None = Field(None, description="Optional original file name.")

    @model_validator(mode="after")
    def _check_required_fields(self) -> "MessagePart":
        if self.type == "text" and self.text is None:
            raise ValueError("text parts require 'text'")
        if self.type == "file" and (not self.media_type or not self.url):
            raise ValueError("file parts require 'mediaType' and 'url'")
        return self

    @property
    def is_text(self) -> bool:
        return self.type == "text"

    @property
    def is_image(self) -> bool:
        return self.type == "file" and (self.media_type or "").startswith("image/")


class ChatMessage(BaseModel):
    """A role-tagged message with ordered content parts."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    role: Literal["system", "user", "assistant"]
    parts: list[MessagePart] = Field(default_factory=list)


class ChatRequest(BaseModel):
    """Request body for POST /api/chat. The full conversation is sent on every call."""

    messages: list[ChatMessage] = Field(..., min_length=1, description="Conversation, oldest first.")

    model_config = {
        "extra": "allow",
        "json_schema_extra": {
            "examples": [
                {
                    "messages": [
                        {
                            "id": "m1",
                            "role": "user",
                            "parts": [{"type": "text", "text": "What fits my F82?"}],
                        }
                    ]
                }
            ]
        },
    }
