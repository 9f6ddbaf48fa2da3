"""Chat API request/response schemas: conversation messages and the send pipeline."""
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, Field

Role = Literal["user", "assistant"]


class Message(BaseModel):
    """A single stored turn in a user's conversation."""

    id: str = Field(..., description="Identifier assigned by the store at creation")
    user_id: str = Field(..., description="Owning user's stable identifier")
    model_tag: str = Field(..., description="Tag of the model this turn belongs to")
    role: Role = Field(..., description="Who authored this turn (user or assistant)")
    content: str = Field(..., description="Message text")
    created_at: datetime = Field(..., description="Creation time (UTC); history is ordered by it")


class HistoryResponse(BaseModel):
    """Conversation history for one user, oldest first."""

    messages: list[Message] = Field(default_factory=list)


class SendMessageRequest(BaseModel):
    """Send a prompt to the selected model. Blank values are rejected by the service."""

    user_id: str = Field(..., description="Identifier from the identity provider")
    model_tag: str = Field(..., description="Tag of a model from the catalog")
    prompt: str = Field(..., description="User prompt; must not be blank after trimming")


class SendMessageResponse(BaseModel):
    """Success marker. Clients re-fetch history to see the new turns."""

    success: bool = True


class ErrorDetail(BaseModel):
    """Body of the `detail` field on every pipeline error response."""

    kind: str = Field(..., description="Error kind, e.g. model_not_found")
    message: str = Field(..., description="Human-readable description")
