"""Conversation models: an append-only message log per chat session."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


class MessageRole(str, Enum):
    """Author of a chat message."""

    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class ChatMessage:
    """A single persisted chat message. Immutable once stored."""

    message_id: str
    conversation_id: str
    role: MessageRole
    content: str
    created_at: datetime
    metadata: dict[str, Any] | None = None

    @property
    def function_call(self) -> dict[str, Any] | None:
        if not self.metadata:
            return None
        return self.metadata.get("functionCall")


@dataclass
class Conversation:
    """A chat session. ``messages`` holds the full history, oldest first."""

    conversation_id: str
    citizen_id: str | None
    created_at: datetime
    last_activity_at: datetime
    messages: list[ChatMessage] = field(default_factory=list)

    @property
    def is_anonymous(self) -> bool:
        return self.citizen_id is None


def context_window(messages: list[ChatMessage], size: int) -> list[ChatMessage]:
    """Materialize the most recent ``size`` messages for model context."""
    if size <= 0:
        return []
    return list(messages[-size:])


@dataclass
class FunctionCallRequest:
    """A model's request to invoke a named operation."""

    name: str
    arguments: dict[str, Any]
    call_id: str | None = None


@dataclass
class FunctionOutcome:
    """Result of dispatching a function call.

    ``requires_action`` is set when the client must act (navigate) rather
    than the model producing a follow-up answer.
    """

    name: str
    arguments: dict[str, Any]
    result: dict[str, Any]
    requires_action: bool = False

    def to_record(self) -> dict[str, Any]:
        """Shape stored in the assistant message metadata under ``functionCall``."""
        return {"name": self.name, "arguments": self.arguments, "result": self.result}


@dataclass
class Completion:
    """A provider response: free text, a function-call request, or both."""

    text: str | None = None
    function_call: FunctionCallRequest | None = None


@dataclass
class ChatReply:
    """What a chat turn returns to the transport layer."""

    message_id: str
    content: str
    requires_action: bool = False
    function_call: dict[str, Any] | None = None
