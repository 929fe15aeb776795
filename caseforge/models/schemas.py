from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class StreamStatus(str, Enum):
    """Status values for streaming updates."""

    RECEIVED = "received"
    SEARCHING = "searching"
    GENERATING = "generating"
    COMPLETE = "complete"
    ERROR = "error"


class Citation(BaseModel):
    """A retrieved source backing part of a generated answer.

    Attributes:
        content: Text of the retrieved passage.
        location: Where the passage came from (S3 URI or URL).
    """

    content: str = ""
    location: str | None = None


class ChatTurn(BaseModel):
    """One entry in the chat transcript.

    Attributes:
        content: The message text (or error text for failed requests).
        role: Who produced the turn.
        error: Whether the turn reports a failed request.
        citations: Sources attached to an assistant answer.
    """

    content: str
    role: Literal["user", "assistant"]
    error: bool = False
    citations: list[Citation] = Field(default_factory=list)


class RequestResult(BaseModel):
    """Normalized outcome of one knowledge base request.

    Serialized with ``sessionId`` to match the form field the view posts back.

    Attributes:
        message: The question that was asked.
        answer: Generated answer (empty on failure).
        error: Human-readable failure message.
        session_id: Conversation session to continue with.
        citations: Sources for the answer.
    """

    model_config = ConfigDict(populate_by_name=True)

    message: str | None = None
    answer: str = ""
    error: str | None = None
    session_id: str | None = Field(default=None, alias="sessionId")
    citations: list[Citation] = Field(default_factory=list)


class ChatRequest(BaseModel):
    """Request payload for the streaming chat endpoint.

    Attributes:
        message: User's question.
        session_id: Optional session for conversation continuity.
    """

    message: str = Field(..., min_length=1)
    session_id: str | None = None

    @field_validator("message", mode="before")
    @classmethod
    def strip_message(cls, v: str) -> str:
        """Strip whitespace from message before validation."""
        if isinstance(v, str):
            return v.strip()
        return v


class StreamChunk(BaseModel):
    """A chunk of streamed response data.

    Attributes:
        content: The text content of this chunk.
        done: Whether this is the final chunk.
        status: Current processing status (received, searching, generating, complete, error).
        error: Error message if something went wrong.
        session_id: Session to continue with (final chunk only).
        citations: Sources collected during the stream (final chunk only).
    """

    model_config = ConfigDict(populate_by_name=True)

    content: str
    done: bool
    status: StreamStatus | None = None
    error: str | None = None
    session_id: str | None = Field(default=None, alias="sessionId")
    citations: list[Citation] = Field(default_factory=list)
