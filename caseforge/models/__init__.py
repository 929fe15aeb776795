"""Pydantic models for API requests and responses.

Provides type safety, validation, and automatic OpenAPI documentation.

Models:
    - ChatTurn: Individual turn in the transcript
    - Citation: Retrieved source attached to an answer
    - RequestResult: Normalized knowledge base answer or failure
    - ChatRequest: Streaming chat request payload
    - StreamChunk: One server-sent event of a streamed answer
"""

from caseforge.models.schemas import (
    ChatRequest,
    ChatTurn,
    Citation,
    RequestResult,
    StreamChunk,
    StreamStatus,
)

__all__ = [
    "ChatRequest",
    "ChatTurn",
    "Citation",
    "RequestResult",
    "StreamChunk",
    "StreamStatus",
]
