"""Chat endpoints.

Accepts a question from the chat view, forwards it to the knowledge base
service and returns the normalized result. Service failures are reported
in the response body, never as HTTP errors.
"""

import logging
from collections.abc import Iterator
from typing import Annotated

from fastapi import APIRouter, Depends, Form
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse

from caseforge.models.schemas import ChatRequest, RequestResult
from caseforge.retrieval.service import KnowledgeBaseService, get_knowledge_base_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/chat", tags=["chat"])

MIN_MESSAGE_LENGTH = 2


@router.post("", response_model=RequestResult, response_model_exclude_none=True)
async def chat(
    message: Annotated[str, Form(min_length=MIN_MESSAGE_LENGTH)],
    service: Annotated[KnowledgeBaseService, Depends(get_knowledge_base_service)],
    session_id: Annotated[str | None, Form(alias="sessionId")] = None,
) -> RequestResult:
    """Answer a question submitted from the chat form.

    Args:
        message: The user's question (form field ``message``).
        service: Knowledge base service (injected).
        session_id: Session from the previous turn (form field ``sessionId``).
            An empty value starts a new conversation.

    Returns:
        RequestResult with ``answer`` and ``sessionId``, plus ``error``
        when the service call failed.
    """
    logger.info(f"Chat request received (session={session_id or 'new'})")
    return await run_in_threadpool(service.ask, message, session_id or None)


def _sse_events(service: KnowledgeBaseService, request: ChatRequest) -> Iterator[str]:
    for chunk in service.stream_answer(request.message, request.session_id or None):
        yield f"data: {chunk.model_dump_json(by_alias=True, exclude_none=True)}\n\n"


@router.post("/stream")
async def chat_stream(
    request: ChatRequest,
    service: Annotated[KnowledgeBaseService, Depends(get_knowledge_base_service)],
) -> StreamingResponse:
    """Stream an answer as Server-Sent Events.

    Each event is a JSON-encoded StreamChunk. The final event has
    ``done`` set and carries the session id and citations.
    """
    logger.info(f"Streaming chat request received (session={request.session_id or 'new'})")
    return StreamingResponse(
        _sse_events(service, request),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
