"""Knowledge base service for grounded question answering.

Core module for building retrieve-and-generate requests and normalizing
what comes back.

Every request carries the same fixed generation settings (temperature 0,
top-p 1, 2048 max tokens, a stop sequence and the grounded QA prompt) and
retrieves 5 passages. The session id returned by Bedrock is threaded back
through the next request so the service keeps the conversation context.

All failure causes (missing configuration, credentials, network, throttling)
collapse into a single RequestResult with an ``error`` message and the
previous session id, so the caller can retry within the same conversation.
"""

import logging
from collections.abc import Iterator
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from caseforge.models.schemas import Citation, RequestResult, StreamChunk, StreamStatus
from caseforge.retrieval.config import (
    KnowledgeBaseConfig,
    KnowledgeBaseConfigError,
    get_knowledge_base_config,
)

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Something went wrong! Please try again."

# Location types that carry a URL rather than an S3 URI
_URL_LOCATIONS = (
    "webLocation",
    "confluenceLocation",
    "salesforceLocation",
    "sharePointLocation",
)

_SERVICE_ERRORS = (BotoCoreError, ClientError, KnowledgeBaseConfigError)


def _error_message(exc: Exception) -> str:
    return str(exc) or DEFAULT_ERROR_MESSAGE


def _reference_location(reference: dict[str, Any]) -> str | None:
    """Pull a displayable source location out of a retrieved reference."""
    location = reference.get("location") or {}
    if uri := (location.get("s3Location") or {}).get("uri"):
        return uri
    for key in _URL_LOCATIONS:
        if url := (location.get(key) or {}).get("url"):
            return url
    return None


def parse_citation(references: list[dict[str, Any]]) -> Citation | None:
    """Build a Citation from the first retrieved reference, if any."""
    if not references:
        return None
    first = references[0]
    return Citation(
        content=(first.get("content") or {}).get("text", ""),
        location=_reference_location(first),
    )


def parse_citations(raw_citations: list[dict[str, Any]] | None) -> list[Citation]:
    """Convert Bedrock citations into Citation models.

    Citations without retrieved references are skipped.
    """
    citations: list[Citation] = []
    for raw in raw_citations or []:
        citation = parse_citation(raw.get("retrievedReferences") or [])
        if citation is not None:
            citations.append(citation)
    return citations


class KnowledgeBaseService:
    """Service for asking questions against a Bedrock knowledge base.

    Wraps the bedrock-agent-runtime client with:
    - Request construction from KnowledgeBaseConfig
    - Session id threading between turns
    - Citation extraction
    - Centralized error handling
    """

    def __init__(self, config: KnowledgeBaseConfig | None = None, client: Any = None) -> None:
        """Initialize the knowledge base service.

        Args:
            config: Optional configuration.
                    Loads from environment if not provided.
            client: Optional pre-built bedrock-agent-runtime client.
                    Created lazily on first request otherwise.
        """
        self._config = config or get_knowledge_base_config()
        self._client = client

    def _get_client(self) -> Any:
        """Return the agent runtime client, creating it on first use.

        Creation is deferred so that a missing region or credentials
        surface as a failed request instead of a startup error.
        """
        if self._client is None:
            self._client = boto3.client(
                "bedrock-agent-runtime",
                region_name=self._config.region_name,
            )
        return self._client

    def build_request(self, message: str, session_id: str | None = None) -> dict[str, Any]:
        """Build keyword arguments for RetrieveAndGenerate.

        Args:
            message: The user's question.
            session_id: Session to continue; omitted when empty.

        Returns:
            Request parameters for the agent runtime client.

        Raises:
            KnowledgeBaseConfigError: If the knowledge base or model is unset.
        """
        config = self._config
        knowledge_base_id, model_arn = config.require_identifiers()

        request: dict[str, Any] = {
            "input": {"text": message},
            "retrieveAndGenerateConfiguration": {
                "type": "KNOWLEDGE_BASE",
                "knowledgeBaseConfiguration": {
                    "knowledgeBaseId": knowledge_base_id,
                    "modelArn": model_arn,
                    "retrievalConfiguration": {
                        "vectorSearchConfiguration": {
                            "numberOfResults": config.number_of_results,
                        },
                    },
                    "generationConfiguration": {
                        "promptTemplate": {
                            "textPromptTemplate": config.prompt_template,
                        },
                        "inferenceConfig": {
                            "textInferenceConfig": {
                                "temperature": config.temperature,
                                "topP": config.top_p,
                                "maxTokens": config.max_tokens,
                                "stopSequences": list(config.stop_sequences),
                            },
                        },
                    },
                },
            },
        }
        if session_id:
            request["sessionId"] = session_id
        return request

    def ask(self, message: str, session_id: str | None = None) -> RequestResult:
        """Ask a question and return the normalized result.

        Args:
            message: The user's question.
            session_id: Session from the previous turn, if any.

        Returns:
            RequestResult with the answer and current session id, or with an
            error message and the unchanged session id.
        """
        try:
            request = self.build_request(message, session_id)
            response = self._get_client().retrieve_and_generate(**request)
        except _SERVICE_ERRORS as e:
            logger.warning(f"Knowledge base request failed: {e}")
            return RequestResult(
                message=message,
                answer="",
                error=_error_message(e),
                session_id=session_id,
            )

        answer = (response.get("output") or {}).get("text") or ""
        new_session_id = response.get("sessionId") or session_id
        citations = parse_citations(response.get("citations"))
        logger.info(
            f"Answered question with {len(citations)} citation(s) in session {new_session_id}"
        )

        return RequestResult(
            message=message,
            answer=answer,
            session_id=new_session_id,
            citations=citations,
        )

    def stream_answer(
        self,
        message: str,
        session_id: str | None = None,
    ) -> Iterator[StreamChunk]:
        """Stream an answer as it is generated.

        Yields a searching status first, then one chunk per generated text
        part, then a final chunk carrying the session id and citations.
        A failure at any point ends the stream with an error chunk.

        Args:
            message: The user's question.
            session_id: Session from the previous turn, if any.

        Yields:
            StreamChunk instances; the last one has ``done=True``.
        """
        yield StreamChunk(content="", done=False, status=StreamStatus.SEARCHING)

        citations: list[Citation] = []
        try:
            request = self.build_request(message, session_id)
            response = self._get_client().retrieve_and_generate_stream(**request)
            new_session_id = response.get("sessionId") or session_id

            for event in response["stream"]:
                if text := (event.get("output") or {}).get("text"):
                    yield StreamChunk(
                        content=text, done=False, status=StreamStatus.GENERATING
                    )
                elif "citation" in event:
                    citation_event = event["citation"]
                    references = citation_event.get("retrievedReferences") or (
                        citation_event.get("citation") or {}
                    ).get("retrievedReferences", [])
                    if citation := parse_citation(references):
                        citations.append(citation)
        except _SERVICE_ERRORS as e:
            logger.warning(f"Knowledge base stream failed: {e}")
            yield StreamChunk(
                content="",
                done=True,
                status=StreamStatus.ERROR,
                error=_error_message(e),
                session_id=session_id,
            )
            return

        yield StreamChunk(
            content="",
            done=True,
            status=StreamStatus.COMPLETE,
            session_id=new_session_id,
            citations=citations,
        )


# Module-level singleton instance
_knowledge_base_service: KnowledgeBaseService | None = None


def get_knowledge_base_service() -> KnowledgeBaseService:
    """Get or create the global knowledge base service.

    Returns:
        The KnowledgeBaseService instance.
    """
    global _knowledge_base_service
    if _knowledge_base_service is None:
        _knowledge_base_service = KnowledgeBaseService()
    return _knowledge_base_service
