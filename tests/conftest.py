"""Pytest fixtures and shared test configuration.

Fixtures:
    - mock_session_id: Consistent session ID for tests
    - kb_config: Knowledge base configuration with test identifiers
    - fake_service: In-memory stand-in for the knowledge base service
    - async_client: HTTPX client for API testing with the fake service
"""

from collections.abc import AsyncGenerator, Iterator

import pytest
from httpx import ASGITransport, AsyncClient

from caseforge.api import app
from caseforge.models.schemas import Citation, RequestResult, StreamChunk, StreamStatus
from caseforge.retrieval.config import KnowledgeBaseConfig
from caseforge.retrieval.service import get_knowledge_base_service


class FakeKnowledgeBaseService:
    """Records questions and replies with a canned answer or error."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str | None]] = []
        self.answer = "Six years."
        self.new_session_id: str | None = "abc123"
        self.error: str | None = None
        self.citations = [Citation(content="Limitation Act 1980, s.5", location="s3://kb/la.pdf")]

    def ask(self, message: str, session_id: str | None = None) -> RequestResult:
        self.calls.append((message, session_id))
        if self.error:
            return RequestResult(message=message, answer="", error=self.error, session_id=session_id)
        return RequestResult(
            message=message,
            answer=self.answer,
            session_id=self.new_session_id or session_id,
            citations=self.citations,
        )

    def stream_answer(
        self, message: str, session_id: str | None = None
    ) -> Iterator[StreamChunk]:
        self.calls.append((message, session_id))
        yield StreamChunk(content="", done=False, status=StreamStatus.SEARCHING)
        if self.error:
            yield StreamChunk(
                content="",
                done=True,
                status=StreamStatus.ERROR,
                error=self.error,
                session_id=session_id,
            )
            return
        for word in self.answer.split(" "):
            yield StreamChunk(content=word, done=False, status=StreamStatus.GENERATING)
        yield StreamChunk(
            content="",
            done=True,
            status=StreamStatus.COMPLETE,
            session_id=self.new_session_id or session_id,
            citations=self.citations,
        )


@pytest.fixture
def mock_session_id() -> str:
    """Generate consistent session ID for testing.

    Returns:
        Predictable session ID for test assertions.
    """
    return "test-session-12345"


@pytest.fixture
def kb_config() -> KnowledgeBaseConfig:
    """Configuration with identifiers set, independent of the environment."""
    return KnowledgeBaseConfig(
        knowledge_base_id="KB123456",
        model_arn="arn:aws:bedrock:us-east-1::foundation-model/anthropic.claude-v2",
        region_name="us-east-1",
    )


@pytest.fixture
def fake_service() -> Iterator[FakeKnowledgeBaseService]:
    """Install a fake knowledge base service for the duration of a test."""
    service = FakeKnowledgeBaseService()
    app.dependency_overrides[get_knowledge_base_service] = lambda: service
    try:
        yield service
    finally:
        app.dependency_overrides.pop(get_knowledge_base_service, None)


@pytest.fixture
async def async_client(fake_service: FakeKnowledgeBaseService) -> AsyncGenerator[AsyncClient]:
    """Create async HTTP client for API testing.

    Yields:
        Configured AsyncClient for making test requests.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
