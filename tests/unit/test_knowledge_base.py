"""Unit tests for KnowledgeBaseService.

The bedrock-agent-runtime client is replaced with a MagicMock, so these
tests check request construction and response normalization only.
"""

from unittest.mock import MagicMock, patch

import pytest
import pytest_check as check
import botocore.session
from botocore.exceptions import ClientError, EndpointConnectionError, NoRegionError

from caseforge.models.schemas import StreamStatus
from caseforge.retrieval.config import KnowledgeBaseConfig, KnowledgeBaseConfigError
from caseforge.retrieval.service import (
    DEFAULT_ERROR_MESSAGE,
    KnowledgeBaseService,
    parse_citations,
)


def _client_error(message: str = "User is not authorized") -> ClientError:
    return ClientError(
        {"Error": {"Code": "AccessDeniedException", "Message": message}},
        "RetrieveAndGenerate",
    )


def _bedrock_response(text: str = "Six years.", session_id: str | None = "abc123") -> dict:
    response: dict = {
        "output": {"text": text},
        "citations": [
            {
                "generatedResponsePart": {
                    "textResponsePart": {"text": text, "span": {"start": 0, "end": 9}}
                },
                "retrievedReferences": [
                    {
                        "content": {"text": "An action founded on simple contract..."},
                        "location": {
                            "type": "S3",
                            "s3Location": {"uri": "s3://legal-kb/limitation-act.pdf"},
                        },
                    }
                ],
            }
        ],
    }
    if session_id:
        response["sessionId"] = session_id
    return response


@pytest.fixture
def client() -> MagicMock:
    client = MagicMock()
    client.retrieve_and_generate.return_value = _bedrock_response()
    return client


@pytest.fixture
def service(kb_config: KnowledgeBaseConfig, client: MagicMock) -> KnowledgeBaseService:
    return KnowledgeBaseService(config=kb_config, client=client)


class TestBuildRequest:
    """Tests for the RetrieveAndGenerate request shape."""

    def test_request_carries_query_and_identifiers(self, service: KnowledgeBaseService) -> None:
        request = service.build_request("What is the statute of limitations?")

        kb = request["retrieveAndGenerateConfiguration"]["knowledgeBaseConfiguration"]
        check.equal(request["input"], {"text": "What is the statute of limitations?"})
        check.equal(request["retrieveAndGenerateConfiguration"]["type"], "KNOWLEDGE_BASE")
        check.equal(kb["knowledgeBaseId"], "KB123456")
        check.is_true(kb["modelArn"].startswith("arn:aws:bedrock"))

    def test_request_uses_fixed_generation_settings(self, service: KnowledgeBaseService) -> None:
        request = service.build_request("question")

        kb = request["retrieveAndGenerateConfiguration"]["knowledgeBaseConfiguration"]
        retrieval = kb["retrievalConfiguration"]["vectorSearchConfiguration"]
        generation = kb["generationConfiguration"]
        inference = generation["inferenceConfig"]["textInferenceConfig"]

        check.equal(retrieval["numberOfResults"], 5)
        check.equal(inference["temperature"], 0)
        check.equal(inference["topP"], 1)
        check.equal(inference["maxTokens"], 2048)
        check.equal(inference["stopSequences"], ["\nObservation"])
        check.is_in("$query$", generation["promptTemplate"]["textPromptTemplate"])

    def test_session_id_included_when_given(
        self, service: KnowledgeBaseService, mock_session_id: str
    ) -> None:
        request = service.build_request("question", mock_session_id)

        assert request["sessionId"] == mock_session_id

    @pytest.mark.parametrize("session_id", [None, ""])
    def test_session_id_omitted_when_absent(
        self, service: KnowledgeBaseService, session_id: str | None
    ) -> None:
        request = service.build_request("question", session_id)

        assert "sessionId" not in request


class TestAsk:
    """Tests for KnowledgeBaseService.ask normalization."""

    def test_success_returns_answer_and_session(
        self, service: KnowledgeBaseService, client: MagicMock
    ) -> None:
        result = service.ask("What is the statute of limitations?")

        check.equal(result.answer, "Six years.")
        check.equal(result.session_id, "abc123")
        check.equal(result.message, "What is the statute of limitations?")
        check.is_none(result.error)
        client.retrieve_and_generate.assert_called_once()

    def test_success_parses_citations(self, service: KnowledgeBaseService) -> None:
        result = service.ask("question")

        assert len(result.citations) == 1
        check.equal(result.citations[0].location, "s3://legal-kb/limitation-act.pdf")
        check.is_true(result.citations[0].content.startswith("An action founded"))

    def test_prior_session_passed_to_client(
        self, service: KnowledgeBaseService, client: MagicMock, mock_session_id: str
    ) -> None:
        service.ask("follow up", mock_session_id)

        kwargs = client.retrieve_and_generate.call_args.kwargs
        assert kwargs["sessionId"] == mock_session_id

    def test_keeps_prior_session_when_response_has_none(
        self, service: KnowledgeBaseService, client: MagicMock, mock_session_id: str
    ) -> None:
        client.retrieve_and_generate.return_value = _bedrock_response(session_id=None)

        result = service.ask("follow up", mock_session_id)

        assert result.session_id == mock_session_id

    def test_client_error_collapses_to_error_result(
        self, service: KnowledgeBaseService, client: MagicMock, mock_session_id: str
    ) -> None:
        client.retrieve_and_generate.side_effect = _client_error()

        result = service.ask("question", mock_session_id)

        check.equal(result.answer, "")
        check.is_in("User is not authorized", result.error)
        check.equal(result.session_id, mock_session_id)

    def test_network_error_collapses_to_error_result(
        self, service: KnowledgeBaseService, client: MagicMock
    ) -> None:
        client.retrieve_and_generate.side_effect = EndpointConnectionError(
            endpoint_url="https://bedrock-agent-runtime.us-east-1.amazonaws.com"
        )

        result = service.ask("question")

        check.is_in("Could not connect", result.error)
        check.is_none(result.session_id)

    def test_missing_configuration_is_a_request_failure(
        self, client: MagicMock, mock_session_id: str
    ) -> None:
        service = KnowledgeBaseService(
            config=KnowledgeBaseConfig(knowledge_base_id=None, model_arn=None),
            client=client,
        )

        result = service.ask("question", mock_session_id)

        check.is_in("KNOWLEDGE_BASE_ID", result.error)
        check.equal(result.session_id, mock_session_id)
        client.retrieve_and_generate.assert_not_called()

    def test_client_created_lazily(self, kb_config: KnowledgeBaseConfig) -> None:
        with patch("caseforge.retrieval.service.boto3") as mock_boto3:
            service = KnowledgeBaseService(config=kb_config)
            mock_boto3.client.assert_not_called()

            mock_boto3.client.return_value.retrieve_and_generate.return_value = (
                _bedrock_response()
            )
            service.ask("question")

        mock_boto3.client.assert_called_once_with(
            "bedrock-agent-runtime", region_name="us-east-1"
        )

    def test_client_creation_failure_is_a_request_failure(
        self, kb_config: KnowledgeBaseConfig
    ) -> None:
        with patch("caseforge.retrieval.service.boto3") as mock_boto3:
            mock_boto3.client.side_effect = NoRegionError()
            result = KnowledgeBaseService(config=kb_config).ask("question")

        assert "region" in result.error.lower()

    def test_empty_error_message_uses_default(
        self, service: KnowledgeBaseService, client: MagicMock
    ) -> None:
        client.retrieve_and_generate.side_effect = KnowledgeBaseConfigError()

        result = service.ask("question")

        assert result.error == DEFAULT_ERROR_MESSAGE


class TestParseCitations:
    """Tests for citation extraction."""

    def test_skips_citations_without_references(self) -> None:
        raw = [{"generatedResponsePart": {}, "retrievedReferences": []}]

        assert parse_citations(raw) == []

    def test_handles_missing_citations(self) -> None:
        assert parse_citations(None) == []

    def test_uses_first_reference_only(self) -> None:
        raw = [
            {
                "retrievedReferences": [
                    {"content": {"text": "first"}, "location": {"s3Location": {"uri": "s3://a"}}},
                    {"content": {"text": "second"}, "location": {"s3Location": {"uri": "s3://b"}}},
                ]
            }
        ]

        citations = parse_citations(raw)

        check.equal(len(citations), 1)
        check.equal(citations[0].content, "first")
        check.equal(citations[0].location, "s3://a")

    def test_web_location_url(self) -> None:
        raw = [
            {
                "retrievedReferences": [
                    {
                        "content": {"text": "page"},
                        "location": {"type": "WEB", "webLocation": {"url": "https://example.com"}},
                    }
                ]
            }
        ]

        assert parse_citations(raw)[0].location == "https://example.com"


class TestStreamAnswer:
    """Tests for KnowledgeBaseService.stream_answer."""

    def test_streams_text_then_final_chunk(
        self, service: KnowledgeBaseService, client: MagicMock
    ) -> None:
        client.retrieve_and_generate_stream.return_value = {
            "sessionId": "abc123",
            "stream": [
                {"output": {"text": "Six "}},
                {"output": {"text": "years."}},
                {
                    "citation": {
                        "retrievedReferences": [
                            {
                                "content": {"text": "s.5"},
                                "location": {"s3Location": {"uri": "s3://kb/la.pdf"}},
                            }
                        ]
                    }
                },
            ],
        }

        chunks = list(service.stream_answer("question"))

        check.equal(chunks[0].status, StreamStatus.SEARCHING)
        check.equal([c.content for c in chunks[1:-1]], ["Six ", "years."])
        final = chunks[-1]
        check.is_true(final.done)
        check.equal(final.status, StreamStatus.COMPLETE)
        check.equal(final.session_id, "abc123")
        check.equal([c.location for c in final.citations], ["s3://kb/la.pdf"])
        check.is_true(all(not c.done for c in chunks[:-1]))

    def test_stream_error_ends_with_error_chunk(
        self, service: KnowledgeBaseService, client: MagicMock, mock_session_id: str
    ) -> None:
        client.retrieve_and_generate_stream.side_effect = _client_error("Throttled")

        chunks = list(service.stream_answer("question", mock_session_id))

        final = chunks[-1]
        check.is_true(final.done)
        check.equal(final.status, StreamStatus.ERROR)
        check.is_in("Throttled", final.error)
        check.equal(final.session_id, mock_session_id)


class TestAgentRuntimeOperations:
    """The installed botocore ships every operation the service calls."""

    @pytest.mark.parametrize("operation", ["RetrieveAndGenerate", "RetrieveAndGenerateStream"])
    def test_operation_available(self, operation: str) -> None:
        model = botocore.session.get_session().get_service_model("bedrock-agent-runtime")

        assert operation in model.operation_names
