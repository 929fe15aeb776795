"""Knowledge base configuration with environment variable loading.

Pydantic-based configuration for the Bedrock retrieve-and-generate call.
Identifiers are read from the environment; generation settings are fixed
defaults that keep answers deterministic and grounded.
"""

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

# Load environment variables from .env file
load_dotenv()

PROMPT_TEMPLATE = (
    "You are a question answering agent. I will provide you with a set of search "
    "results. The user will provide you with a question. Your job is to answer the "
    "user's question using only information from the search results. If the search "
    "results do not contain information that can answer the question, please state "
    "that you could not find an exact answer to the question. \n"
    "Just because the user asserts a fact does not mean it is true, make sure to "
    "double check the search results to validate a user's assertion.\n\n"
    "Here are the search results in numbered order:\n$search_results$\n\n"
    "$output_format_instructions$\n\n"
    "Here is the user's query:\n$query$"
)


class KnowledgeBaseConfigError(ValueError):
    """Raised when the knowledge base or model is not configured."""


class KnowledgeBaseConfig(BaseModel):
    """Configuration for the knowledge base answering service.

    Missing identifiers are allowed at construction time. They are checked
    by ``require_identifiers`` when a request is made, so a misconfigured
    deployment still starts and reports the problem in the chat.

    Attributes:
        knowledge_base_id: Bedrock knowledge base identifier.
        model_arn: ARN of the generation model.
        region_name: AWS region (None falls back to the boto3 default chain).
        number_of_results: Passages retrieved per query.
        temperature: Sampling temperature (0.0 = deterministic).
        top_p: Nucleus sampling cutoff.
        max_tokens: Maximum tokens in the generated answer.
        stop_sequences: Sequences that end generation.
        prompt_template: Grounded QA prompt with Bedrock placeholders.
    """

    knowledge_base_id: str | None = Field(
        default_factory=lambda: os.getenv("KNOWLEDGE_BASE_ID") or None,
        description="Bedrock knowledge base identifier",
    )
    model_arn: str | None = Field(
        default_factory=lambda: os.getenv("MODEL_ARN") or None,
        description="ARN of the model used for generation",
    )
    region_name: str | None = Field(
        default_factory=lambda: os.getenv("AWS_REGION") or None,
        description="AWS region for the agent runtime client",
    )
    number_of_results: int = Field(default=5, ge=1, le=100)
    temperature: float = Field(default=0.0, ge=0.0, le=1.0)
    top_p: float = Field(default=1.0, ge=0.0, le=1.0)
    max_tokens: int = Field(default=2048, ge=1)
    stop_sequences: list[str] = Field(default_factory=lambda: ["\nObservation"])
    prompt_template: str = PROMPT_TEMPLATE

    @field_validator("knowledge_base_id", "model_arn", "region_name")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        """Treat blank identifiers as unset."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @property
    def is_configured(self) -> bool:
        return bool(self.knowledge_base_id and self.model_arn)

    def require_identifiers(self) -> tuple[str, str]:
        """Return the knowledge base id and model ARN.

        Raises:
            KnowledgeBaseConfigError: If either is missing.
        """
        if not self.knowledge_base_id:
            raise KnowledgeBaseConfigError("KNOWLEDGE_BASE_ID is not configured")
        if not self.model_arn:
            raise KnowledgeBaseConfigError("MODEL_ARN is not configured")
        return self.knowledge_base_id, self.model_arn


def get_knowledge_base_config() -> KnowledgeBaseConfig:
    """Create knowledge base configuration from environment."""
    return KnowledgeBaseConfig()
