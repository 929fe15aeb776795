"""Knowledge base retrieval and generation.

Wraps the Bedrock Agent Runtime retrieve-and-generate API.

Responsibilities:
    - Building the provider request (prompt template, inference settings)
    - Threading the conversation session id between turns
    - Normalizing answers, citations and failures into RequestResult

Keeps the HTTP layer free of any boto3 details.
"""

from caseforge.retrieval.config import (
    KnowledgeBaseConfig,
    KnowledgeBaseConfigError,
    get_knowledge_base_config,
)
from caseforge.retrieval.service import KnowledgeBaseService, get_knowledge_base_service

__all__ = [
    "KnowledgeBaseConfig",
    "KnowledgeBaseConfigError",
    "KnowledgeBaseService",
    "get_knowledge_base_config",
    "get_knowledge_base_service",
]
