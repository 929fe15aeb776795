"""Caseforge AI - a legal assistant chat backed by a managed knowledge base.

Forwards questions to an Amazon Bedrock knowledge base through the
retrieve-and-generate API and renders grounded answers with citations.

Components:
    - api: HTTP endpoints (form submission and SSE streaming)
    - retrieval: Knowledge base request building and response normalization
    - ui: NiceGUI chat view with browser history integration
    - models: Request/response schemas
"""

__version__ = "0.1.0"
