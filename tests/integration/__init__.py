"""Integration tests for the API working as a system.

Requests go through the real FastAPI app via httpx ASGITransport; only the
knowledge base service is swapped through a dependency override.
Live knowledge base tests require KNOWLEDGE_BASE_ID and MODEL_ARN.
"""
