"""FastAPI endpoints for the Caseforge assistant.

Thin HTTP layer in front of the knowledge base service.

Endpoints:
    - GET /health: Service health status
    - POST /chat: Form-encoded question, JSON RequestResult answer
    - POST /chat/stream: Server-Sent Events stream of the answer
"""

from caseforge.api.app import app, create_app

__all__ = ["app", "create_app"]
