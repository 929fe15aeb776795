"""FastAPI application factory.

The API is a thin layer over the knowledge base service: form and SSE chat
routes plus a health check that reports whether the knowledge base is
configured. A missing configuration is logged at startup but never stops
the server, because each request reports it on its own.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Annotated

from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from caseforge import __version__
from caseforge.api.chat import router as chat_router
from caseforge.retrieval.config import KnowledgeBaseConfig, get_knowledge_base_config

logger = logging.getLogger(__name__)

API_TITLE = "Caseforge API"
API_DESCRIPTION = (
    "Legal question answering over a managed knowledge base. "
    "Forwards questions to a retrieve-and-generate service, keeps the "
    "conversation session, and returns grounded answers with citations."
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None]:
    config = get_knowledge_base_config()
    if config.is_configured:
        logger.info(
            f"Caseforge API ready (knowledge base {config.knowledge_base_id}, "
            f"region {config.region_name or 'from AWS defaults'})"
        )
    else:
        logger.warning(
            "Caseforge API started without KNOWLEDGE_BASE_ID or MODEL_ARN; "
            "chat requests will return an error until both are set"
        )
    yield
    logger.info("Caseforge API stopped")


async def health_check(
    config: Annotated[KnowledgeBaseConfig, Depends(get_knowledge_base_config)],
) -> dict[str, str]:
    """Report liveness and whether the knowledge base identifiers are set."""
    return {
        "status": "healthy",
        "service": "caseforge",
        "knowledgeBase": "configured" if config.is_configured else "missing",
    }


def create_app() -> FastAPI:
    """Build the API with open CORS, the chat routes and ``/health``."""
    application = FastAPI(
        title=API_TITLE,
        description=API_DESCRIPTION,
        version=__version__,
        lifespan=lifespan,
    )

    # The page may be served from another origin in separate mode
    application.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    application.include_router(chat_router)
    application.add_api_route("/health", health_check, methods=["GET"], tags=["health"])

    return application


app = create_app()
