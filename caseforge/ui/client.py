"""HTTP client used by the chat page to reach the API."""

import logging
import os

import httpx

from caseforge.models.schemas import RequestResult

logger = logging.getLogger(__name__)


def default_api_base_url() -> str:
    """API location for the page.

    ``API_BASE_URL`` wins when set. Otherwise the page talks to the server it
    is mounted on, which listens on ``PORT``.
    """
    return os.getenv("API_BASE_URL") or f"http://localhost:{os.getenv('PORT', '8000')}"


async def submit_message(
    message: str,
    session_id: str | None,
    *,
    base_url: str | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RequestResult:
    """Post the chat form to ``/chat`` and parse the result.

    Transport and HTTP failures are folded into an error result that keeps
    the current session id, the same shape the API uses for service errors.
    """
    async with httpx.AsyncClient(
        base_url=base_url or default_api_base_url(), timeout=120.0, transport=transport
    ) as client:
        try:
            response = await client.post(
                "/chat",
                data={"message": message, "sessionId": session_id or ""},
            )
            response.raise_for_status()
            return RequestResult.model_validate(response.json())
        except httpx.HTTPStatusError as e:
            logger.warning(f"Chat request rejected: HTTP {e.response.status_code}")
            error = f"HTTP {e.response.status_code}"
        except httpx.RequestError as e:
            logger.warning(f"Chat request failed: {e}")
            error = f"Connection failed: {e}"
        except ValueError as e:
            logger.warning(f"Malformed chat response: {e}")
            error = "Unexpected response from server"

    return RequestResult(message=message, answer="", error=error, session_id=session_id)
