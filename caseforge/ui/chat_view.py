"""Chat view state.

Holds the transcript, session id and submission flag for one browser tab,
independent of NiceGUI so the behavior can be tested without a browser.
The transcript is mirrored into ``history.state`` by the page so that
back/forward navigation restores earlier points of the conversation.
"""

import math
from typing import Any

from pydantic import ValidationError

from caseforge.models.schemas import ChatTurn, RequestResult

MIN_TEXTAREA_ROWS = 1
MAX_TEXTAREA_ROWS = 3

# Button submission mirrors the form's minlength; Enter needs a bit more
MIN_MESSAGE_LENGTH = 2
MIN_ENTER_LENGTH = 3

SCROLL_DURATION = 0.3  # seconds

HISTORY_KEY = "chatHistory"
SESSION_KEY = "sessionId"


def textarea_rows(
    scroll_height: float | None,
    line_height: float | None,
    padding_top: float | None = 0,
    padding_bottom: float | None = 0,
) -> int:
    """Compute the visible row count for the auto-growing input.

    Args:
        scroll_height: Measured scrollHeight of the textarea (at one row).
        line_height: Computed line height in pixels.
        padding_top: Computed top padding in pixels.
        padding_bottom: Computed bottom padding in pixels.

    Returns:
        Number of rows between MIN_TEXTAREA_ROWS and MAX_TEXTAREA_ROWS.
    """
    padding = (padding_top or 0) + (padding_bottom or 0)
    if scroll_height is None or line_height is None:
        return MIN_TEXTAREA_ROWS
    if not all(math.isfinite(v) for v in (scroll_height, line_height, padding)):
        return MIN_TEXTAREA_ROWS
    if line_height <= 0:
        return MIN_TEXTAREA_ROWS

    rows = math.floor((scroll_height - padding) / line_height)
    return max(MIN_TEXTAREA_ROWS, min(MAX_TEXTAREA_ROWS, rows))


def should_submit_on_enter(key: str, shift_key: bool, value: str | None) -> bool:
    """Enter submits, Shift+Enter inserts a newline."""
    return key == "Enter" and not shift_key and len((value or "").strip()) >= MIN_ENTER_LENGTH


def can_submit(value: str | None) -> bool:
    """Whether the send button may submit this input."""
    return len((value or "").strip()) >= MIN_MESSAGE_LENGTH


class ChatView:
    """Manages chat state for one browser tab."""

    def __init__(self) -> None:
        self.turns: list[ChatTurn] = []
        self.session_id: str | None = None
        self.is_submitting: bool = False

    def save_user_message(self, content: str) -> ChatTurn:
        turn = ChatTurn(content=content, role="user")
        self.turns.append(turn)
        return turn

    def begin_submit(self, content: str) -> ChatTurn:
        """Optimistically add the user's turn before the request resolves."""
        self.is_submitting = True
        return self.save_user_message(content)

    def apply_result(self, result: RequestResult) -> ChatTurn:
        """Append the assistant turn for a handler result.

        Failed requests produce an error-flagged turn holding the error
        message. The session id only changes when the result carries a
        new one.
        """
        if result.error:
            turn = ChatTurn(content=result.error, role="assistant", error=True)
        else:
            turn = ChatTurn(
                content=result.answer,
                role="assistant",
                citations=result.citations,
            )
        self.turns.append(turn)

        if result.session_id and result.session_id != self.session_id:
            self.session_id = result.session_id

        self.is_submitting = False
        return turn

    def navigation_state(self) -> dict[str, Any]:
        """Snapshot suitable for ``history.pushState``."""
        return {
            HISTORY_KEY: [turn.model_dump(mode="json") for turn in self.turns],
            SESSION_KEY: self.session_id,
        }

    def restore(self, state: Any) -> bool:
        """Load the transcript from browser navigation state.

        A page loaded without a preserved transcript starts empty. The
        session id survives, so asking again continues the same conversation.

        Returns:
            True if a transcript was restored.
        """
        self.is_submitting = False

        history = state.get(HISTORY_KEY) if isinstance(state, dict) else None
        if not isinstance(history, list):
            self.turns = []
            return False

        try:
            self.turns = [ChatTurn.model_validate(turn) for turn in history]
        except ValidationError:
            self.turns = []
            return False

        self.session_id = state.get(SESSION_KEY) or self.session_id
        return True
