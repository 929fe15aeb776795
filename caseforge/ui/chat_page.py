"""NiceGUI chat page with browser history integration."""

import json
import logging
import os
from typing import Any

from nicegui import events, ui

from caseforge.models.schemas import ChatTurn, Citation
from caseforge.ui.chat_view import (
    MAX_TEXTAREA_ROWS,
    MIN_ENTER_LENGTH,
    MIN_TEXTAREA_ROWS,
    SCROLL_DURATION,
    ChatView,
    can_submit,
    should_submit_on_enter,
    textarea_rows,
)
from caseforge.ui.client import submit_message

logger = logging.getLogger(__name__)

POPSTATE_EVENT = "chat_popstate"

CUSTOM_CSS = """
<link href="https://fonts.googleapis.com/css2?family=Inter:wght@400;500;600&display=swap"
      rel="stylesheet">
<style>
    * { font-family: 'Inter', sans-serif; }

    body { background: #ffffff; }

    .message-user {
        background: #000000;
        color: white;
        border-radius: 24px 24px 0 24px;
    }

    .message-assistant {
        background: #f1f5f9;
        color: #000000;
        border-radius: 0 24px 24px 24px;
    }

    .message-error { color: #b91c1c; }

    .thinking-bubble {
        width: 8px; height: 8px;
        background: #64748b;
        border-radius: 50%;
        animation: thinking 1.4s infinite ease-in-out;
    }
    .thinking-bubble:nth-child(2) { animation-delay: 0.2s; }
    .thinking-bubble:nth-child(3) { animation-delay: 0.4s; }

    @keyframes thinking {
        0%, 60%, 100% { transform: translateY(0); }
        30% { transform: translateY(-6px); }
    }

    .input-box {
        background: white;
        border: 1px solid #94a3b8;
        border-radius: 2rem;
    }

    .message-assistant p { margin: 0.25rem 0; }
</style>
"""


def _textarea_selector(element: ui.textarea) -> str:
    return f"#c{element.id} textarea"


def measure_textarea_js(element: ui.textarea) -> str:
    """Reset the textarea to one row and report its measurements."""
    return f"""
(() => {{
    const el = document.querySelector('{_textarea_selector(element)}');
    if (!el) return null;
    el.rows = {MIN_TEXTAREA_ROWS};
    const style = window.getComputedStyle(el);
    return [el.scrollHeight, parseFloat(style.lineHeight),
            parseFloat(style.paddingTop), parseFloat(style.paddingBottom)];
}})()
"""


def set_textarea_rows_js(element: ui.textarea, rows: int) -> str:
    scroll = "el.scrollTop = el.scrollHeight;" if rows >= MAX_TEXTAREA_ROWS else ""
    return f"""
(() => {{
    const el = document.querySelector('{_textarea_selector(element)}');
    if (!el) return;
    el.rows = {rows};
    {scroll}
}})()
"""


def scroll_to_bottom_js(duration: float = SCROLL_DURATION) -> str:
    """Ease the window to the bottom of the page over ``duration`` seconds."""
    return f"""
(() => {{
    const duration = {int(duration * 1000)};
    const startTop = window.scrollY;
    const startTime = performance.now();
    const step = (now) => {{
        const target = Math.max(
            document.body.scrollHeight, document.body.offsetHeight,
            document.documentElement.clientHeight, document.documentElement.scrollHeight,
            document.documentElement.offsetHeight
        ) - window.innerHeight;
        const progress = Math.min((now - startTime) / duration, 1);
        window.scrollTo({{ top: startTop + (target - startTop) * progress }});
        if (progress < 1) window.requestAnimationFrame(step);
    }};
    window.requestAnimationFrame(step);
}})()
"""


def push_history_js(state: dict) -> str:
    return f"history.pushState({json.dumps(state)}, '', '/')"


def enter_key_js() -> str:
    """Keydown handler that only intercepts an Enter which submits.

    Shift+Enter and Enter on short input keep inserting a newline.
    """
    return f"""(e) => {{
    if (e.key !== 'Enter' || e.shiftKey || e.ctrlKey || e.altKey || e.metaKey) return;
    if (e.target.value.trim().length < {MIN_ENTER_LENGTH}) return;
    e.preventDefault();
    emit({{key: e.key, shiftKey: e.shiftKey, value: e.target.value}});
}}"""


def _event_payload(args: Any) -> Any:
    return args[0] if isinstance(args, list) and len(args) == 1 else args


async def measure_textarea(element: ui.textarea) -> list | None:
    try:
        return await ui.run_javascript(measure_textarea_js(element), timeout=1.0)
    except TimeoutError:
        logger.debug("Textarea measurement timed out")
        return None


async def connect_history() -> Any:
    """Wait for the browser, forward its popstate events and read ``history.state``."""
    await ui.context.client.connected()
    ui.run_javascript(
        f'window.addEventListener("popstate", (e) => emitEvent("{POPSTATE_EVENT}", e.state));'
    )
    try:
        return await ui.run_javascript("history.state", timeout=5.0)
    except TimeoutError:
        logger.warning("Could not read navigation state, starting with an empty transcript")
        return None


def render_intro() -> None:
    with ui.column().classes("w-full h-64 items-center justify-center text-center"):
        ui.label("Caseforge AI").classes("text-4xl font-semibold")
        ui.label("Your friendly legal assistant").classes("mt-4")


def render_citation(index: int, citation: Citation) -> None:
    with ui.column().classes("gap-0 mt-2"):
        ui.label(f"Citation {index + 1}").classes("text-xs font-semibold")
        if citation.location:
            ui.label(citation.location).classes("text-xs font-semibold break-all")
        content = ui.label(citation.content).classes("text-xs whitespace-pre-wrap")
        content.set_visibility(False)

        def toggle_content() -> None:
            content.set_visibility(not content.visible)
            button.set_text("Hide content" if content.visible else "Show content")

        button = (
            ui.button("Show content", on_click=toggle_content)
            .props("flat dense no-caps size=sm")
            .classes("text-xs italic text-gray-500 p-0")
        )


def render_citations(citations: list[Citation]) -> None:
    def toggle() -> None:
        container.set_visibility(not container.visible)
        button.set_text("Hide citations" if container.visible else "Show citations")

    button = (
        ui.button("Show citations", on_click=toggle)
        .props("flat dense no-caps size=sm")
        .classes("text-xs italic text-gray-500 p-0 mt-2")
    )
    with ui.column().classes("gap-0") as container:
        for index, citation in enumerate(citations):
            render_citation(index, citation)
    container.set_visibility(False)


def render_message(turn: ChatTurn) -> None:
    is_user = turn.role == "user"
    align = "justify-end" if is_user else "justify-start"
    bubble = "message-user" if is_user else "message-assistant"
    error = " message-error" if turn.error else ""

    with ui.row().classes(f"w-full {align}"):
        with (
            ui.element("div")
            .classes(f"max-w-[480px] p-4 text-sm md:text-base {bubble}{error}")
            .mark(f"{bubble}{error}")
        ):
            if is_user:
                ui.label(turn.content).classes("whitespace-pre-wrap")
            else:
                ui.markdown(turn.content)
                if turn.citations:
                    render_citations(turn.citations)


def render_thinking() -> None:
    with ui.row().classes("w-full justify-start").mark("thinking"):
        with ui.element("div").classes("message-assistant p-4"):
            with ui.row().classes("gap-[5px] min-h-[20px] items-center"):
                for _ in range(3):
                    ui.element("span").classes("thinking-bubble")


async def chat_page() -> None:
    """Build the chat page for one browser tab."""
    ui.add_head_html(CUSTOM_CSS)
    view = ChatView()

    messages_container: ui.column
    input_field: ui.textarea
    send_btn: ui.button

    def refresh_messages() -> None:
        messages_container.clear()
        with messages_container:
            if not view.turns:
                render_intro()
                return
            for turn in view.turns:
                render_message(turn)
            if view.is_submitting:
                render_thinking()

    def scroll_to_bottom() -> None:
        ui.run_javascript(scroll_to_bottom_js())

    def set_controls_enabled(enabled: bool) -> None:
        for control in (input_field, send_btn):
            control.set_enabled(enabled)

    def apply_rows(rows: int) -> None:
        input_field.props(f"rows={rows}")
        ui.run_javascript(set_textarea_rows_js(input_field, rows))

    async def on_input() -> None:
        measurement = await measure_textarea(input_field)
        if measurement is None:
            return
        rows = textarea_rows(*measurement) if measurement else MIN_TEXTAREA_ROWS
        apply_rows(rows)

    async def submit(text: str) -> None:
        view.begin_submit(text)
        input_field.value = ""
        apply_rows(MIN_TEXTAREA_ROWS)
        set_controls_enabled(False)
        refresh_messages()
        scroll_to_bottom()

        result = await submit_message(text, view.session_id)

        view.apply_result(result)
        ui.run_javascript(push_history_js(view.navigation_state()))
        set_controls_enabled(True)
        refresh_messages()
        scroll_to_bottom()
        input_field.run_method("focus")

    async def on_send() -> None:
        text = input_field.value or ""
        if view.is_submitting or not can_submit(text):
            return
        await submit(text.strip())

    async def on_enter(e: events.GenericEventArguments) -> None:
        args = _event_payload(e.args)
        args = args if isinstance(args, dict) else {}
        text = args.get("value", input_field.value) or ""
        if view.is_submitting:
            return
        if should_submit_on_enter(args.get("key", "Enter"), bool(args.get("shiftKey")), text):
            await submit(text.strip())

    def on_popstate(e: events.GenericEventArguments) -> None:
        view.restore(_event_payload(e.args))
        set_controls_enabled(True)
        refresh_messages()
        scroll_to_bottom()

    # === UI Layout ===
    with ui.column().classes("w-full max-w-2xl mx-auto p-4 sm:p-8 min-h-[70vh] justify-end"):
        messages_container = ui.column().classes("w-full gap-4")
        refresh_messages()

    with ui.footer().classes("bg-white/70 backdrop-blur-md p-4 sm:p-8"):
        with ui.row().classes("w-full max-w-[500px] mx-auto items-center no-wrap input-box pl-5"):
            input_field = (
                ui.textarea(placeholder="Ask a question", on_change=on_input)
                .props(f"borderless dense rows={MIN_TEXTAREA_ROWS} aria-label='Ask a question'")
                .classes("flex-grow text-black")
                .on("keydown", on_enter, js_handler=enter_key_js())
                .mark("message")
            )
            send_btn = (
                ui.button(icon="send", on_click=on_send)
                .props("round flat color=black aria-label=Submit")
                .mark("send")
            )

    ui.on(POPSTATE_EVENT, on_popstate)

    view.restore(await connect_history())
    refresh_messages()
    scroll_to_bottom()
    input_field.run_method("focus")


def register_pages() -> None:
    ui.page("/", title="Caseforge AI")(chat_page)


def main() -> None:
    """Serve the chat page on its own, calling the API at ``API_BASE_URL``."""
    register_pages()
    ui.run(
        title="Caseforge AI",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("UI_PORT", "8080")),
        reload=False,
        show=False,
    )


if __name__ == "__main__":
    main()
