"""Caseforge entry point.

``RUN_MODE=integrated`` (default) serves the API and the chat page from one
uvicorn process on ``PORT``. ``RUN_MODE=separate`` starts the API and the
NiceGUI page as two processes, the page on ``UI_PORT`` talking to the API
through ``API_BASE_URL``. Settings are read from the environment and an
optional ``.env`` file.
"""

import logging
import os
import subprocess
import sys
import time

from dotenv import load_dotenv

# Load environment variables before any other imports that might need them
load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)
logger = logging.getLogger(__name__)

DEFAULT_PORT = "8000"
DEFAULT_UI_PORT = "8080"


def api_address() -> tuple[str, int]:
    return os.getenv("HOST", "0.0.0.0"), int(os.getenv("PORT", DEFAULT_PORT))


def separate_commands() -> list[tuple[list[str], dict[str, str]]]:
    """Command lines and environments for the API and page processes.

    The page process inherits the environment with ``API_BASE_URL`` pointing
    at the API's port unless one was configured explicitly.
    """
    host, port = api_address()
    api_command = [
        sys.executable,
        "-m",
        "uvicorn",
        "caseforge.api.app:app",
        "--host",
        host,
        "--port",
        str(port),
        "--log-level",
        LOG_LEVEL.lower(),
    ]

    ui_env = dict(os.environ)
    ui_env["API_BASE_URL"] = os.getenv("API_BASE_URL") or f"http://localhost:{port}"
    ui_env.setdefault("UI_PORT", DEFAULT_UI_PORT)
    ui_command = [sys.executable, "-m", "caseforge.ui.chat_page"]

    return [(api_command, dict(os.environ)), (ui_command, ui_env)]


def run_integrated() -> None:
    """Serve the API and the chat page from one server on ``PORT``."""
    import uvicorn
    from nicegui import ui

    from caseforge.api.app import create_app
    from caseforge.ui.chat_page import register_pages

    app = create_app()
    register_pages()
    ui.run_with(app, title="Caseforge AI")

    host, port = api_address()
    logger.info(f"Chat UI on http://localhost:{port}/, API docs on http://localhost:{port}/docs")

    uvicorn.run(app, host=host, port=port, log_level=LOG_LEVEL.lower())


def run_separate() -> None:
    """Run the API and the page as child processes until either exits."""
    commands = separate_commands()
    processes = [subprocess.Popen(command, env=env) for command, env in commands]
    logger.info(
        f"Started API (pid {processes[0].pid}) and chat page (pid {processes[1].pid}) "
        f"on ports {api_address()[1]} and {commands[1][1]['UI_PORT']}"
    )

    try:
        while all(process.poll() is None for process in processes):
            time.sleep(1)
        for process, name in zip(processes, ("API", "chat page")):
            if process.poll() is not None:
                logger.warning(f"{name} process exited with code {process.returncode}")
    except KeyboardInterrupt:
        logger.info("Shutting down...")
    finally:
        for process in processes:
            process.terminate()
        for process in processes:
            process.wait()


def main() -> None:
    mode = os.getenv("RUN_MODE", "integrated").lower()
    logger.info(f"Starting Caseforge in {mode} mode")

    if mode == "separate":
        run_separate()
    else:
        run_integrated()


if __name__ == "__main__":
    main()
