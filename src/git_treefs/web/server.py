"""Run the HTTP API in-process and the streamlit tree browser beside it."""
from __future__ import annotations

import logging
import subprocess
import sys
import threading
import time
from pathlib import Path
from urllib.error import URLError
from urllib.request import urlopen

logger = logging.getLogger(__name__)

DASHBOARD = Path(__file__).with_name("dashboard.py")


def _wait_for_api(api_port: int, timeout_seconds: float = 10.0) -> bool:
    """Return True once /api/identity answers 200, False after the timeout."""
    url = f"http://localhost:{api_port}/api/identity"
    deadline = time.time() + timeout_seconds
    while time.time() < deadline:
        try:
            with urlopen(url, timeout=1) as response:
                if response.status == 200:
                    return True
        except (URLError, OSError):
            pass
        time.sleep(0.2)
    return False


def configure_app(
    revision: str | None = None,
    git_dir: str | None = None,
    git_binary: str = "git",
):
    """Point the API app at a repository; the handle is opened at startup."""
    from git_treefs.web.api import app

    app.state.revision = revision
    app.state.git_dir = git_dir
    app.state.git_binary = git_binary
    return app


def dashboard_command(streamlit_port: int, api_port: int) -> list[str]:
    return [
        sys.executable, "-m", "streamlit", "run", str(DASHBOARD),
        "--server.port", str(streamlit_port),
        "--server.headless", "true",
        "--browser.gatherUsageStats", "false",
        "--", f"--api-url=http://localhost:{api_port}",
    ]


def _serve_in_background(app, api_port: int) -> threading.Thread:
    import uvicorn

    thread = threading.Thread(
        target=uvicorn.run,
        args=(app,),
        kwargs={"host": "127.0.0.1", "port": api_port, "log_level": "warning"},
        name="git-treefs-api",
        daemon=True,
    )
    thread.start()
    return thread


def launch(
    revision: str | None = None,
    git_dir: str | None = None,
    api_port: int = 8000,
    git_binary: str = "git",
) -> None:
    """Serve the API on *api_port* and block on the dashboard at api_port + 1."""
    app = configure_app(revision, git_dir, git_binary)
    _serve_in_background(app, api_port)
    logger.debug("waiting for API on port %d", api_port)

    if not _wait_for_api(api_port):
        print(f"API did not come up on http://localhost:{api_port}", file=sys.stderr)
        sys.exit(1)

    streamlit_port = api_port + 1
    print(f"API:        http://localhost:{api_port}/api/identity")
    print(f"Browser:    http://localhost:{streamlit_port}")

    try:
        proc = subprocess.run(dashboard_command(streamlit_port, api_port), check=False)
    except KeyboardInterrupt:
        print("\nShutting down.")
        sys.exit(0)
    sys.exit(proc.returncode)
