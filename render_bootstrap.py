"""Production-friendly bootstrapper for Render and Railway deployments.

Platforms that expect a Python entry point (e.g. ``python render_bootstrap.py``)
use this module to launch the Streamlit application. It prefers persistent
storage mounts when available so sessions and content overrides survive
redeploys.
"""

from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

DEFAULT_APP_SCRIPT = "main.py"


def _select_app_script() -> str:
    """Return the Streamlit script that should be executed."""

    return os.getenv("LMT_APP_SCRIPT") or DEFAULT_APP_SCRIPT


def _preferred_storage_dir() -> Path | None:
    """Return a writable directory for application data if one is obvious."""

    configured_dir = os.getenv("LMT_DATA_DIR")
    if configured_dir:
        return Path(configured_dir)

    for candidate in (os.getenv("RAILWAY_VOLUME_MOUNT_PATH"), "/data", "/opt/render/project/.data"):
        if candidate and Path(candidate).exists():
            return Path(candidate)

    return None


def build_command(app_script: Path, port: str) -> list[str]:
    return [
        sys.executable,
        "-m",
        "streamlit",
        "run",
        str(app_script),
        "--server.port",
        str(port),
        "--server.address",
        "0.0.0.0",
        "--server.headless",
        "true",
    ]


def main() -> None:
    root_dir = Path(__file__).resolve().parent

    app_script_name = _select_app_script()
    app_script = root_dir / app_script_name
    if not app_script.exists():
        raise SystemExit(
            f"Expected application script '{app_script_name}' next to render_bootstrap.py, but it was not found."
        )

    storage_dir = _preferred_storage_dir()
    if storage_dir is not None:
        storage_dir.mkdir(parents=True, exist_ok=True)
        os.environ.setdefault("LMT_DATA_DIR", str(storage_dir))

    os.environ.setdefault("BROWSER", "none")

    subprocess.run(build_command(app_script, os.getenv("PORT", "8501")), check=True, cwd=root_dir)


if __name__ == "__main__":
    main()
