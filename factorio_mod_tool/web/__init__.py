"""Web API for factorio-mod-tool."""

import argparse
import os
from pathlib import Path

from ..settings import SETTINGS_ENV_VAR


def create_and_run(settings_path: Path | None = None, port: int = 5000):
    """Create and run the Flask app."""
    from .app import create_app

    app = create_app(settings_path=settings_path)
    app.run(host="127.0.0.1", port=port, debug=False)


def main():
    """Standalone entry point for factorio-mod-tool-web."""
    parser = argparse.ArgumentParser(description="factorio-mod-tool web API")
    parser.add_argument("--port", type=int, default=5000, help="Port (default 5000)")
    parser.add_argument(
        "--settings",
        type=Path,
        default=os.environ.get(SETTINGS_ENV_VAR),
        help="Settings file",
    )
    args = parser.parse_args()

    create_and_run(settings_path=args.settings, port=args.port)
