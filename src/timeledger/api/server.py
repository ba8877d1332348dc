"""
ASGI Entry Point for the timeledger API.

This module exposes the `app` object required by ASGI servers (Uvicorn/Gunicorn).
It loads environment variables from `.env` before the settings are built.

Usage
-----
Run via the module entry point:
    $ python -m timeledger.api.server

Or via uvicorn directly:
    $ uvicorn timeledger.api.server:app --reload
"""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from timeledger.api.app import create_app

# --------------------------------------------------------------------------- #
# Environment Setup
# --------------------------------------------------------------------------- #
load_dotenv(dotenv_path=Path(".env"))

app = create_app()


def main(host: str = "0.0.0.0", port: int = 8000, reload: bool = False) -> None:
    """Run the API server."""
    uvicorn.run(
        "timeledger.api.server:app",
        host=host,
        port=port,
        reload=reload,
        log_level="info",
    )


if __name__ == "__main__":
    main(reload=True)
