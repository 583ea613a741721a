"""Main entry point for the API server."""

import uvicorn

from carteira.api.app import app
from carteira.config import get_settings


def run() -> None:
    """Serve the API on the configured host and port (HOST/PORT env vars)."""
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
