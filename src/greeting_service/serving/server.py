"""Process entrypoint for the container image."""

from __future__ import annotations

import logging

import uvicorn

from greeting_service.config import settings

logger = logging.getLogger(__name__)


def serve(host: str | None = None, port: int | None = None) -> None:
    """Run the FastAPI app with uvicorn (blocks until shutdown)."""
    host = host or settings.app_host
    port = port or settings.app_port
    logger.info("Serving greeting on %s:%d", host, port)
    uvicorn.run("greeting_service.serving.app:app", host=host, port=port)


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    serve()
