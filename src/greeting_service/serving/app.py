"""FastAPI application exposing the greeting as a REST API."""

from __future__ import annotations

from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from greeting_service.greeting import hello

app = FastAPI(
    title="Greeting Service",
    version="0.1.0",
    description="Demonstration service shipped by the delivery pipeline.",
)


# ── Routes ────────────────────────────────────────────────────────────
@app.get("/", response_class=PlainTextResponse)
async def index() -> str:
    """Return the greeting."""
    return hello()


@app.get("/health")
async def health() -> dict[str, str]:
    """Liveness probe."""
    return {"status": "ok"}
