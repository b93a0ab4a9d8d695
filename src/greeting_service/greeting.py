"""The application's single piece of logic."""

from __future__ import annotations

GREETING = "Hello from CI/CD!"


def hello() -> str:
    """Return the fixed greeting."""
    return GREETING
