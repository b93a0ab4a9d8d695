"""
Greeting service — a minimal web application and its delivery pipeline.

Public API
----------
- :func:`hello` — the greeting served at ``/``.
"""

from greeting_service.greeting import GREETING, hello

__all__ = ["GREETING", "hello"]
