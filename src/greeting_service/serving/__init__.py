"""
Serving — FastAPI application exposing the greeting over HTTP.

This module is what the container image runs; see ``Dockerfile``.
"""
