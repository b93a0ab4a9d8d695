"""Image tag derivation: ``<git-short-sha>-<build-number>``."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from greeting_service.delivery.runner import CommandRunner


def derive_image_tag(short_sha: str, build_number: str | int) -> str:
    """Combine the source revision and build counter into an image tag.

    >>> derive_image_tag("1a2b3c4", 17)
    '1a2b3c4-17'
    """
    sha = short_sha.strip()
    number = str(build_number).strip()
    if not sha:
        raise ValueError("short_sha must not be empty")
    if not number:
        raise ValueError("build_number must not be empty")
    return f"{sha}-{number}"


def git_short_sha(
    runner: CommandRunner,
    workspace: str | Path,
    env: Mapping[str, str] | None = None,
) -> str:
    """Return the abbreviated ``HEAD`` revision of *workspace*."""
    result = runner.run(["git", "rev-parse", "--short", "HEAD"], cwd=workspace, env=env)
    return result.stdout.strip()
