"""Unit tests for image tag derivation."""

import pytest

from greeting_service.delivery.runner import CommandResult, RecordingRunner
from greeting_service.delivery.tagging import derive_image_tag, git_short_sha


def test_tag_combines_sha_and_build_number() -> None:
    assert derive_image_tag("1a2b3c4", "17") == "1a2b3c4-17"


def test_tag_accepts_integer_build_number() -> None:
    assert derive_image_tag("1a2b3c4", 17) == "1a2b3c4-17"


def test_tag_strips_trailing_newline_from_sha() -> None:
    """``git rev-parse`` output ends in a newline."""
    assert derive_image_tag("1a2b3c4\n", "3") == "1a2b3c4-3"


@pytest.mark.parametrize(("sha", "number"), [("", "1"), ("abc", ""), ("  ", "1")])
def test_tag_rejects_empty_parts(sha: str, number: str) -> None:
    with pytest.raises(ValueError, match="must not be empty"):
        derive_image_tag(sha, number)


def test_git_short_sha_reads_head(tmp_path) -> None:
    runner = RecordingRunner(responses={"git": CommandResult([], 0, stdout="9f8e7d6\n")})
    assert git_short_sha(runner, tmp_path) == "9f8e7d6"
    assert runner.calls == [["git", "rev-parse", "--short", "HEAD"]]
