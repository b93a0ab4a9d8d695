"""Shared pytest configuration and fixtures."""

from pathlib import Path

import pytest

from greeting_service.config import Settings
from greeting_service.delivery.models import BuildContext
from greeting_service.delivery.runner import RecordingRunner


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


@pytest.fixture()
def settings() -> Settings:
    """Settings isolated from the developer's ``.env`` file."""
    return Settings(
        _env_file=None,
        build_number="42",
        sonar_host_url="http://sonar.test:9000",
        sonar_token="squ_test",
        aws_region="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
        repo_url="",
        deploy_host="",
        quality_gate_timeout=120.0,
        quality_gate_poll_interval=5.0,
    )


@pytest.fixture()
def runner() -> RecordingRunner:
    return RecordingRunner()


@pytest.fixture()
def context(tmp_path: Path) -> BuildContext:
    return BuildContext(workspace=tmp_path, build_number="42")
