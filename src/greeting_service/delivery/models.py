"""Domain models describing a single pipeline run."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, Field, computed_field


class StageStatus(str, Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"


class BuildContext(BaseModel):
    """Mutable state shared by the stages of one run.

    Attributes
    ----------
    workspace:
        Directory holding the checked-out sources.
    build_number:
        Build counter supplied by the CI server.
    short_sha:
        Abbreviated git revision, set by the ``checkout`` stage.
    image_tag:
        ``<short_sha>-<build_number>``, set by the ``tag`` stage.
    registry_uri:
        ECR repository URI, set by the ``push`` stage.
    env:
        Extra environment variables passed to every tool the stages run.
    dry_run:
        Skip the SonarQube and ECR API calls; external commands are only
        logged by the runner.
    """

    workspace: Path = Path(".")
    build_number: str = ""
    short_sha: str = ""
    image_tag: str = ""
    registry_uri: str = ""
    env: dict[str, str] = Field(default_factory=dict)
    dry_run: bool = False

    def local_image(self, image_name: str) -> str:
        """Return ``<image_name>:<tag>`` for the locally built image."""
        return f"{image_name}:{self.image_tag}"

    def remote_image(self) -> str:
        """Return the fully-qualified registry reference for the image."""
        return f"{self.registry_uri}:{self.image_tag}"


class StageResult(BaseModel):
    """Outcome of one stage."""

    name: str
    status: StageStatus
    started_at: datetime | None = None
    finished_at: datetime | None = None
    detail: str = ""

    @computed_field
    @property
    def duration_seconds(self) -> float:
        if self.started_at is None or self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()


class PipelineRun(BaseModel):
    """Ordered stage results plus the final build context."""

    context: BuildContext
    stages: list[StageResult] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def succeeded(self) -> bool:
        return not any(s.status is StageStatus.FAILED for s in self.stages)

    @property
    def failed_stage(self) -> StageResult | None:
        for result in self.stages:
            if result.status is StageStatus.FAILED:
                return result
        return None

    def summary(self) -> str:
        """One line per stage, e.g. ``build      passed  (3.2s)``."""
        width = max((len(s.name) for s in self.stages), default=0)
        lines = []
        for s in self.stages:
            line = f"{s.name:<{width}}  {s.status.value:<7}"
            if s.status is not StageStatus.SKIPPED:
                line += f"  ({s.duration_seconds:.1f}s)"
            if s.detail:
                line += f"  {s.detail}"
            lines.append(line)
        return "\n".join(lines)
