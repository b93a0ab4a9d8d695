"""Sequential pipeline driver.

Usage::

    from greeting_service.delivery import DeliveryPipeline, BuildContext

    run = DeliveryPipeline().run(BuildContext(build_number="42"))
    print(run.summary())

Stages run one after another on the current machine.  The first failure
stops the run; every later stage is recorded as ``skipped``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Iterable, Sequence

from greeting_service.config import Settings
from greeting_service.config import settings as default_settings
from greeting_service.delivery.errors import DeliveryError, StageFailedError
from greeting_service.delivery.models import BuildContext, PipelineRun, StageResult, StageStatus
from greeting_service.delivery.runner import CommandRunner, SubprocessRunner
from greeting_service.delivery.stages import STAGE_NAMES, Stage, default_stages

logger = logging.getLogger(__name__)


def select_stages(
    stages: Sequence[Stage],
    *,
    only: Iterable[str] | None = None,
    skip: Iterable[str] | None = None,
) -> list[Stage]:
    """Filter *stages* by name, preserving execution order."""
    only = set(only or [])
    skip = set(skip or [])
    unknown = (only | skip) - {s.name for s in stages}
    if unknown:
        raise ValueError(
            f"Unknown stage(s): {', '.join(sorted(unknown))}. "
            f"Choose from: {', '.join(STAGE_NAMES)}."
        )
    return [s for s in stages if (not only or s.name in only) and s.name not in skip]


class DeliveryPipeline:
    """Runs a list of :class:`Stage` objects in order.

    Parameters
    ----------
    stages:
        Steps to execute.  Defaults to :func:`default_stages`.
    runner:
        Command runner shared by every stage.
    settings:
        Configuration passed to every stage.
    """

    def __init__(
        self,
        stages: Sequence[Stage] | None = None,
        runner: CommandRunner | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.stages = list(stages) if stages is not None else default_stages()
        self.runner = runner or SubprocessRunner()
        self.settings = settings or default_settings

    def run(self, context: BuildContext | None = None) -> PipelineRun:
        """Execute every stage and return the run record.

        Delivery failures are recorded in the result rather than raised.
        """
        context = context or BuildContext()
        result = PipelineRun(context=context)
        failed = False

        for stage in self.stages:
            if failed:
                result.stages.append(StageResult(name=stage.name, status=StageStatus.SKIPPED))
                continue

            logger.info("── %s ──", stage.name)
            started = datetime.now(timezone.utc)
            try:
                stage(context, self.runner, self.settings)
            except DeliveryError as exc:
                failed = True
                if isinstance(exc, StageFailedError):
                    error = exc
                else:
                    error = StageFailedError(stage.name, str(exc))
                logger.error("%s", error)
                result.stages.append(
                    StageResult(
                        name=stage.name,
                        status=StageStatus.FAILED,
                        started_at=started,
                        finished_at=datetime.now(timezone.utc),
                        detail=error.reason,
                    )
                )
                continue

            result.stages.append(
                StageResult(
                    name=stage.name,
                    status=StageStatus.PASSED,
                    started_at=started,
                    finished_at=datetime.now(timezone.utc),
                )
            )

        result.finished_at = datetime.now(timezone.utc)
        if result.succeeded:
            logger.info("Pipeline succeeded (%d stages)", len(result.stages))
        else:
            logger.error("Pipeline aborted at stage '%s'", result.failed_stage.name)
        return result

    def run_or_raise(self, context: BuildContext | None = None) -> PipelineRun:
        """Like :meth:`run` but raise :class:`StageFailedError` on failure."""
        result = self.run(context)
        failed = result.failed_stage
        if failed is not None:
            raise StageFailedError(failed.name, failed.detail)
        return result
