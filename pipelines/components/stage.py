"""KFP v2 component — Run one delivery stage inside the tools image.

The same component is instantiated once per stage.  The pipeline mounts
one PersistentVolumeClaim at ``/workspace`` in every step, so the checkout,
the wheel in ``dist/`` and the scanner report written by earlier steps are
visible to later ones.  Image steps talk to one shared Docker daemon via
``DOCKER_HOST``.  The remaining run state travels between steps as the
JSON-serialised ``BuildContext`` returned by the previous task::

    {
      "workspace":    "/workspace/src",
      "build_number": "42",
      "short_sha":    "1a2b3c4",
      "image_tag":    "1a2b3c4-42",
      "registry_uri": "123456789012.dkr.ecr.us-east-1.amazonaws.com/greeting-service",
      "env":          {},
      "dry_run":      false
    }

The tools image (``Dockerfile.tools``) ships this package together with
git, Docker CLI, Trivy and sonar-scanner.  Settings are read from the
pod environment exactly as on a CI agent.

Local testing
-------------
    from pipelines.components.stage import run_delivery_stage
    run_delivery_stage.python_func(
        stage="tag",
        context_json='{"short_sha": "1a2b3c4", "build_number": "7"}',
        metrics=_FakeArtifact("/tmp/metrics"),
    )
"""

from kfp import dsl

from greeting_service.config import settings


@dsl.component(base_image=settings.pipeline_tools_image)
def run_delivery_stage(
    stage: str,
    context_json: str,
    metrics: dsl.Output[dsl.Metrics],
    build_number: str = "",
    repo_url: str = "",
    branch: str = "",
) -> str:
    """Execute a single named stage and hand the updated context on.

    Parameters
    ----------
    stage:
        One of the names returned by ``greeting-delivery stages``.
    context_json:
        ``BuildContext`` produced by the previous step.
    metrics:
        Output Metrics artifact with the stage duration.
    build_number:
        CI build counter; falls back to the context, then to
        ``BUILD_NUMBER`` in the pod environment.
    repo_url, branch:
        Override ``REPO_URL`` / ``BRANCH`` from the pod environment.

    Returns
    -------
    str
        The updated ``BuildContext`` as JSON.
    """
    import logging
    import time

    from greeting_service.config import settings as pod_settings
    from greeting_service.delivery.errors import DeliveryError
    from greeting_service.delivery.models import BuildContext
    from greeting_service.delivery.runner import SubprocessRunner
    from greeting_service.delivery.stages import STAGE_NAMES, default_stages

    logging.basicConfig(level=logging.INFO)
    log = logging.getLogger("run_delivery_stage")

    if stage not in STAGE_NAMES:
        raise ValueError(
            f"Unsupported stage={stage!r}. Choose from: {', '.join(STAGE_NAMES)}."
        )

    overrides = {k: v for k, v in (("repo_url", repo_url), ("branch", branch)) if v}
    stage_settings = pod_settings.model_copy(update=overrides)

    context = BuildContext.model_validate_json(context_json or "{}")
    if build_number:
        context.build_number = build_number
    elif not context.build_number:
        context.build_number = stage_settings.build_number
    step = next(s for s in default_stages() if s.name == stage)

    t0 = time.monotonic()
    try:
        step(context, SubprocessRunner(), stage_settings)
    except DeliveryError as exc:
        log.error("✗ %s: %s", stage, exc)
        raise RuntimeError(f"Stage '{stage}' failed: {exc}") from exc
    elapsed = time.monotonic() - t0

    # KFP Metrics
    metrics.log_metric("stage", stage)
    metrics.log_metric("stage_seconds", round(elapsed, 2))

    log.info("✓ %s in %.1fs", stage, elapsed)
    return context.model_dump_json()
