"""Pipeline stages — one function per step, executed strictly in order.

Every stage has the signature ``stage(context, runner, settings)``.  It
shells out through the :class:`~greeting_service.delivery.runner.CommandRunner`
and lets the tool's exit status decide pass/fail:

    checkout → build → test → static_analysis → quality_gate →
    filesystem_scan → tag → image_build → image_scan → push → deploy

A stage signals failure by raising; the
:class:`~greeting_service.delivery.pipeline.DeliveryPipeline` records it
and aborts the run.  There are no retries.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from greeting_service.config import Settings
from greeting_service.delivery.errors import QualityGateError, StageFailedError
from greeting_service.delivery.models import BuildContext
from greeting_service.delivery.quality_gate import (
    REPORT_TASK_FILE,
    read_report_task,
    wait_for_quality_gate,
)
from greeting_service.delivery.registry import ecr_client, ensure_repository, login_credentials
from greeting_service.delivery.runner import CommandRunner
from greeting_service.delivery.tagging import derive_image_tag, git_short_sha

logger = logging.getLogger(__name__)

# Placeholder registry host used when ECR is not contacted.
DRY_RUN_REGISTRY = "dry-run.invalid"

StageFunc = Callable[[BuildContext, CommandRunner, Settings], None]


@dataclass(frozen=True)
class Stage:
    """A named pipeline step."""

    name: str
    func: StageFunc

    def __call__(self, context: BuildContext, runner: CommandRunner, settings: Settings) -> None:
        self.func(context, runner, settings)


# ── helpers ───────────────────────────────────────────────────────────


def _env(context: BuildContext, extra: dict[str, str] | None = None) -> dict[str, str]:
    """Run-scoped variables from the context, overlaid with *extra*."""
    return {**context.env, **(extra or {})}


def _docker_env(context: BuildContext, settings: Settings) -> dict[str, str]:
    """Point the Docker CLI at the deployment host, if one is configured."""
    return _env(context, {"DOCKER_HOST": settings.deploy_host} if settings.deploy_host else None)


def _registry_client(settings: Settings):
    # Registry credentials are only bound for the push and deploy stages.
    return ecr_client(
        settings.aws_region,
        settings.aws_access_key_id,
        settings.aws_secret_access_key,
    )


def _require_tag(context: BuildContext, stage: str) -> None:
    if not context.image_tag:
        raise StageFailedError(stage, "no image tag; run the 'tag' stage first or pass --image-tag")


def _login_to_registry(
    context: BuildContext,
    runner: CommandRunner,
    settings: Settings,
    env: dict[str, str],
    *,
    resolve_repository: bool,
) -> None:
    """Resolve ``context.registry_uri`` if asked to, then ``docker login``."""
    if context.dry_run:
        if not context.registry_uri:
            context.registry_uri = f"{DRY_RUN_REGISTRY}/{settings.ecr_repository}"
        logger.info("[dry-run] skipping ECR calls; using %s", context.registry_uri)
        return

    client = _registry_client(settings)
    if resolve_repository or not context.registry_uri:
        context.registry_uri = ensure_repository(client, settings.ecr_repository)

    username, password, registry = login_credentials(client)
    runner.run(
        ["docker", "login", "--username", username, "--password-stdin", registry],
        env=env,
        input=password,
    )


def _trivy_args(settings: Settings, target_kind: str, target: str) -> list[str]:
    return [
        "trivy",
        target_kind,
        "--exit-code",
        "1",
        "--severity",
        settings.trivy_severity,
        "--no-progress",
        target,
    ]


# ── stages ────────────────────────────────────────────────────────────


def checkout(context: BuildContext, runner: CommandRunner, settings: Settings) -> None:
    """Fetch the sources and record the short revision."""
    workspace = Path(context.workspace)
    env = _env(context)
    if settings.repo_url:
        if (workspace / ".git").is_dir():
            runner.run(["git", "fetch", "origin", settings.branch], cwd=workspace, env=env)
            runner.run(["git", "checkout", "--force", "FETCH_HEAD"], cwd=workspace, env=env)
            # Drop build output and scanner reports left by an earlier run.
            runner.run(["git", "clean", "-ffdx"], cwd=workspace, env=env)
        else:
            runner.run(
                ["git", "clone", "--branch", settings.branch, settings.repo_url, str(workspace)],
                env=env,
            )
    else:
        logger.info("No repo_url configured; building working copy at %s", workspace)

    context.short_sha = git_short_sha(runner, workspace, env)
    logger.info("Checked out %s", context.short_sha)


def build(context: BuildContext, runner: CommandRunner, settings: Settings) -> None:
    """Package the application as a wheel."""
    runner.run(
        [sys.executable, "-m", "build", "--wheel", "--outdir", "dist"],
        cwd=context.workspace,
        env=_env(context),
    )


def run_tests(context: BuildContext, runner: CommandRunner, settings: Settings) -> None:
    """Run the unit test suite."""
    runner.run([sys.executable, "-m", "pytest", "-q"], cwd=context.workspace, env=_env(context))


def static_analysis(context: BuildContext, runner: CommandRunner, settings: Settings) -> None:
    """Upload a SonarQube analysis."""
    token = {"SONAR_TOKEN": settings.sonar_token} if settings.sonar_token else None
    runner.run(
        [
            "sonar-scanner",
            f"-Dsonar.projectKey={settings.sonar_project_key}",
            f"-Dsonar.sources={settings.sonar_sources}",
            f"-Dsonar.host.url={settings.sonar_host_url}",
        ],
        cwd=context.workspace,
        env=_env(context, token),
    )


def quality_gate(context: BuildContext, runner: CommandRunner, settings: Settings) -> None:
    """Wait for the SonarQube quality gate and abort unless it passed."""
    if context.dry_run:
        logger.info("[dry-run] skipping quality gate wait")
        return

    report = read_report_task(Path(context.workspace) / REPORT_TASK_FILE)
    try:
        wait_for_quality_gate(
            report.get("serverUrl") or settings.sonar_host_url,
            report["ceTaskId"],
            token=settings.sonar_token,
            timeout=settings.quality_gate_timeout,
            poll_interval=settings.quality_gate_poll_interval,
        )
    except QualityGateError as exc:
        raise StageFailedError("quality_gate", str(exc)) from exc


def filesystem_scan(context: BuildContext, runner: CommandRunner, settings: Settings) -> None:
    """Fail on HIGH/CRITICAL findings in the source tree and dependencies."""
    runner.run(_trivy_args(settings, "fs", "."), cwd=context.workspace, env=_env(context))


def tag(context: BuildContext, runner: CommandRunner, settings: Settings) -> None:
    """Derive ``<git-short-sha>-<build-number>``."""
    build_number = context.build_number or settings.build_number
    try:
        context.image_tag = derive_image_tag(context.short_sha, build_number)
    except ValueError as exc:
        raise StageFailedError("tag", str(exc)) from exc
    context.build_number = str(build_number)
    logger.info("Image tag: %s", context.image_tag)


def image_build(context: BuildContext, runner: CommandRunner, settings: Settings) -> None:
    """Build the runtime image from the repository ``Dockerfile``."""
    _require_tag(context, "image_build")
    runner.run(
        ["docker", "build", "-t", context.local_image(settings.image_name), "."],
        cwd=context.workspace,
        env=_env(context),
    )


def image_scan(context: BuildContext, runner: CommandRunner, settings: Settings) -> None:
    """Fail on HIGH/CRITICAL findings in the built image."""
    _require_tag(context, "image_scan")
    runner.run(
        _trivy_args(settings, "image", context.local_image(settings.image_name)),
        env=_env(context),
    )


def push(context: BuildContext, runner: CommandRunner, settings: Settings) -> None:
    """Publish the image to ECR, creating the repository when absent."""
    _require_tag(context, "push")
    env = _env(context)
    _login_to_registry(context, runner, settings, env, resolve_repository=True)

    runner.run(
        ["docker", "tag", context.local_image(settings.image_name), context.remote_image()],
        env=env,
    )
    runner.run(["docker", "push", context.remote_image()], env=env)


def deploy(context: BuildContext, runner: CommandRunner, settings: Settings) -> None:
    """Replace the running container with the freshly published image."""
    _require_tag(context, "deploy")
    env = _docker_env(context, settings)
    _login_to_registry(context, runner, settings, env, resolve_repository=False)

    image = context.remote_image()
    name = settings.container_name
    # A missing prior container is not an error.
    runner.run(["docker", "stop", name], env=env, check=False)
    runner.run(["docker", "rm", name], env=env, check=False)
    runner.run(["docker", "pull", image], env=env)
    runner.run(
        [
            "docker",
            "run",
            "-d",
            "--name",
            name,
            "--restart",
            settings.restart_policy,
            "-p",
            f"{settings.app_port}:{settings.app_port}",
            image,
        ],
        env=env,
    )
    logger.info("Deployed %s as container %s", image, name)


def default_stages() -> list[Stage]:
    """Return every stage in execution order."""
    return [
        Stage("checkout", checkout),
        Stage("build", build),
        Stage("test", run_tests),
        Stage("static_analysis", static_analysis),
        Stage("quality_gate", quality_gate),
        Stage("filesystem_scan", filesystem_scan),
        Stage("tag", tag),
        Stage("image_build", image_build),
        Stage("image_scan", image_scan),
        Stage("push", push),
        Stage("deploy", deploy),
    ]


STAGE_NAMES = [s.name for s in default_stages()]
