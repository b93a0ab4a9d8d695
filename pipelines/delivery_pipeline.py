"""KFP v2 pipeline — build, scan, publish and deploy the greeting service.

Declares the same strictly sequential stage chain the local CLI runs:

    checkout → build → test → static_analysis → quality_gate →
    filesystem_scan → tag → image_build → image_scan → push → deploy

Every step consumes the ``BuildContext`` JSON emitted by the previous one,
so a failing step stops everything after it.  Files are shared through the
``pipeline_workspace_pvc`` claim mounted at ``/workspace``, and images
through the Docker daemon at ``pipeline_docker_host``.  Both must exist in
the pipeline's namespace before the first run.

Compile / submit
----------------
    python -m pipelines.delivery_pipeline --compile
    python -m pipelines.delivery_pipeline --submit --build-number 42
"""

import json
import logging

import kfp
from kfp import compiler, dsl, kubernetes

from greeting_service.config import settings
from greeting_service.delivery.stages import STAGE_NAMES
from pipelines.components.stage import run_delivery_stage

logger = logging.getLogger(__name__)

WORKSPACE_MOUNT = "/workspace"
# The claim may hold other files, so the checkout lives in a subdirectory.
SOURCE_DIR = f"{WORKSPACE_MOUNT}/src"


# ──────────────────────────────────────────────────────────────────────
# Pipeline definition
# ──────────────────────────────────────────────────────────────────────


@dsl.pipeline(
    name="greeting-delivery-pipeline",
    description=(
        "Build, test, analyse, scan, publish to ECR and deploy the "
        "greeting service.  Any failing stage aborts the run."
    ),
)
def delivery_pipeline(build_number: str = "", repo_url: str = "", branch: str = "") -> None:
    """Eleven chained steps, one per delivery stage.

    Parameters
    ----------
    build_number:
        CI build counter used in the image tag.  Empty means
        ``BUILD_NUMBER`` from the pod environment.
    repo_url:
        Repository to clone.  Empty means ``REPO_URL`` from the pod
        environment.
    branch:
        Branch to build.  Empty means ``BRANCH`` from the pod environment.
    """
    context_json = json.dumps({"workspace": SOURCE_DIR})
    for name in STAGE_NAMES:
        task = run_delivery_stage(
            stage=name,
            context_json=context_json,
            build_number=build_number,
            repo_url=repo_url,
            branch=branch,
        )
        task.set_display_name(name)
        task.set_caching_options(False)
        task.set_env_variable("DOCKER_HOST", settings.pipeline_docker_host)
        kubernetes.mount_pvc(
            task,
            pvc_name=settings.pipeline_workspace_pvc,
            mount_path=WORKSPACE_MOUNT,
        )
        context_json = task.outputs["Output"]


def submit_pipeline(
    build_number: str = "",
    repo_url: str = "",
    branch: str = "",
    *,
    host: str | None = None,
    experiment: str | None = None,
) -> str:
    """Start a run on the Kubeflow Pipelines API and return its id."""
    client = kfp.Client(host=host or settings.kfp_host)
    run = client.create_run_from_pipeline_func(
        delivery_pipeline,
        arguments={"build_number": build_number, "repo_url": repo_url, "branch": branch},
        experiment_name=experiment or settings.kfp_experiment,
        enable_caching=False,
    )
    logger.info("Submitted delivery run %s to %s", run.run_id, host or settings.kfp_host)
    return run.run_id


# ──────────────────────────────────────────────────────────────────────
# CLI
# ──────────────────────────────────────────────────────────────────────


if __name__ == "__main__":
    import argparse

    parser = argparse.ArgumentParser(description="Greeting service delivery pipeline")
    parser.add_argument(
        "--compile",
        action="store_true",
        help="Compile pipeline to YAML",
    )
    parser.add_argument(
        "--output",
        default="pipelines/compiled/delivery_pipeline.yaml",
        help="Output path for compiled YAML",
    )
    parser.add_argument(
        "--submit",
        action="store_true",
        help="Start a run on the Kubeflow Pipelines API at KFP_HOST",
    )
    parser.add_argument("--build-number", default=settings.build_number)
    parser.add_argument("--repo-url", default="")
    parser.add_argument("--branch", default="")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO)

    if args.compile:
        compiler.Compiler().compile(delivery_pipeline, args.output)
        print(f"Pipeline compiled → {args.output}")
    if args.submit:
        run_id = submit_pipeline(args.build_number, args.repo_url, args.branch)
        print(f"Run submitted → {run_id}")
