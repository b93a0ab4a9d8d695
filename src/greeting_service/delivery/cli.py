"""Command-line entrypoint for the delivery pipeline.

Examples
--------
    greeting-delivery run                         # every stage
    greeting-delivery run --only build test       # a subset, order preserved
    greeting-delivery run --skip deploy --report run.json
    greeting-delivery run --env PIP_INDEX_URL=https://pypi.internal/simple
    greeting-delivery run --dry-run               # print commands only
    greeting-delivery stages                      # list stage names
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from greeting_service.config import settings
from greeting_service.delivery.models import BuildContext
from greeting_service.delivery.pipeline import DeliveryPipeline, select_stages
from greeting_service.delivery.runner import CommandResult, RecordingRunner, SubprocessRunner
from greeting_service.delivery.stages import STAGE_NAMES, default_stages

logger = logging.getLogger(__name__)

# Revision reported by ``git rev-parse`` when nothing is executed.
DRY_RUN_SHA = "0000000"


def _env_pair(value: str) -> tuple[str, str]:
    key, sep, val = value.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {value!r}")
    return key, val


def _dry_run_runner() -> RecordingRunner:
    return RecordingRunner(
        responses={"git rev-parse --short HEAD": CommandResult([], 0, stdout=f"{DRY_RUN_SHA}\n")}
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="greeting-delivery",
        description="Build, scan, publish and deploy the greeting service.",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    run = sub.add_parser("run", help="Run the pipeline")
    run.add_argument("--workspace", default=settings.workspace, help="Source checkout directory")
    run.add_argument("--build-number", default=settings.build_number, help="CI build counter")
    run.add_argument("--short-sha", default="", help="Revision to use when 'checkout' is skipped")
    run.add_argument("--image-tag", default="", help="Tag to use when 'tag' is skipped")
    run.add_argument("--only", nargs="+", metavar="STAGE", choices=STAGE_NAMES, help="Run only these stages")
    run.add_argument("--skip", nargs="+", metavar="STAGE", choices=STAGE_NAMES, help="Skip these stages")
    run.add_argument(
        "--env",
        action="append",
        type=_env_pair,
        default=[],
        metavar="KEY=VALUE",
        help="Extra environment variable for every tool the stages run (repeatable)",
    )
    run.add_argument("--report", type=Path, help="Write the run record as JSON")
    run.add_argument(
        "--dry-run",
        action="store_true",
        help="Log external commands without executing them and skip SonarQube and ECR API calls",
    )

    sub.add_parser("stages", help="List stage names in execution order")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.command == "stages":
        print("\n".join(STAGE_NAMES))
        return 0

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    stages = select_stages(default_stages(), only=args.only, skip=args.skip)
    runner = _dry_run_runner() if args.dry_run else SubprocessRunner()
    context = BuildContext(
        workspace=Path(args.workspace),
        build_number=args.build_number,
        short_sha=args.short_sha,
        image_tag=args.image_tag,
        env=dict(args.env),
        dry_run=args.dry_run,
    )

    result = DeliveryPipeline(stages, runner, settings).run(context)
    print(result.summary())

    if args.report:
        args.report.parent.mkdir(parents=True, exist_ok=True)
        args.report.write_text(result.model_dump_json(indent=2))
        logger.info("Run record written to %s", args.report)

    return 0 if result.succeeded else 1


if __name__ == "__main__":
    sys.exit(main())
