"""
Delivery — the build, scan, publish and deploy pipeline for the service.

Each stage shells out to an external tool and propagates its exit status;
the first failure aborts the run.

Public API
----------
- :class:`DeliveryPipeline` — run stages sequentially.
- :func:`default_stages` — the eleven stages in execution order.
- :class:`BuildContext`, :class:`PipelineRun`, :class:`StageResult` — run state.
- :func:`derive_image_tag` — ``<git-short-sha>-<build-number>``.
"""

from greeting_service.delivery.errors import (
    CommandFailedError,
    ConfigurationError,
    DeliveryError,
    QualityGateError,
    QualityGateFailedError,
    QualityGateTimeoutError,
    RegistryError,
    StageFailedError,
)
from greeting_service.delivery.models import BuildContext, PipelineRun, StageResult, StageStatus
from greeting_service.delivery.pipeline import DeliveryPipeline, select_stages
from greeting_service.delivery.stages import STAGE_NAMES, Stage, default_stages
from greeting_service.delivery.tagging import derive_image_tag

__all__ = [
    "STAGE_NAMES",
    "BuildContext",
    "CommandFailedError",
    "ConfigurationError",
    "DeliveryError",
    "DeliveryPipeline",
    "PipelineRun",
    "QualityGateError",
    "QualityGateFailedError",
    "QualityGateTimeoutError",
    "RegistryError",
    "Stage",
    "StageFailedError",
    "StageResult",
    "StageStatus",
    "default_stages",
    "derive_image_tag",
    "select_stages",
]
