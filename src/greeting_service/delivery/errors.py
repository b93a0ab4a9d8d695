"""Exceptions raised by the delivery pipeline."""

from __future__ import annotations


class DeliveryError(Exception):
    """Base class for every delivery failure."""


class ConfigurationError(DeliveryError):
    """A required setting is missing or malformed."""


class CommandFailedError(DeliveryError):
    """An external tool exited with a non-zero status."""

    def __init__(self, args: list[str], returncode: int, stderr: str = "") -> None:
        self.command = list(args)
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(f"{' '.join(self.command)} exited with status {returncode}")


class StageFailedError(DeliveryError):
    """A pipeline stage failed; the run is aborted."""

    def __init__(self, stage: str, reason: str) -> None:
        self.stage = stage
        self.reason = reason
        super().__init__(f"Stage '{stage}' failed: {reason}")


class QualityGateError(DeliveryError):
    """Base class for quality-gate failures."""


class QualityGateFailedError(QualityGateError):
    """The analysis completed but the gate did not pass."""

    def __init__(self, status: str) -> None:
        self.status = status
        super().__init__(f"Quality gate status is {status}")


class QualityGateTimeoutError(QualityGateError):
    """The analysis did not finish within the allowed time."""


class RegistryError(DeliveryError):
    """The container registry API rejected a request or was unreachable."""
