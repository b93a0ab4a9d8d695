"""SonarQube quality gate — wait for the analysis and check its status.

``sonar-scanner`` uploads the analysis report and exits immediately; the
server then processes it as a background ("compute engine") task.  The
scanner writes the task id to ``.scannerwork/report-task.txt``::

    projectKey=greeting-service
    serverUrl=http://sonar:9000
    ceTaskId=AYx...
    ceTaskUrl=http://sonar:9000/api/ce/task?id=AYx...

:func:`wait_for_quality_gate` polls that task until it completes and then
reads the gate status of the resulting analysis.
"""

from __future__ import annotations

import logging
import time
from pathlib import Path

import requests

from greeting_service.delivery.errors import (
    ConfigurationError,
    QualityGateError,
    QualityGateFailedError,
    QualityGateTimeoutError,
)

logger = logging.getLogger(__name__)

REPORT_TASK_FILE = Path(".scannerwork") / "report-task.txt"

_PENDING = {"PENDING", "IN_PROGRESS"}
_ABORTED = {"FAILED", "CANCELED"}


def read_report_task(path: str | Path) -> dict[str, str]:
    """Parse the scanner's ``key=value`` report file."""
    path = Path(path)
    if not path.is_file():
        raise ConfigurationError(f"Scanner report not found: {path}")

    values: dict[str, str] = {}
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, value = line.partition("=")
        values[key.strip()] = value.strip()

    if "ceTaskId" not in values:
        raise ConfigurationError(f"No ceTaskId in {path}")
    return values


def _get_json(session: requests.Session, url: str, params: dict, timeout: float) -> dict:
    try:
        resp = session.get(url, params=params, timeout=timeout)
        resp.raise_for_status()
        return resp.json()
    except requests.RequestException as exc:
        raise QualityGateError(f"SonarQube request to {url} failed: {exc}") from exc


def wait_for_quality_gate(
    host_url: str,
    task_id: str,
    *,
    token: str = "",
    timeout: float = 120.0,
    poll_interval: float = 5.0,
    session: requests.Session | None = None,
) -> str:
    """Block until the analysis task finishes and return the gate status.

    Parameters
    ----------
    host_url:
        SonarQube base URL, e.g. ``http://sonar:9000``.
    task_id:
        Compute-engine task id from the scanner report.
    token:
        User token; sent as the basic-auth user name.
    timeout:
        Maximum seconds to wait for the task to finish.
    poll_interval:
        Seconds between polls.
    session:
        Optional pre-configured ``requests.Session``.

    Returns
    -------
    str
        ``"OK"`` when the gate passed.

    Raises
    ------
    QualityGateTimeoutError
        The task did not complete within *timeout*.
    QualityGateFailedError
        The gate status is anything other than ``OK``.
    QualityGateError
        The server reported the analysis task as failed or cancelled, or
        SonarQube could not be reached.
    """
    session = session or requests.Session()
    if token:
        session.auth = (token, "")
    base = host_url.rstrip("/")
    request_timeout = max(poll_interval, 10.0)

    deadline = time.monotonic() + timeout
    while True:
        task = _get_json(session, f"{base}/api/ce/task", {"id": task_id}, request_timeout)["task"]
        status = task.get("status", "")
        if status == "SUCCESS":
            break
        if status in _ABORTED:
            raise QualityGateError(f"Analysis task {task_id} ended with status {status}")
        if status not in _PENDING:
            raise QualityGateError(f"Unexpected analysis task status {status!r}")

        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise QualityGateTimeoutError(
                f"Analysis task {task_id} still {status} after {timeout:.0f}s"
            )
        logger.info("Analysis task %s is %s, waiting", task_id, status)
        time.sleep(min(poll_interval, remaining))

    analysis_id = task.get("analysisId", "")
    project = _get_json(
        session,
        f"{base}/api/qualitygates/project_status",
        {"analysisId": analysis_id},
        request_timeout,
    )
    gate = project["projectStatus"]["status"]
    logger.info("Quality gate for analysis %s: %s", analysis_id, gate)
    if gate != "OK":
        raise QualityGateFailedError(gate)
    return gate
