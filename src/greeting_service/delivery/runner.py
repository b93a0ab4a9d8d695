"""Command runners — the seam between pipeline stages and external tools.

Stages never call :mod:`subprocess` directly; they go through a
:class:`CommandRunner` so that tests can substitute a fake and record the
exact command lines instead of invoking Docker, Trivy or the scanner.
"""

from __future__ import annotations

import logging
import os
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Sequence

from greeting_service.delivery.errors import CommandFailedError

logger = logging.getLogger(__name__)

# Exit status reported by shells when the executable cannot be found.
COMMAND_NOT_FOUND = 127


@dataclass
class CommandResult:
    """Captured outcome of one external command."""

    args: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(ABC):
    """Executes external commands on behalf of pipeline stages."""

    @abstractmethod
    def run(
        self,
        args: Sequence[str],
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        input: str | None = None,
    ) -> CommandResult:
        """Run *args* and return its result.

        Parameters
        ----------
        args:
            Program and arguments, never a shell string.
        cwd:
            Working directory for the command.
        env:
            Variables merged on top of the current process environment.
        check:
            Raise :class:`CommandFailedError` on a non-zero exit status.
        input:
            Text fed to the command's standard input.
        """
        ...


class SubprocessRunner(CommandRunner):
    """Default runner backed by :func:`subprocess.run`."""

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        input: str | None = None,
    ) -> CommandResult:
        args = [str(a) for a in args]
        merged_env = {**os.environ, **env} if env else None
        logger.info("$ %s", " ".join(args))

        try:
            proc = subprocess.run(
                args,
                cwd=cwd,
                env=merged_env,
                input=input,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            logger.error("Executable not found: %s", args[0])
            if check:
                raise CommandFailedError(args, COMMAND_NOT_FOUND, str(exc)) from exc
            return CommandResult(args, COMMAND_NOT_FOUND, "", str(exc))

        for line in proc.stdout.splitlines():
            logger.info("  %s", line)
        for line in proc.stderr.splitlines():
            logger.warning("  %s", line)

        result = CommandResult(args, proc.returncode, proc.stdout, proc.stderr)
        if check and not result.ok:
            raise CommandFailedError(args, proc.returncode, proc.stderr)
        return result


@dataclass
class RecordingRunner(CommandRunner):
    """Runner that records commands instead of executing them.

    Used for ``--dry-run`` and in tests.  ``responses`` maps a program name
    (``args[0]``) or a full space-joined command line to a preset result;
    anything unmatched succeeds with empty output.
    """

    responses: dict[str, CommandResult] = field(default_factory=dict)
    calls: list[list[str]] = field(default_factory=list)
    envs: list[dict[str, str]] = field(default_factory=list)

    def run(
        self,
        args: Sequence[str],
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
        input: str | None = None,
    ) -> CommandResult:
        args = [str(a) for a in args]
        self.calls.append(args)
        self.envs.append(dict(env or {}))
        logger.info("[dry-run] $ %s", " ".join(args))

        preset = self.responses.get(" ".join(args)) or self.responses.get(args[0])
        result = CommandResult(args, 0) if preset is None else CommandResult(
            args, preset.returncode, preset.stdout, preset.stderr
        )
        if check and not result.ok:
            raise CommandFailedError(args, result.returncode, result.stderr)
        return result
