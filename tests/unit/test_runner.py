"""Unit tests for the command runners."""

import sys

import pytest

from greeting_service.delivery.errors import CommandFailedError
from greeting_service.delivery.runner import (
    COMMAND_NOT_FOUND,
    CommandResult,
    RecordingRunner,
    SubprocessRunner,
)


class TestSubprocessRunner:
    def test_captures_stdout(self) -> None:
        result = SubprocessRunner().run([sys.executable, "-c", "print('hi')"])
        assert result.ok
        assert result.stdout.strip() == "hi"

    def test_non_zero_exit_raises(self) -> None:
        with pytest.raises(CommandFailedError) as info:
            SubprocessRunner().run([sys.executable, "-c", "import sys; sys.exit(3)"])
        assert info.value.returncode == 3

    def test_non_zero_exit_tolerated_without_check(self) -> None:
        result = SubprocessRunner().run(
            [sys.executable, "-c", "import sys; sys.exit(3)"], check=False
        )
        assert result.returncode == 3
        assert not result.ok

    def test_missing_executable_reports_127(self) -> None:
        with pytest.raises(CommandFailedError) as info:
            SubprocessRunner().run(["definitely-not-a-real-tool-xyz"])
        assert info.value.returncode == COMMAND_NOT_FOUND

    def test_env_is_merged(self) -> None:
        result = SubprocessRunner().run(
            [sys.executable, "-c", "import os; print(os.environ['GREETING_TEST'])"],
            env={"GREETING_TEST": "merged"},
        )
        assert result.stdout.strip() == "merged"

    def test_input_is_fed_to_stdin(self) -> None:
        result = SubprocessRunner().run(
            [sys.executable, "-c", "import sys; print(sys.stdin.read().upper())"],
            input="secret",
        )
        assert result.stdout.strip() == "SECRET"


class TestRecordingRunner:
    def test_records_calls(self) -> None:
        runner = RecordingRunner()
        runner.run(["docker", "ps"], env={"DOCKER_HOST": "ssh://x"})
        assert runner.calls == [["docker", "ps"]]
        assert runner.envs == [{"DOCKER_HOST": "ssh://x"}]

    def test_full_command_preset_wins_over_program_preset(self) -> None:
        runner = RecordingRunner(
            responses={
                "docker": CommandResult([], 0, stdout="generic"),
                "docker version": CommandResult([], 0, stdout="specific"),
            }
        )
        assert runner.run(["docker", "version"]).stdout == "specific"
        assert runner.run(["docker", "info"]).stdout == "generic"

    def test_failed_preset_raises(self) -> None:
        runner = RecordingRunner(responses={"trivy": CommandResult([], 1)})
        with pytest.raises(CommandFailedError):
            runner.run(["trivy", "fs", "."])
