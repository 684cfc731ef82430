"""Unit tests for external command execution (dashpack.runner).

Tests cover:
- CommandResult helpers (success, command_str, tail)
- CommandRunner.run with real child processes (the current interpreter)
- Timeout handling
- CommandRunner.check raising ExternalToolError
- Executable resolution through PATH
"""

from __future__ import annotations

import sys
from pathlib import Path
from unittest.mock import patch

import pytest

from dashpack.errors import ExternalToolError
from dashpack.runner import CommandResult, CommandRunner, _resolve_executable


class TestCommandResult:
    @pytest.mark.unit
    def test_success(self):
        assert CommandResult(command=["npm"], returncode=0).success
        assert not CommandResult(command=["npm"], returncode=2).success

    @pytest.mark.unit
    def test_timed_out_is_not_success(self):
        result = CommandResult(command=["npm"], returncode=0, timed_out=True)
        assert not result.success

    @pytest.mark.unit
    def test_command_str(self):
        assert CommandResult(command=["npm", "run", "make"], returncode=0).command_str == "npm run make"

    @pytest.mark.unit
    def test_tail_prefers_stderr(self):
        result = CommandResult(
            command=["npm"],
            returncode=1,
            stdout="out",
            stderr="\n".join(f"line {i}" for i in range(50)),
        )
        tail = result.tail(3)
        assert tail == "line 47\nline 48\nline 49"

    @pytest.mark.unit
    def test_tail_falls_back_to_stdout(self):
        result = CommandResult(command=["npm"], returncode=1, stdout="only stdout")
        assert result.tail() == "only stdout"


class TestCommandRunnerRun:
    @pytest.mark.unit
    def test_captures_stdout(self):
        result = CommandRunner(echo=False).run([sys.executable, "-c", "print('hello')"])
        assert result.returncode == 0
        assert result.stdout == "hello"
        assert result.success
        assert result.duration_seconds >= 0

    @pytest.mark.unit
    def test_nonzero_exit_and_stderr(self):
        code = "import sys; sys.stderr.write('bad things'); sys.exit(3)"
        result = CommandRunner(echo=False).run([sys.executable, "-c", code])
        assert result.returncode == 3
        assert result.stderr == "bad things"
        assert not result.success

    @pytest.mark.unit
    def test_runs_in_cwd(self, tmp_path: Path):
        code = "import os; print(os.getcwd())"
        result = CommandRunner(echo=False).run([sys.executable, "-c", code], cwd=tmp_path)
        assert Path(result.stdout).resolve() == tmp_path.resolve()

    @pytest.mark.unit
    def test_timeout(self):
        code = "import time; time.sleep(10)"
        result = CommandRunner(echo=False).run([sys.executable, "-c", code], timeout=1)
        assert result.timed_out
        assert result.returncode == -1
        assert "timed out" in result.stderr

    @pytest.mark.unit
    def test_echo_prints_command(self):
        with patch("dashpack.runner.console") as mock_console:
            CommandRunner(echo=True).run([sys.executable, "-c", "pass"])
        printed = mock_console.print.call_args[0][0]
        assert "$ " in printed
        assert "-c pass" in printed


class TestCommandRunnerCheck:
    @pytest.mark.unit
    def test_returns_result_on_success(self):
        result = CommandRunner(echo=False).check([sys.executable, "-c", "print('ok')"])
        assert result.stdout == "ok"

    @pytest.mark.unit
    def test_raises_on_failure(self):
        code = "import sys; sys.stderr.write('npm ERR! missing script: make'); sys.exit(1)"
        with pytest.raises(ExternalToolError) as excinfo:
            CommandRunner(echo=False).check([sys.executable, "-c", code])

        err = excinfo.value
        assert err.returncode == 1
        assert "missing script" in err.stderr
        assert "exit 1" in str(err)
        assert sys.executable in err.command


class TestResolveExecutable:
    @pytest.mark.unit
    def test_replaces_launcher_with_full_path(self):
        with patch("dashpack.runner.shutil.which", return_value=r"C:\node\npx.cmd"):
            assert _resolve_executable(["npx", "create-electron-app", "app"]) == [
                r"C:\node\npx.cmd",
                "create-electron-app",
                "app",
            ]

    @pytest.mark.unit
    def test_unknown_launcher_left_alone(self):
        with patch("dashpack.runner.shutil.which", return_value=None):
            assert _resolve_executable(["npx", "x"]) == ["npx", "x"]

    @pytest.mark.unit
    def test_empty_command_rejected(self):
        with pytest.raises(ValueError):
            _resolve_executable([])
