"""shell.py LocalExecutor 单元测试"""

from __future__ import annotations

import threading
import time

import pytest

from hydrator.core.exceptions import ExecutionError, HydrationCancelled
from hydrator.utils.cancel import CancelToken
from hydrator.utils.shell import CommandResult, LocalExecutor, get_executor, set_executor


class TestLocalExecutor:
    def test_success(self, tmp_path) -> None:
        r = LocalExecutor().execute("echo hello", cwd=str(tmp_path))
        assert r.returncode == 0
        assert r.success
        assert "hello" in r.stdout

    def test_failure_does_not_raise(self, tmp_path) -> None:
        r = LocalExecutor().execute(["false"], cwd=str(tmp_path))
        assert r.returncode != 0
        assert not r.success

    def test_env_passed(self, tmp_path) -> None:
        import os
        env = {**os.environ, "MY_TEST_VAR": "42"}
        r = LocalExecutor().execute("env", cwd=str(tmp_path), env=env)
        assert "MY_TEST_VAR=42" in r.stdout

    def test_missing_binary_raises(self, tmp_path) -> None:
        with pytest.raises(ExecutionError, match="无法启动命令"):
            LocalExecutor().execute(["definitely-not-a-real-binary-xyz"], cwd=str(tmp_path))

    def test_timeout_kills_process(self, tmp_path) -> None:
        start = time.monotonic()
        with pytest.raises(ExecutionError, match="超时"):
            LocalExecutor().execute(["sleep", "10"], cwd=str(tmp_path), timeout=1)
        assert time.monotonic() - start < 5

    def test_cancel_kills_running_process(self, tmp_path) -> None:
        token = CancelToken()
        timer = threading.Timer(0.3, token.cancel, args=("client gone",))
        timer.start()
        start = time.monotonic()
        try:
            with pytest.raises(HydrationCancelled):
                LocalExecutor().execute(["sleep", "10"], cwd=str(tmp_path), cancel_token=token)
        finally:
            timer.cancel()
        assert time.monotonic() - start < 5

    def test_already_cancelled_never_starts(self, tmp_path) -> None:
        token = CancelToken()
        token.cancel()
        marker = tmp_path / "ran"
        with pytest.raises(HydrationCancelled):
            LocalExecutor().execute(["touch", str(marker)], cwd=str(tmp_path), cancel_token=token)
        assert not marker.exists()


class TestCommandResult:
    def test_combined_output_stderr_first(self) -> None:
        r = CommandResult(returncode=1, stdout="out\n", stderr="err\n")
        assert r.combined_output == "err\nout"

    def test_combined_output_empty(self) -> None:
        assert CommandResult(returncode=1, stdout="  ", stderr="").combined_output == ""


class TestDefaultExecutor:
    def test_set_and_get(self) -> None:
        original = get_executor()
        try:
            sentinel = LocalExecutor()
            set_executor(sentinel)
            assert get_executor() is sentinel
        finally:
            set_executor(original)
