"""Shell 命令执行工具 — 统一子进程调用

通过 CommandExecutor 协议抽象子进程执行，方便测试替换和跨平台适配。
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Protocol

from hydrator.core.exceptions import ExecutionError, HydrationCancelled

if TYPE_CHECKING:
    from hydrator.utils.cancel import CancelToken

logger = logging.getLogger(__name__)

# 轮询子进程的间隔（秒），决定取消生效的延迟
_POLL_INTERVAL = 0.2


# =========================================================================
# 命令执行结果
# =========================================================================

@dataclass
class CommandResult:
    """命令执行结果（与 subprocess 解耦）"""

    returncode: int
    stdout: str
    stderr: str

    @property
    def success(self) -> bool:
        return self.returncode == 0

    @property
    def combined_output(self) -> str:
        """stderr 在前、stdout 在后的合并输出"""
        parts = [self.stderr.strip(), self.stdout.strip()]
        return "\n".join(p for p in parts if p)


# =========================================================================
# 命令执行器协议
# =========================================================================

class CommandExecutor(Protocol):
    """命令执行器协议 — 抽象子进程调用

    实现此协议即可替换底层执行方式。
    测试时可注入 mock 实现，无需 patch subprocess。
    """

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
        cancel_token: CancelToken | None = None,
    ) -> CommandResult:
        """执行命令并返回结果（非零退出码不抛异常）"""
        ...


# =========================================================================
# 默认实现: 本地执行器
# =========================================================================

class LocalExecutor:
    """本地子进程执行器（默认实现）

    以轮询方式等待子进程，期间检查取消令牌和超时，
    触发时 kill 子进程，避免外部命令在请求中止后继续运行。
    """

    def execute(
        self,
        cmd: str | list[str],
        *,
        cwd: str = ".",
        env: dict[str, str] | None = None,
        timeout: int | None = None,
        cancel_token: CancelToken | None = None,
    ) -> CommandResult:
        args = shlex.split(cmd) if isinstance(cmd, str) else list(cmd)
        if cancel_token is not None:
            cancel_token.raise_if_cancelled(args[0])
        try:
            proc = subprocess.Popen(  # nosec B603
                args,
                stdout=subprocess.PIPE, stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL, text=True,
                cwd=cwd, env=env,
            )
        except OSError as e:
            raise ExecutionError(f"无法启动命令 {args[0]}: {e}") from e

        deadline = time.monotonic() + timeout if timeout else None
        while True:
            try:
                stdout, stderr = proc.communicate(timeout=_POLL_INTERVAL)
                break
            except subprocess.TimeoutExpired:
                if cancel_token is not None and cancel_token.cancelled:
                    self._kill(proc)
                    raise HydrationCancelled(f"命令已取消: {shlex.join(args)}") from None
                if deadline is not None and time.monotonic() > deadline:
                    self._kill(proc)
                    raise ExecutionError(
                        f"命令超时 ({timeout}s): {shlex.join(args)}",
                    ) from None

        return CommandResult(
            returncode=proc.returncode,
            stdout=stdout or "",
            stderr=stderr or "",
        )

    @staticmethod
    def _kill(proc: subprocess.Popen[str]) -> None:
        proc.kill()
        proc.communicate()
        logger.warning("已终止子进程 pid=%s", proc.pid)


# =========================================================================
# 全局默认执行器（可替换）
# =========================================================================

_default_executor: CommandExecutor = LocalExecutor()


def get_executor() -> CommandExecutor:
    """获取全局默认命令执行器"""
    return _default_executor


def set_executor(executor: CommandExecutor) -> None:
    """替换全局默认命令执行器（用于测试或远程执行场景）"""
    global _default_executor  # noqa: PLW0603
    _default_executor = executor
