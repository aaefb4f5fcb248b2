"""路径安全检查 — 删除 / 重建目录前的最后一道闸

拒绝以下目标:
  - 文件系统根目录
  - 用户主目录
  - 当前项目根目录
  - 当前项目根目录的任一上级目录
"""

from __future__ import annotations

import os
from pathlib import Path

from hydrator.core.exceptions import Hints, UnsafePathError

REASON_FS_ROOT = "文件系统根目录"
REASON_HOME = "用户主目录"
REASON_PROJECT_ROOT = "当前项目根目录"
REASON_PROJECT_ANCESTOR = "当前项目根目录的上级目录"


def is_within(parent: str | Path, child: str | Path) -> bool:
    """child 是否等于 parent 或位于 parent 之下"""
    try:
        rel = os.path.relpath(str(child), str(parent))
    except ValueError:
        # Windows 下跨盘符
        return False
    return rel == os.curdir or not (rel == os.pardir or rel.startswith(os.pardir + os.sep))


class PathSafety:
    """判断目录是否允许被删除或覆盖"""

    def __init__(self, project_root: str | Path = "", home: str | Path | None = None) -> None:
        self.project_root = Path(project_root or os.getcwd()).resolve()
        self.home = Path(home).resolve() if home is not None else Path.home().resolve()

    def check(self, target: str | Path) -> str | None:
        """返回拒绝原因，安全时返回 None"""
        resolved = Path(target).resolve()
        if resolved.parent == resolved:
            return REASON_FS_ROOT
        if resolved == self.home:
            return REASON_HOME
        if resolved == self.project_root:
            return REASON_PROJECT_ROOT
        if is_within(resolved, self.project_root):
            return REASON_PROJECT_ANCESTOR
        return None

    def is_safe(self, target: str | Path) -> bool:
        return self.check(target) is None

    def ensure_safe(self, target: str | Path, *, action: str = "删除") -> None:
        """
        Raises:
            UnsafePathError: 目标命中任一拒绝规则
        """
        reason = self.check(target)
        if reason is not None:
            raise UnsafePathError(
                f"拒绝{action} {target}: 目标是{reason}",
                reason,
                hint=Hints.CHECK_CONFIG,
            )
