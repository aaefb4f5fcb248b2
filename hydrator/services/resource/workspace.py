"""工作空间管理 — 列出、清理已水合的资源目录

职责：
- 列出 resources_dir（含 .tmp）下的资源目录
- clear: 删除 resources_dir 下的全部资源
- wipe: 删除 resources_dir 及额外配置的本地状态目录（由深到浅）
"""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from hydrator.services.resource.cache import CACHE_META_FILE, CacheManager
from hydrator.services.resource.naming import EPHEMERAL_DIR
from hydrator.services.resource.safety import PathSafety
from hydrator.utils.fs import remove_tree

logger = logging.getLogger(__name__)


@dataclass
class WipeReport:
    """wipe 结果；单个目标失败不会中断其余目标"""

    removed: list[str] = field(default_factory=list)
    skipped: list[tuple[str, str]] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


class WorkspaceManager:
    """资源目录管理器"""

    def __init__(
        self,
        resources_dir: str | Path,
        *,
        safety: PathSafety | None = None,
        cache: CacheManager | None = None,
        wipe_targets: Iterable[str] = (),
    ) -> None:
        self.resources_dir = Path(resources_dir)
        self._safety = safety or PathSafety()
        self._cache = cache or CacheManager()
        self.wipe_targets = [str(t) for t in wipe_targets]

    def list_hydrated(self) -> list[dict[str, str]]:
        """列出本地已水合的资源目录"""
        result: list[dict[str, str]] = []
        for base, ephemeral in (
            (self.resources_dir, False),
            (self.resources_dir / EPHEMERAL_DIR, True),
        ):
            if not base.is_dir():
                continue
            for entry in sorted(base.iterdir()):
                if not entry.is_dir() or entry.name == EPHEMERAL_DIR:
                    continue
                result.append(self._describe(entry, ephemeral))
        return result

    def _describe(self, entry: Path, ephemeral: bool) -> dict[str, str]:
        info = {
            "key": entry.name,
            "path": str(entry),
            "kind": "unknown",
            "version": "",
            "ephemeral": "yes" if ephemeral else "no",
        }
        if (entry / ".git").exists():
            info["kind"] = "git"
        elif (entry / CACHE_META_FILE).exists():
            info["kind"] = "registry"
            meta = self._cache.read_meta(entry)
            if meta is not None:
                info["version"] = meta.resolved_version
        return info

    def clear(self) -> int:
        """删除 resources_dir 下的全部资源，返回删除的条目数"""
        if not self.resources_dir.exists():
            return 0
        self._safety.ensure_safe(self.resources_dir, action="清理")

        count = 0
        for child in sorted(self.resources_dir.iterdir()):
            reason = self._safety.check(child)
            if reason is not None:
                logger.warning("跳过不安全的目标 %s: %s", child, reason)
                continue
            if remove_tree(child):
                count += 1
        logger.info("已清理 %s 下的 %d 个资源", self.resources_dir, count)
        return count

    def wipe(self, extra_targets: Iterable[str | Path] = ()) -> WipeReport:
        """删除全部本地状态目录，由深到浅，跳过不安全目标"""
        report = WipeReport()
        seen: set[Path] = set()
        targets: list[Path] = []
        for raw in (self.resources_dir, *self.wipe_targets, *extra_targets):
            resolved = Path(raw).expanduser().resolve()
            if resolved not in seen:
                seen.add(resolved)
                targets.append(resolved)

        for target in sorted(targets, key=lambda p: len(p.parts), reverse=True):
            if not target.exists() and not target.is_symlink():
                continue
            reason = self._safety.check(target)
            if reason is not None:
                logger.warning("wipe 跳过 %s: %s", target, reason)
                report.skipped.append((str(target), reason))
                continue
            try:
                if target.is_dir() and not target.is_symlink():
                    shutil.rmtree(target)
                else:
                    target.unlink()
            except OSError as e:
                logger.error("wipe 删除失败 %s: %s", target, e)
                report.failed.append((str(target), str(e)))
                continue
            report.removed.append(str(target))

        logger.info(
            "wipe 完成: 删除 %d, 跳过 %d, 失败 %d",
            len(report.removed), len(report.skipped), len(report.failed),
        )
        return report
