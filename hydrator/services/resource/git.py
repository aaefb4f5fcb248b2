"""Git 资源加载器

目录不存在 → 浅克隆指定分支；已是 git 仓库 → 浅 fetch 后 reset --hard。
不写缓存元信息：目录存在且 fetch/reset 成功即视为可用。
"""

from __future__ import annotations

import logging
import os
import re
from pathlib import Path
from typing import TYPE_CHECKING

from hydrator.core.exceptions import ExecutionError, Hints, ValidationError
from hydrator.core.models import HydratedResource, ResourceKind, ResourceSpec
from hydrator.services.resource.cache import CacheManager
from hydrator.services.resource.naming import hydration_directory, resource_name_to_key
from hydrator.services.resource.safety import PathSafety
from hydrator.utils.fs import make_cleanup, remove_tree
from hydrator.utils.net import validate_url_scheme
from hydrator.utils.shell import CommandExecutor, get_executor

if TYPE_CHECKING:
    from hydrator.utils.cancel import CancelToken

logger = logging.getLogger(__name__)

_SAFE_REF_RE = re.compile(r"^[a-zA-Z0-9_./@\-]+$")


class GitResourceLoader:
    """Git 仓库 → 本地只读目录"""

    def __init__(
        self,
        resources_dir: str | Path,
        *,
        executor: CommandExecutor | None = None,
        safety: PathSafety | None = None,
        cache: CacheManager | None = None,
        timeout: int = 600,
    ) -> None:
        self.resources_dir = Path(resources_dir)
        self._executor = executor or get_executor()
        self._safety = safety or PathSafety()
        self._cache = cache or CacheManager()
        self.timeout = timeout

    def load(
        self, spec: ResourceSpec, *, cancel_token: CancelToken | None = None,
    ) -> HydratedResource:
        self._validate(spec)
        target = hydration_directory(self.resources_dir, spec)
        with self._cache.locks.hold(target):
            self._sync(spec, target, cancel_token)

        return HydratedResource(
            name=spec.name,
            fs_name=resource_name_to_key(spec.name),
            kind=ResourceKind.GIT,
            local_path=target,
            repo_sub_paths=[p for p in spec.repo_sub_paths if p.strip()],
            special_agent_instructions=spec.special_agent_instructions,
            cleanup=make_cleanup(target) if spec.ephemeral else None,
        )

    @staticmethod
    def _validate(spec: ResourceSpec) -> None:
        if not spec.url:
            raise ValidationError(f'git 资源 "{spec.name}" 缺少 url')
        validate_url_scheme(spec.url, context=f"git {spec.name}")
        if not _SAFE_REF_RE.match(spec.branch) or spec.branch.startswith("-"):
            raise ValidationError(f"branch 包含非法字符: {spec.branch}", hint=Hints.CHECK_BRANCH)

    def _sync(self, spec: ResourceSpec, target: Path, cancel_token: CancelToken | None) -> None:
        """Clone 或 fetch + reset"""
        target.parent.mkdir(parents=True, exist_ok=True)

        if self._cache.has_git_checkout(target):
            self._run(spec, ["git", "fetch", "--depth", "1", "origin", spec.branch],
                      cwd=target, step="fetch", cancel_token=cancel_token)
            self._run(spec, ["git", "reset", "--hard", "FETCH_HEAD"],
                      cwd=target, step="reset", cancel_token=cancel_token)
            logger.info("Git 已更新: %s@%s -> %s", spec.name, spec.branch, target)
            return

        if target.exists():
            # 残留目录（非 git 仓库）先清掉再克隆
            self._safety.ensure_safe(target)
            remove_tree(target)

        try:
            self._run(
                spec,
                ["git", "clone", "--depth", "1", "--branch", spec.branch, spec.url, str(target)],
                cwd=target.parent, step="clone", cancel_token=cancel_token,
            )
        except Exception:
            remove_tree(target)
            raise
        logger.info("Git 已克隆: %s@%s -> %s", spec.name, spec.branch, target)

    def _run(
        self,
        spec: ResourceSpec,
        cmd: list[str],
        *,
        cwd: Path,
        step: str,
        cancel_token: CancelToken | None,
    ) -> None:
        env = {**os.environ, "GIT_TERMINAL_PROMPT": "0"}
        result = self._executor.execute(
            cmd, cwd=str(cwd), env=env, timeout=self.timeout, cancel_token=cancel_token,
        )
        output = result.combined_output
        if output and not spec.quiet:
            logger.info("[git %s] %s", step, output)

        if not result.success:
            hint = Hints.CHECK_PERMISSIONS if step == "reset" else f"{Hints.CHECK_URL} {Hints.CHECK_BRANCH}"
            raise ExecutionError(
                f'git {step} 失败 "{spec.name}" (exit {result.returncode}): {output[:300]}',
                result.returncode,
                output,
                hint=hint,
            )
