"""资源服务 — 资源描述 → 本地可读目录

按 kind 分派到对应加载器，三类资源统一产出 HydratedResource:
  - git: 浅克隆 / fetch + reset
  - registry: npm 包暂存安装后提升
  - local: 直接引用本地目录

支持:
  - 清单名或匿名引用（npm:、npmjs.com 包页面、https 仓库地址）
  - 请求级作用域：结束时自动清理临时资源
  - clear / wipe 本地状态
"""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

from hydrator.core.exceptions import ValidationError
from hydrator.core.models import HydratedResource, ResourceKind, ResourceSpec
from hydrator.services.resource import (
    CacheManager,
    GitResourceLoader,
    LocalResourceLoader,
    PathSafety,
    RegistryPackageResourceLoader,
    ResourceCatalog,
    WipeReport,
    WorkspaceManager,
)
from hydrator.utils.cancel import check_cancelled
from hydrator.utils.net import HttpTransport, NetworkFetcher
from hydrator.utils.shell import CommandExecutor, get_executor

if TYPE_CHECKING:
    from hydrator.core.config import Config
    from hydrator.utils.cancel import CancelToken

logger = logging.getLogger(__name__)


class ResourceLoader(Protocol):
    """按类型的资源加载器协议"""

    def load(
        self, spec: ResourceSpec, *, cancel_token: CancelToken | None = None,
    ) -> HydratedResource:
        ...


class ResourceService:
    """资源水合门面"""

    def __init__(
        self,
        config: Config | None = None,
        *,
        catalog: ResourceCatalog | None = None,
        executor: CommandExecutor | None = None,
        transport: HttpTransport | None = None,
        safety: PathSafety | None = None,
        cache: CacheManager | None = None,
    ) -> None:
        if config is None:
            from hydrator.core.config import get_config
            config = get_config()
        self.config = config
        resources_dir = Path(config.resources_dir)
        executor = executor or get_executor()

        self.safety = safety or PathSafety(config.project_root)
        self.cache = cache or CacheManager()
        self.catalog = catalog or ResourceCatalog(config.resources_file)
        self.git = GitResourceLoader(
            resources_dir,
            executor=executor,
            safety=self.safety,
            cache=self.cache,
            timeout=config.process_timeout,
        )
        self.registry = RegistryPackageResourceLoader(
            resources_dir,
            fetcher=NetworkFetcher(transport, timeout=config.http_timeout),
            executor=executor,
            safety=self.safety,
            cache=self.cache,
            registry_url=config.registry_url,
            listing_url=config.listing_url,
            package_manager=config.package_manager,
            timeout=config.process_timeout,
        )
        self.local = LocalResourceLoader()
        self.workspace = WorkspaceManager(
            resources_dir,
            safety=self.safety,
            cache=self.cache,
            wipe_targets=config.wipe_targets,
        )
        self._loaders: dict[ResourceKind, ResourceLoader] = {
            ResourceKind.GIT: self.git,
            ResourceKind.REGISTRY: self.registry,
            ResourceKind.LOCAL: self.local,
        }

    # ---- 水合 ----

    def hydrate(
        self, spec: ResourceSpec, *, cancel_token: CancelToken | None = None,
    ) -> HydratedResource:
        """仅按 kind 分派，不关心资源来自清单还是匿名引用"""
        try:
            kind = ResourceKind(spec.kind)
        except ValueError:
            raise ValidationError(f"不支持的资源类型: {spec.kind}") from None
        check_cancelled(cancel_token, spec.name)
        logger.info("水合资源: %s (%s)", spec.name, kind.value)
        return self._loaders[kind].load(spec, cancel_token=cancel_token)

    def resolve(self, reference: str, *, quiet: bool = False) -> ResourceSpec:
        spec = self.catalog.resolve(reference)
        if quiet and not spec.quiet:
            spec = dataclasses.replace(spec, quiet=True)
        return spec

    def load(
        self,
        reference: str,
        *,
        quiet: bool = False,
        cancel_token: CancelToken | None = None,
    ) -> HydratedResource:
        """清单名或匿名引用 → 水合"""
        return self.hydrate(self.resolve(reference, quiet=quiet), cancel_token=cancel_token)

    def load_many(
        self,
        references: Iterable[str],
        *,
        quiet: bool = False,
        cancel_token: CancelToken | None = None,
    ) -> list[HydratedResource]:
        """依次水合；中途失败时清理已水合的临时资源再抛出"""
        hydrated: list[HydratedResource] = []
        try:
            for reference in references:
                hydrated.append(self.load(reference, quiet=quiet, cancel_token=cancel_token))
        except Exception:
            self.release(hydrated)
            raise
        return hydrated

    @contextmanager
    def hydration_scope(
        self,
        references: Iterable[str],
        *,
        quiet: bool = False,
        cancel_token: CancelToken | None = None,
    ) -> Iterator[list[HydratedResource]]:
        """请求级作用域，退出时清理全部临时资源

        用法:
            with svc.hydration_scope(["react", "npm:zod"]) as resources:
                index(resources)
        """
        resources = self.load_many(references, quiet=quiet, cancel_token=cancel_token)
        try:
            yield resources
        finally:
            self.release(resources)

    @staticmethod
    def release(resources: Iterable[HydratedResource]) -> None:
        """调用临时资源的 cleanup（尽力而为）"""
        for resource in resources:
            if resource.cleanup is None:
                continue
            try:
                resource.cleanup()
            except OSError as e:
                logger.warning("清理临时资源失败 %s: %s", resource.name, e)

    # ---- 本地状态 ----

    def list_hydrated(self) -> list[dict[str, str]]:
        return self.workspace.list_hydrated()

    def clear(self) -> int:
        return self.workspace.clear()

    def wipe(self, extra_targets: Iterable[str | Path] = ()) -> WipeReport:
        return self.workspace.wipe(extra_targets)
