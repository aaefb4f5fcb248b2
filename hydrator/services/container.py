"""服务容器 — 统一依赖注入

CLI 通过 get_container() 获取服务，同一容器内的实例共享状态（缓存锁等）。

Config 注入:
  容器接受可选 Config 参数，将配置显式传递给各服务。
  若不提供，则使用全局 get_config() 作为后备。

用法:
    container = ServiceContainer()
    svc = container.resources            # 懒加载

    cfg = Config.from_file("my_config.yml")
    container = ServiceContainer(config=cfg)
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from hydrator.core.config import Config
    from hydrator.services.resource import ResourceCatalog, WorkspaceManager
    from hydrator.services.resource_service import ResourceService

logger = logging.getLogger(__name__)


class ServiceContainer:
    """懒加载服务容器"""

    def __init__(self, config: Config | None = None) -> None:
        self._instances: dict[str, object] = {}
        if config is None:
            from hydrator.core.config import get_config
            config = get_config()
        self._config = config

    @property
    def config(self) -> Config:
        return self._config

    @property
    def resources(self) -> ResourceService:
        if "resources" not in self._instances:
            from hydrator.services.resource_service import ResourceService
            self._instances["resources"] = ResourceService(self._config)
        return self._instances["resources"]  # type: ignore[return-value]

    @property
    def catalog(self) -> ResourceCatalog:
        return self.resources.catalog

    @property
    def workspace(self) -> WorkspaceManager:
        return self.resources.workspace


# ---- 全局单例 ----

_global: ServiceContainer | None = None
_global_lock = threading.Lock()


def get_container() -> ServiceContainer:
    """获取全局 ServiceContainer 单例（线程安全）"""
    global _global  # noqa: PLW0603
    if _global is not None:
        return _global
    with _global_lock:
        if _global is None:
            _global = ServiceContainer()
        return _global


def reset_container() -> None:
    """重置全局容器（仅用于测试）"""
    global _global  # noqa: PLW0603
    with _global_lock:
        _global = None
