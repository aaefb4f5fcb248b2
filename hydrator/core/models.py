"""核心数据模型

资源描述 (ResourceSpec)、注册中心缓存元信息 (CacheMeta)、
水合产物 (HydratedResource) 集中定义，各加载器统一从此处导入。
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class ResourceKind(str, Enum):
    """资源类型"""
    GIT = "git"
    REGISTRY = "registry"
    LOCAL = "local"


# =========================================================================
# 资源描述
# =========================================================================


@dataclass
class ResourceSpec:
    """资源定义 — 支持 git / registry / local 三种来源

    kind:
      - git: Git 仓库，通过 url + branch 浅克隆
      - registry: npm 注册中心上的包，通过 package_name + version 安装
      - local: 本机已存在的目录，直接引用
    """

    name: str
    kind: ResourceKind = ResourceKind.GIT

    # 通用
    special_agent_instructions: str = ""
    ephemeral: bool = False            # 提问时内联发现，不持久化
    local_directory_key: str = ""      # 覆盖落盘目录名

    # Git 来源
    url: str = ""
    branch: str = "main"
    repo_sub_paths: list[str] = field(default_factory=list)
    quiet: bool = False

    # Registry 来源
    package_name: str = ""             # 可带 scope，如 @scope/name
    version: str = ""                  # 版本或 tag，空表示 latest

    # Local 来源
    path: str = ""

    @property
    def pinned(self) -> bool:
        """是否指定了明确版本 / tag"""
        return bool(self.version.strip())


# =========================================================================
# 注册中心缓存元信息
# =========================================================================


@dataclass
class CacheMeta:
    """registry 资源目录旁的缓存记录"""

    package_name: str
    resolved_version: str
    package_url: str
    listing_url: str
    fetched_at: str
    requested_version: str = ""

    def to_dict(self) -> dict[str, str]:
        data = {"packageName": self.package_name}
        if self.requested_version:
            data["requestedVersion"] = self.requested_version
        data.update({
            "resolvedVersion": self.resolved_version,
            "packageUrl": self.package_url,
            "listingUrl": self.listing_url,
            "fetchedAt": self.fetched_at,
        })
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CacheMeta:
        return cls(
            package_name=str(data.get("packageName", "")),
            requested_version=str(data.get("requestedVersion") or ""),
            resolved_version=str(data.get("resolvedVersion", "")),
            package_url=str(data.get("packageUrl", "")),
            listing_url=str(data.get("listingUrl", "")),
            fetched_at=str(data.get("fetchedAt", "")),
        )


# =========================================================================
# 水合产物
# =========================================================================


@dataclass
class HydratedResource:
    """水合后的资源句柄 — 交给索引层的统一输出契约"""

    name: str
    fs_name: str                       # 引用 / 落盘用的安全别名
    kind: ResourceKind
    local_path: Path
    repo_sub_paths: list[str] = field(default_factory=list)
    special_agent_instructions: str = ""
    cleanup: Callable[[], None] | None = field(default=None, repr=False)

    def get_absolute_directory_path(self) -> Path:
        return self.local_path.resolve()

    @property
    def ephemeral(self) -> bool:
        return self.cleanup is not None
