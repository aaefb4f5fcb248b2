"""集中配置管理

提供统一的配置入口，支持从 YAML 文件加载 + 编程式覆盖。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from hydrator.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)


@dataclass
class Config:
    """引擎全局配置"""

    # 目录
    resources_dir: str = "data/resources"
    resources_file: str = "configs/resources.yml"
    project_root: str = ""         # 当前项目根目录，空则取 cwd

    # 注册中心
    registry_url: str = "https://registry.npmjs.org"
    listing_url: str = "https://www.npmjs.com"
    package_manager: str = "bun"   # bun | npm

    # 超时（秒）
    http_timeout: int = 30
    process_timeout: int = 600

    # wipe 时额外清理的目录（如旧版数据目录）
    wipe_targets: list[str] = field(default_factory=list)

    @classmethod
    def from_file(cls, path: str = "configs/default.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            return cls()
        known = {f.name for f in cls.__dataclass_fields__.values()}
        unknown = sorted(str(k) for k in data if k not in known)
        if unknown:
            logger.warning("忽略未知配置项 %s: %s", path, ", ".join(unknown))
        return cls(**{k: v for k, v in data.items() if k in known})


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "configs/default.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
