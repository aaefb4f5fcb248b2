"""YAML 注册表基类 — 只读的 load / 字段访问

基于 YAML 文件的清单（如资源清单）共享相同的加载和条目访问逻辑。
子类只需指定 section_key。
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

from hydrator.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)


class YamlRegistry:
    """YAML 文件注册表基类

    子类用法:
        class MyRegistry(YamlRegistry):
            section_key = "items"
    """

    section_key: str = "entries"

    def __init__(self, registry_file: str) -> None:
        self.registry_file = Path(registry_file)
        self._data: dict[str, Any] = load_yaml(self.registry_file)

    def _section(self) -> dict[str, dict[str, Any]]:
        """获取当前 section 字典"""
        section = self._data.get(self.section_key) or {}
        if not isinstance(section, dict):
            logger.warning("%s 中的 %s 不是字典，已忽略", self.registry_file, self.section_key)
            return {}
        return section

    def _get_raw(self, name: str) -> dict[str, Any] | None:
        """获取原始字典"""
        return self._section().get(name)
