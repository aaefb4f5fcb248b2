"""资源清单 — 只读的 YAML 注册表

清单格式:
    resources:
      svelte:
        kind: git
        url: https://github.com/sveltejs/svelte.dev
        branch: main
        repo_sub_paths: [apps/svelte.dev/content/docs]
        special_agent_instructions: 只看文档目录
      react:
        kind: registry
        package: react
        version: "19.0.0"
      notes:
        kind: local
        path: ~/notes
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

from hydrator.core.exceptions import Hints, ResourceNotFoundError, ValidationError
from hydrator.core.models import ResourceKind, ResourceSpec
from hydrator.core.registry import YamlRegistry
from hydrator.services.resource.references import create_anonymous_resource

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^@?[A-Za-z0-9][A-Za-z0-9._/+-]*$")
_SAFE_REF_RE = re.compile(r"^[a-zA-Z0-9_./@\-]+$")
_NPM_PACKAGE_RE = re.compile(r"^(?:@[a-z0-9][a-z0-9._-]*/)?[a-z0-9][a-z0-9._-]*$")


class ResourceCatalog(YamlRegistry):
    """持久资源定义（name → 定义）"""

    section_key = "resources"

    def get(self, name: str) -> ResourceSpec | None:
        """按名字获取资源定义，未定义返回 None

        Raises:
            ValidationError: 定义不合法
        """
        entry = self._get_raw(name)
        if entry is None:
            return None
        if not isinstance(entry, dict):
            raise ValidationError(f"资源定义必须是字典: {name}", hint=Hints.CHECK_CONFIG)
        return self._to_spec(name, entry)

    def names(self) -> list[str]:
        return list(self._section())

    def list_all(self) -> list[ResourceSpec]:
        result: list[ResourceSpec] = []
        for name in self.names():
            spec = self.get(name)
            if spec is not None:
                result.append(spec)
        return result

    def find_name(self, reference: str) -> str | None:
        """忽略大小写查找清单中的资源名，容忍有无 "@" 前缀"""
        names = self.names()
        target = reference.lower()
        candidates = [target]
        if target.startswith("@"):
            candidates.append(target[1:])
        candidates.append(f"@{target}")
        for candidate in candidates:
            for name in names:
                if name.lower() == candidate:
                    return name
        return None

    def resolve(self, reference: str) -> ResourceSpec:
        """清单名 → 匿名引用 → 报错"""
        trimmed = reference.strip()
        token = trimmed[1:] if trimmed.startswith("@") else trimmed
        if token:
            name = self.find_name(token)
            if name is not None:
                spec = self.get(name)
                if spec is not None:
                    return spec
            anonymous = create_anonymous_resource(token)
            if anonymous is not None:
                logger.debug("匿名资源引用: %s -> %s", reference, anonymous.name)
                return anonymous

        raise ResourceNotFoundError(
            f'资源 "{reference}" 未在清单中定义',
            hint=f"{Hints.LIST_RESOURCES} {Hints.ADD_RESOURCE}",
        )

    # ---- 定义校验 ----

    def _to_spec(self, name: str, entry: dict[str, Any]) -> ResourceSpec:
        errors: list[str] = []
        if not _NAME_RE.match(name) or ".." in name:
            errors.append(f"资源名不合法: {name}")

        kind_raw = str(entry.get("kind", "git"))
        try:
            kind = ResourceKind(kind_raw)
        except ValueError:
            errors.append(f"不支持的资源类型: {kind_raw}")
            kind = ResourceKind.GIT

        spec = ResourceSpec(
            name=name,
            kind=kind,
            special_agent_instructions=str(entry.get("special_agent_instructions", "") or ""),
            local_directory_key=str(entry.get("local_directory_key", "") or ""),
            url=str(entry.get("url", "") or ""),
            branch=str(entry.get("branch", "main") or "main"),
            repo_sub_paths=_as_list(entry.get("repo_sub_paths")),
            quiet=bool(entry.get("quiet", False)),
            package_name=str(entry.get("package", "") or ""),
            version=str(entry.get("version", "") or ""),
            path=self._resolve_local_path(str(entry.get("path", "") or "")),
        )

        if kind == ResourceKind.GIT:
            if not spec.url:
                errors.append("git 类型必须指定 url")
            elif not spec.url.startswith(("https://", "http://")):
                errors.append(f"git url 仅支持 http/https: {spec.url}")
            if not _SAFE_REF_RE.match(spec.branch) or spec.branch.startswith("-"):
                errors.append(f"branch 包含非法字符: {spec.branch}")
        elif kind == ResourceKind.REGISTRY:
            if not spec.package_name:
                errors.append("registry 类型必须指定 package")
            elif not _NPM_PACKAGE_RE.match(spec.package_name):
                errors.append(f"npm 包名不合法: {spec.package_name}")
        elif kind == ResourceKind.LOCAL and not spec.path:
            errors.append("local 类型必须指定 path")

        if errors:
            raise ValidationError(
                f"资源定义无效: {name}", errors, hint=Hints.CHECK_CONFIG,
            )
        return spec

    def _resolve_local_path(self, raw: str) -> str:
        """相对路径以清单文件所在目录为基准"""
        if not raw:
            return ""
        path = Path(raw).expanduser()
        if not path.is_absolute():
            path = self.registry_file.parent / path
        return str(path)


def _as_list(value: Any) -> list[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [value]
    return [str(v) for v in value]
