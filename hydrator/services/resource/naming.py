"""资源落盘目录名 / 引用别名

持久资源以清单中的名字作为目录名（经清洗）；
匿名临时资源使用哈希目录名加每次水合的随机后缀，放在 resources_dir/.tmp 下。
"""

from __future__ import annotations

import hashlib
import re
import uuid
from pathlib import Path

from hydrator.core.exceptions import Hints, UnsafePathError
from hydrator.core.models import ResourceSpec

ANONYMOUS_PREFIX = "anonymous:"
ANONYMOUS_DIRECTORY_PREFIX = "anonymous-"
EPHEMERAL_DIR = ".tmp"

_UNSAFE_CHARS_RE = re.compile(r"[^a-zA-Z0-9._@+-]+")
_DASH_RUN_RE = re.compile(r"-+")
_DIRECTORY_KEY_RE = re.compile(r"^[a-zA-Z0-9_@+-][a-zA-Z0-9._@+-]*$")


def sanitize_segment(value: str) -> str:
    """清洗为可读且文件系统安全的片段

    "/" 替换为 "__"，其余非法字符折叠成单个 "-"，不做百分号编码。
    """
    cleaned = value.strip().replace("/", "__")
    cleaned = _UNSAFE_CHARS_RE.sub("-", cleaned)
    cleaned = _DASH_RUN_RE.sub("-", cleaned)
    return cleaned.strip("-")


def resource_name_to_key(name: str) -> str:
    """资源名 → 落盘目录名 / 引用别名"""
    key = sanitize_segment(name).lstrip(".")
    return key or "resource"


def anonymous_directory_key(reference: str) -> str:
    digest = hashlib.sha256(reference.encode("utf-8")).hexdigest()[:12]
    return f"{ANONYMOUS_DIRECTORY_PREFIX}{digest}"


def is_anonymous_name(name: str) -> bool:
    return name.startswith(ANONYMOUS_PREFIX)


def registry_fs_name(spec: ResourceSpec) -> str:
    """registry 资源的引用别名

    匿名临时资源用 registry:<包名>@<版本>，便于引用时阅读；
    其余资源沿用清单名。
    """
    if not (spec.ephemeral and is_anonymous_name(spec.name)):
        return resource_name_to_key(spec.name)
    package = sanitize_segment(spec.package_name)
    version = sanitize_segment(spec.version or "latest")
    return f"registry:{package}@{version}"


def resource_directory(resources_dir: Path, spec: ResourceSpec) -> Path:
    """计算资源的落盘目录

    Raises:
        UnsafePathError: local_directory_key 不是单层安全目录名
    """
    base = resources_dir / EPHEMERAL_DIR if spec.ephemeral else resources_dir
    key = spec.local_directory_key or resource_name_to_key(spec.name)
    if not _DIRECTORY_KEY_RE.match(key):
        raise UnsafePathError(
            f'资源 "{spec.name}" 的目录名不合法: {key}',
            "invalid directory key",
            hint=Hints.CHECK_CONFIG,
        )
    return base / key


def hydration_directory(resources_dir: Path, spec: ResourceSpec) -> Path:
    """本次水合实际写入的目录

    临时资源每次水合独占一个目录（追加随机后缀），并发请求同一匿名引用时
    互不覆盖，各自的 cleanup 也只删除自己的目录。
    """
    target = resource_directory(resources_dir, spec)
    if spec.ephemeral:
        return target.with_name(f"{target.name}-{uuid.uuid4().hex[:8]}")
    return target
