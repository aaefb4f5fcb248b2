"""匿名资源引用解析

提问时可以直接引用未在清单中定义的资源:
  - npm:<包名>[@<版本>]
  - https://www.npmjs.com/package/<包名>[/v/<版本>]
  - 其他 https 地址视为 git 仓库

解析结果都是临时资源（ephemeral），使用哈希目录名。
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import unquote, urlparse

from hydrator.core.models import ResourceKind, ResourceSpec
from hydrator.services.resource.naming import ANONYMOUS_PREFIX, anonymous_directory_key

NPM_PREFIX = "npm:"
DEFAULT_ANONYMOUS_BRANCH = "main"

_NPM_HOSTS = frozenset(("npmjs.com", "www.npmjs.com"))
_KNOWN_GIT_HOSTS = frozenset(("github.com", "gitlab.com", "bitbucket.org"))

_NPM_NAME_RE = re.compile(r"^(?:@[a-z0-9][a-z0-9._-]*/)?[a-z0-9][a-z0-9._-]*$")
_NPM_VERSION_RE = re.compile(r"^[^\s/@]+$")


@dataclass
class NpmReference:
    package_name: str
    version: str = ""

    def normalized(self) -> str:
        suffix = f"@{self.version}" if self.version else ""
        return f"{NPM_PREFIX}{self.package_name}{suffix}"


def _split_name_version(spec: str) -> tuple[str, str]:
    # scope 的 "@" 在开头，版本分隔符从第二个字符开始找
    idx = spec.find("@", 1)
    if idx == -1:
        return spec, ""
    return spec[:idx], spec[idx + 1:]


def _valid(name: str, version: str) -> bool:
    if not _NPM_NAME_RE.match(name):
        return False
    return not version or bool(_NPM_VERSION_RE.match(version))


def parse_npm_reference(reference: str) -> NpmReference | None:
    """解析 npm: 前缀或 npmjs.com 包页面地址，不匹配返回 None"""
    trimmed = reference.strip()

    if trimmed.startswith(NPM_PREFIX):
        spec = trimmed[len(NPM_PREFIX):]
        if not spec or re.search(r"\s", spec):
            return None
        name, version = _split_name_version(spec)
        return NpmReference(name, version) if _valid(name, version) else None

    parsed = urlparse(trimmed)
    if parsed.scheme != "https" or (parsed.hostname or "").lower() not in _NPM_HOSTS:
        return None
    segments = [unquote(s) for s in parsed.path.split("/") if s]
    if len(segments) < 2 or segments[0] != "package":
        return None

    if segments[1].startswith("@"):
        if len(segments) < 3:
            return None
        name, rest = f"{segments[1]}/{segments[2]}", segments[3:]
    else:
        name, rest = segments[1], segments[2:]
    version = rest[1] if len(rest) >= 2 and rest[0] == "v" else ""
    return NpmReference(name, version) if _valid(name, version) else None


def normalize_git_url(reference: str) -> str | None:
    """https 仓库地址规范化；非 https 返回 None

    github / gitlab / bitbucket 只保留 owner/repo 两段，
    去掉 /tree/... 等子路径、结尾的 "/" 和 ".git"。
    """
    parsed = urlparse(reference.strip())
    if parsed.scheme != "https" or not parsed.hostname:
        return None
    if parsed.username or parsed.password:
        return None

    host = parsed.hostname.lower()
    if host.startswith("www."):
        host = host[4:]
    segments = [s for s in parsed.path.split("/") if s]

    if host in _KNOWN_GIT_HOSTS:
        if len(segments) < 2:
            return None
        segments = segments[:2]
    if segments and segments[-1].endswith(".git"):
        segments[-1] = segments[-1][:-4]
    segments = [s for s in segments if s]
    if not segments:
        return None

    try:
        port = parsed.port
    except ValueError:
        return None
    netloc = host if port is None else f"{host}:{port}"
    return f"https://{netloc}/{'/'.join(segments)}"


def create_anonymous_resource(reference: str) -> ResourceSpec | None:
    """匿名引用 → 临时资源定义；无法识别返回 None"""
    npm = parse_npm_reference(reference)
    if npm is not None:
        normalized = npm.normalized()
        return ResourceSpec(
            name=f"{ANONYMOUS_PREFIX}{normalized}",
            kind=ResourceKind.REGISTRY,
            package_name=npm.package_name,
            version=npm.version,
            ephemeral=True,
            local_directory_key=anonymous_directory_key(normalized),
        )

    url = normalize_git_url(reference)
    if url is not None:
        return ResourceSpec(
            name=f"{ANONYMOUS_PREFIX}{url}",
            kind=ResourceKind.GIT,
            url=url,
            branch=DEFAULT_ANONYMOUS_BRANCH,
            ephemeral=True,
            local_directory_key=anonymous_directory_key(url),
        )
    return None
