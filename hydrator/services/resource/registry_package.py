"""注册中心包资源加载器（npm）

流程:
  1. 拉取 packument，解析请求的版本 / tag
  2. 指定版本且非临时资源时，命中缓存元信息则直接复用
  3. 在资源目录下的暂存目录里用包管理器安装（精确版本、不跑生命周期脚本），
     校验安装目录存在后提升到资源目录，最后删除暂存目录
  4. 写入概览文档、包页面（或占位）和缓存元信息；元信息最后写入

包页面只是补充上下文，获取失败不影响水合；
其余步骤任何失败都会中止本次水合。
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

from hydrator.core.exceptions import (
    ConfigError,
    ExecutionError,
    Hints,
    InstallVerificationError,
    MetadataParseError,
    ResourceError,
    ValidationError,
    VersionResolutionError,
)
from hydrator.core.models import CacheMeta, HydratedResource, ResourceKind, ResourceSpec
from hydrator.services.resource.cache import CacheManager
from hydrator.services.resource.naming import hydration_directory, registry_fs_name
from hydrator.services.resource.safety import PathSafety
from hydrator.utils.fs import directory_exists, make_cleanup, promote_tree, remove_tree
from hydrator.utils.net import NetworkFetcher
from hydrator.utils.shell import CommandExecutor, get_executor

if TYPE_CHECKING:
    from hydrator.utils.cancel import CancelToken

logger = logging.getLogger(__name__)

INSTALL_STAGING_DIR = ".hydrator-install"
OVERVIEW_FILE = "registry-package.md"
LISTING_PAGE_FILE = "registry-package-page.html"
INSTALL_MANIFEST_NAME = "hydrator-registry-resource-install"
MAX_LISTED_DEPENDENCIES = 100

_INSTALL_COMMANDS: dict[str, list[str]] = {
    "bun": ["bun", "add", "--exact", "--ignore-scripts"],
    "npm": ["npm", "install", "--save-exact", "--ignore-scripts", "--no-audit", "--no-fund"],
}


# =========================================================================
# 纯函数
# =========================================================================

def resolve_version(packument: dict[str, Any], requested: str = "") -> str | None:
    """解析请求的版本

    未指定 → dist-tags.latest；指定 → 先精确匹配已发布版本，再匹配 tag。
    解析结果必须存在于 versions 中，否则返回 None。
    """
    versions = packument.get("versions") or {}
    tags = packument.get("dist-tags") or {}
    if not isinstance(versions, dict) or not isinstance(tags, dict):
        return None

    wanted = (requested or "").strip()
    if not wanted:
        latest = tags.get("latest")
        return latest if latest and versions.get(latest) is not None else None

    if versions.get(wanted) is not None:
        return wanted
    tagged = tags.get(wanted)
    if tagged and versions.get(tagged) is not None:
        return tagged
    return None


def encode_package_path(package_name: str) -> str:
    """按段编码包名，保留 scope 分隔的 "/" """
    return "/".join(quote(seg, safe="") for seg in package_name.split("/"))


def install_command(package_manager: str, package_spec: str) -> list[str]:
    base = _INSTALL_COMMANDS.get(package_manager)
    if base is None:
        raise ConfigError(
            f"不支持的包管理器: {package_manager}（可选: {', '.join(sorted(_INSTALL_COMMANDS))}）",
            hint=Hints.CHECK_CONFIG,
        )
    return [*base, package_spec]


def _format_repository(repository: Any) -> str:
    if not repository:
        return ""
    if isinstance(repository, str):
        return repository
    if isinstance(repository, dict):
        return str(repository.get("url") or "")
    return ""


def _format_dependencies(deps: Any) -> str:
    if not isinstance(deps, dict):
        return ""
    items = list(deps.items())[:MAX_LISTED_DEPENDENCIES]
    return "\n".join(f"- {name}: {version or 'unknown'}" for name, version in items)


def format_overview(
    *,
    package_name: str,
    resolved_version: str,
    requested_version: str,
    package_url: str,
    listing_url: str,
    version_data: dict[str, Any],
) -> str:
    """生成包概览文档（Markdown，段落顺序固定）"""
    repository = _format_repository(version_data.get("repository"))
    keywords = version_data.get("keywords") or []
    if not isinstance(keywords, list):
        keywords = []

    lines = [
        f"# npm package: {package_name}",
        "",
        f"- Package URL: {package_url}",
        f"- npm page: {listing_url}",
        f"- Version: {resolved_version}",
        f"- Requested version/tag: {requested_version or 'latest'}",
        f"- Description: {version_data['description']}" if version_data.get("description") else "",
        f"- Homepage: {version_data['homepage']}" if version_data.get("homepage") else "",
        f"- Repository: {repository}" if repository else "",
        f"- License: {version_data['license']}" if version_data.get("license") else "",
        f"- Keywords: {', '.join(str(k) for k in keywords)}" if keywords else "",
        "",
        "## Dependencies",
        _format_dependencies(version_data.get("dependencies")) or "No dependencies listed.",
        "",
        "## Peer Dependencies",
        _format_dependencies(version_data.get("peerDependencies")) or "No peer dependencies listed.",
    ]
    return "\n".join(line for line in lines if line)


# =========================================================================
# 加载器
# =========================================================================

class RegistryPackageResourceLoader:
    """npm 包 → 本地只读目录"""

    def __init__(
        self,
        resources_dir: str | Path,
        *,
        fetcher: NetworkFetcher | None = None,
        executor: CommandExecutor | None = None,
        safety: PathSafety | None = None,
        cache: CacheManager | None = None,
        registry_url: str = "https://registry.npmjs.org",
        listing_url: str = "https://www.npmjs.com",
        package_manager: str = "bun",
        timeout: int = 600,
    ) -> None:
        self.resources_dir = Path(resources_dir)
        self._fetcher = fetcher or NetworkFetcher()
        self._executor = executor or get_executor()
        self._safety = safety or PathSafety()
        self._cache = cache or CacheManager()
        self.registry_url = registry_url.rstrip("/")
        self.listing_url = listing_url.rstrip("/")
        self.package_manager = package_manager
        self.timeout = timeout

    def metadata_url(self, package_name: str) -> str:
        return f"{self.registry_url}/{quote(package_name, safe='')}"

    def package_url(self, package_name: str) -> str:
        return f"{self.listing_url}/package/{encode_package_path(package_name)}"

    def load(
        self, spec: ResourceSpec, *, cancel_token: CancelToken | None = None,
    ) -> HydratedResource:
        if not spec.package_name.strip():
            raise ValidationError(f'registry 资源 "{spec.name}" 缺少 package_name')

        target = hydration_directory(self.resources_dir, spec)
        with self._cache.locks.hold(target):
            if self._cache.can_reuse_registry(spec, target):
                logger.info("复用已缓存的包: %s@%s -> %s", spec.package_name, spec.version, target)
            else:
                self._prepare_directory(spec, target)
                try:
                    self._hydrate(spec, target, cancel_token)
                except Exception:
                    if spec.ephemeral:
                        remove_tree(target)
                    raise

        return HydratedResource(
            name=spec.name,
            fs_name=registry_fs_name(spec),
            kind=ResourceKind.REGISTRY,
            local_path=target,
            repo_sub_paths=[],
            special_agent_instructions=spec.special_agent_instructions,
            cleanup=make_cleanup(target) if spec.ephemeral else None,
        )

    # ---- 步骤 ----

    def _prepare_directory(self, spec: ResourceSpec, target: Path) -> None:
        """清空旧内容并重建资源目录"""
        if target.exists():
            self._safety.ensure_safe(target)
            remove_tree(target)
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ResourceError(
                f'创建资源目录失败 "{spec.name}": {target}',
                hint=Hints.CHECK_PERMISSIONS,
                cause=e,
            ) from e

    def _hydrate(self, spec: ResourceSpec, target: Path, cancel_token: CancelToken | None) -> None:
        package = spec.package_name.strip()
        requested = spec.version.strip()

        packument = self._fetcher.fetch_json(
            self.metadata_url(package), spec.name, cancel_token=cancel_token,
        )
        if not isinstance(packument, dict):
            raise MetadataParseError(
                f'"{spec.name}" 的注册中心元数据格式异常',
                hint="请重试；若持续出现，说明注册中心返回了异常数据。",
            )

        resolved = resolve_version(packument, requested)
        if resolved is None:
            if requested:
                hint = f'未找到版本或 tag "{requested}"，请使用有效的版本号或 "latest" 之类的 tag。'
            else:
                hint = "该包没有可解析的 latest 版本。"
            raise VersionResolutionError(
                f'无法解析 npm 包 "{package}" 的版本 "{requested or "latest"}"',
                requested,
                hint=hint,
            )

        version_data = packument["versions"][resolved]
        if not isinstance(version_data, dict):
            raise MetadataParseError(
                f'npm 包 "{package}@{resolved}" 的版本元数据缺失',
                hint="请换一个版本或重试。",
            )

        package_url = self.package_url(package)
        listing_url = f"{package_url}/v/{quote(resolved, safe='')}"
        page = self._fetcher.fetch_text(listing_url, spec.name, cancel_token=cancel_token)

        self._install(package, resolved, target, cancel_token)

        overview = format_overview(
            package_name=package,
            resolved_version=resolved,
            requested_version=requested,
            package_url=package_url,
            listing_url=listing_url,
            version_data=version_data,
        )
        meta = CacheMeta(
            package_name=package,
            requested_version=requested,
            resolved_version=resolved,
            package_url=package_url,
            listing_url=listing_url,
            fetched_at=datetime.now(timezone.utc).isoformat(),
        )
        try:
            (target / OVERVIEW_FILE).write_text(overview, encoding="utf-8")
            (target / LISTING_PAGE_FILE).write_text(page, encoding="utf-8")
            self._cache.write_meta(target, meta)
        except OSError as e:
            raise ResourceError(
                f'写入包元数据失败 "{spec.name}"',
                hint=Hints.CHECK_PERMISSIONS,
                cause=e,
            ) from e
        logger.info("npm 包就绪: %s@%s -> %s", package, resolved, target)

    def _install(
        self,
        package: str,
        resolved: str,
        target: Path,
        cancel_token: CancelToken | None,
    ) -> None:
        """在暂存目录安装，校验后提升到资源目录；暂存目录无论成败都删除"""
        staging = target / INSTALL_STAGING_DIR
        installed = staging.joinpath("node_modules", *package.split("/"))
        package_spec = f"{package}@{resolved}"
        cmd = install_command(self.package_manager, package_spec)

        manifest = {"name": INSTALL_MANIFEST_NAME, "private": True, "dependencies": {package: resolved}}
        try:
            staging.mkdir(parents=True, exist_ok=True)
            (staging / "package.json").write_text(json.dumps(manifest, indent=2), encoding="utf-8")
        except OSError as e:
            raise ResourceError(
                f'准备安装目录失败 "{package}"',
                hint=Hints.CHECK_PERMISSIONS,
                cause=e,
            ) from e

        try:
            result = self._executor.execute(
                cmd, cwd=str(staging), timeout=self.timeout, cancel_token=cancel_token,
            )
            if not result.success:
                output = result.combined_output
                if output:
                    detail = f"{cmd[0]} exited {result.returncode}: {output}"
                else:
                    detail = f"{cmd[0]} exited {result.returncode} with no output"
                raise ResourceError(
                    f'安装 npm 包失败 "{package_spec}"',
                    hint=f"请确认包和版本存在、网络可以访问注册中心。{Hints.CLEAR_CACHE}",
                    cause=ExecutionError(detail, result.returncode, output),
                )

            if not directory_exists(installed):
                raise InstallVerificationError(
                    f'安装后的包目录缺失 "{package_spec}"',
                    hint="请重试；若反复出现，该包可能没有发布源文件。",
                )

            try:
                promote_tree(installed, target)
            except OSError as e:
                raise ResourceError(
                    f'提升安装文件失败 "{package}"',
                    hint="请检查文件系统权限和可用磁盘空间。",
                    cause=e,
                ) from e
        finally:
            remove_tree(staging)
