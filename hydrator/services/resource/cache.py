"""缓存判定 + 按资源目录加锁

- registry 资源: 目录旁的缓存元信息决定能否跳过重新安装
- git 资源: 没有元信息，存在 .git 即走 fetch/reset 而非 clone
- KeyedLocks: 同一资源目录上的 "判定缓存 → 暂存 → 提升 → 写元信息" 串行执行
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from hydrator.core.models import CacheMeta, ResourceSpec
from hydrator.utils.fs import directory_exists
from hydrator.utils.yaml_io import atomic_write

logger = logging.getLogger(__name__)

CACHE_META_FILE = ".hydrator-registry-meta.json"


class KeyedLocks:
    """进程内按 key 分配的互斥锁

    条目按引用计数维护，最后一个持有者释放后即移除，长期运行不会累积。
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[str, tuple[threading.Lock, int]] = {}

    def _acquire_entry(self, key: str) -> threading.Lock:
        with self._guard:
            lock, users = self._locks.get(key, (None, 0))
            if lock is None:
                lock = threading.Lock()
            self._locks[key] = (lock, users + 1)
            return lock

    def _release_entry(self, key: str) -> None:
        with self._guard:
            lock, users = self._locks[key]
            if users <= 1:
                del self._locks[key]
            else:
                self._locks[key] = (lock, users - 1)

    @property
    def size(self) -> int:
        """当前仍被持有或等待的 key 数"""
        with self._guard:
            return len(self._locks)

    @contextmanager
    def hold(self, path: Path) -> Iterator[None]:
        """持有某资源目录的锁（以绝对路径为 key）"""
        key = str(path.resolve())
        lock = self._acquire_entry(key)
        try:
            with lock:
                yield
        finally:
            self._release_entry(key)


class CacheManager:
    """缓存元信息读写与复用判定"""

    def __init__(self, locks: KeyedLocks | None = None) -> None:
        self.locks = locks if locks is not None else KeyedLocks()

    @staticmethod
    def meta_path(resource_dir: Path) -> Path:
        return resource_dir / CACHE_META_FILE

    def read_meta(self, resource_dir: Path) -> CacheMeta | None:
        """读取缓存元信息，文件缺失或损坏均返回 None"""
        path = self.meta_path(resource_dir)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as e:
            logger.warning("缓存元信息不可用 %s: %s", path, e)
            return None
        if not isinstance(data, dict):
            return None
        return CacheMeta.from_dict(data)

    def write_meta(self, resource_dir: Path, meta: CacheMeta) -> None:
        """原子写入缓存元信息；它是一次水合完成的标志，必须最后写"""
        content = json.dumps(meta.to_dict(), indent=2, ensure_ascii=False)
        atomic_write(self.meta_path(resource_dir), content + "\n")

    def can_reuse_registry(self, spec: ResourceSpec, resource_dir: Path) -> bool:
        """仅 "指定了版本 且 非临时" 的请求可以复用"""
        if not spec.pinned or spec.ephemeral:
            return False
        if not directory_exists(resource_dir):
            return False
        meta = self.read_meta(resource_dir)
        if meta is None:
            return False
        return (
            meta.package_name == spec.package_name.strip()
            and meta.requested_version == spec.version.strip()
            and bool(meta.resolved_version)
        )

    @staticmethod
    def has_git_checkout(resource_dir: Path) -> bool:
        return directory_exists(resource_dir / ".git")
