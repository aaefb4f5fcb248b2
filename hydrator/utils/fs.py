"""目录操作工具 — 幂等删除 / 暂存目录提升"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Callable
from pathlib import Path

logger = logging.getLogger(__name__)


def directory_exists(path: Path) -> bool:
    try:
        return path.is_dir()
    except OSError:
        return False


def remove_tree(path: Path) -> bool:
    """递归删除目录或文件，不存在时视为成功

    返回:
        是否确实删除了内容
    """
    if not path.exists() and not path.is_symlink():
        return False
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path, ignore_errors=True)
    else:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
    return True


def promote_tree(src: Path, dest: Path) -> None:
    """把 src 下的条目逐个移入 dest

    同一文件系统上为 rename；跨设备时 rename 失败，退化为复制后删除。

    异常:
        OSError: 复制也失败时抛出
    """
    dest.mkdir(parents=True, exist_ok=True)
    for entry in sorted(src.iterdir()):
        target = dest / entry.name
        remove_tree(target)
        try:
            os.replace(entry, target)
            continue
        except OSError as e:
            logger.debug("rename 失败，改为复制: %s -> %s (%s)", entry, target, e)
        if entry.is_dir() and not entry.is_symlink():
            shutil.copytree(entry, target, symlinks=True)
        else:
            shutil.copy2(entry, target, follow_symlinks=False)
        remove_tree(entry)


def make_cleanup(path: Path) -> Callable[[], None]:
    """构造临时资源的清理回调，可重复调用"""

    def cleanup() -> None:
        if remove_tree(path):
            logger.info("已清理临时资源: %s", path)

    return cleanup
