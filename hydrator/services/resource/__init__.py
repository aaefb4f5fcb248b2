"""资源水合模块

拆分说明：
- safety.py: 删除 / 重建目录前的路径安全检查
- cache.py: 缓存元信息 + 按资源目录加锁
- naming.py: 落盘目录名 / 引用别名
- git.py / registry_package.py / local.py: 按资源类型的加载器
- references.py: 匿名资源引用解析
- catalog.py: 资源清单（只读）
- workspace.py: clear / wipe
"""

from hydrator.services.resource.cache import CacheManager, KeyedLocks
from hydrator.services.resource.catalog import ResourceCatalog
from hydrator.services.resource.git import GitResourceLoader
from hydrator.services.resource.local import LocalResourceLoader
from hydrator.services.resource.registry_package import RegistryPackageResourceLoader
from hydrator.services.resource.safety import PathSafety
from hydrator.services.resource.workspace import WipeReport, WorkspaceManager

__all__ = [
    "CacheManager",
    "KeyedLocks",
    "ResourceCatalog",
    "GitResourceLoader",
    "LocalResourceLoader",
    "RegistryPackageResourceLoader",
    "PathSafety",
    "WipeReport",
    "WorkspaceManager",
]
