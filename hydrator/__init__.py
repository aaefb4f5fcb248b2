"""hydrator - 资源水合引擎

将 git 仓库 / npm 包 / 本地目录统一落地为可检索的本地目录树。
"""

__version__ = "0.1.0"
