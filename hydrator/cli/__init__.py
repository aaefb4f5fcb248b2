"""hydrator 命令行接口

CLI 按领域拆分为子模块，每个模块注册自己的命令到 main group。
"""

import os
from typing import Any

import click

from hydrator import __version__
from hydrator.core.exceptions import HydratorError
from hydrator.services.container import get_container, reset_container
from hydrator.utils.logger import setup_logging


def _svc() -> Any:
    """获取全局服务容器的快捷方式"""
    return get_container()


class _HydratorGroup(click.Group):
    """把 HydratorError 渲染为 "错误 + 建议"，退出码 1"""

    def invoke(self, ctx: click.Context) -> Any:
        try:
            return super().invoke(ctx)
        except HydratorError as e:
            raise click.ClickException(e.describe()) from e


@click.group(cls=_HydratorGroup)
@click.version_option(version=__version__)
@click.option("--config", "config_path", default=None, help="配置文件路径（YAML）")
def main(config_path: str | None) -> None:
    """hydrator - 把 git 仓库 / npm 包 / 本地目录水合为可检索的本地目录"""
    setup_logging(
        level=os.getenv("HYDRATOR_LOG_LEVEL", "INFO"),
        json_output=os.getenv("HYDRATOR_LOG_JSON", "") == "1",
    )
    if config_path:
        from hydrator.core.config import init_config
        init_config(config_path)
        reset_container()


# 注册各领域子命令
from hydrator.cli.cmd_resources import register as _reg_resources  # noqa: E402

_reg_resources(main)
