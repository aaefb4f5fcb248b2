"""CLI — 资源水合 / 清单 / 清理命令"""

from __future__ import annotations

import click

from hydrator.cli import _svc


def register(group: click.Group) -> None:
    group.add_command(hydrate)
    group.add_command(list_resources)
    group.add_command(clear)
    group.add_command(wipe)


@click.command()
@click.argument("references", nargs=-1, required=True)
@click.option("--quiet", is_flag=True, help="不输出 git 命令日志")
@click.option("--keep", is_flag=True, help="保留匿名临时资源（默认命令结束即清理）")
def hydrate(references: tuple[str, ...], quiet: bool, keep: bool) -> None:
    """水合资源（清单名、npm:<包名>、npmjs.com 包页面或 https 仓库地址）"""
    svc = _svc().resources
    resources = svc.load_many(references, quiet=quiet)
    try:
        for r in resources:
            tag = " [临时]" if r.ephemeral else ""
            click.echo(f"就绪: {r.name} -> {r.get_absolute_directory_path()} ({r.fs_name}){tag}")
            for sub in r.repo_sub_paths:
                click.echo(f"    聚焦: {sub}")
    finally:
        if not keep:
            svc.release(resources)


@click.command(name="resources")
def list_resources() -> None:
    """列出清单中的资源与本地已水合的目录"""
    svc = _svc().resources
    specs = svc.catalog.list_all()
    if not specs:
        click.echo("清单中没有资源。")
    for s in specs:
        if s.kind.value == "git":
            source = f"{s.url}@{s.branch}"
        elif s.kind.value == "registry":
            source = f"{s.package_name}@{s.version or 'latest'}"
        else:
            source = s.path
        click.echo(f"  {s.name:20s} [{s.kind.value:8s}] {source}")

    hydrated = svc.list_hydrated()
    if hydrated:
        click.echo("\n本地已水合:")
        for h in hydrated:
            version = f" {h['version']}" if h["version"] else ""
            tmp = " (临时)" if h["ephemeral"] == "yes" else ""
            click.echo(f"  {h['key']:30s} [{h['kind']:8s}]{version}{tmp}")


@click.command()
@click.option("--yes", is_flag=True, help="跳过确认")
def clear(yes: bool) -> None:
    """删除全部已水合的资源目录"""
    svc = _svc().resources
    if not yes:
        click.confirm(f"将删除 {svc.workspace.resources_dir} 下的全部资源，继续?", abort=True)
    count = svc.clear()
    click.echo(f"已清理 {count} 个资源。")


@click.command()
@click.option("--yes", is_flag=True, help="跳过确认")
@click.option("--target", "targets", multiple=True, help="额外要删除的目录（可多次指定）")
def wipe(yes: bool, targets: tuple[str, ...]) -> None:
    """删除 hydrator 的全部本地状态（资源目录及配置的 wipe_targets）"""
    svc = _svc().resources
    if not yes:
        answer = click.prompt('此操作不可恢复，输入 "WIPE" 确认', default="", show_default=False)
        if answer.strip() != "WIPE":
            click.echo("已取消。")
            return

    report = svc.wipe(targets)
    for path in report.removed:
        click.echo(f"  已删除: {path}")
    for path, reason in report.skipped:
        click.echo(f"  已跳过: {path} ({reason})")
    for path, err in report.failed:
        click.echo(f"  失败: {path} ({err})", err=True)
    if not report.ok:
        raise SystemExit(1)
    click.echo("wipe 完成。")
