"""CLI 端到端测试：仅使用本地资源，不触网、不调用 git"""

from __future__ import annotations

from pathlib import Path

import pytest
from click.testing import CliRunner

import hydrator.core.config as cfgmod
from hydrator.cli import main
from hydrator.services.container import reset_container
from hydrator.utils.logger import reset_logging


@pytest.fixture(autouse=True)
def _isolate(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setattr(cfgmod, "_current", None)
    monkeypatch.setenv("HYDRATOR_LOG_LEVEL", "WARNING")
    reset_container()
    yield
    reset_container()
    reset_logging()


@pytest.fixture()
def workspace(tmp_path: Path) -> Path:
    (tmp_path / "project").mkdir()
    notes = tmp_path / "notes"
    notes.mkdir()
    (notes / "guide.md").write_text("# guide\n", encoding="utf-8")
    (tmp_path / "resources.yml").write_text(
        "resources:\n"
        "  notes:\n"
        "    kind: local\n"
        "    path: notes\n"
        "  svelte:\n"
        "    kind: git\n"
        "    url: https://github.com/sveltejs/svelte\n",
        encoding="utf-8",
    )
    (tmp_path / "config.yml").write_text(
        f"resources_dir: {tmp_path / 'data' / 'resources'}\n"
        f"resources_file: {tmp_path / 'resources.yml'}\n"
        f"project_root: {tmp_path / 'project'}\n",
        encoding="utf-8",
    )
    return tmp_path


def _invoke(workspace: Path, *args: str, input: str | None = None):
    return CliRunner().invoke(main, ["--config", str(workspace / "config.yml"), *args], input=input)


class TestCli:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_list_resources(self, workspace: Path) -> None:
        result = _invoke(workspace, "resources")
        assert result.exit_code == 0, result.output
        assert "notes" in result.output
        assert "https://github.com/sveltejs/svelte@main" in result.output

    def test_hydrate_local(self, workspace: Path) -> None:
        result = _invoke(workspace, "hydrate", "notes")
        assert result.exit_code == 0, result.output
        assert f"就绪: notes -> {(workspace / 'notes').resolve()}" in result.output

    def test_unknown_reference_fails(self, workspace: Path) -> None:
        result = _invoke(workspace, "hydrate", "nonexistent")
        assert result.exit_code == 1
        assert "nonexistent" in result.output
        assert "提示:" in result.output

    def test_clear_requires_confirmation(self, workspace: Path) -> None:
        stale = workspace / "data" / "resources" / "old"
        stale.mkdir(parents=True)
        result = _invoke(workspace, "clear", input="n\n")
        assert result.exit_code == 1
        assert stale.exists()

    def test_clear_yes(self, workspace: Path) -> None:
        (workspace / "data" / "resources" / "old").mkdir(parents=True)
        result = _invoke(workspace, "clear", "--yes")
        assert result.exit_code == 0, result.output
        assert "已清理 1 个资源。" in result.output

    def test_wipe_cancelled(self, workspace: Path) -> None:
        resources = workspace / "data" / "resources"
        resources.mkdir(parents=True)
        result = _invoke(workspace, "wipe", input="no\n")
        assert result.exit_code == 0
        assert "已取消。" in result.output
        assert resources.exists()

    def test_wipe_confirmed(self, workspace: Path) -> None:
        resources = workspace / "data" / "resources"
        resources.mkdir(parents=True)
        legacy = workspace / "legacy"
        legacy.mkdir()
        result = _invoke(workspace, "wipe", "--target", str(legacy), input="WIPE\n")
        assert result.exit_code == 0, result.output
        assert "wipe 完成。" in result.output
        assert not resources.exists()
        assert not legacy.exists()

    def test_wipe_skips_project_root(self, workspace: Path) -> None:
        result = _invoke(workspace, "wipe", "--yes", "--target", str(workspace / "project"))
        assert result.exit_code == 0, result.output
        assert "已跳过:" in result.output
        assert (workspace / "project").exists()
