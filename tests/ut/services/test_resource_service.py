"""ResourceService 门面单元测试"""

from __future__ import annotations

from pathlib import Path

import pytest
from fakes import FakeExecutor, FakeTransport, git_cloner, json_response, package_installer

from hydrator.core.config import Config
from hydrator.core.exceptions import HydrationCancelled, ResourceNotFoundError
from hydrator.core.models import ResourceKind, ResourceSpec
from hydrator.services.resource.safety import PathSafety
from hydrator.services.resource_service import ResourceService
from hydrator.utils.cancel import CancelToken
from hydrator.utils.shell import CommandResult

ZOD_META = "https://registry.npmjs.org/zod"


def _dispatching_executor() -> FakeExecutor:
    install = package_installer()

    def handler(args: list[str], cwd: Path) -> CommandResult:
        if args[0] == "git":
            return git_cloner(args, cwd)
        return install(args, cwd)

    return FakeExecutor(handler)


class TestResourceService:
    @pytest.fixture()
    def notes_dir(self, tmp_path: Path) -> Path:
        d = tmp_path / "notes"
        d.mkdir()
        return d

    @pytest.fixture()
    def config(self, tmp_path: Path, notes_dir: Path, safety: PathSafety) -> Config:
        catalog = tmp_path / "resources.yml"
        catalog.write_text(
            "resources:\n"
            "  notes:\n"
            "    kind: local\n"
            f"    path: {notes_dir}\n"
            "  svelte:\n"
            "    kind: git\n"
            "    url: https://github.com/sveltejs/svelte\n",
            encoding="utf-8",
        )
        return Config(
            resources_dir=str(tmp_path / "resources"),
            resources_file=str(catalog),
            project_root=str(safety.project_root),
        )

    @pytest.fixture()
    def transport(self) -> FakeTransport:
        return FakeTransport({
            ZOD_META: json_response({"dist-tags": {"latest": "3.23.8"}, "versions": {"3.23.8": {}}}),
        })

    @pytest.fixture()
    def executor(self) -> FakeExecutor:
        return _dispatching_executor()

    @pytest.fixture()
    def svc(self, config, executor, transport, safety) -> ResourceService:
        return ResourceService(config, executor=executor, transport=transport, safety=safety)

    def test_hydrate_dispatches_on_kind(self, svc, notes_dir) -> None:
        res = svc.hydrate(ResourceSpec(name="n", kind=ResourceKind.LOCAL, path=str(notes_dir)))
        assert res.kind == ResourceKind.LOCAL
        assert res.get_absolute_directory_path() == notes_dir.resolve()

    def test_load_configured_name(self, svc, executor, tmp_path) -> None:
        res = svc.load("svelte")
        assert res.kind == ResourceKind.GIT
        assert res.local_path == tmp_path / "resources" / "svelte"
        assert executor.commands("git")[0][1] == "clone"

    def test_load_anonymous_npm(self, svc, tmp_path) -> None:
        res = svc.load("npm:zod")
        assert res.ephemeral
        assert res.fs_name == "registry:zod@latest"
        assert res.local_path.parent == tmp_path / "resources" / ".tmp"

    def test_repeated_anonymous_loads_are_isolated(self, svc) -> None:
        first = svc.load("npm:zod")
        second = svc.load("npm:zod")
        assert first.local_path != second.local_path

        svc.release([first])
        assert not first.local_path.exists()
        assert second.local_path.exists()

    def test_load_quiet_propagates(self, svc, caplog) -> None:
        import logging
        caplog.set_level(logging.INFO, logger="hydrator.services.resource.git")
        svc.load("svelte", quiet=True)
        assert "[git clone]" not in caplog.text

    def test_unknown_reference(self, svc) -> None:
        with pytest.raises(ResourceNotFoundError):
            svc.load("does-not-exist")

    def test_hydration_scope_cleans_ephemeral(self, svc, notes_dir) -> None:
        with svc.hydration_scope(["notes", "npm:zod"]) as resources:
            paths = [r.local_path for r in resources]
            assert all(p.exists() for p in paths)

        assert notes_dir.exists()
        assert not paths[1].exists()

    def test_hydration_scope_cleans_on_error(self, svc) -> None:
        with pytest.raises(RuntimeError):
            with svc.hydration_scope(["npm:zod"]) as resources:
                path = resources[0].local_path
                raise RuntimeError("indexing failed")
        assert not path.exists()

    def test_load_many_releases_on_failure(self, svc, tmp_path) -> None:
        with pytest.raises(ResourceNotFoundError):
            svc.load_many(["npm:zod", "missing-resource"])
        tmp_root = tmp_path / "resources" / ".tmp"
        assert not tmp_root.exists() or list(tmp_root.iterdir()) == []

    def test_cancelled_before_dispatch(self, svc, executor) -> None:
        token = CancelToken()
        token.cancel()
        with pytest.raises(HydrationCancelled):
            svc.load("svelte", cancel_token=token)
        assert executor.calls == []

    def test_clear_and_list(self, svc) -> None:
        svc.load("svelte")
        assert [h["key"] for h in svc.list_hydrated()] == ["svelte"]
        assert svc.clear() == 1
        assert svc.list_hydrated() == []

    def test_wipe(self, svc, tmp_path) -> None:
        svc.load("svelte")
        report = svc.wipe()
        assert report.ok
        assert not (tmp_path / "resources").exists()
