"""PathSafety 单元测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from hydrator.core.exceptions import UnsafePathError
from hydrator.services.resource.safety import (
    REASON_FS_ROOT,
    REASON_HOME,
    REASON_PROJECT_ANCESTOR,
    REASON_PROJECT_ROOT,
    PathSafety,
    is_within,
)


class TestIsWithin:
    def test_same_path(self, tmp_path: Path) -> None:
        assert is_within(tmp_path, tmp_path)

    def test_child(self, tmp_path: Path) -> None:
        assert is_within(tmp_path, tmp_path / "a" / "b")

    def test_sibling(self, tmp_path: Path) -> None:
        assert not is_within(tmp_path / "a", tmp_path / "b")

    def test_dotdot_prefixed_name_is_child(self, tmp_path: Path) -> None:
        assert is_within(tmp_path, tmp_path / "..cache")


class TestPathSafety:
    @pytest.fixture()
    def project(self, tmp_path: Path) -> Path:
        p = tmp_path / "work" / "project"
        p.mkdir(parents=True)
        return p

    @pytest.fixture()
    def guard(self, tmp_path: Path, project: Path) -> PathSafety:
        home = tmp_path / "home"
        home.mkdir()
        return PathSafety(project_root=project, home=home)

    def test_rejects_filesystem_root(self, guard: PathSafety) -> None:
        assert guard.check(Path(Path.cwd().anchor)) == REASON_FS_ROOT

    def test_rejects_home(self, guard: PathSafety, tmp_path: Path) -> None:
        assert guard.check(tmp_path / "home") == REASON_HOME

    def test_rejects_project_root(self, guard: PathSafety, project: Path) -> None:
        assert guard.check(project) == REASON_PROJECT_ROOT

    def test_rejects_project_ancestor(self, guard: PathSafety, project: Path) -> None:
        assert guard.check(project.parent) == REASON_PROJECT_ANCESTOR
        assert guard.check(project.parent.parent) == REASON_PROJECT_ANCESTOR

    def test_rejects_unnormalized_path(self, guard: PathSafety, project: Path) -> None:
        assert guard.check(project / "sub" / "..") == REASON_PROJECT_ROOT

    def test_allows_resource_dir_inside_project(self, guard: PathSafety, project: Path) -> None:
        assert guard.check(project / "data" / "resources" / "react") is None

    def test_allows_sibling(self, guard: PathSafety, tmp_path: Path) -> None:
        assert guard.is_safe(tmp_path / "elsewhere")

    def test_ensure_safe_raises(self, guard: PathSafety, project: Path) -> None:
        with pytest.raises(UnsafePathError) as exc:
            guard.ensure_safe(project)
        assert exc.value.reason == REASON_PROJECT_ROOT
