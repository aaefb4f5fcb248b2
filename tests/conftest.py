"""测试公共夹具"""

from __future__ import annotations

from pathlib import Path

import pytest
from fakes import FakeExecutor, FakeTransport

from hydrator.services.resource.safety import PathSafety


@pytest.fixture()
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture()
def fake_transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture()
def safety(tmp_path: Path) -> PathSafety:
    """项目根与主目录都指向 tmp_path 下的独立目录"""
    project = tmp_path / "project"
    home = tmp_path / "home"
    project.mkdir()
    home.mkdir()
    return PathSafety(project_root=project, home=home)


@pytest.fixture()
def resources_dir(tmp_path: Path) -> Path:
    return tmp_path / "resources"
