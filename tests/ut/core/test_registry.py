"""YamlRegistry 基类单元测试"""

from __future__ import annotations

from pathlib import Path

import pytest

from hydrator.core.registry import YamlRegistry


class ConcreteRegistry(YamlRegistry):
    section_key = "items"


@pytest.fixture()
def reg_file(tmp_path: Path) -> Path:
    path = tmp_path / "reg.yml"
    path.write_text("items:\n  a: {v: 1}\n  b: {v: 2}\n", encoding="utf-8")
    return path


class TestYamlRegistryRead:
    def test_get_raw(self, reg_file: Path) -> None:
        assert ConcreteRegistry(str(reg_file))._get_raw("a") == {"v": 1}

    def test_get_missing_returns_none(self, reg_file: Path) -> None:
        assert ConcreteRegistry(str(reg_file))._get_raw("nonexistent") is None

    def test_section_keys(self, reg_file: Path) -> None:
        assert list(ConcreteRegistry(str(reg_file))._section()) == ["a", "b"]

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        assert ConcreteRegistry(str(tmp_path / "nope.yml"))._section() == {}

    def test_non_dict_section_ignored(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yml"
        path.write_text("items: [1, 2]\n", encoding="utf-8")
        assert ConcreteRegistry(str(path))._section() == {}
