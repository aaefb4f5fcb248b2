"""Config / 异常体系 / 取消令牌 单元测试"""

from __future__ import annotations

from pathlib import Path

import pytest

import hydrator.core.config as cfgmod
from hydrator.core.config import Config
from hydrator.core.exceptions import (
    ExecutionError,
    HydrationCancelled,
    HydratorError,
    ResourceError,
    VersionResolutionError,
)
from hydrator.utils.cancel import CancelToken, check_cancelled


class TestConfig:
    def test_defaults(self) -> None:
        cfg = Config()
        assert cfg.registry_url == "https://registry.npmjs.org"
        assert cfg.package_manager == "bun"
        assert cfg.wipe_targets == []

    def test_from_file_ignores_unknown_keys(self, tmp_path: Path, caplog: pytest.LogCaptureFixture) -> None:
        path = tmp_path / "cfg.yml"
        path.write_text(
            "resources_dir: /srv/res\npackage_manager: npm\ncustom_key: 1\n",
            encoding="utf-8",
        )
        cfg = Config.from_file(str(path))
        assert cfg.resources_dir == "/srv/res"
        assert cfg.package_manager == "npm"
        assert not hasattr(cfg, "custom_key")
        assert "custom_key" in caplog.text

    def test_from_missing_file_returns_defaults(self, tmp_path: Path) -> None:
        assert Config.from_file(str(tmp_path / "missing.yml")) == Config()

    def test_init_config_sets_global(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(cfgmod, "_current", None)
        path = tmp_path / "cfg.yml"
        path.write_text("http_timeout: 5\n", encoding="utf-8")
        cfgmod.init_config(str(path))
        assert cfgmod.get_config().http_timeout == 5


class TestExceptions:
    def test_describe_with_hint(self) -> None:
        e = ResourceError("失败了", hint="重试")
        assert e.describe() == "失败了\n提示: 重试"

    def test_describe_without_hint(self) -> None:
        assert HydratorError("x").describe() == "x"

    def test_cause_chained(self) -> None:
        inner = ExecutionError("bun add exited 1", 1, "boom")
        outer = ResourceError("安装失败", cause=inner)
        assert outer.__cause__ is inner
        assert outer.cause.returncode == 1

    def test_codes_discriminate(self) -> None:
        assert VersionResolutionError("x", "next").code == "VERSION_UNRESOLVED"
        assert isinstance(HydrationCancelled("x"), ResourceError)


class TestCancelToken:
    def test_not_cancelled_passes(self) -> None:
        CancelToken().raise_if_cancelled("ctx")
        check_cancelled(None, "ctx")

    def test_cancel_raises_with_reason(self) -> None:
        token = CancelToken()
        token.cancel("用户中止")
        assert token.cancelled
        with pytest.raises(HydrationCancelled, match="用户中止"):
            check_cancelled(token, "fetch")
