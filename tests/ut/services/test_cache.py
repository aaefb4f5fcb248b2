"""CacheManager / KeyedLocks 单元测试"""

from __future__ import annotations

import threading
from pathlib import Path

import pytest
from fakes import registry_spec

from hydrator.core.models import CacheMeta
from hydrator.services.resource.cache import CacheManager, KeyedLocks


class TestKeyedLocks:
    def test_entry_dropped_after_release(self, tmp_path: Path) -> None:
        locks = KeyedLocks()
        with locks.hold(tmp_path / "a"):
            assert locks.size == 1
        assert locks.size == 0

    def test_entry_dropped_after_error(self, tmp_path: Path) -> None:
        locks = KeyedLocks()
        with pytest.raises(RuntimeError):
            with locks.hold(tmp_path / "a"):
                raise RuntimeError("boom")
        assert locks.size == 0

    def test_many_keys_do_not_accumulate(self, tmp_path: Path) -> None:
        locks = KeyedLocks()
        for i in range(50):
            with locks.hold(tmp_path / f"anonymous-{i}"):
                pass
        assert locks.size == 0

    def test_same_key_is_exclusive(self, tmp_path: Path) -> None:
        locks = KeyedLocks()
        entered = threading.Event()
        release = threading.Event()
        order: list[str] = []

        def first() -> None:
            with locks.hold(tmp_path / "react"):
                order.append("first-in")
                entered.set()
                release.wait(timeout=5)
                order.append("first-out")

        def second() -> None:
            entered.wait(timeout=5)
            with locks.hold(tmp_path / "react"):
                order.append("second-in")

        t1 = threading.Thread(target=first)
        t2 = threading.Thread(target=second)
        t1.start()
        t2.start()
        entered.wait(timeout=5)
        t2.join(timeout=0.1)
        assert t2.is_alive()
        release.set()
        t1.join(timeout=5)
        t2.join(timeout=5)

        assert order == ["first-in", "first-out", "second-in"]
        assert locks.size == 0


class TestCacheReuse:
    def _write(self, target: Path, requested: str = "19.0.0") -> None:
        target.mkdir(parents=True, exist_ok=True)
        CacheManager().write_meta(target, CacheMeta(
            package_name="react", requested_version=requested, resolved_version="19.0.0",
            package_url="u", listing_url="p", fetched_at="2026-01-01T00:00:00+00:00",
        ))

    def test_pinned_match_reuses(self, tmp_path: Path) -> None:
        self._write(tmp_path / "react")
        assert CacheManager().can_reuse_registry(registry_spec(version="19.0.0"), tmp_path / "react")

    def test_unpinned_never_reuses(self, tmp_path: Path) -> None:
        self._write(tmp_path / "react", requested="")
        assert not CacheManager().can_reuse_registry(registry_spec(), tmp_path / "react")

    def test_corrupt_meta_is_ignored(self, tmp_path: Path) -> None:
        target = tmp_path / "react"
        self._write(target)
        CacheManager.meta_path(target).write_text("{broken", encoding="utf-8")
        assert not CacheManager().can_reuse_registry(registry_spec(version="19.0.0"), target)

    def test_explicit_empty_locks_are_kept(self) -> None:
        locks = KeyedLocks()
        assert CacheManager(locks).locks is locks
