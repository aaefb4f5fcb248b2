"""取消令牌 — 由调用方显式传入每一次网络请求和子进程调用"""

from __future__ import annotations

import threading

from hydrator.core.exceptions import HydrationCancelled


class CancelToken:
    """线程安全的取消标记

    请求方持有令牌，请求中止时调用 cancel()；
    网络读取循环和子进程轮询会检查令牌并尽快退出。
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason = ""

    def cancel(self, reason: str = "") -> None:
        self.reason = reason
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, context: str = "") -> None:
        """已取消则抛 HydrationCancelled"""
        if not self._event.is_set():
            return
        label = f" ({context})" if context else ""
        detail = f": {self.reason}" if self.reason else ""
        raise HydrationCancelled(f"水合已取消{label}{detail}")


def check_cancelled(token: CancelToken | None, context: str = "") -> None:
    """token 可为 None 的便捷检查"""
    if token is not None:
        token.raise_if_cancelled(context)
