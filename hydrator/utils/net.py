"""网络工具 — URL 安全校验 + HTTP GET

通过 HttpTransport 协议抽象底层 HTTP 调用（默认 urllib），
测试时注入 fake transport 即可，无需 patch urllib。

NetworkFetcher 在 transport 之上区分两类请求:
  - fetch_json: 正确性必需的元数据，任何失败都抛 ResourceError
  - fetch_text: 仅用于补充上下文的页面，失败时返回占位文本
"""

from __future__ import annotations

import http.client
import json
import logging
import urllib.error
import urllib.request
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol
from urllib.parse import urlparse

from hydrator.core.exceptions import (
    Hints,
    HttpStatusError,
    MetadataParseError,
    NetworkError,
    ResponseReadError,
    ValidationError,
)
from hydrator.utils.cancel import check_cancelled

if TYPE_CHECKING:
    from hydrator.utils.cancel import CancelToken

logger = logging.getLogger(__name__)

_ALLOWED_SCHEMES = frozenset(("http", "https"))
_READ_CHUNK = 64 * 1024


def validate_url_scheme(url: str, *, context: str = "") -> None:
    """校验 URL 仅使用 http/https，防止 file:// 等非预期协议访问

    Raises:
        ValidationError: URL scheme 不在白名单内
    """
    parsed = urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        label = f" ({context})" if context else ""
        raise ValidationError(
            f"不允许的 URL 协议 '{parsed.scheme}'{label}，"
            f"仅支持 http/https: {url}"
        )


# =========================================================================
# HTTP 传输层
# =========================================================================

@dataclass
class HttpResponse:
    """HTTP 响应（body 已完整读取）"""

    status: int
    body: bytes = b""
    url: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300

    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")


class HttpTransport(Protocol):
    """HTTP GET 协议

    约定:
      - 非 2xx 不抛异常，返回带状态码的 HttpResponse
      - 请求未完成时抛 NetworkError
      - 读取 body 失败时抛 ResponseReadError
    """

    def get(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: int = 30,
        cancel_token: CancelToken | None = None,
    ) -> HttpResponse:
        ...


class UrllibTransport:
    """基于 urllib 的默认实现，分块读取以便响应取消"""

    def get(
        self,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        timeout: int = 30,
        cancel_token: CancelToken | None = None,
    ) -> HttpResponse:
        validate_url_scheme(url, context="http get")
        check_cancelled(cancel_token, url)
        req = urllib.request.Request(url, headers=headers or {}, method="GET")
        try:
            resp = urllib.request.urlopen(req, timeout=timeout)  # nosec B310
        except urllib.error.HTTPError as e:
            # 非 2xx 交给上层按状态码处理
            try:
                body = e.read()
            except OSError:
                body = b""
            finally:
                e.close()
            return HttpResponse(status=e.code, body=body, url=url)
        except (urllib.error.URLError, OSError) as e:
            raise NetworkError(f"请求失败: {url} - {e}", cause=e) from e

        with resp:
            try:
                body = self._read(resp, cancel_token, url)
            except (OSError, http.client.HTTPException) as e:
                raise ResponseReadError(f"读取响应失败: {url} - {e}", cause=e) from e
            return HttpResponse(status=resp.status, body=body, url=url)

    @staticmethod
    def _read(resp: Any, cancel_token: CancelToken | None, url: str) -> bytes:
        chunks: list[bytes] = []
        while True:
            check_cancelled(cancel_token, url)
            chunk = resp.read(_READ_CHUNK)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)


# =========================================================================
# 面向注册中心的抓取器
# =========================================================================

class NetworkFetcher:
    """注册中心元数据 / 包页面抓取"""

    def __init__(self, transport: HttpTransport | None = None, timeout: int = 30) -> None:
        self._transport: HttpTransport = transport or UrllibTransport()
        self.timeout = timeout

    def fetch_json(
        self,
        url: str,
        resource_name: str,
        *,
        cancel_token: CancelToken | None = None,
    ) -> Any:
        """获取 JSON 元数据，任何失败都是致命的"""
        try:
            resp = self._transport.get(
                url,
                headers={"Accept": "application/json"},
                timeout=self.timeout,
                cancel_token=cancel_token,
            )
        except NetworkError as e:
            raise NetworkError(
                f'获取 "{resource_name}" 的注册中心元数据失败',
                hint=Hints.CHECK_NETWORK,
                cause=e,
            ) from e

        if not resp.ok:
            hint = "请确认该 npm 包存在。" if resp.status == 404 else Hints.CHECK_NETWORK
            raise HttpStatusError(
                f'获取 "{resource_name}" 的注册中心元数据失败 ({resp.status})',
                resp.status,
                hint=hint,
            )

        try:
            return json.loads(resp.body.decode("utf-8"))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise MetadataParseError(
                f'解析 "{resource_name}" 的注册中心元数据失败',
                hint="请重试；若持续出现，说明注册中心返回了异常数据。",
                cause=e,
            ) from e

    def fetch_text(
        self,
        url: str,
        resource_name: str,
        *,
        cancel_token: CancelToken | None = None,
    ) -> str:
        """获取补充页面，失败时返回占位注释而不是抛异常"""

        def placeholder(reason: str) -> str:
            logger.warning("包页面不可用 %s: %s (%s)", resource_name, url, reason)
            return f'<!-- listing page unavailable for "{resource_name}" ({reason}) -->'

        try:
            resp = self._transport.get(url, timeout=self.timeout, cancel_token=cancel_token)
        except ResponseReadError:
            return placeholder("response read failed")
        except NetworkError:
            return placeholder("request failed")

        if not resp.ok:
            return placeholder(f"status {resp.status}")
        return resp.text()
