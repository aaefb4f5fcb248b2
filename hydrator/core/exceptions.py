"""统一异常体系

所有业务异常继承 HydratorError，携带 message / hint / cause 三要素，
以 code 区分种类。CLI 层据此输出 "错误 + 处理建议"。

资源水合相关的失败统一为 ResourceError 及其子类：
  - NetworkError / ResponseReadError: 网络传输失败
  - HttpStatusError: 非 2xx 响应
  - MetadataParseError: 元数据解析失败
  - VersionResolutionError: 版本 / tag 无法解析
  - ExecutionError: 外部进程非零退出
  - InstallVerificationError: 安装后校验失败
"""

from __future__ import annotations


class Hints:
    """常用处理建议"""

    CLEAR_CACHE = '运行 "hydrator clear" 清理已缓存的资源后重试。'
    CHECK_NETWORK = "请检查网络连接后重试。"
    CHECK_URL = "请确认 URL 正确且仓库存在。"
    CHECK_BRANCH = '请确认分支存在，常见分支名有 "main"、"master"、"trunk"、"dev"。'
    CHECK_CONFIG = "请检查 hydrator 配置文件。"
    CHECK_PERMISSIONS = "请确认资源目录可写。"
    LIST_RESOURCES = '运行 "hydrator resources" 查看可用资源。'
    ADD_RESOURCE = "在资源清单文件中添加该资源，或直接使用 npm:<包名> / https 仓库地址。"


class HydratorError(Exception):
    """框架基础异常"""

    code: str = "UNKNOWN"

    def __init__(
        self,
        message: str,
        *,
        hint: str = "",
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def describe(self) -> str:
        """返回 "消息 + 建议" 的可读文本"""
        if self.hint:
            return f"{self.message}\n提示: {self.hint}"
        return self.message


class ConfigError(HydratorError):
    """配置文件缺失或内容无效"""

    code = "CONFIG_ERROR"


class ValidationError(HydratorError):
    """输入数据校验失败"""

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        details: list[str] | None = None,
        *,
        hint: str = "",
    ) -> None:
        super().__init__(message, hint=hint)
        self.details = details or []


class ResourceError(HydratorError):
    """资源水合失败"""

    code = "RESOURCE_ERROR"


class NetworkError(ResourceError):
    """网络请求未能完成（DNS、连接、超时等）"""

    code = "NETWORK_ERROR"


class ResponseReadError(NetworkError):
    """响应已返回但读取 body 失败"""

    code = "RESPONSE_READ_ERROR"


class HttpStatusError(ResourceError):
    """HTTP 响应状态码非 2xx"""

    code = "HTTP_STATUS"

    def __init__(self, message: str, status: int, *, hint: str = "") -> None:
        super().__init__(message, hint=hint)
        self.status = status


class MetadataParseError(ResourceError):
    """注册中心返回的元数据无法解析"""

    code = "METADATA_PARSE_ERROR"


class VersionResolutionError(ResourceError):
    """请求的版本或 tag 无法解析到已发布版本"""

    code = "VERSION_UNRESOLVED"

    def __init__(self, message: str, requested: str = "", *, hint: str = "") -> None:
        super().__init__(message, hint=hint)
        self.requested = requested


class ExecutionError(ResourceError):
    """外部命令执行失败"""

    code = "PROCESS_ERROR"

    def __init__(
        self,
        message: str,
        returncode: int | None = None,
        output: str = "",
        *,
        hint: str = "",
    ) -> None:
        super().__init__(message, hint=hint)
        self.returncode = returncode
        self.output = output


class InstallVerificationError(ResourceError):
    """包管理器报告成功但安装目录缺失"""

    code = "INSTALL_VERIFICATION_ERROR"


class UnsafePathError(ResourceError):
    """目标路径不允许写入或删除"""

    code = "UNSAFE_PATH"

    def __init__(self, message: str, reason: str = "", *, hint: str = "") -> None:
        super().__init__(message, hint=hint)
        self.reason = reason


class ResourceNotFoundError(ResourceError):
    """资源未在清单中定义，也不是可识别的匿名引用"""

    code = "RESOURCE_NOT_FOUND"


class HydrationCancelled(ResourceError):
    """调用方取消了水合"""

    code = "CANCELLED"
