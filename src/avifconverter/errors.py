"""错误类型模块"""

from typing import Iterator


class ConversionError(Exception):
    """
    所有转换错误的基类

    cause 保存被包装的内部错误，报告时逐层输出 "because:" 行。
    """

    def __init__(self, message: str, cause: BaseException | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class ConfigurationError(ConversionError):
    """参数或配置错误，在任何任务开始前终止"""


class InputReadError(ConversionError):
    """无法读取输入文件或标准输入"""


class DecodeError(ConversionError):
    """图片数据无法解码"""


class DestinationExistsError(ConversionError):
    """输出文件已存在且未指定覆盖"""


class EncodeError(ConversionError):
    """AVIF 编码失败"""


class OutputWriteError(ConversionError):
    """写入输出失败（磁盘满、无权限、stdout 已关闭等）"""


def iter_causes(error: BaseException) -> Iterator[BaseException]:
    """依次返回 error 包装的各层原因（不含 error 本身）"""
    seen = {id(error)}
    current = _next_cause(error)
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = _next_cause(current)


def _next_cause(error: BaseException) -> BaseException | None:
    cause = getattr(error, "cause", None)
    if cause is not None:
        return cause
    return error.__cause__
