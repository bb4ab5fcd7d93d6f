"""输出与结果汇总模块"""

import sys
import threading
from typing import Iterator

from .errors import iter_causes

# 多个线程共享 stdout/stderr，每次只允许写一整行
_print_lock = threading.Lock()


def emit(line: str, *, err: bool = False) -> None:
    """线程安全地输出一行"""
    stream = sys.stderr if err else sys.stdout
    with _print_lock:
        print(line, file=stream, flush=True)


def warn(message: str) -> None:
    emit(f"warning: {message}", err=True)


def format_size_line(path, total: int, color: int, alpha: int) -> str:
    """单个文件成功后的报告行，KB 向上取整"""
    kb = (total + 999) // 1000
    overhead = total - color - alpha
    return f"{path}: {kb}KB ({color}B color, {alpha}B alpha, {overhead}B HEIF)"


def format_error_chain(error: BaseException) -> Iterator[str]:
    """
    展开错误及其各层原因

    第一行是 "error: <错误>"，之后每层原因一行 "  because: <原因>"。
    """
    yield f"error: {error}"
    for cause in iter_causes(error):
        yield f"  because: {cause}"


def print_error_chain(error: BaseException) -> None:
    for line in format_error_chain(error):
        emit(line, err=True)


def report_failures(result, quiet: bool) -> int:
    """
    输出所有失败任务并返回进程退出码

    Args:
        result: TaskResult
        quiet: 是否静默

    Returns:
        有失败时为 1，否则为 0
    """
    failures = result.failures
    if not quiet:
        for failure in failures:
            emit(f"error: {failure.message}", err=True)
    return 1 if failures else 0
