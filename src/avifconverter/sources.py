"""输入解析与输出路径模块"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Union

from .errors import ConfigurationError, DestinationExistsError
from .report import warn

logger = logging.getLogger("avifconverter.sources")

STDIO_TOKEN = "-"
AVIF_SUFFIX = ".avif"


@dataclass(frozen=True)
class Stdio:
    """标准输入 / 标准输出"""

    def __str__(self) -> str:
        return "stdin"


@dataclass(frozen=True)
class FilePath:
    """文件路径"""

    path: Path

    def __str__(self) -> str:
        return str(self.path)


InputSource = Union[Stdio, FilePath]
OutputTarget = Union[Stdio, FilePath]


def _looks_like_quality(token: str) -> bool:
    return token.isascii() and token.isdigit() and int(token) <= 255


def resolve_inputs(tokens: Iterable[str], quiet: bool = False) -> list[InputSource]:
    """
    把命令行中的路径列表解析为输入源

    - "-" 表示标准输入
    - 已存在的 .avif 文件会被跳过；不存在的 .avif 保留，但提示可能是想用 -o
    - 其他一律作为文件路径

    Args:
        tokens: 命令行路径参数
        quiet: 是否静默

    Returns:
        有序的输入源列表

    Raises:
        ConfigurationError: 过滤后没有可转换的输入
    """
    sources: list[InputSource] = []
    for token in tokens:
        if token == STDIO_TOKEN:
            sources.append(Stdio())
            continue

        path = Path(token)

        # 用户把 -q 当成了质量参数（例如 "-q 80"），仅提示
        if quiet and _looks_like_quality(token) and not path.exists():
            warn(f"-q is not for quality, so '{token}' is misinterpreted as a file. Use -Q {token}")

        if path.suffix.lower() == AVIF_SUFFIX:
            if path.exists():
                if not quiet:
                    warn(f"ignoring {path}, because it's already an AVIF")
                logger.debug("Dropped AVIF input %s", path)
                continue
            if not quiet:
                warn(f"Did you mean to use -o {path}?")

        sources.append(FilePath(path))

    if not sources:
        raise ConfigurationError("No PNG/JPEG files specified")
    return sources


def parse_output(value: str | None) -> OutputTarget | None:
    """解析 -o 参数，"-" 表示标准输出"""
    if value is None:
        return None
    if value == STDIO_TOKEN:
        return Stdio()
    return FilePath(Path(value))


def prepare_output(global_output: OutputTarget | None, input_count: int) -> None:
    """
    多个输入且指定了输出路径时，预先创建输出目录

    创建失败不在这里报错，之后写文件时会给出真正的错误。
    """
    if input_count > 1 and isinstance(global_output, FilePath):
        try:
            global_output.path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.debug("Could not create output directory %s: %s", global_output.path, e)


def resolve_output(
    global_output: OutputTarget | None,
    source: InputSource,
    multiple_inputs: bool,
) -> OutputTarget:
    """
    计算单个输入对应的输出位置

    Args:
        global_output: -o 指定的输出（可能为 None）
        source: 输入源
        multiple_inputs: 是否有多个输入共用同一个输出位置

    Returns:
        输出目标
    """
    if global_output is None:
        if isinstance(source, FilePath):
            return FilePath(source.path.with_suffix(AVIF_SUFFIX))
        return Stdio()

    if isinstance(global_output, Stdio):
        return Stdio()

    if isinstance(source, Stdio):
        return global_output

    out = global_output.path
    if multiple_inputs or out.is_dir():
        return FilePath(out / Path(source.path.name).with_suffix(AVIF_SUFFIX))
    return global_output


def check_destination(target: OutputTarget, overwrite: bool) -> None:
    """输出文件已存在且不允许覆盖时抛出 DestinationExistsError"""
    if isinstance(target, FilePath) and not overwrite and target.path.exists():
        raise DestinationExistsError(f"{target.path} already exists; skipping")
