"""转换任务与并行执行模块"""

import logging
import os
import sys
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import Callable, List, Union

from . import converter
from .config_data import EncodingConfig
from .errors import (
    ConversionError,
    DestinationExistsError,
    EncodeError,
    InputReadError,
    OutputWriteError,
)
from .report import emit, format_size_line
from .sources import FilePath, InputSource, OutputTarget, Stdio, check_destination, resolve_output

logger = logging.getLogger("avifconverter.processor")

Decoder = Callable[[bytes], object]
EncoderFactory = Callable[[EncodingConfig], object]


@dataclass(frozen=True)
class ConversionSuccess:
    """单个文件转换成功"""

    output_target: OutputTarget
    total_bytes: int
    color_bytes: int
    alpha_bytes: int

    @property
    def container_overhead_bytes(self) -> int:
        return self.total_bytes - self.color_bytes - self.alpha_bytes


@dataclass(frozen=True)
class ConversionFailure:
    """单个文件转换失败"""

    source_description: str
    error: BaseException

    @property
    def message(self) -> str:
        return f"{self.source_description}: error: {self.error}"


ConversionOutcome = Union[ConversionSuccess, ConversionFailure]


@dataclass
class TaskResult:
    """批量执行结果"""

    outcomes: List[ConversionOutcome] = field(default_factory=list)

    @property
    def successes(self) -> List[ConversionSuccess]:
        return [o for o in self.outcomes if isinstance(o, ConversionSuccess)]

    @property
    def failures(self) -> List[ConversionFailure]:
        return [o for o in self.outcomes if isinstance(o, ConversionFailure)]


def read_source(source: InputSource) -> bytes:
    """读取输入源的全部字节"""
    if isinstance(source, Stdio):
        try:
            return sys.stdin.buffer.read()
        except OSError as e:
            raise InputReadError(f"Unable to read input image from stdin: {e}", cause=e) from e
    try:
        return source.path.read_bytes()
    except OSError as e:
        raise InputReadError(f"Unable to read input image {source.path}: {e}", cause=e) from e


def write_target(target: OutputTarget, data: bytes, overwrite: bool) -> None:
    """
    写入输出

    不允许覆盖时以独占方式创建文件，即使并发任务都通过了预先检查，
    也只有一个能写入。
    """
    try:
        if isinstance(target, Stdio):
            sys.stdout.buffer.write(data)
            sys.stdout.buffer.flush()
            return
        with open(target.path, "wb" if overwrite else "xb") as f:
            f.write(data)
    except FileExistsError as e:
        raise DestinationExistsError(f"{target} already exists; skipping", cause=e) from e
    except OSError as e:
        raise OutputWriteError(f"Unable to write output image: {e}", cause=e) from e


class ConversionJob:
    """单个输入的转换：确定输出 → 检查 → 读取 → 解码 → 编码 → 写入"""

    def __init__(
        self,
        source: InputSource,
        config: EncodingConfig,
        global_output: OutputTarget | None = None,
        multiple_inputs: bool = False,
        decoder: Decoder = converter.load_rgba,
        encoder_factory: EncoderFactory = converter.AvifEncoder,
    ):
        self.source = source
        self.config = config
        self.global_output = global_output
        self.multiple_inputs = multiple_inputs
        self.decoder = decoder
        self.encoder_factory = encoder_factory

    def resolve_target(self) -> OutputTarget:
        try:
            return resolve_output(self.global_output, self.source, self.multiple_inputs)
        except ValueError as e:
            # 例如 "/" 这类没有文件名的路径
            raise OutputWriteError(f"Unable to derive an output path: {e}", cause=e) from e

    def run(self) -> ConversionOutcome:
        """执行转换，任何错误都转换为 ConversionFailure，不会抛出"""
        try:
            return self._convert()
        except ConversionError as e:
            logger.debug("%s failed: %s", self.source, e)
            return ConversionFailure(str(self.source), e)
        except Exception as e:
            logger.debug("Unexpected error converting %s", self.source, exc_info=True)
            return ConversionFailure(str(self.source), e)

    def _convert(self) -> ConversionSuccess:
        config = self.config
        target = self.resolve_target()

        # 先检查输出，避免无用的解码和编码
        check_destination(target, config.overwrite)

        data = read_source(self.source)
        img = self.decoder(data)
        del data

        try:
            encoded = self.encoder_factory(config).encode_rgba(img)
        except ConversionError:
            raise
        except Exception as e:
            raise EncodeError(f"Unable to encode AVIF: {e}", cause=e) from e

        write_target(target, encoded.avif_file, config.overwrite)

        result = ConversionSuccess(
            output_target=target,
            total_bytes=len(encoded.avif_file),
            color_bytes=encoded.color_byte_size,
            alpha_bytes=encoded.alpha_byte_size,
        )
        # 输出到 stdout 时不打印，避免混入图片数据
        if not config.quiet and isinstance(target, FilePath):
            emit(format_size_line(target, result.total_bytes, result.color_bytes, result.alpha_bytes))
        return result


class TaskProcessor:
    """任务处理器（多线程）"""

    def __init__(
        self,
        config: EncodingConfig,
        global_output: OutputTarget | None = None,
        decoder: Decoder = converter.load_rgba,
        encoder_factory: EncoderFactory = converter.AvifEncoder,
    ):
        """
        初始化任务处理器

        Args:
            config: 编码配置，所有任务共享
            global_output: -o 指定的输出
            decoder: 解码函数
            encoder_factory: 由配置创建编码器
        """
        self.config = config
        self.global_output = global_output
        self.decoder = decoder
        self.encoder_factory = encoder_factory
        self.max_workers = config.thread_budget or os.cpu_count() or 1

    def build_jobs(self, sources: List[InputSource]) -> List[ConversionJob]:
        multiple = len(sources) > 1
        return [
            ConversionJob(
                source,
                self.config,
                global_output=self.global_output,
                multiple_inputs=multiple,
                decoder=self.decoder,
                encoder_factory=self.encoder_factory,
            )
            for source in sources
        ]

    def process(self, sources: List[InputSource]) -> TaskResult:
        """
        并行执行所有转换

        单个任务失败不影响其他任务，全部完成后返回结果。
        """
        result = TaskResult()
        jobs = self.build_jobs(sources)
        logger.debug("Processing %d file(s) with %d worker(s)", len(jobs), self.max_workers)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = [executor.submit(job.run) for job in jobs]
            for future in as_completed(futures):
                result.outcomes.append(future.result())

        return result
