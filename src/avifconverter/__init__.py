"""
AVIF 批量转换器 - JPEG/PNG 转 AVIF

示例用法:
    from avifconverter import EncodingConfig, TaskProcessor, resolve_inputs

    config = EncodingConfig.create(quality=70, speed=6)
    sources = resolve_inputs(["a.jpg", "b.png"])
    result = TaskProcessor(config).process(sources)
    for failure in result.failures:
        print(failure.message)
"""

__version__ = "1.0.0"

from .config_data import EncodingConfig, alpha_quality_for
from .converter import AvifEncoder, EncodedImage, load_rgba
from .errors import (
    ConfigurationError,
    ConversionError,
    DecodeError,
    DestinationExistsError,
    EncodeError,
    InputReadError,
    OutputWriteError,
)
from .processor import ConversionFailure, ConversionJob, ConversionSuccess, TaskProcessor, TaskResult
from .sources import FilePath, Stdio, parse_output, resolve_inputs, resolve_output

__all__ = [
    "__version__",
    "AvifEncoder",
    "ConfigurationError",
    "ConversionError",
    "ConversionFailure",
    "ConversionJob",
    "ConversionSuccess",
    "DecodeError",
    "DestinationExistsError",
    "EncodeError",
    "EncodedImage",
    "EncodingConfig",
    "FilePath",
    "InputReadError",
    "OutputWriteError",
    "Stdio",
    "TaskProcessor",
    "TaskResult",
    "alpha_quality_for",
    "load_rgba",
    "parse_output",
    "resolve_inputs",
    "resolve_output",
]
