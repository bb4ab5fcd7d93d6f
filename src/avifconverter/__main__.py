#!/usr/bin/env python3
"""
AVIF 批量转换器
把 JPEG/PNG 图片转换为 AVIF
用法：uv run python -m avifconverter [选项] 图片...
"""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .config_data import DEFAULT_QUALITY, DEFAULT_SPEED, EncodingConfig, load_defaults
from .errors import ConfigurationError
from .processor import TaskProcessor
from .report import print_error_chain, report_failures
from .sources import parse_output, prepare_output, resolve_inputs

logger = logging.getLogger("avifconverter")

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="avifconverter",
        description="Convert JPEG/PNG images to AVIF image format",
    )
    p.add_argument("-Q", "--quality", default=None, metavar="n",
                   help=f"Quality from 1 (worst) to 100 (best) (default: {DEFAULT_QUALITY:g})")
    p.add_argument("-s", "--speed", default=None, metavar="n",
                   help=f"Encoding speed from 0 (best) to 10 (fast but ugly) (default: {DEFAULT_SPEED})")
    p.add_argument("-j", "--threads", default=None, metavar="n",
                   help="Maximum threads to use (0 = one thread per host core)")
    p.add_argument("-f", "--overwrite", "--force", action="store_true", default=None,
                   help="Replace files if there's .avif already")
    p.add_argument("-o", "--output", default=None, metavar="path",
                   help="Write output to this path instead of same_file.avif. It may be a file or a directory.")
    p.add_argument("-q", "--quiet", action="store_true", default=None, help="Don't print anything")
    p.add_argument("--dirty-alpha", action="store_true", default=None,
                   help="Keep RGB data of fully-transparent pixels (makes larger, lower quality files)")
    p.add_argument("--color", default=None, metavar="{ycbcr,rgb}",
                   help="Internal AVIF color space. YCbCr works better for human eyes. "
                        "rgb keeps full-resolution 4:4:4 chroma (the matrix stays YCbCr). (default: ycbcr)")
    p.add_argument("-c", "--config", type=Path, default=None, help="JSON file with default option values")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    p.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("images", nargs="+", metavar="IMAGES",
                   help='One or more JPEG or PNG files to convert. "-" is interpreted as stdin/stdout.')
    return p


def merge_options(args: argparse.Namespace) -> dict:
    """配置文件中的值作为默认值，命令行参数优先"""
    options = load_defaults(args.config) if args.config else {}
    for key in ("quality", "speed", "threads", "overwrite", "quiet", "dirty_alpha", "color", "output"):
        value = getattr(args, key)
        if value is not None:
            options[key] = value
    return options


def run(argv: list[str] | None = None) -> int:
    """执行命令，返回退出码"""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    try:
        options = merge_options(args)
        config = EncodingConfig.create(
            quality=options.get("quality", DEFAULT_QUALITY),
            speed=options.get("speed", DEFAULT_SPEED),
            threads=options.get("threads", 0),
            color=options.get("color", "ycbcr"),
            dirty_alpha=options.get("dirty_alpha", False),
            overwrite=options.get("overwrite", False),
            quiet=options.get("quiet", False),
        )
        sources = resolve_inputs(args.images, quiet=config.quiet)
        output = parse_output(options.get("output"))
    except ConfigurationError as e:
        print_error_chain(e)
        return 1

    prepare_output(output, len(sources))
    logger.debug("Config: %s, output: %s", config, output)

    result = TaskProcessor(config, output).process(sources)
    logger.debug("%d succeeded, %d failed", len(result.successes), len(result.failures))
    return report_failures(result, config.quiet)


def main():
    sys.exit(run())


if __name__ == "__main__":
    main()
