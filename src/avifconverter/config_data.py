"""配置处理模块"""

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

from .errors import ConfigurationError


ColorSpace = Literal["ycbcr", "rgb"]
AlphaMode = Literal["clean", "dirty"]

COLOR_SPACES: tuple[str, ...] = ("ycbcr", "rgb")

DEFAULT_QUALITY = 80.0
DEFAULT_SPEED = 4

# 配置文件中允许出现的键及其取值类型，与命令行选项一一对应
OPTION_TYPES: dict[str, tuple[type, ...]] = {
    "quality": (int, float, str),
    "speed": (int, float, str),
    "threads": (int, float, str),
    "overwrite": (bool,),
    "quiet": (bool,),
    "dirty_alpha": (bool,),
    "color": (str,),
    "output": (str,),
}
OPTION_KEYS = set(OPTION_TYPES)


def alpha_quality_for(quality: float) -> float:
    """
    根据主质量推导透明通道质量

    透明通道的失真比颜色更显眼，所以质量总是略高于主质量，
    且不超过 (quality + 100) / 2，quality=100 时结果也是 100。
    """
    return min(quality + quality / 4 + 2, (quality + 100) / 2)


def _parse_number(name: str, value: Any, kind: type) -> Any:
    # 命令行传入的是字符串，配置文件中可能已经是数字
    try:
        return kind(value)
    except (TypeError, ValueError) as e:
        raise ConfigurationError(f"Invalid value for {name}: {value!r}", cause=e) from e


@dataclass(frozen=True)
class EncodingConfig:
    """编码配置（所有任务只读共享）"""

    quality: float = DEFAULT_QUALITY
    alpha_quality: float = alpha_quality_for(DEFAULT_QUALITY)
    speed: int = DEFAULT_SPEED
    thread_budget: int | None = None
    color_space: ColorSpace = "ycbcr"
    alpha_mode: AlphaMode = "clean"
    overwrite: bool = False
    quiet: bool = False

    @classmethod
    def create(
        cls,
        quality: float = DEFAULT_QUALITY,
        speed: int = DEFAULT_SPEED,
        threads: int = 0,
        color: str = "ycbcr",
        dirty_alpha: bool = False,
        overwrite: bool = False,
        quiet: bool = False,
    ) -> "EncodingConfig":
        """
        校验参数并创建配置

        Args:
            quality: 质量 (1-100)
            speed: 编码速度 (0-10)
            threads: 最大线程数，0 表示使用全部核心
            color: 内部色彩空间 (ycbcr/rgb)
            dirty_alpha: 是否保留完全透明像素的颜色
            overwrite: 是否覆盖已存在的输出
            quiet: 是否静默

        Returns:
            EncodingConfig

        Raises:
            ConfigurationError: 参数超出范围
        """
        quality = _parse_number("quality", quality, float)
        speed = _parse_number("speed", speed, int)
        threads = _parse_number("threads", threads, int)

        if not 1 <= quality <= 100:
            raise ConfigurationError(f"Quality must be between 1 and 100, got {quality:g}")
        if not 0 <= speed <= 10:
            raise ConfigurationError(f"Speed must be between 0 and 10, got {speed}")
        if threads < 0:
            raise ConfigurationError(f"Thread count can't be negative, got {threads}")

        for name, flag in (("dirty_alpha", dirty_alpha), ("overwrite", overwrite), ("quiet", quiet)):
            if not isinstance(flag, bool):
                raise ConfigurationError(f"Invalid value for {name}: {flag!r}")

        color = str(color).lower()
        if color not in COLOR_SPACES:
            raise ConfigurationError(f"bad color type: {color}")

        return cls(
            quality=quality,
            alpha_quality=alpha_quality_for(quality),
            speed=speed,
            thread_budget=threads or None,
            color_space=color,  # type: ignore[arg-type]
            alpha_mode="dirty" if dirty_alpha else "clean",
            overwrite=overwrite,
            quiet=quiet,
        )

    @property
    def dirty_alpha(self) -> bool:
        return self.alpha_mode == "dirty"


def load_defaults(path: Path) -> dict[str, Any]:
    """
    从 JSON 文件读取选项默认值

    文件内容是一个对象，例如 {"quality": 70, "speed": 6, "output": "out/"}。
    命令行参数优先于文件中的值。

    Raises:
        ConfigurationError: 文件无法读取、不是合法 JSON、包含未知键或取值类型不对
    """
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigurationError(f"Unable to read config file {path}", cause=e) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Config file {path} is not valid JSON", cause=e) from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a JSON object")

    unknown = sorted(set(data) - OPTION_KEYS)
    if unknown:
        raise ConfigurationError(f"Unknown option(s) in {path}: {', '.join(unknown)}")

    for key, value in data.items():
        # bool 是 int 的子类，数值选项不能写成 true/false
        if not isinstance(value, OPTION_TYPES[key]) or (bool not in OPTION_TYPES[key] and isinstance(value, bool)):
            raise ConfigurationError(f"Invalid value for {key} in {path}: {value!r}")

    return data
