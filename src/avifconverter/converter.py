"""核心转换功能模块：解码为 RGBA、编码为 AVIF"""

import io
import logging
import os
from dataclasses import dataclass

from PIL import Image, ImageCms, ImageOps, UnidentifiedImageError

from .config_data import EncodingConfig
from .container import ContainerError, measure_items
from .errors import DecodeError, EncodeError
from .worker import get_worker

logger = logging.getLogger("avifconverter.converter")

# ICC 转换只处理这些模式，其余模式直接转 RGBA
_ICC_MODES = {"RGB": "RGB", "RGBA": "RGBA", "CMYK": "RGB"}


@dataclass(frozen=True)
class EncodedImage:
    """编码结果"""

    avif_file: bytes
    color_byte_size: int
    alpha_byte_size: int

    @property
    def total_byte_size(self) -> int:
        return len(self.avif_file)

    @property
    def container_byte_size(self) -> int:
        return self.total_byte_size - self.color_byte_size - self.alpha_byte_size


def _to_srgb(img: Image.Image) -> Image.Image:
    """带 ICC 配置文件的图片转换到 sRGB"""
    icc = img.info.get("icc_profile")
    if not icc or img.mode not in _ICC_MODES:
        return img
    try:
        src = ImageCms.ImageCmsProfile(io.BytesIO(icc))
        dst = ImageCms.createProfile("sRGB")
        converted = ImageCms.profileToProfile(img, src, dst, outputMode=_ICC_MODES[img.mode])
    except ImageCms.PyCMSError as e:
        # 损坏的配置文件按 sRGB 处理
        logger.debug("Ignoring unusable ICC profile: %s", e)
        return img
    converted.info.pop("icc_profile", None)
    return converted


def load_rgba(data: bytes) -> Image.Image:
    """
    解码图片为 RGBA

    按 EXIF 方向旋转，转换到 sRGB，透明像素不与背景色合成。

    Args:
        data: 图片文件内容

    Returns:
        RGBA 模式的图片

    Raises:
        DecodeError: 数据无法解码
    """
    get_worker()
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            img = ImageOps.exif_transpose(img)
            img = _to_srgb(img)
            return img.convert("RGBA")
    except UnidentifiedImageError as e:
        # Pillow 的原始消息里带有 BytesIO 对象的地址
        raise DecodeError("Unable to decode image: unrecognized image format", cause=e) from e
    except (OSError, ValueError, SyntaxError) as e:
        raise DecodeError(f"Unable to decode image: {e}", cause=e) from e


def clear_transparent(img: Image.Image) -> Image.Image:
    """把完全透明像素的 RGB 清零，便于压缩"""
    mask = img.getchannel("A").point(lambda a: 255 if a else 0)
    cleared = Image.new("RGBA", img.size, (0, 0, 0, 0))
    cleared.paste(img, mask=mask)
    return cleared


def quality_to_quantizer(quality: float) -> int:
    """质量 (0-100) 转换为 AV1 量化参数 (0-63)"""
    return int(((100 - quality) * 63 + 50) // 100)


class AvifEncoder:
    """使用 Pillow 的 AVIF 编码器"""

    def __init__(self, config: EncodingConfig):
        self.config = config

    def save_options(self, has_alpha: bool) -> dict:
        """构造 Image.save 的参数"""
        config = self.config
        options = {
            "format": "AVIF",
            "quality": int(round(config.quality)),
            "speed": config.speed,
            "max_threads": config.thread_budget or os.cpu_count() or 1,
            # RGB 模式下不做色度抽样
            "subsampling": "4:4:4" if config.color_space == "rgb" else "4:2:0",
        }
        if has_alpha:
            options["advanced"] = [
                ("a:end-usage", "q"),
                ("a:cq-level", str(quality_to_quantizer(config.alpha_quality))),
            ]
        return options

    def encode_rgba(self, img: Image.Image) -> EncodedImage:
        """
        编码 RGBA 图片

        Raises:
            EncodeError: 编码失败
        """
        low, _ = img.getchannel("A").getextrema()
        has_alpha = low < 255
        if not has_alpha:
            img = img.convert("RGB")
        elif not self.config.dirty_alpha:
            img = clear_transparent(img)

        buf = io.BytesIO()
        try:
            img.save(buf, **self.save_options(has_alpha))
        except (OSError, ValueError, KeyError) as e:
            raise EncodeError(f"Unable to encode AVIF: {e}", cause=e) from e

        avif_file = buf.getvalue()
        try:
            sizes = measure_items(avif_file)
            color, alpha = sizes.color_byte_size, sizes.alpha_byte_size
        except (ContainerError, IndexError) as e:
            logger.debug("Could not measure AVIF planes: %s", e)
            color, alpha = len(avif_file), 0

        return EncodedImage(avif_file=avif_file, color_byte_size=color, alpha_byte_size=alpha)
