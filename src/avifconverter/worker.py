"""工作线程初始化"""

import logging
from threading import local

logger = logging.getLogger("avifconverter.worker")

_thread_data = local()

# HEIF 解码线程数，过多会和线程池抢占 CPU
HEIF_DECODE_THREADS = 4


def init_worker() -> None:
    """
    每个线程初始化一次 - 注册额外的解码插件

    Pillow 自带 JPEG/PNG 解码，这里额外注册 HEIC/HEIF 解码，
    安装了 pillow-jxl-plugin 时也注册 JPEG XL 解码。
    """
    from pillow_heif import options, register_heif_opener

    options.DECODE_THREADS = HEIF_DECODE_THREADS
    register_heif_opener()

    try:
        from pillow_jxl import JpegXLImagePlugin  # noqa: F401
        _thread_data.jxl = True
    except ImportError:
        _thread_data.jxl = False

    _thread_data.initialized = True
    logger.debug("Worker initialized (jxl=%s)", _thread_data.jxl)


def get_worker():
    """
    获取当前线程的工作器

    如果当前线程尚未初始化，会自动调用 init_worker()。
    """
    if not getattr(_thread_data, "initialized", False):
        init_worker()
    return _thread_data
