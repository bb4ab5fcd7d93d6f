import threading

import pytest

from avifconverter.converter import EncodedImage
from avifconverter.errors import DecodeError, EncodeError


class FakeDecoder:
    """把字节当作“图片”返回，内容以 b"bad" 开头时解码失败"""

    def __init__(self):
        self.calls = []
        self._lock = threading.Lock()

    def __call__(self, data: bytes):
        with self._lock:
            self.calls.append(data)
        if data.startswith(b"bad"):
            raise DecodeError("Unable to decode image: not an image")
        return data


class FakeEncoder:
    """固定大小的编码结果，图片内容以 b"noenc" 开头时编码失败"""

    def __init__(self, factory, config):
        self.factory = factory
        self.config = config

    def encode_rgba(self, img):
        with self.factory.lock:
            self.factory.calls.append(img)
        if img.startswith(b"noenc"):
            raise EncodeError("Unable to encode AVIF: encoder rejected image")
        if img.startswith(b"boom"):
            raise RuntimeError("encoder crashed")
        return EncodedImage(
            avif_file=b"\0" * self.factory.total,
            color_byte_size=self.factory.color,
            alpha_byte_size=self.factory.alpha,
        )


class FakeEncoderFactory:
    def __init__(self, total=2500, color=1800, alpha=300):
        self.total = total
        self.color = color
        self.alpha = alpha
        self.calls = []
        self.configs = []
        self.lock = threading.Lock()

    def __call__(self, config):
        with self.lock:
            self.configs.append(config)
        return FakeEncoder(self, config)


@pytest.fixture
def decoder():
    return FakeDecoder()


@pytest.fixture
def encoder_factory():
    return FakeEncoderFactory()
