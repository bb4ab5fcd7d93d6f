"""
AVIF 容器读取模块

只做一件事：从编码器生成的 AVIF 文件中统计颜色平面和透明平面各占多少字节。
AVIF 基于 ISOBMFF，结构为若干 box：
- size (4 字节，大端) + type (4 字节 ASCII) + 数据
- size = 1 时后面跟 8 字节扩展长度，size = 0 表示到文件末尾

meta box 中：
- pitm 记录主图（颜色）的 item_ID
- iinf/infe 记录每个 item 的类型，图像数据为 "av01"
- iloc 记录每个 item 在文件中的 extent 长度
"""

import struct
from dataclasses import dataclass, field
from typing import Iterator


class ContainerError(ValueError):
    """AVIF 结构无法解析"""


@dataclass
class ItemSizes:
    """各 item 的数据长度统计"""

    primary_id: int | None = None
    item_types: dict[int, str] = field(default_factory=dict)
    lengths: dict[int, int] = field(default_factory=dict)

    @property
    def color_byte_size(self) -> int:
        if self.primary_id is None:
            return 0
        return self.lengths.get(self.primary_id, 0)

    @property
    def alpha_byte_size(self) -> int:
        # 除主图外的 av01 item 即透明通道（辅助图像）
        return sum(
            length
            for item_id, length in self.lengths.items()
            if item_id != self.primary_id and self.item_types.get(item_id) == "av01"
        )


def iter_boxes(data: bytes, start: int = 0, end: int | None = None) -> Iterator[tuple[str, bytes]]:
    """依次返回 (box 类型, box 数据)"""
    pos = start
    end = len(data) if end is None else end

    while pos + 8 <= end:
        size, raw_type = struct.unpack(">I4s", data[pos : pos + 8])
        box_type = raw_type.decode("ascii", errors="replace")
        header = 8

        if size == 1:
            if pos + 16 > end:
                raise ContainerError(f"Truncated {box_type!r} box header")
            size = struct.unpack(">Q", data[pos + 8 : pos + 16])[0]
            header = 16
        elif size == 0:
            size = end - pos

        if size < header or pos + size > end:
            raise ContainerError(f"Invalid size for {box_type!r} box")

        yield box_type, data[pos + header : pos + size]
        pos += size


def _read_uint(data: bytes, pos: int, size: int) -> tuple[int, int]:
    """读取 size 字节的大端无符号整数，size 为 0 时返回 0"""
    if size == 0:
        return 0, pos
    if pos + size > len(data):
        raise ContainerError("Unexpected end of box data")
    return int.from_bytes(data[pos : pos + size], "big"), pos + size


def _parse_pitm(payload: bytes) -> int:
    version = payload[0]
    value, _ = _read_uint(payload, 4, 2 if version == 0 else 4)
    return value


def _parse_iinf(payload: bytes) -> dict[int, str]:
    version = payload[0]
    _, pos = _read_uint(payload, 4, 2 if version == 0 else 4)

    types: dict[int, str] = {}
    for box_type, infe in iter_boxes(payload, pos):
        if box_type != "infe" or len(infe) < 4:
            continue
        infe_version = infe[0]
        # 只有 version >= 2 的 infe 带 item_type
        if infe_version < 2:
            continue
        id_size = 2 if infe_version == 2 else 4
        item_id, p = _read_uint(infe, 4, id_size)
        p += 2  # item_protection_index
        types[item_id] = infe[p : p + 4].decode("ascii", errors="replace")
    return types


def _parse_iloc(payload: bytes) -> dict[int, int]:
    version = payload[0]
    if version > 2:
        raise ContainerError(f"Unsupported iloc version {version}")

    offset_size = payload[4] >> 4
    length_size = payload[4] & 0x0F
    base_offset_size = payload[5] >> 4
    index_size = payload[5] & 0x0F if version in (1, 2) else 0

    item_count, pos = _read_uint(payload, 6, 2 if version < 2 else 4)

    lengths: dict[int, int] = {}
    for _ in range(item_count):
        item_id, pos = _read_uint(payload, pos, 2 if version < 2 else 4)
        if version in (1, 2):
            pos += 2  # reserved + construction_method
        pos += 2  # data_reference_index
        _, pos = _read_uint(payload, pos, base_offset_size)
        extent_count, pos = _read_uint(payload, pos, 2)

        total = 0
        for _ in range(extent_count):
            _, pos = _read_uint(payload, pos, index_size)
            _, pos = _read_uint(payload, pos, offset_size)
            length, pos = _read_uint(payload, pos, length_size)
            total += length
        lengths[item_id] = total
    return lengths


def measure_items(avif_file: bytes) -> ItemSizes:
    """
    统计 AVIF 文件中各 item 的字节数

    Args:
        avif_file: 完整的 AVIF 文件内容

    Returns:
        ItemSizes

    Raises:
        ContainerError: 没有 meta box 或结构损坏
    """
    for box_type, payload in iter_boxes(avif_file):
        if box_type != "meta":
            continue

        sizes = ItemSizes()
        # meta 是 full box，前 4 字节为 version + flags
        for child_type, child in iter_boxes(payload, 4):
            if child_type == "pitm":
                sizes.primary_id = _parse_pitm(child)
            elif child_type == "iinf":
                sizes.item_types = _parse_iinf(child)
            elif child_type == "iloc":
                sizes.lengths = _parse_iloc(child)
        return sizes

    raise ContainerError("No meta box in AVIF file")
