"""
Raw Reader
===========

Fixed-width integer extraction from an immutable byte buffer.  The
reader knows nothing about ELF; callers pass the byte order discovered
in the identification block and choose signed or unsigned per field.
"""

from __future__ import annotations

import struct

from elfdump.core.errors import OutOfBounds
from elfdump.core.models import ByteOrder


_UNSIGNED: dict[int, str] = {1: "B", 2: "H", 4: "I", 8: "Q"}
_SIGNED: dict[int, str] = {1: "b", 2: "h", 4: "i", 8: "q"}


def _check(buffer: bytes, offset: int, width: int) -> None:
    if offset < 0 or offset + width > len(buffer):
        raise OutOfBounds(offset, width, len(buffer))


def read_uint(buffer: bytes, offset: int, width: int, byte_order: ByteOrder) -> int:
    """Read an unsigned integer of *width* bytes at *offset*.

    Raises:
        OutOfBounds: If ``offset + width`` exceeds the buffer.
        ValueError: If *width* is not 1, 2, 4 or 8.
    """
    code = _UNSIGNED.get(width)
    if code is None:
        raise ValueError(f"unsupported field width: {width}")
    _check(buffer, offset, width)
    return struct.unpack_from(byte_order.struct_prefix + code, buffer, offset)[0]


def read_int(buffer: bytes, offset: int, width: int, byte_order: ByteOrder) -> int:
    """Read a two's-complement signed integer of *width* bytes at *offset*."""
    code = _SIGNED.get(width)
    if code is None:
        raise ValueError(f"unsupported field width: {width}")
    _check(buffer, offset, width)
    return struct.unpack_from(byte_order.struct_prefix + code, buffer, offset)[0]


def read_record(
    buffer: bytes,
    base: int,
    layout: tuple[tuple[str, int, int], ...],
    byte_order: ByteOrder,
) -> dict[str, int]:
    """Decode the unsigned fields of one fixed-layout record.

    Args:
        buffer: Source buffer.
        base: File offset of the record.
        layout: ``(field, offset-in-record, width)`` triples.
        byte_order: Byte order of the file.

    Returns:
        Mapping of field name to decoded value.
    """
    return {
        name: read_uint(buffer, base + rel, width, byte_order)
        for name, rel, width in layout
    }


def record_size(layout: tuple[tuple[str, int, int], ...]) -> int:
    """Number of bytes spanned by *layout*."""
    return max(rel + width for _, rel, width in layout)
