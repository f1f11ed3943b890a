"""
Header Parser
==============

Decodes ``Elf32_Ehdr`` / ``Elf64_Ehdr``.  Entry point and the two table
offsets are 4 bytes wide in 32-bit files and 8 bytes wide in 64-bit
files, which shifts every field after them; each class therefore has its
own offset table, selected once from :class:`Identity`.

Also hosts the table-extent checks shared by the program header,
section header and symbol table parsers.
"""

from __future__ import annotations

from elfdump.core.errors import (
    BadEntrySize,
    DivisionInvariant,
    OutOfBounds,
    TruncatedHeader,
)
from elfdump.core.models import AddressClass, FileHeader, Identity
from elfdump.parsers.reader import read_record, record_size


# (field, offset, width) -- offsets are absolute within the file.
_HEADER_LAYOUT: dict[AddressClass, tuple[tuple[str, int, int], ...]] = {
    AddressClass.BITS32: (
        ("object_type", 16, 2),
        ("machine", 18, 2),
        ("version", 20, 4),
        ("entry_point", 24, 4),
        ("program_header_offset", 28, 4),
        ("section_header_offset", 32, 4),
        ("flags", 36, 4),
        ("header_size", 40, 2),
        ("program_header_entry_size", 42, 2),
        ("program_header_count", 44, 2),
        ("section_header_entry_size", 46, 2),
        ("section_header_count", 48, 2),
        ("section_name_string_table_index", 50, 2),
    ),
    AddressClass.BITS64: (
        ("object_type", 16, 2),
        ("machine", 18, 2),
        ("version", 20, 4),
        ("entry_point", 24, 8),
        ("program_header_offset", 32, 8),
        ("section_header_offset", 40, 8),
        ("flags", 48, 4),
        ("header_size", 52, 2),
        ("program_header_entry_size", 54, 2),
        ("program_header_count", 56, 2),
        ("section_header_entry_size", 58, 2),
        ("section_header_count", 60, 2),
        ("section_name_string_table_index", 62, 2),
    ),
}

HEADER_SIZE: dict[AddressClass, int] = {
    cls: record_size(layout) for cls, layout in _HEADER_LAYOUT.items()
}


def parse_header(buffer: bytes, identity: Identity) -> FileHeader:
    """Decode the file header using the offset table for the file's class.

    Raises:
        TruncatedHeader: The buffer is shorter than 52 (32-bit) or
            64 (64-bit) bytes.
    """
    expected = HEADER_SIZE[identity.address_class]
    if len(buffer) < expected:
        raise TruncatedHeader(
            f"ELF{identity.address_class.bits} header needs {expected} bytes, "
            f"file has {len(buffer)}"
        )
    fields = read_record(
        buffer, 0, _HEADER_LAYOUT[identity.address_class], identity.byte_order
    )
    return FileHeader(**fields)


def check_entry_size(entry_size: int, fixed_size: int, table: str) -> None:
    """Reject declared entry sizes the decoder cannot stride over.

    Larger entries are tolerated (trailing bytes are ignored); smaller ones
    would make fields of consecutive records overlap.

    Raises:
        DivisionInvariant: *entry_size* is zero.
        BadEntrySize: *entry_size* is smaller than *fixed_size*.
    """
    if entry_size == 0:
        raise DivisionInvariant(f"{table} declares an entry size of 0")
    if entry_size < fixed_size:
        raise BadEntrySize(
            f"{table} entry size {entry_size} is smaller than the "
            f"{fixed_size}-byte record"
        )


def check_table_extent(
    buffer_length: int,
    offset: int,
    entry_size: int,
    count: int,
    table: str,
) -> None:
    """Ensure ``offset + entry_size * count`` stays inside the buffer.

    Raises:
        OutOfBounds: The table runs past the end of the buffer.
    """
    extent = entry_size * count
    if offset + extent > buffer_length:
        raise OutOfBounds(offset, extent, buffer_length, what=table)
