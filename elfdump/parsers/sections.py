"""
Section Header Table Parser
============================

Decodes ``Elf32_Shdr`` / ``Elf64_Shdr`` entries in two passes:

    1. :func:`parse_sections` reads the fixed fields of every header;
       sections are identified by index only.
    2. :func:`resolve_names` looks every ``sh_name`` up in the section
       name string table.  A bad offset marks that one section and leaves
       the rest untouched.

:class:`StringTable` is the offset-plus-length view into the shared buffer
that both this module and the symbol parser use for name lookups.
"""

from __future__ import annotations

from typing import Optional

from elfdump.core.errors import BadStringOffset, ElfError, OutOfBounds
from elfdump.core.models import AddressClass, FileHeader, Identity, Section
from elfdump.parsers.header import check_entry_size, check_table_extent
from elfdump.parsers.reader import read_record, record_size


PLACEHOLDER_NAME: str = "<corrupt>"

_SECTION_LAYOUT: dict[AddressClass, tuple[tuple[str, int, int], ...]] = {
    AddressClass.BITS32: (
        ("name_offset", 0, 4),
        ("section_type", 4, 4),
        ("flags", 8, 4),
        ("address", 12, 4),
        ("file_offset", 16, 4),
        ("size", 20, 4),
        ("link", 24, 4),
        ("info", 28, 4),
        ("address_alignment", 32, 4),
        ("entry_size", 36, 4),
    ),
    AddressClass.BITS64: (
        ("name_offset", 0, 4),
        ("section_type", 4, 4),
        ("flags", 8, 8),
        ("address", 16, 8),
        ("file_offset", 24, 8),
        ("size", 32, 8),
        ("link", 40, 4),
        ("info", 44, 4),
        ("address_alignment", 48, 8),
        ("entry_size", 56, 8),
    ),
}

SECTION_RECORD_SIZE: dict[AddressClass, int] = {
    cls: record_size(layout) for cls, layout in _SECTION_LAYOUT.items()
}


# ---------------------------------------------------------------------------
# String tables
# ---------------------------------------------------------------------------

class StringTable:
    """A view of a string table section inside the shared buffer.

    No bytes are copied until a lookup succeeds; the returned ``str`` is
    the only copy made.

    Usage::

        table = StringTable.from_section(buffer, sections[header.section_name_string_table_index])
        name = table.lookup(section.name_offset)
    """

    __slots__ = ("_buffer", "_offset", "_size")

    def __init__(self, buffer: bytes, offset: int, size: int) -> None:
        self._buffer = buffer
        self._offset = offset
        self._size = size

    @classmethod
    def from_section(cls, buffer: bytes, section: Section) -> StringTable:
        """Build a view over *section*'s byte range.

        Raises:
            OutOfBounds: The section's range runs past the buffer.
        """
        if section.file_offset + section.size > len(buffer):
            raise OutOfBounds(
                section.file_offset, section.size, len(buffer),
                what=f"string table section {section.index}",
            )
        return cls(buffer, section.file_offset, section.size)

    @property
    def size(self) -> int:
        return self._size

    def lookup(self, name_offset: int) -> str:
        """Return the null-terminated string starting at *name_offset*.

        A string missing its terminator ends at the table boundary.

        Raises:
            BadStringOffset: *name_offset* lies outside the table.
        """
        if name_offset < 0 or name_offset >= self._size:
            raise BadStringOffset(
                f"name offset 0x{name_offset:x} is outside the "
                f"{self._size}-byte string table"
            )
        start = self._offset + name_offset
        end_limit = self._offset + self._size
        end = self._buffer.find(b"\x00", start, end_limit)
        if end == -1:
            end = end_limit
        return bytes(self._buffer[start:end]).decode("utf-8", errors="replace")


# ---------------------------------------------------------------------------
# Section header decoding
# ---------------------------------------------------------------------------

def parse_sections(
    buffer: bytes,
    header: FileHeader,
    identity: Identity,
) -> list[Section]:
    """Decode every section header in table order, names unresolved.

    Raises:
        OutOfBounds: The table, or one of its entries, runs past the buffer.
        BadEntrySize: The declared entry size is smaller than the record.
        DivisionInvariant: The declared entry size is zero.
    """
    count = header.section_header_count
    if count == 0:
        return []

    stride = header.section_header_entry_size
    layout = _SECTION_LAYOUT[identity.address_class]
    check_entry_size(stride, SECTION_RECORD_SIZE[identity.address_class],
                     "section header table")
    check_table_extent(len(buffer), header.section_header_offset, stride,
                       count, "section header table")

    sections: list[Section] = []
    for i in range(count):
        entry_offset = header.section_header_offset + i * stride
        if entry_offset + stride > len(buffer):
            raise OutOfBounds(entry_offset, stride, len(buffer),
                              what=f"section header {i}")
        fields = read_record(buffer, entry_offset, layout, identity.byte_order)
        sections.append(Section(index=i, **fields))
    return sections


def _mark_all(sections: list[Section], error: ElfError) -> list[Section]:
    marker = error.to_marker("name")
    return [
        s.model_copy(update={"name": PLACEHOLDER_NAME, "name_error": marker})
        for s in sections
    ]


def resolve_names(
    sections: list[Section],
    buffer: bytes,
    string_table_index: int,
) -> list[Section]:
    """Return *sections* with names read from the name string table.

    Failures are recorded per section: an offset past the table yields a
    :data:`PLACEHOLDER_NAME` name with a ``BadStringOffset`` marker while
    every other section still resolves.  When the string table itself is
    unusable (index out of range, or range past the buffer) every section
    receives the placeholder.
    """
    if string_table_index >= len(sections):
        return _mark_all(sections, OutOfBounds(
            string_table_index, 1, len(sections),
            what="section name string table index",
        ))
    try:
        table = StringTable.from_section(buffer, sections[string_table_index])
    except OutOfBounds as exc:
        return _mark_all(sections, exc)

    resolved: list[Section] = []
    for section in sections:
        try:
            name = table.lookup(section.name_offset)
        except BadStringOffset as exc:
            resolved.append(section.model_copy(update={
                "name": PLACEHOLDER_NAME,
                "name_error": exc.to_marker("name"),
            }))
            continue
        resolved.append(section.model_copy(update={"name": name}))
    return resolved


def find_section(sections: list[Section], name: str) -> Optional[Section]:
    """Return the first section called *name*, or ``None``."""
    for section in sections:
        if section.name == name:
            return section
    return None
