"""
Dynamic Section Parser
=======================

Decodes ``Elf32_Dyn`` / ``Elf64_Dyn`` entries from the ``SHT_DYNAMIC``
section up to and including the terminating ``DT_NULL``.  String-valued
tags (``DT_NEEDED``, ``DT_SONAME``, ``DT_RPATH``, ``DT_RUNPATH``) are
resolved through the section's linked ``.dynstr``.
"""

from __future__ import annotations

from typing import Optional

from elfdump.core.errors import BadStringOffset, OutOfBounds
from elfdump.core.models import AddressClass, DynamicEntry, Identity, Section
from elfdump.parsers.constants import DT_NULL, DT_STRING_TAGS, SHT_DYNAMIC
from elfdump.parsers.reader import read_int, read_uint
from elfdump.parsers.sections import PLACEHOLDER_NAME, StringTable


# d_tag is signed, d_val/d_ptr unsigned; both are word-sized.
_DYN_WIDTH: dict[AddressClass, int] = {
    AddressClass.BITS32: 4,
    AddressClass.BITS64: 8,
}


def parse_dynamic(
    buffer: bytes,
    dynamic_section: Section,
    linked_string_section: Optional[Section],
    identity: Identity,
) -> list[DynamicEntry]:
    """Decode dynamic entries in order, stopping after ``DT_NULL``.

    Raises:
        OutOfBounds: The section's range runs past the buffer.
    """
    width = _DYN_WIDTH[identity.address_class]
    entry_size = 2 * width
    start = dynamic_section.file_offset
    end = start + dynamic_section.size
    if end > len(buffer):
        raise OutOfBounds(start, dynamic_section.size, len(buffer),
                          what=f"dynamic section {dynamic_section.index}")

    strings: Optional[StringTable] = None
    if linked_string_section is not None:
        try:
            strings = StringTable.from_section(buffer, linked_string_section)
        except OutOfBounds:
            strings = None

    entries: list[DynamicEntry] = []
    offset = start
    while offset + entry_size <= end:
        tag = read_int(buffer, offset, width, identity.byte_order)
        value = read_uint(buffer, offset + width, width, identity.byte_order)
        offset += entry_size

        if tag not in DT_STRING_TAGS:
            entries.append(DynamicEntry(tag=tag, value=value))
            if tag == DT_NULL:
                break
            continue

        if strings is None:
            entries.append(DynamicEntry(
                tag=tag, value=value, name=PLACEHOLDER_NAME,
                name_error=OutOfBounds(
                    dynamic_section.link, 1, 0, what="dynamic string table"
                ).to_marker("name"),
            ))
            continue
        try:
            name = strings.lookup(value)
        except BadStringOffset as exc:
            entries.append(DynamicEntry(
                tag=tag, value=value, name=PLACEHOLDER_NAME,
                name_error=exc.to_marker("name"),
            ))
            continue
        entries.append(DynamicEntry(tag=tag, value=value, name=name))
    return entries


def find_dynamic_section(sections: list[Section]) -> Optional[Section]:
    """Return the first ``SHT_DYNAMIC`` section, or ``None``."""
    for section in sections:
        if section.section_type == SHT_DYNAMIC:
            return section
    return None
