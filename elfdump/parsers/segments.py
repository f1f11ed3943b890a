"""
Program Header Table Parser
============================

Decodes ``Elf32_Phdr`` / ``Elf64_Phdr`` entries and maps sections onto the
segments that contain them.

The 64-bit record moves ``p_flags`` up next to ``p_type`` so the 8-byte
fields stay aligned; the two layouts below encode that difference.
"""

from __future__ import annotations

from elfdump.core.errors import OutOfBounds
from elfdump.core.models import AddressClass, FileHeader, Identity, Section, Segment
from elfdump.parsers.constants import (
    PT_DYNAMIC,
    PT_GNU_EH_FRAME,
    PT_GNU_MBIND_HI,
    PT_GNU_MBIND_LO,
    PT_GNU_RELRO,
    PT_LOAD,
    PT_NOTE,
    PT_PHDR,
    PT_TLS,
    SHF_ALLOC,
    SHF_TLS,
    SHT_NOBITS,
    SHT_NULL,
)
from elfdump.parsers.header import check_entry_size, check_table_extent
from elfdump.parsers.reader import read_record, record_size


_SEGMENT_LAYOUT: dict[AddressClass, tuple[tuple[str, int, int], ...]] = {
    AddressClass.BITS32: (
        ("segment_type", 0, 4),
        ("file_offset", 4, 4),
        ("virtual_address", 8, 4),
        ("physical_address", 12, 4),
        ("file_size", 16, 4),
        ("memory_size", 20, 4),
        ("flags", 24, 4),
        ("alignment", 28, 4),
    ),
    AddressClass.BITS64: (
        ("segment_type", 0, 4),
        ("flags", 4, 4),
        ("file_offset", 8, 8),
        ("virtual_address", 16, 8),
        ("physical_address", 24, 8),
        ("file_size", 32, 8),
        ("memory_size", 40, 8),
        ("alignment", 48, 8),
    ),
}

SEGMENT_RECORD_SIZE: dict[AddressClass, int] = {
    cls: record_size(layout) for cls, layout in _SEGMENT_LAYOUT.items()
}


def parse_segments(
    buffer: bytes,
    header: FileHeader,
    identity: Identity,
) -> list[Segment]:
    """Decode every program header in table order.

    The loop strides by the entry size declared in the header, never by
    the record size, so oversized entries cannot desynchronise it.

    Raises:
        OutOfBounds: The table, or one of its entries, runs past the buffer.
        BadEntrySize: The declared entry size is smaller than the record.
        DivisionInvariant: The declared entry size is zero.
    """
    count = header.program_header_count
    if count == 0:
        return []

    stride = header.program_header_entry_size
    layout = _SEGMENT_LAYOUT[identity.address_class]
    check_entry_size(stride, SEGMENT_RECORD_SIZE[identity.address_class],
                     "program header table")
    check_table_extent(len(buffer), header.program_header_offset, stride,
                       count, "program header table")

    segments: list[Segment] = []
    for i in range(count):
        entry_offset = header.program_header_offset + i * stride
        if entry_offset + stride > len(buffer):
            raise OutOfBounds(entry_offset, stride, len(buffer),
                              what=f"program header {i}")
        fields = read_record(buffer, entry_offset, layout, identity.byte_order)
        segments.append(Segment(index=i, **fields))
    return segments


# ---------------------------------------------------------------------------
# Section to segment mapping
# ---------------------------------------------------------------------------

def _tbss_special(section: Section, segment: Segment) -> bool:
    # .tbss occupies no space outside a PT_TLS segment
    return (
        bool(section.flags & SHF_TLS)
        and section.section_type == SHT_NOBITS
        and segment.segment_type != PT_TLS
    )


def _section_size(section: Section, segment: Segment) -> int:
    return 0 if _tbss_special(section, segment) else section.size


def section_in_segment(
    section: Section,
    segment: Segment,
    check_vma: bool = True,
    strict: bool = True,
) -> bool:
    """Decide whether *section* lies inside *segment*.

    Mirrors the rules binutils applies for the "Section to Segment
    mapping" listing:

    - TLS sections only belong to PT_TLS, PT_GNU_RELRO or PT_LOAD, and
      non-TLS sections never belong to PT_TLS or PT_PHDR.
    - Non-alloc sections never belong to loadable segment kinds.
    - Non-NOBITS sections must fall inside the segment's file image.
    - Alloc sections must fall inside the segment's address range when
      *check_vma* is set.
    - Empty sections only count for PT_DYNAMIC/PT_NOTE when strictly
      inside.
    """
    ptype = segment.segment_type
    is_tls = bool(section.flags & SHF_TLS)
    is_alloc = bool(section.flags & SHF_ALLOC)
    is_nobits = section.section_type == SHT_NOBITS

    if is_tls:
        if ptype not in (PT_TLS, PT_GNU_RELRO, PT_LOAD):
            return False
    elif ptype in (PT_TLS, PT_PHDR):
        return False

    if not is_alloc and (
        ptype in (PT_LOAD, PT_DYNAMIC, PT_GNU_EH_FRAME, PT_GNU_RELRO)
        or PT_GNU_MBIND_LO <= ptype <= PT_GNU_MBIND_HI
    ):
        return False

    size = _section_size(section, segment)

    if not is_nobits:
        if section.file_offset < segment.file_offset:
            return False
        delta = section.file_offset - segment.file_offset
        # an empty segment accepts a start offset equal to its own
        if strict and segment.file_size and delta >= segment.file_size:
            return False
        if delta + size > segment.file_size:
            return False

    if check_vma and is_alloc:
        if section.address < segment.virtual_address:
            return False
        delta = section.address - segment.virtual_address
        if strict and segment.memory_size and delta >= segment.memory_size:
            return False
        if delta + size > segment.memory_size:
            return False

    if ptype in (PT_DYNAMIC, PT_NOTE) and section.size == 0 and segment.memory_size != 0:
        inside_file = is_nobits or (
            section.file_offset > segment.file_offset
            and section.file_offset - segment.file_offset < segment.file_size
        )
        inside_vma = not is_alloc or (
            section.address > segment.virtual_address
            and section.address - segment.virtual_address < segment.memory_size
        )
        return inside_file and inside_vma

    return True


def map_sections_to_segments(
    segments: list[Segment],
    sections: list[Section],
) -> list[list[int]]:
    """For each segment, list the indices of the sections it contains.

    Null sections (``SHT_NULL``) are never listed.
    """
    return [
        [
            section.index
            for section in sections
            if section.section_type != SHT_NULL
            and section_in_segment(section, segment)
        ]
        for segment in segments
    ]
