"""
Symbol Table Parser
====================

Decodes ``Elf32_Sym`` / ``Elf64_Sym`` records from ``SHT_SYMTAB`` and
``SHT_DYNSYM`` sections.

The two classes do not simply differ in width: the 64-bit record moves
``st_info``, ``st_other`` and ``st_shndx`` ahead of ``st_value`` and
``st_size`` so that the 8-byte fields are aligned::

    Elf32_Sym: name(4) value(4) size(4) info(1) other(1) shndx(2)   16 bytes
    Elf64_Sym: name(4) info(1) other(1) shndx(2) value(8) size(8)   24 bytes

Names come from the string table named by the symbol section's
``sh_link``.  Section indices are kept verbatim, reserved sentinels
included.
"""

from __future__ import annotations

from typing import Optional

from elfdump.core.errors import BadStringOffset, ElfError, OutOfBounds
from elfdump.core.models import (
    AddressClass,
    EntityError,
    Identity,
    Section,
    Symbol,
    SymbolTable,
)
from elfdump.parsers.constants import SHT_DYNSYM, SHT_SYMTAB
from elfdump.parsers.header import check_entry_size, check_table_extent
from elfdump.parsers.reader import read_record, record_size
from elfdump.parsers.sections import PLACEHOLDER_NAME, StringTable


_SYMBOL_LAYOUT: dict[AddressClass, tuple[tuple[str, int, int], ...]] = {
    AddressClass.BITS32: (
        ("name_offset", 0, 4),
        ("value", 4, 4),
        ("size", 8, 4),
        ("info", 12, 1),
        ("other", 13, 1),
        ("section_index", 14, 2),
    ),
    AddressClass.BITS64: (
        ("name_offset", 0, 4),
        ("info", 4, 1),
        ("other", 5, 1),
        ("section_index", 6, 2),
        ("value", 8, 8),
        ("size", 16, 8),
    ),
}

SYMBOL_RECORD_SIZE: dict[AddressClass, int] = {
    cls: record_size(layout) for cls, layout in _SYMBOL_LAYOUT.items()
}


def parse_symbols(
    buffer: bytes,
    symbol_section: Section,
    linked_string_section: Optional[Section],
    identity: Identity,
) -> list[Symbol]:
    """Decode every record of *symbol_section* in table order.

    Record count is ``size // entry_size``; the loop strides by the
    declared entry size for every record.

    If *linked_string_section* is ``None`` or unreadable, symbols are
    still decoded and each carries a placeholder name with a marker.  A
    name offset past the string table marks only that symbol.

    Raises:
        DivisionInvariant: ``entry_size`` is zero.
        BadEntrySize: ``entry_size`` is smaller than the fixed record.
        OutOfBounds: The table runs past the buffer.
    """
    stride = symbol_section.entry_size
    layout = _SYMBOL_LAYOUT[identity.address_class]
    table_name = f"symbol table section {symbol_section.index}"
    check_entry_size(stride, SYMBOL_RECORD_SIZE[identity.address_class], table_name)
    count = symbol_section.size // stride
    check_table_extent(len(buffer), symbol_section.file_offset, stride, count,
                       table_name)

    strings: Optional[StringTable] = None
    link_error: Optional[EntityError] = None
    if linked_string_section is None:
        link_error = OutOfBounds(
            symbol_section.link, 1, 0, what="linked string table index"
        ).to_marker("name")
    else:
        try:
            strings = StringTable.from_section(buffer, linked_string_section)
        except OutOfBounds as exc:
            link_error = exc.to_marker("name")

    symbols: list[Symbol] = []
    for i in range(count):
        entry_offset = symbol_section.file_offset + i * stride
        fields = read_record(buffer, entry_offset, layout, identity.byte_order)
        info = fields.pop("info")
        other = fields.pop("other")

        name = PLACEHOLDER_NAME
        name_error = link_error
        if strings is not None:
            try:
                name = strings.lookup(fields["name_offset"])
            except BadStringOffset as exc:
                name_error = exc.to_marker("name")

        symbols.append(Symbol(
            index=i,
            name=name,
            name_error=name_error,
            binding=info >> 4,
            symbol_type=info & 0xF,
            visibility=other & 0x3,
            **fields,
        ))
    return symbols


def linked_string_section(
    sections: list[Section],
    symbol_section: Section,
) -> Optional[Section]:
    """Return the section named by ``symbol_section.link``, or ``None``."""
    if 0 < symbol_section.link < len(sections):
        return sections[symbol_section.link]
    return None


def parse_symbol_tables(
    buffer: bytes,
    sections: list[Section],
    identity: Identity,
) -> list[SymbolTable]:
    """Decode ``.symtab`` and ``.dynsym`` style sections independently.

    A table that cannot be decoded at all is returned empty with its
    ``error`` set; the other table is unaffected.
    """
    tables: list[SymbolTable] = []
    for section in sections:
        if section.section_type not in (SHT_SYMTAB, SHT_DYNSYM):
            continue
        try:
            symbols = parse_symbols(
                buffer, section, linked_string_section(sections, section), identity
            )
        except ElfError as exc:
            tables.append(SymbolTable(
                section_index=section.index,
                section_name=section.display_name,
                section_type=section.section_type,
                error=exc.to_marker("symbols"),
            ))
            continue
        tables.append(SymbolTable(
            section_index=section.index,
            section_name=section.display_name,
            section_type=section.section_type,
            symbols=symbols,
        ))
    return tables
