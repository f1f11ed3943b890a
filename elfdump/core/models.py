"""
Elfdump Data Models
====================

Pydantic-based data models for the structures decoded from an ELF image.

Every model is frozen: a decode pass builds them once and nothing mutates
them afterwards.  Integer fields are widened to plain Python ``int``
regardless of the source address class, so downstream arithmetic never
needs to know whether a value came from a 4-byte or an 8-byte field.

Offsets and sizes describe byte ranges inside the caller's buffer; no
model holds a copy of the image.  Resolved names are the exception, they
are copied out of their string table once.

References:
    - TIS Committee. (1995). Executable and Linkable Format (ELF) Specification.
    - System V Application Binary Interface, Edition 4.1.
    - Pydantic v2 documentation. https://docs.pydantic.dev/latest/
"""

from __future__ import annotations

import enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class AddressClass(enum.IntEnum):
    """Width of the file's pointer-sized fields (``EI_CLASS``)."""
    BITS32 = 1
    BITS64 = 2

    @property
    def bits(self) -> int:
        return 64 if self is AddressClass.BITS64 else 32


class ByteOrder(enum.IntEnum):
    """Byte order of multi-byte fields (``EI_DATA``)."""
    LITTLE = 1
    BIG = 2

    @property
    def struct_prefix(self) -> str:
        """Prefix character selecting this byte order in :mod:`struct`."""
        return "<" if self is ByteOrder.LITTLE else ">"


# ---------------------------------------------------------------------------
# Per-entity error marker
# ---------------------------------------------------------------------------

class EntityError(BaseModel):
    """A recoverable failure attached to one entity or one table.

    Attributes:
        kind: Error class name (``BadStringOffset``, ``OutOfBounds`` ...).
        field: Which field or table the failure affected.
        message: Human-readable detail.
    """
    model_config = ConfigDict(frozen=True)

    kind: str
    field: str
    message: str = ""


# ---------------------------------------------------------------------------
# Identification and file header
# ---------------------------------------------------------------------------

class Identity(BaseModel):
    """The decoded 16-byte identification block.

    Every later decode takes this as a parameter; class and byte order are
    fixed for the lifetime of one file.

    Attributes:
        address_class: 32-bit or 64-bit layout.
        byte_order: Little- or big-endian fields.
        abi_version: ``EI_ABIVERSION``, informational only.
        version: ``EI_VERSION``.
        os_abi: ``EI_OSABI`` code.
        ident: The raw identification bytes.
    """
    model_config = ConfigDict(frozen=True)

    address_class: AddressClass
    byte_order: ByteOrder
    abi_version: int = 0
    version: int = 0
    os_abi: int = 0
    ident: tuple[int, ...] = ()


class FileHeader(BaseModel):
    """The ELF file header (``Elf32_Ehdr`` / ``Elf64_Ehdr``).

    Unknown ``object_type`` and ``machine`` codes pass through as opaque
    numbers; rendering them is the dumper's job.
    """
    model_config = ConfigDict(frozen=True)

    object_type: int
    machine: int
    version: int = 0
    entry_point: int = 0
    program_header_offset: int = 0
    section_header_offset: int = 0
    flags: int = 0
    header_size: int = 0
    program_header_entry_size: int = 0
    program_header_count: int = 0
    section_header_entry_size: int = 0
    section_header_count: int = 0
    section_name_string_table_index: int = 0


# ---------------------------------------------------------------------------
# Segments and sections
# ---------------------------------------------------------------------------

class Segment(BaseModel):
    """One program header entry, purely descriptive of a byte range."""
    model_config = ConfigDict(frozen=True)

    index: int
    segment_type: int
    flags: int = 0
    file_offset: int = 0
    virtual_address: int = 0
    physical_address: int = 0
    file_size: int = 0
    memory_size: int = 0
    alignment: int = 0


class Section(BaseModel):
    """One section header entry.

    ``name`` stays ``None`` until :func:`elfdump.parsers.sections.resolve_names`
    runs; before that a section is identified by ``index`` alone.  When
    the name cannot be read, ``name`` holds a placeholder and ``name_error``
    records why.
    """
    model_config = ConfigDict(frozen=True)

    index: int
    name_offset: int = 0
    name: Optional[str] = None
    name_error: Optional[EntityError] = None
    section_type: int = 0
    flags: int = 0
    address: int = 0
    file_offset: int = 0
    size: int = 0
    link: int = 0
    info: int = 0
    address_alignment: int = 0
    entry_size: int = 0

    @property
    def display_name(self) -> str:
        """Resolved name, or ``[index]`` for a section not yet resolved."""
        return self.name if self.name is not None else f"[{self.index}]"


# ---------------------------------------------------------------------------
# Symbols
# ---------------------------------------------------------------------------

class Symbol(BaseModel):
    """One symbol table record.

    ``section_index`` is preserved verbatim, including the reserved
    sentinels (``SHN_UNDEF``, ``SHN_ABS``, ``SHN_COMMON`` ...).
    """
    model_config = ConfigDict(frozen=True)

    index: int
    name_offset: int = 0
    name: str = ""
    name_error: Optional[EntityError] = None
    value: int = 0
    size: int = 0
    binding: int = 0
    symbol_type: int = 0
    visibility: int = 0
    section_index: int = 0


class SymbolTable(BaseModel):
    """Symbols decoded from one ``SHT_SYMTAB`` or ``SHT_DYNSYM`` section.

    Attributes:
        section_index: Index of the symbol-carrying section.
        section_name: Its resolved name (``.symtab``, ``.dynsym`` ...).
        section_type: ``SHT_SYMTAB`` or ``SHT_DYNSYM``.
        symbols: Records in table order.
        error: Set when the whole table was rejected.
    """
    model_config = ConfigDict(frozen=True)

    section_index: int
    section_name: str = ""
    section_type: int = 0
    symbols: list[Symbol] = Field(default_factory=list)
    error: Optional[EntityError] = None


# ---------------------------------------------------------------------------
# Dynamic section
# ---------------------------------------------------------------------------

class DynamicEntry(BaseModel):
    """One ``Elf_Dyn`` entry; ``name`` is set for string-valued tags."""
    model_config = ConfigDict(frozen=True)

    tag: int
    value: int = 0
    name: Optional[str] = None
    name_error: Optional[EntityError] = None


# ---------------------------------------------------------------------------
# Aggregate dump result
# ---------------------------------------------------------------------------

class ElfDump(BaseModel):
    """Everything decoded from one ELF image.

    Attributes:
        path: Source path, empty when decoding an in-memory buffer.
        size: Buffer length in bytes.
        identity: Identification block.
        header: File header.
        segments: Program headers in table order.
        sections: Section headers in table order, names resolved.
        segment_sections: For each segment, indices of the sections it maps.
        symbol_tables: One entry per symbol-carrying section.
        dynamic: Dynamic section entries, empty when absent.
        warnings: Table-level markers for tables that could not be decoded.
    """
    model_config = ConfigDict(frozen=True)

    path: str = ""
    size: int = 0
    identity: Identity
    header: FileHeader
    segments: list[Segment] = Field(default_factory=list)
    sections: list[Section] = Field(default_factory=list)
    segment_sections: list[list[int]] = Field(default_factory=list)
    symbol_tables: list[SymbolTable] = Field(default_factory=list)
    dynamic: list[DynamicEntry] = Field(default_factory=list)
    warnings: list[EntityError] = Field(default_factory=list)

    def markers(self) -> list[EntityError]:
        """Collect every table-level and per-entity marker in table order."""
        found: list[EntityError] = list(self.warnings)
        found.extend(s.name_error for s in self.sections if s.name_error)
        for table in self.symbol_tables:
            if table.error is not None:
                found.append(table.error)
            found.extend(s.name_error for s in table.symbols if s.name_error)
        found.extend(d.name_error for d in self.dynamic if d.name_error)
        return found

    @property
    def has_warnings(self) -> bool:
        """``True`` when the dump completed with any recovered error."""
        return bool(self.markers())
