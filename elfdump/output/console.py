"""
Elfdump Console Output
=======================

Rich-powered, readelf-style terminal display of an
:class:`~elfdump.core.models.ElfDump`.

Field widths follow the address class: 64-bit addresses are printed with
16 hex digits, 32-bit ones with 8.  Entities that carry an error marker
are printed in place with a red ``<corrupt>`` cell naming the failure,
so one bad entry never hides its siblings.
"""

from __future__ import annotations

from dataclasses import dataclass

from rich.markup import escape

from shared.console import DumpConsole

from elfdump.core.models import (
    AddressClass,
    ByteOrder,
    ElfDump,
    EntityError,
    Section,
    Symbol,
    SymbolTable,
)
from elfdump.parsers.constants import (
    EV_CURRENT,
    SHT_DYNSYM,
    SHT_SYMTAB,
    describe,
    section_flags_str,
    section_index_str,
    segment_flags_str,
)


@dataclass(slots=True)
class DisplayOptions:
    """Which parts of the dump to render."""

    file_header: bool = False
    program_headers: bool = False
    section_headers: bool = False
    symbols: bool = False
    dyn_syms: bool = False
    dynamic: bool = False

    @classmethod
    def everything(cls) -> DisplayOptions:
        return cls(True, True, True, True, True, True)

    def any(self) -> bool:
        return any((
            self.file_header, self.program_headers, self.section_headers,
            self.symbols, self.dyn_syms, self.dynamic,
        ))


def _corrupt(error: EntityError) -> str:
    return f"[dump.corrupt]<corrupt: {escape(error.kind)}>[/dump.corrupt]"


def _truncate(name: str, width: int) -> str:
    if width > 0 and len(name) > width:
        return name[: width - 1] + "~"
    return name


# ---------------------------------------------------------------------------
# DumpConsoleOutput
# ---------------------------------------------------------------------------

class DumpConsoleOutput:
    """Rich terminal display for Elfdump results.

    Usage::

        output = DumpConsoleOutput()
        output.display(result, DisplayOptions.everything())
    """

    def __init__(self, console: DumpConsole | None = None, name_width: int = 24) -> None:
        """Initialise the output renderer.

        Args:
            console: Optional DumpConsole instance.  A new one is created
                     if not provided.
            name_width: Maximum width of name columns; longer names are
                     truncated with ``~``.  ``0`` disables truncation.
        """
        self._console: DumpConsole = console or DumpConsole()
        self._name_width = name_width

    def display(self, result: ElfDump, options: DisplayOptions) -> None:
        """Display the parts of *result* selected by *options*."""
        blocks = []
        if options.file_header:
            blocks.append(lambda: self.display_header(result))
        if options.section_headers:
            blocks.append(lambda: self.display_sections(result))
        if options.program_headers:
            blocks.append(lambda: self.display_segments(result))
        if options.dynamic:
            blocks.append(lambda: self.display_dynamic(result))
        if options.symbols:
            blocks.append(lambda: self.display_symbols(result, (SHT_SYMTAB, SHT_DYNSYM)))
        elif options.dyn_syms:
            blocks.append(lambda: self.display_symbols(result, (SHT_DYNSYM,)))

        for i, block in enumerate(blocks):
            if i:
                self._console.blank()
            block()

        if result.warnings:
            self._console.blank()
            for marker in result.warnings:
                self._console.warning(
                    f"{escape(marker.field)}: {escape(marker.message)}"
                )

    # ------------------------------------------------------------------ #
    #  Helpers
    # ------------------------------------------------------------------ #

    @staticmethod
    def _addr(result: ElfDump, value: int) -> str:
        digits = 16 if result.identity.address_class is AddressClass.BITS64 else 8
        return f"{value:0{digits}x}"

    def _name(self, name: str | None, error: EntityError | None) -> str:
        if error is not None:
            return _corrupt(error)
        return escape(_truncate(name or "", self._name_width))

    # ------------------------------------------------------------------ #
    #  File header
    # ------------------------------------------------------------------ #

    def display_header(self, result: ElfDump) -> None:
        """Display the identification block and file header."""
        ident = result.identity
        h = result.header
        self._console.section("ELF Header", escape(result.path))
        self._console.print(
            "  [dump.label]Magic[/dump.label]:   "
            + " ".join(f"{b:02x}" for b in ident.ident)
        )
        endian = (
            "2's complement, little endian"
            if ident.byte_order is ByteOrder.LITTLE
            else "2's complement, big endian"
        )
        version = f"{ident.version}" + (
            " (current)" if ident.version == EV_CURRENT else ""
        )
        self._console.key_values([
            ("Class", f"ELF{ident.address_class.bits}"),
            ("Data", endian),
            ("Version", version),
            ("OS/ABI", describe("osabi", ident.os_abi)),
            ("ABI Version", str(ident.abi_version)),
            ("Type", describe("type", h.object_type)),
            ("Machine", describe("machine", h.machine)),
            ("Version", f"0x{h.version:x}"),
            ("Entry point address", f"0x{h.entry_point:x}"),
            ("Start of program headers",
             f"{h.program_header_offset} (bytes into file)"),
            ("Start of section headers",
             f"{h.section_header_offset} (bytes into file)"),
            ("Flags", f"0x{h.flags:x}"),
            ("Size of this header", f"{h.header_size} (bytes)"),
            ("Size of program headers", f"{h.program_header_entry_size} (bytes)"),
            ("Number of program headers", str(h.program_header_count)),
            ("Size of section headers", f"{h.section_header_entry_size} (bytes)"),
            ("Number of section headers", str(h.section_header_count)),
            ("Section header string table index",
             str(h.section_name_string_table_index)),
        ])

    # ------------------------------------------------------------------ #
    #  Section headers
    # ------------------------------------------------------------------ #

    def display_sections(self, result: ElfDump) -> None:
        """Display the section header table."""
        h = result.header
        self._console.print(
            f"There are {len(result.sections)} section headers, "
            f"starting at offset 0x{h.section_header_offset:x}:"
        )
        self._console.blank()
        self._console.section("Section Headers")
        if not result.sections:
            self._console.info("There are no sections in this file.")
            return

        rows = [self._section_row(result, s) for s in result.sections]
        self._console.table(
            None,
            ["[Nr]", "Name", "Type", "Address", "Off", "Size",
             "ES", "Flg", "Lk", "Inf", "Al"],
            rows,
            justify=["right", "left", "left", "left", "left", "left",
                     "left", "right", "right", "right", "right"],
        )
        self._console.print(
            "[dump.dim]Key to Flags: W (write), A (alloc), X (execute), "
            "M (merge), S (strings), I (info), L (link order), "
            "O (extra OS processing required), G (group), T (TLS), "
            "C (compressed), E (exclude), x (unknown)[/dump.dim]"
        )

    def _section_row(self, result: ElfDump, s: Section) -> tuple[str, ...]:
        return (
            f"[{s.index:2d}]",
            self._name(s.name, s.name_error),
            escape(describe("section_type", s.section_type)),
            self._addr(result, s.address),
            f"{s.file_offset:06x}",
            f"{s.size:06x}",
            f"{s.entry_size:02x}",
            section_flags_str(s.flags),
            str(s.link),
            str(s.info),
            str(s.address_alignment),
        )

    # ------------------------------------------------------------------ #
    #  Program headers
    # ------------------------------------------------------------------ #

    def display_segments(self, result: ElfDump) -> None:
        """Display program headers and the section-to-segment mapping."""
        h = result.header
        self._console.print(
            f"Elf file type is {escape(describe('type', h.object_type))}"
        )
        self._console.print(f"Entry point 0x{h.entry_point:x}")
        self._console.print(
            f"There are {len(result.segments)} program headers, "
            f"starting at offset {h.program_header_offset}"
        )
        self._console.blank()
        self._console.section("Program Headers")
        if not result.segments:
            self._console.info("There are no program headers in this file.")
            return

        rows = [
            (
                escape(describe("segment_type", seg.segment_type)),
                f"0x{seg.file_offset:06x}",
                f"0x{self._addr(result, seg.virtual_address)}",
                f"0x{self._addr(result, seg.physical_address)}",
                f"0x{seg.file_size:06x}",
                f"0x{seg.memory_size:06x}",
                segment_flags_str(seg.flags),
                f"0x{seg.alignment:x}",
            )
            for seg in result.segments
        ]
        self._console.table(
            None,
            ["Type", "Offset", "VirtAddr", "PhysAddr", "FileSiz", "MemSiz",
             "Flg", "Align"],
            rows,
        )

        self._console.blank()
        self._console.section("Section to Segment mapping")
        by_index = {s.index: s for s in result.sections}
        mapping_rows = []
        for seg_index, members in enumerate(result.segment_sections):
            names = " ".join(
                escape(by_index[i].display_name) for i in members if i in by_index
            )
            mapping_rows.append((f"{seg_index:02d}", names))
        self._console.table(None, ["Segment", "Sections..."], mapping_rows)

    # ------------------------------------------------------------------ #
    #  Dynamic section
    # ------------------------------------------------------------------ #

    def display_dynamic(self, result: ElfDump) -> None:
        """Display the dynamic section entries."""
        if not result.dynamic:
            self._console.info("There is no dynamic section in this file.")
            return
        self._console.section(
            "Dynamic section", f"contains {len(result.dynamic)} entries"
        )
        rows = []
        for entry in result.dynamic:
            if entry.name_error is not None:
                value = _corrupt(entry.name_error)
            elif entry.name is not None:
                value = escape(entry.name)
            else:
                value = f"0x{entry.value:x}"
            rows.append((
                f"0x{entry.tag & 0xFFFFFFFFFFFFFFFF:016x}",
                f"({escape(describe('dynamic_tag', entry.tag))})",
                value,
            ))
        self._console.table(None, ["Tag", "Type", "Name/Value"], rows)

    # ------------------------------------------------------------------ #
    #  Symbols
    # ------------------------------------------------------------------ #

    def display_symbols(
        self,
        result: ElfDump,
        section_types: tuple[int, ...],
    ) -> None:
        """Display every symbol table whose section type is selected."""
        tables = [t for t in result.symbol_tables if t.section_type in section_types]
        if not tables:
            self._console.info("No symbol tables in this file.")
            return
        for i, table in enumerate(tables):
            if i:
                self._console.blank()
            self._display_symbol_table(result, table)

    def _display_symbol_table(self, result: ElfDump, table: SymbolTable) -> None:
        self._console.section(
            f"Symbol table '{escape(table.section_name)}'",
            f"contains {len(table.symbols)} entries",
        )
        if table.error is not None:
            self._console.warning(
                f"{_corrupt(table.error)} {escape(table.error.message)}"
            )
            return
        rows = [self._symbol_row(result, sym) for sym in table.symbols]
        self._console.table(
            None,
            ["Num:", "Value", "Size", "Type", "Bind", "Vis", "Ndx", "Name"],
            rows,
            justify=["right", "left", "right", "left", "left", "left",
                     "right", "left"],
        )

    def _symbol_row(self, result: ElfDump, sym: Symbol) -> tuple[str, ...]:
        return (
            f"{sym.index}:",
            self._addr(result, sym.value),
            str(sym.size),
            escape(describe("symbol_type", sym.symbol_type)),
            escape(describe("binding", sym.binding)),
            escape(describe("visibility", sym.visibility)),
            section_index_str(sym.section_index),
            self._name(sym.name, sym.name_error),
        )
