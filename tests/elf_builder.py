"""
In-memory ELF image builder used by the test suite.

Lays an image out as::

    file header | program headers | section data ... | section headers

Every multi-byte field is packed with :mod:`struct` in the requested
class and byte order, independently of the decoder under test.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field
from typing import Optional

ELFCLASS32 = 1
ELFCLASS64 = 2
LITTLE = 1
BIG = 2

SHT_PROGBITS = 1
SHT_SYMTAB = 2
SHT_STRTAB = 3
SHT_DYNAMIC = 6
SHT_NOBITS = 8
SHT_DYNSYM = 11

SHF_WRITE = 0x1
SHF_ALLOC = 0x2
SHF_EXECINSTR = 0x4

PT_LOAD = 1
PT_DYNAMIC = 2
PF_X = 0x1
PF_W = 0x2
PF_R = 0x4


def string_table(names: list[str]) -> tuple[bytes, dict[str, int]]:
    """Return a null-led string table and the offset of every name."""
    blob = bytearray(b"\x00")
    offsets: dict[str, int] = {"": 0}
    for name in names:
        if name in offsets:
            continue
        offsets[name] = len(blob)
        blob += name.encode() + b"\x00"
    return bytes(blob), offsets


def _align(value: int, boundary: int = 8) -> int:
    return (value + boundary - 1) // boundary * boundary


@dataclass
class SectionSpec:
    name: str
    sh_type: int
    data: bytes = b""
    flags: int = 0
    addr: Optional[int] = None
    link: int = 0
    info: int = 0
    align: int = 1
    entsize: int = 0
    size: Optional[int] = None
    name_offset: Optional[int] = None


@dataclass
class SegmentSpec:
    p_type: int
    flags: int
    sections: tuple[str, ...] = ()
    from_start: bool = False
    align: int = 0x1000
    overrides: dict = field(default_factory=dict)


class ElfBuilder:
    """Assemble a small but well-formed ELF image.

    Usage::

        b = ElfBuilder(ELFCLASS64, LITTLE)
        b.add_section(".text", SHT_PROGBITS, b"\\x90" * 16, flags=SHF_ALLOC | SHF_EXECINSTR)
        b.add_segment(PT_LOAD, PF_R | PF_X, (".text",), from_start=True)
        image = b.build()
    """

    def __init__(
        self,
        elf_class: int = ELFCLASS64,
        byte_order: int = LITTLE,
        *,
        e_type: int = 2,
        machine: int = 62,
        entry: int = 0x401000,
        osabi: int = 0,
        abi_version: int = 0,
        e_flags: int = 0,
        base_address: int = 0x400000,
        null_section: bool = True,
    ) -> None:
        self.elf_class = elf_class
        self.byte_order = byte_order
        self.e_type = e_type
        self.machine = machine
        self.entry = entry
        self.osabi = osabi
        self.abi_version = abi_version
        self.e_flags = e_flags
        self.base_address = base_address
        self.null_section = null_section
        self.sections: list[SectionSpec] = []
        self.segments: list[SegmentSpec] = []
        # Raw header field overrides, keyed by Elf_Ehdr member name.
        self.header_overrides: dict[str, int] = {}
        self.phentsize: Optional[int] = None
        self.shentsize: Optional[int] = None

    # ------------------------------------------------------------------ #

    @property
    def is64(self) -> bool:
        return self.elf_class == ELFCLASS64

    @property
    def prefix(self) -> str:
        return "<" if self.byte_order == LITTLE else ">"

    @property
    def shstrtab_index(self) -> int:
        return len(self.sections) + (1 if self.null_section else 0)

    def add_section(self, name: str, sh_type: int, data: bytes = b"", **kwargs) -> int:
        """Append a section and return its index in the final table."""
        self.sections.append(SectionSpec(name, sh_type, data, **kwargs))
        return len(self.sections) - (0 if self.null_section else 1)

    def add_segment(self, p_type: int, flags: int, sections: tuple[str, ...] = (),
                    **kwargs) -> None:
        self.segments.append(SegmentSpec(p_type, flags, tuple(sections), **kwargs))

    # ------------------------------------------------------------------ #
    #  Record packers
    # ------------------------------------------------------------------ #

    def symbols(self, entries: list[tuple[int, int, int, int, int, int]]) -> bytes:
        """Pack ``(name, value, size, info, other, shndx)`` tuples."""
        out = bytearray()
        for name, value, size, info, other, shndx in entries:
            if self.is64:
                out += struct.pack(self.prefix + "IBBHQQ", name, info, other, shndx, value, size)
            else:
                out += struct.pack(self.prefix + "IIIBBH", name, value, size, info, other, shndx)
        return bytes(out)

    def dynamic(self, entries: list[tuple[int, int]]) -> bytes:
        """Pack ``(tag, value)`` pairs; tags are signed."""
        code = "qQ" if self.is64 else "iI"
        return b"".join(struct.pack(self.prefix + code, tag, value) for tag, value in entries)

    @property
    def symbol_entsize(self) -> int:
        return 24 if self.is64 else 16

    @property
    def dynamic_entsize(self) -> int:
        return 16 if self.is64 else 8

    # ------------------------------------------------------------------ #
    #  Layout
    # ------------------------------------------------------------------ #

    def build(self) -> bytes:
        secs: list[SectionSpec] = []
        if self.null_section:
            secs.append(SectionSpec("", 0, name_offset=0))
        secs.extend(self.sections)
        shstr_data, name_offsets = string_table(
            [s.name for s in secs if s.name] + [".shstrtab"]
        )
        secs.append(SectionSpec(".shstrtab", SHT_STRTAB, shstr_data))

        ehsize = 64 if self.is64 else 52
        phentsize = self.phentsize or (56 if self.is64 else 32)
        shentsize = self.shentsize or (64 if self.is64 else 40)
        phoff = ehsize if self.segments else 0

        offsets: list[int] = []
        sizes: list[int] = []
        addrs: list[int] = []
        cursor = ehsize + len(self.segments) * phentsize
        for s in secs:
            if s.sh_type == 0:
                offsets.append(0)
                sizes.append(0)
                addrs.append(0)
                continue
            cursor = _align(cursor)
            offsets.append(cursor)
            size = s.size if s.size is not None else len(s.data)
            sizes.append(size)
            if s.sh_type != SHT_NOBITS:
                cursor += len(s.data)
            if s.addr is not None:
                addrs.append(s.addr)
            elif s.flags & SHF_ALLOC:
                addrs.append(self.base_address + offsets[-1])
            else:
                addrs.append(0)
        shoff = _align(cursor)
        total = shoff + len(secs) * shentsize

        image = bytearray(total)
        p = self.prefix

        # Program headers
        for i, seg in enumerate(self.segments):
            members = [j for j, s in enumerate(secs) if s.name in seg.sections]
            if members:
                start = 0 if seg.from_start else min(offsets[j] for j in members)
                file_end = max(
                    offsets[j] + (0 if secs[j].sh_type == SHT_NOBITS else sizes[j])
                    for j in members
                )
                mem_end = max(offsets[j] + sizes[j] for j in members)
                vaddr = self.base_address + start
            else:
                start = file_end = mem_end = 0
                vaddr = self.base_address
            values = {
                "p_type": seg.p_type,
                "p_flags": seg.flags,
                "p_offset": start,
                "p_vaddr": vaddr,
                "p_paddr": vaddr,
                "p_filesz": file_end - start,
                "p_memsz": mem_end - start,
                "p_align": seg.align,
            }
            values.update(seg.overrides)
            if self.is64:
                record = struct.pack(
                    p + "IIQQQQQQ",
                    values["p_type"], values["p_flags"], values["p_offset"],
                    values["p_vaddr"], values["p_paddr"], values["p_filesz"],
                    values["p_memsz"], values["p_align"],
                )
            else:
                record = struct.pack(
                    p + "IIIIIIII",
                    values["p_type"], values["p_offset"], values["p_vaddr"],
                    values["p_paddr"], values["p_filesz"], values["p_memsz"],
                    values["p_flags"], values["p_align"],
                )
            at = phoff + i * phentsize
            image[at:at + len(record)] = record

        # Section data and headers
        for i, s in enumerate(secs):
            if s.sh_type not in (0, SHT_NOBITS) and s.data:
                image[offsets[i]:offsets[i] + len(s.data)] = s.data
            name_offset = s.name_offset if s.name_offset is not None else name_offsets[s.name]
            fields = (
                name_offset, s.sh_type, s.flags, addrs[i], offsets[i], sizes[i],
                s.link, s.info, s.align if s.sh_type else 0, s.entsize,
            )
            if self.is64:
                record = struct.pack(p + "IIQQQQIIQQ", *fields)
            else:
                record = struct.pack(p + "IIIIIIIIII", *fields)
            at = shoff + i * shentsize
            image[at:at + len(record)] = record

        # File header
        header = {
            "e_type": self.e_type,
            "e_machine": self.machine,
            "e_version": 1,
            "e_entry": self.entry,
            "e_phoff": phoff,
            "e_shoff": shoff,
            "e_flags": self.e_flags,
            "e_ehsize": ehsize,
            "e_phentsize": phentsize,
            "e_phnum": len(self.segments),
            "e_shentsize": shentsize,
            "e_shnum": len(secs),
            "e_shstrndx": len(secs) - 1,
        }
        header.update(self.header_overrides)
        ident = b"\x7fELF" + bytes(
            [self.elf_class, self.byte_order, 1, self.osabi, self.abi_version]
        ) + b"\x00" * 7
        fmt = "HHIQQQIHHHHHH" if self.is64 else "HHIIIIIHHHHHH"
        image[0:16] = ident
        packed = struct.pack(p + fmt, *header.values())
        image[16:16 + len(packed)] = packed
        return bytes(image)


# ---------------------------------------------------------------------------
# Canned images
# ---------------------------------------------------------------------------

DT_NULL = 0
DT_NEEDED = 1
DT_STRSZ = 10
DT_SONAME = 14
DT_RUNPATH = 29

SHN_ABS = 0xFFF1
SHN_COMMON = 0xFFF2


def minimal_builder() -> ElfBuilder:
    """64-bit LE image: ``.text`` and ``.shstrtab`` only, one PT_LOAD."""
    b = ElfBuilder(ELFCLASS64, LITTLE, null_section=False)
    b.add_section(".text", SHT_PROGBITS, b"\x90" * 16,
                  flags=SHF_ALLOC | SHF_EXECINSTR, align=16)
    b.add_segment(PT_LOAD, PF_R | PF_X, (".text",), from_start=True)
    return b


def full_builder(elf_class: int = ELFCLASS64, byte_order: int = LITTLE) -> ElfBuilder:
    """A dynamically linked looking image with both symbol tables.

    Section indices::

        0 null  1 .text  2 .dynstr  3 .dynsym  4 .dynamic  5 .data
        6 .bss  7 .strtab  8 .symtab  9 .shstrtab
    """
    b = ElfBuilder(elf_class, byte_order)
    text = b.add_section(".text", SHT_PROGBITS, b"\x90" * 32,
                         flags=SHF_ALLOC | SHF_EXECINSTR, align=16)

    dynstr_data, dyn = string_table(["libc.so.6", "libfoo.so.1", "puts", "/opt/lib"])
    dynstr = b.add_section(".dynstr", SHT_STRTAB, dynstr_data, flags=SHF_ALLOC)
    b.add_section(
        ".dynsym", SHT_DYNSYM,
        b.symbols([(0, 0, 0, 0, 0, 0), (dyn["puts"], 0, 0, 0x12, 0, 0)]),
        flags=SHF_ALLOC, link=dynstr, info=1, align=8, entsize=b.symbol_entsize,
    )
    b.add_section(
        ".dynamic", SHT_DYNAMIC,
        b.dynamic([
            (DT_NEEDED, dyn["libc.so.6"]),
            (DT_SONAME, dyn["libfoo.so.1"]),
            (DT_RUNPATH, dyn["/opt/lib"]),
            (DT_STRSZ, len(dynstr_data)),
            (DT_NULL, 0),
            (DT_NEEDED, dyn["puts"]),
        ]),
        flags=SHF_ALLOC | SHF_WRITE, link=dynstr, align=8, entsize=b.dynamic_entsize,
    )
    data = b.add_section(".data", SHT_PROGBITS, b"\x01" * 8,
                         flags=SHF_ALLOC | SHF_WRITE, align=8)
    b.add_section(".bss", SHT_NOBITS, size=64, flags=SHF_ALLOC | SHF_WRITE, align=8)

    strtab_data, names = string_table(["crt.c", "main", "counter", "_start", "buf"])
    strtab = b.add_section(".strtab", SHT_STRTAB, strtab_data)
    b.add_section(
        ".symtab", SHT_SYMTAB,
        b.symbols([
            (0, 0, 0, 0, 0, 0),
            (names["crt.c"], 0, 0, 0x04, 0, SHN_ABS),
            (names["main"], 0x401000, 32, 0x12, 0, text),
            (names["counter"], 0x402000, 8, 0x11, 2, data),
            (names["_start"], 0, 0, 0x10, 0, 0),
            (names["buf"], 16, 64, 0x11, 0, SHN_COMMON),
        ]),
        link=strtab, info=2, align=8, entsize=b.symbol_entsize,
    )

    b.add_segment(PT_LOAD, PF_R | PF_X, (".text", ".dynstr", ".dynsym"), from_start=True)
    b.add_segment(PT_LOAD, PF_R | PF_W, (".dynamic", ".data", ".bss"))
    b.add_segment(PT_DYNAMIC, PF_R | PF_W, (".dynamic",), align=8)
    return b
