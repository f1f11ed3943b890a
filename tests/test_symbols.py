"""Tests for symbol table decoding."""

import pytest

from elf_builder import ELFCLASS32, ELFCLASS64, LITTLE, SHN_ABS, SHN_COMMON, full_builder

from elfdump.core.errors import BadEntrySize, DivisionInvariant, OutOfBounds
from elfdump.parsers.constants import (
    STB_GLOBAL,
    STB_LOCAL,
    STT_FILE,
    STT_FUNC,
    STT_NOTYPE,
    STT_OBJECT,
    SHT_DYNSYM,
    SHT_SYMTAB,
)
from elfdump.parsers.header import parse_header
from elfdump.parsers.ident import parse_identity
from elfdump.parsers.sections import PLACEHOLDER_NAME, find_section, parse_sections, resolve_names
from elfdump.parsers.symbols import (
    SYMBOL_RECORD_SIZE,
    linked_string_section,
    parse_symbol_tables,
    parse_symbols,
)

SYMTAB = 7  # position of .symtab in ElfBuilder.sections


def _decode(image: bytes):
    identity = parse_identity(image)
    header = parse_header(image, identity)
    sections = resolve_names(
        parse_sections(image, header, identity), image,
        header.section_name_string_table_index,
    )
    return identity, sections


def _symtab(image: bytes):
    identity, sections = _decode(image)
    tables = parse_symbol_tables(image, sections, identity)
    return next(t for t in tables if t.section_type == SHT_SYMTAB)


def _pad_records(data: bytes, record: int, pad: int) -> bytes:
    chunks = [data[i:i + record] for i in range(0, len(data), record)]
    return b"".join(chunk + b"\xAA" * pad for chunk in chunks)


class TestParseSymbols:
    def test_record_sizes(self):
        assert SYMBOL_RECORD_SIZE[ELFCLASS32] == 16
        assert SYMBOL_RECORD_SIZE[ELFCLASS64] == 24

    def test_decodes_symtab(self, full_image):
        table = _symtab(full_image)
        assert table.error is None
        assert table.section_name == ".symtab"
        assert [s.name for s in table.symbols] == ["", "crt.c", "main", "counter", "_start", "buf"]
        assert [s.index for s in table.symbols] == list(range(6))

        main = table.symbols[2]
        assert main.value == 0x401000
        assert main.size == 32
        assert main.binding == STB_GLOBAL
        assert main.symbol_type == STT_FUNC
        assert main.section_index == 1

        counter = table.symbols[3]
        assert counter.symbol_type == STT_OBJECT
        assert counter.visibility == 2
        assert counter.section_index == 5

        crt = table.symbols[1]
        assert crt.binding == STB_LOCAL
        assert crt.symbol_type == STT_FILE

    def test_reserved_section_indices_kept_verbatim(self, full_image):
        symbols = _symtab(full_image).symbols
        assert symbols[1].section_index == SHN_ABS
        assert symbols[4].section_index == 0
        assert symbols[4].symbol_type == STT_NOTYPE
        assert symbols[5].section_index == SHN_COMMON

    def test_both_tables_decoded_in_section_order(self, full_image):
        identity, sections = _decode(full_image)
        tables = parse_symbol_tables(full_image, sections, identity)
        assert [(t.section_index, t.section_type) for t in tables] == [
            (3, SHT_DYNSYM), (8, SHT_SYMTAB),
        ]
        assert [s.name for s in tables[0].symbols] == ["", "puts"]

    def test_no_symbol_sections(self, minimal_image):
        identity, sections = _decode(minimal_image)
        assert parse_symbol_tables(minimal_image, sections, identity) == []

    @pytest.mark.parametrize("elf_class", [ELFCLASS32, ELFCLASS64])
    def test_larger_entry_size_strides_by_declared_size(self, elf_class):
        builder = full_builder(elf_class, LITTLE)
        spec = builder.sections[SYMTAB]
        record = builder.symbol_entsize
        spec.data = _pad_records(spec.data, record, 8)
        spec.entsize = record + 8

        table = _symtab(builder.build())
        assert table.error is None
        assert [s.name for s in table.symbols] == ["", "crt.c", "main", "counter", "_start", "buf"]
        assert table.symbols[3].value == 0x402000

    @pytest.mark.parametrize("elf_class", [ELFCLASS32, ELFCLASS64])
    def test_smaller_entry_size_rejected(self, elf_class):
        builder = full_builder(elf_class, LITTLE)
        builder.sections[SYMTAB].entsize = builder.symbol_entsize - 4

        table = _symtab(builder.build())
        assert table.symbols == []
        assert table.error.kind == "BadEntrySize"
        assert table.error.field == "symbols"

    def test_zero_entry_size(self):
        builder = full_builder(ELFCLASS64, LITTLE)
        builder.sections[SYMTAB].entsize = 0
        image = builder.build()
        identity, sections = _decode(image)
        symtab = find_section(sections, ".symtab")
        with pytest.raises(DivisionInvariant):
            parse_symbols(image, symtab, linked_string_section(sections, symtab), identity)

    def test_zero_entry_size_isolated_to_its_table(self):
        builder = full_builder(ELFCLASS64, LITTLE)
        builder.sections[SYMTAB].entsize = 0
        image = builder.build()
        identity, sections = _decode(image)
        dynsym, symtab = parse_symbol_tables(image, sections, identity)
        assert symtab.error.kind == "DivisionInvariant"
        assert dynsym.error is None
        assert len(dynsym.symbols) == 2

    def test_trailing_partial_record_ignored(self):
        builder = full_builder(ELFCLASS64, LITTLE)
        spec = builder.sections[SYMTAB]
        spec.size = len(spec.data) + 5
        spec.data = spec.data + b"\x00" * 5
        assert len(_symtab(builder.build()).symbols) == 6

    def test_table_past_buffer(self):
        builder = full_builder(ELFCLASS32, LITTLE)
        builder.sections[SYMTAB].size = 0x100000
        image = builder.build()
        identity, sections = _decode(image)
        symtab = find_section(sections, ".symtab")
        with pytest.raises(OutOfBounds):
            parse_symbols(image, symtab, linked_string_section(sections, symtab), identity)

    def test_missing_string_table_link(self):
        builder = full_builder(ELFCLASS64, LITTLE)
        builder.sections[SYMTAB].link = 0
        table = _symtab(builder.build())

        assert table.error is None
        assert len(table.symbols) == 6
        assert all(s.name == PLACEHOLDER_NAME for s in table.symbols)
        assert all(s.name_error.kind == "OutOfBounds" for s in table.symbols)
        assert table.symbols[2].value == 0x401000

    def test_link_out_of_range(self):
        builder = full_builder(ELFCLASS64, LITTLE)
        builder.sections[SYMTAB].link = 200
        assert all(s.name_error is not None for s in _symtab(builder.build()).symbols)

    def test_bad_name_offset_marks_one_symbol(self):
        builder = full_builder(ELFCLASS64, LITTLE)
        spec = builder.sections[SYMTAB]
        record = builder.symbol_entsize
        bad = builder.symbols([(0x7000, 0x401000, 32, 0x12, 0, 1)])
        spec.data = spec.data[:2 * record] + bad + spec.data[3 * record:]

        symbols = _symtab(builder.build()).symbols
        assert symbols[2].name == PLACEHOLDER_NAME
        assert symbols[2].name_error.kind == "BadStringOffset"
        assert symbols[2].value == 0x401000
        assert [s.name for s in symbols if s.index != 2] == ["", "crt.c", "counter", "_start", "buf"]


class TestLinkedStringSection:
    def test_valid_link(self, full_image):
        _, sections = _decode(full_image)
        symtab = find_section(sections, ".symtab")
        assert linked_string_section(sections, symtab).name == ".strtab"

    def test_zero_and_out_of_range(self, full_image):
        _, sections = _decode(full_image)
        symtab = find_section(sections, ".symtab")
        assert linked_string_section(sections, symtab.model_copy(update={"link": 0})) is None
        assert linked_string_section(sections, symtab.model_copy(update={"link": 10})) is None
