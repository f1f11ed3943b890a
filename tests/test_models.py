"""Tests for the data models and error markers."""

import pytest
from pydantic import ValidationError

from elfdump.core.errors import BadStringOffset, OutOfBounds
from elfdump.core.models import AddressClass, ByteOrder, EntityError, Section


def test_error_to_marker():
    marker = BadStringOffset("name offset 0x99 is outside the table").to_marker("name")
    assert marker == EntityError(
        kind="BadStringOffset", field="name",
        message="name offset 0x99 is outside the table",
    )


def test_out_of_bounds_message():
    exc = OutOfBounds(0x40, 8, 32, what="symbol table")
    assert exc.offset == 0x40
    assert "symbol table of 8 bytes at offset 0x40" in str(exc)
    assert "32" in str(exc)


def test_models_are_frozen():
    section = Section(index=1, name=".text")
    with pytest.raises(ValidationError):
        section.name = ".data"


def test_display_name():
    assert Section(index=4).display_name == "[4]"
    assert Section(index=4, name=".bss").display_name == ".bss"


def test_enums():
    assert AddressClass.BITS32.bits == 32
    assert AddressClass.BITS64.bits == 64
    assert ByteOrder.LITTLE.struct_prefix == "<"
    assert ByteOrder.BIG.struct_prefix == ">"
