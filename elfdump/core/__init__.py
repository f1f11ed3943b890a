"""
Elfdump Core Module
====================

Data models and the error taxonomy shared by every decoder.  The dump
engine lives in ``elfdump.core.engine``.
"""

from elfdump.core.errors import (
    BadEntrySize,
    BadMagic,
    BadStringOffset,
    DivisionInvariant,
    ElfError,
    FatalElfError,
    OutOfBounds,
    TruncatedHeader,
    UnsupportedClass,
    UnsupportedEncoding,
)
from elfdump.core.models import (
    AddressClass,
    ByteOrder,
    DynamicEntry,
    ElfDump,
    EntityError,
    FileHeader,
    Identity,
    Section,
    Segment,
    Symbol,
    SymbolTable,
)

__all__ = [
    "AddressClass",
    "BadEntrySize",
    "BadMagic",
    "BadStringOffset",
    "ByteOrder",
    "DivisionInvariant",
    "DynamicEntry",
    "ElfDump",
    "ElfError",
    "EntityError",
    "FatalElfError",
    "FileHeader",
    "Identity",
    "OutOfBounds",
    "Section",
    "Segment",
    "Symbol",
    "SymbolTable",
    "TruncatedHeader",
    "UnsupportedClass",
    "UnsupportedEncoding",
]
