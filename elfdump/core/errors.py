"""
Elfdump Error Taxonomy
=======================

Exception hierarchy raised by the ELF decoders.

Two tiers exist:

    - :class:`FatalElfError` subclasses prevent establishing the file
      :class:`~elfdump.core.models.Identity` or
      :class:`~elfdump.core.models.FileHeader`.  Nothing downstream can run
      without a valid class/byte-order pair, so these abort the dump.
    - Everything else is local to one table or one entry.  Callers catch
      them and attach an :class:`~elfdump.core.models.EntityError` marker
      via :meth:`ElfError.to_marker` so sibling entries keep decoding.
"""

from __future__ import annotations

from elfdump.core.models import EntityError


class ElfError(Exception):
    """Base class for every decoding failure."""

    def to_marker(self, field: str) -> EntityError:
        """Render this error as a serialisable per-entity marker."""
        return EntityError(
            kind=type(self).__name__,
            field=field,
            message=str(self),
        )


class FatalElfError(ElfError):
    """Errors that make the whole file undecodable."""

    pass


class BadMagic(FatalElfError):
    """Identification block missing or signature is not ``\\x7fELF``."""

    pass


class UnsupportedClass(FatalElfError):
    """``EI_CLASS`` is neither ELFCLASS32 nor ELFCLASS64."""

    pass


class UnsupportedEncoding(FatalElfError):
    """``EI_DATA`` is neither ELFDATA2LSB nor ELFDATA2MSB."""

    pass


class TruncatedHeader(FatalElfError):
    """Buffer is shorter than the fixed file header for its class."""

    pass


class OutOfBounds(ElfError):
    """A read or a table extent falls past the end of the buffer."""

    def __init__(self, offset: int, width: int, length: int, what: str = "read") -> None:
        self.offset = offset
        self.width = width
        self.length = length
        self.what = what
        super().__init__(
            f"{what} of {width} bytes at offset 0x{offset:x} exceeds "
            f"buffer length {length}"
        )


class BadStringOffset(ElfError):
    """A name offset lies outside its string table section."""

    pass


class DivisionInvariant(ElfError):
    """A table declares an entry size of zero."""

    pass


class BadEntrySize(ElfError):
    """A table declares an entry size smaller than the fixed record."""

    pass
