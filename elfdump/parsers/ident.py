"""
Identification Parser
======================

Decodes the 16-byte ``e_ident`` block at offset 0.  The address class and
byte order found here parameterise every later decode.
"""

from __future__ import annotations

from elfdump.core.errors import BadMagic, UnsupportedClass, UnsupportedEncoding
from elfdump.core.models import AddressClass, ByteOrder, Identity
from elfdump.parsers.constants import (
    EI_ABIVERSION,
    EI_CLASS,
    EI_DATA,
    EI_NIDENT,
    EI_OSABI,
    EI_VERSION,
    ELF_MAGIC,
)


def parse_identity(buffer: bytes) -> Identity:
    """Validate the signature and extract class and byte order.

    Raises:
        BadMagic: Fewer than 16 bytes, or the first four are not ``\\x7fELF``.
        UnsupportedClass: ``EI_CLASS`` is not 1 or 2.
        UnsupportedEncoding: ``EI_DATA`` is not 1 or 2.
    """
    if len(buffer) < EI_NIDENT:
        raise BadMagic(
            f"file is {len(buffer)} bytes, shorter than the "
            f"{EI_NIDENT}-byte identification block"
        )
    if bytes(buffer[:4]) != ELF_MAGIC:
        raise BadMagic(f"not an ELF file: magic is {bytes(buffer[:4])!r}")

    ei_class = buffer[EI_CLASS]
    try:
        address_class = AddressClass(ei_class)
    except ValueError:
        raise UnsupportedClass(f"unsupported ELF class {ei_class}") from None

    ei_data = buffer[EI_DATA]
    try:
        byte_order = ByteOrder(ei_data)
    except ValueError:
        raise UnsupportedEncoding(f"unsupported data encoding {ei_data}") from None

    return Identity(
        address_class=address_class,
        byte_order=byte_order,
        abi_version=buffer[EI_ABIVERSION],
        version=buffer[EI_VERSION],
        os_abi=buffer[EI_OSABI],
        ident=tuple(buffer[:EI_NIDENT]),
    )
