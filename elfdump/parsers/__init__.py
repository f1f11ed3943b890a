"""
Elfdump Parsers
================

Decoders for the ELF structures, leaves first:

- ``reader``    -- fixed-width integer reads honouring byte order
- ``ident``     -- identification block
- ``header``    -- file header and table-extent checks
- ``segments``  -- program headers, section-to-segment mapping
- ``sections``  -- section headers, string tables, name resolution
- ``symbols``   -- ``.symtab`` / ``.dynsym`` records
- ``dynamic``   -- dynamic section entries
- ``constants`` -- ELF codes and display names
"""
