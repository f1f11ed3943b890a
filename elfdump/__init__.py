"""
Elfdump -- ELF Structure Inspector
===================================

Decodes the structural metadata of an ELF object file (file header,
program headers, section headers, symbol tables, dynamic section) from
an in-memory byte buffer and renders it as text.

Modules:
    - ``elfdump.parsers``   -- Class- and byte-order-aware decoders
    - ``elfdump.core``      -- Data models, error taxonomy, dump engine
    - ``elfdump.output``    -- Rich console tables and JSON reports
    - ``elfdump.cli``       -- Click CLI entry point

References:
    - TIS Committee. (1995). Tool Interface Standard (TIS) Executable and
      Linkable Format (ELF) Specification, Version 1.2.
    - System V Application Binary Interface, Edition 4.1.
"""

__version__ = "1.0.0"
__all__ = [
    "DumpEngine",
    "ElfDump",
    "DumpConsoleOutput",
    "DumpReportGenerator",
]
