"""
Elfdump Engine
===============

Runs the decode chain over one byte buffer and aggregates the results
into an :class:`~elfdump.core.models.ElfDump`.

Pipeline (strictly one-directional)::

    buffer -> Identity -> FileHeader -> {Segments, Sections}
           -> section names -> {Symbol tables, Dynamic entries}
           -> section-to-segment mapping

Failures that prevent the Identity or FileHeader propagate as
:class:`~elfdump.core.errors.FatalElfError`.  A table that cannot be
decoded is logged, recorded in ``ElfDump.warnings`` and left empty; the
remaining stages still run.
"""

from __future__ import annotations

from pathlib import Path

from shared.config import ElfdumpConfig
from shared.logger import DumpLogger

from elfdump.core.errors import ElfError
from elfdump.core.models import (
    DynamicEntry,
    ElfDump,
    EntityError,
    Section,
    Segment,
)
from elfdump.parsers.dynamic import find_dynamic_section, parse_dynamic
from elfdump.parsers.header import parse_header
from elfdump.parsers.ident import parse_identity
from elfdump.parsers.sections import parse_sections, resolve_names
from elfdump.parsers.segments import map_sections_to_segments, parse_segments
from elfdump.parsers.symbols import linked_string_section, parse_symbol_tables


class FileTooLarge(ValueError):
    """The input file exceeds ``dump.max_file_size``."""

    pass


class DumpEngine:
    """Decode an ELF image into an :class:`ElfDump`.

    Usage::

        engine = DumpEngine()
        result = engine.dump_file("/usr/bin/ls")
        for section in result.sections:
            print(section.index, section.name)

    Or, with a buffer already in memory::

        result = engine.dump(data)
    """

    def __init__(
        self,
        config: ElfdumpConfig | None = None,
        logger: DumpLogger | None = None,
    ) -> None:
        """Initialise the engine.

        Args:
            config: Elfdump configuration.  Defaults are used if not provided.
            logger: Logger instance.  A new one is created if not provided.
        """
        self._config: ElfdumpConfig = config or ElfdumpConfig()
        self._logger: DumpLogger = logger or DumpLogger(
            "engine", log_level=self._config.global_settings.log_level
        )

    # ------------------------------------------------------------------ #
    #  Entry points
    # ------------------------------------------------------------------ #

    def dump_file(self, file_path: str | Path) -> ElfDump:
        """Read *file_path* into memory and decode it.

        Raises:
            OSError: The file cannot be read.
            FileTooLarge: The file exceeds the configured size limit.
            FatalElfError: The identification block or header is invalid.
        """
        path = Path(file_path)
        file_size = path.stat().st_size
        max_size = self._config.dump.max_file_size
        if file_size > max_size:
            raise FileTooLarge(
                f"{path}: {file_size:,} bytes exceeds the "
                f"{max_size:,}-byte limit"
            )
        data = path.read_bytes()
        return self.dump(data, path=str(path))

    def dump(self, buffer: bytes, path: str = "") -> ElfDump:
        """Decode *buffer* in a single pass.

        Raises:
            FatalElfError: The identification block or header is invalid.
        """
        with self._logger.timed(f"decode {path or '<memory>'}"):
            return self._run_pipeline(bytes(buffer), path)

    # ------------------------------------------------------------------ #
    #  Pipeline implementation
    # ------------------------------------------------------------------ #

    def _run_pipeline(self, buffer: bytes, path: str) -> ElfDump:
        warnings: list[EntityError] = []

        with self._logger.operation("header"):
            identity = parse_identity(buffer)
            header = parse_header(buffer, identity)
            self._logger.debug(
                "ELF%d %s-endian, %d program headers, %d section headers",
                identity.address_class.bits,
                identity.byte_order.name.lower(),
                header.program_header_count,
                header.section_header_count,
            )

        segments: list[Segment] = []
        with self._logger.operation("segments"):
            try:
                segments = parse_segments(buffer, header, identity)
            except ElfError as exc:
                self._logger.warning("Program header table skipped: %s", exc)
                warnings.append(exc.to_marker("program_headers"))

        sections: list[Section] = []
        with self._logger.operation("sections"):
            try:
                sections = parse_sections(buffer, header, identity)
            except ElfError as exc:
                self._logger.warning("Section header table skipped: %s", exc)
                warnings.append(exc.to_marker("section_headers"))
            sections = resolve_names(
                sections, buffer, header.section_name_string_table_index
            )
            bad_names = sum(1 for s in sections if s.name_error is not None)
            if bad_names:
                self._logger.warning(
                    "%d section name(s) could not be resolved", bad_names
                )

        with self._logger.operation("symbols"):
            symbol_tables = parse_symbol_tables(buffer, sections, identity)
            for table in symbol_tables:
                if table.error is not None:
                    self._logger.warning(
                        "Symbol table %s skipped: %s",
                        table.section_name, table.error.message,
                    )
                else:
                    self._logger.debug(
                        "Symbol table %s: %d entries",
                        table.section_name, len(table.symbols),
                    )

        dynamic: list[DynamicEntry] = []
        with self._logger.operation("dynamic"):
            dynamic_section = find_dynamic_section(sections)
            if dynamic_section is not None:
                try:
                    dynamic = parse_dynamic(
                        buffer,
                        dynamic_section,
                        linked_string_section(sections, dynamic_section),
                        identity,
                    )
                except ElfError as exc:
                    self._logger.warning("Dynamic section skipped: %s", exc)
                    warnings.append(exc.to_marker("dynamic"))

        segment_sections = map_sections_to_segments(segments, sections)

        return ElfDump(
            path=path,
            size=len(buffer),
            identity=identity,
            header=header,
            segments=segments,
            sections=sections,
            segment_sections=segment_sections,
            symbol_tables=symbol_tables,
            dynamic=dynamic,
            warnings=warnings,
        )
