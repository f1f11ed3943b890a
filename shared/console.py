"""
Elfdump Console Interface
==========================

Rich-powered console abstraction providing one presentation layer for
the dump output: section rules, severity-coloured messages and tables,
all with consistent styling.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from typing import Any, Sequence

from rich.console import Console
from rich.table import Table
from rich.theme import Theme

# ---------------------------------------------------------------------------
# Theme -- consistent palette across all output
# ---------------------------------------------------------------------------
_DUMP_THEME = Theme(
    {
        "dump.section": "bold yellow",
        "dump.label": "green",
        "dump.success": "bold green",
        "dump.warning": "bold yellow",
        "dump.error": "bold red",
        "dump.info": "bold bright_blue",
        "dump.dim": "dim white",
        "dump.index": "blue",
        "dump.corrupt": "bold red",
    }
)


class DumpConsole:
    """Unified console interface for Elfdump output.

    Wraps :pyclass:`rich.console.Console` with helpers for every
    presentation need the dumper has.

    Usage::

        con = DumpConsole()
        con.section("Section Headers")
        con.table(None, ["Nr", "Name"], rows)
    """

    def __init__(
        self,
        *,
        quiet: bool = False,
        record: bool = False,
        color: bool = True,
        stderr: bool = False,
        width: int | None = None,
    ) -> None:
        """Initialise the console.

        Args:
            quiet:  Suppress all output (useful in library / test mode).
            record: Enable Rich recording for text / HTML export.
            color:  Emit colour codes when the terminal supports them.
            stderr: Write to stderr instead of stdout.
            width:  Fixed console width; ``None`` lets Rich detect it.
        """
        self._console = Console(
            theme=_DUMP_THEME,
            quiet=quiet,
            record=record,
            highlight=False,
            no_color=not color,
            stderr=stderr,
            width=width,
        )

    @property
    def rich(self) -> Console:
        """Direct access to the underlying Rich Console instance."""
        return self._console

    # ------------------------------------------------------------------ #
    #  Section header
    # ------------------------------------------------------------------ #

    def section(self, title: str, subtitle: str = "") -> None:
        """Print a section title such as ``Section Headers``."""
        suffix = f" [dump.info]{subtitle}[/dump.info]" if subtitle else ""
        self._console.print(f"[dump.section]{title}[/dump.section]{suffix}")

    # ------------------------------------------------------------------ #
    #  Message helpers (severity-coloured)
    # ------------------------------------------------------------------ #

    def success(self, message: str) -> None:
        self._console.print(f"[dump.success]OK:[/dump.success] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[dump.warning]warning:[/dump.warning] {message}")

    def error(self, message: str) -> None:
        self._console.print(f"[dump.error]error:[/dump.error] {message}")

    def info(self, message: str) -> None:
        self._console.print(f"[dump.info]{message}[/dump.info]")

    # ------------------------------------------------------------------ #
    #  Table display
    # ------------------------------------------------------------------ #

    def table(
        self,
        title: str | None,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        caption: str | None = None,
        justify: Sequence[str] | None = None,
    ) -> None:
        """Render a borderless, readelf-like Rich table.

        Args:
            title:    Optional table title.
            columns:  Column header labels.
            rows:     Iterable of row tuples; each element is stringified.
            caption:  Optional footer caption.
            justify:  Optional per-column justification (``left``/``right``).
        """
        tbl = Table(
            title=title,
            caption=caption,
            box=None,
            header_style="dump.label",
            show_edge=False,
            pad_edge=False,
            padding=(0, 1),
        )
        for idx, col_name in enumerate(columns):
            just = justify[idx] if justify and idx < len(justify) else "left"
            tbl.add_column(col_name, justify=just, overflow="fold")

        for row in rows:
            tbl.add_row(*(str(cell) for cell in row))

        self._console.print(tbl)

    def key_values(self, pairs: Sequence[tuple[str, str]], pad: int = 36) -> None:
        """Print ``label: value`` lines with values aligned at *pad*."""
        for label, value in pairs:
            gap = " " * max(pad - len(label), 1)
            self._console.print(f"  [dump.label]{label}[/dump.label]:{gap}{value}")

    # ------------------------------------------------------------------ #
    #  Utility
    # ------------------------------------------------------------------ #

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Proxy to :meth:`rich.console.Console.print`."""
        self._console.print(*args, **kwargs)

    def blank(self, count: int = 1) -> None:
        """Print *count* blank lines."""
        for _ in range(count):
            self._console.print()

    def export_text(self) -> str:
        """Export recorded console output as plain text (requires ``record=True``)."""
        return self._console.export_text()
