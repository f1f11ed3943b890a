"""
Elfdump CLI -- ELF Structure Inspector
========================================

Click-based command-line interface.  Decodes each FILE and prints the
selected parts of its structure.

Usage::

    # Everything (default when no part is selected)
    elfdump /usr/bin/ls

    # File header and section headers only
    elfdump -h -S /usr/bin/ls

    # Dynamic symbols of two libraries
    elfdump --dyn-syms libc.so.6 libm.so.6

    # Machine-readable output
    elfdump --json /usr/bin/ls
    elfdump -a -o report.json /usr/bin/ls

Exit status:
    0   every file decoded cleanly
    1   at least one file could not be decoded (bad magic, truncated header ...)
    N   every file decoded, some with recovered errors
        (``dump.warnings_exit_code``, default 2)

References:
    - Click documentation: https://click.palletsprojects.com/
"""

from __future__ import annotations

import sys

import click
from rich.markup import escape

from shared.config import ElfdumpConfig
from shared.console import DumpConsole
from shared.logger import DumpLogger

from elfdump import __version__
from elfdump.core.engine import DumpEngine, FileTooLarge
from elfdump.core.errors import FatalElfError
from elfdump.core.models import ElfDump
from elfdump.output.console import DisplayOptions, DumpConsoleOutput
from elfdump.output.report import DumpReportGenerator


EXIT_OK: int = 0
EXIT_FATAL: int = 1


@click.command("elfdump", context_settings={"help_option_names": ["--help"]})
@click.argument("files", nargs=-1, required=True, type=click.Path(dir_okay=False))
@click.option("--all", "-a", "show_all", is_flag=True, default=False,
              help="Equivalent to: -h -l -S -s -D")
@click.option("--file-header", "-h", is_flag=True, default=False,
              help="Display the ELF file header.")
@click.option("--program-headers", "--segments", "-l", is_flag=True, default=False,
              help="Display the program headers and section-to-segment mapping.")
@click.option("--section-headers", "--sections", "-S", is_flag=True, default=False,
              help="Display the section headers.")
@click.option("--syms", "--symbols", "-s", is_flag=True, default=False,
              help="Display the symbol tables (.symtab and .dynsym).")
@click.option("--dyn-syms", "-d", is_flag=True, default=False,
              help="Display the dynamic symbol table only.")
@click.option("--dynamic", "-D", is_flag=True, default=False,
              help="Display the dynamic section.")
@click.option("--json", "json_output", is_flag=True, default=False,
              help="Write a JSON report to stdout instead of tables.")
@click.option("--output", "-o", "output_path", type=click.Path(), default=None,
              help="Also write a JSON report to this path.")
@click.option("--config", "-c", "config_path", type=click.Path(), default=None,
              help="Path to an elfdump.toml configuration file.")
@click.option("--verbose", "-v", is_flag=True, default=False,
              help="Enable debug logging on stderr.")
@click.version_option(__version__, prog_name="elfdump")
def elfdump_cli(
    files: tuple[str, ...],
    show_all: bool,
    file_header: bool,
    program_headers: bool,
    section_headers: bool,
    syms: bool,
    dyn_syms: bool,
    dynamic: bool,
    json_output: bool,
    output_path: str | None,
    config_path: str | None,
    verbose: bool,
) -> None:
    """Elfdump -- display information about ELF format files.

    FILES are the ELF objects to inspect.
    """
    errors = DumpConsole(stderr=True)

    try:
        config = ElfdumpConfig.load(config_path)
    except (OSError, ValueError) as exc:
        errors.error(escape(f"cannot load configuration: {exc}"))
        sys.exit(EXIT_FATAL)

    g = config.global_settings
    log_level = "DEBUG" if verbose or g.debug else g.log_level
    logger = DumpLogger("engine", log_level=log_level,
                        log_file=g.log_file, json_logs=g.log_json)
    engine = DumpEngine(config=config, logger=logger)

    options = DisplayOptions(
        file_header=file_header,
        program_headers=program_headers,
        section_headers=section_headers,
        symbols=syms,
        dyn_syms=dyn_syms,
        dynamic=dynamic,
    )
    if show_all or not options.any():
        options = DisplayOptions.everything()

    console = DumpConsole(color=config.dump.color, quiet=json_output)
    output = DumpConsoleOutput(console=console, name_width=config.dump.name_width)

    results: list[ElfDump] = []
    failures: list[tuple[str, str]] = []
    for index, path in enumerate(files):
        try:
            result = engine.dump_file(path)
        except (FatalElfError, FileTooLarge, OSError) as exc:
            logger.debug("Decoding %s failed", path, exc_info=True)
            errors.error(escape(f"{path}: {exc}"))
            failures.append((path, str(exc)))
            continue

        results.append(result)
        if index and len(files) > 1:
            console.blank()
        if len(files) > 1:
            console.print(f"File: {escape(path)}")
        output.display(result, options)

    report = DumpReportGenerator()
    if json_output:
        click.echo(report.to_json(results, failures))
    if output_path:
        written = report.generate_json(results, output_path, failures)
        errors.success(escape(f"JSON report saved: {written}"))

    if failures:
        sys.exit(EXIT_FATAL)
    if any(r.has_warnings for r in results):
        sys.exit(config.dump.warnings_exit_code)
    sys.exit(EXIT_OK)


def main() -> None:
    """Entry point for the ``elfdump`` console script."""
    elfdump_cli()


if __name__ == "__main__":
    main()
