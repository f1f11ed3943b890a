"""
Elfdump Output
===============

Output rendering modules for dump results.

- ``console`` -- Rich-based readelf-style display
- ``report``  -- JSON report generation
"""

from elfdump.output.console import DisplayOptions, DumpConsoleOutput
from elfdump.output.report import DumpReportGenerator

__all__ = [
    "DisplayOptions",
    "DumpConsoleOutput",
    "DumpReportGenerator",
]
