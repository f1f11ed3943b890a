"""
Elfdump Report Generator
=========================

Generates structured JSON reports from one or more
:class:`~elfdump.core.models.ElfDump` results, for machine consumption
and downstream tooling.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from elfdump import __version__
from elfdump.core.models import ElfDump


class DumpReportGenerator:
    """Generate JSON reports from dump results.

    Failed files are listed alongside successful ones so a report always
    accounts for every input.

    Usage::

        generator = DumpReportGenerator()
        generator.generate_json([result], "report.json")
    """

    def build(
        self,
        results: Sequence[ElfDump],
        failures: Sequence[tuple[str, str]] = (),
    ) -> dict[str, Any]:
        """Build the report as a plain dictionary.

        Args:
            results: Successfully decoded files.
            failures: ``(path, message)`` pairs for files that failed fatally.
        """
        return {
            "report_type": "elfdump",
            "version": __version__,
            "generated_at": datetime.now(timezone.utc).isoformat(),
            "files": [
                {
                    **result.model_dump(mode="json"),
                    "has_warnings": result.has_warnings,
                    "markers": [
                        m.model_dump(mode="json") for m in result.markers()
                    ],
                }
                for result in results
            ],
            "failures": [
                {"path": path, "error": message} for path, message in failures
            ],
        }

    def to_json(
        self,
        results: Sequence[ElfDump],
        failures: Sequence[tuple[str, str]] = (),
    ) -> str:
        """Serialise the report to an indented JSON string."""
        return json.dumps(self.build(results, failures), indent=2, default=str)

    def generate_json(
        self,
        results: Sequence[ElfDump],
        output_path: str,
        failures: Sequence[tuple[str, str]] = (),
    ) -> str:
        """Write the JSON report to *output_path*.

        Returns:
            The absolute path of the generated report.
        """
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.to_json(results, failures), encoding="utf-8")
        return str(path.resolve())
