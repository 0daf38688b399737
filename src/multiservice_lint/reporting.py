"""
multiservice_lint v0.3 - Reporting and output formatting.

Handles:
- Collecting diagnostics and per-compilation classification results
- Human-readable output
- JSON output
"""

from __future__ import annotations

import json
from dataclasses import dataclass

from . import __version__
from .diagnostics import Diagnostic, Severity
from .roles import Project


@dataclass(frozen=True)
class CompilationSummary:
    """What was analyzed for one compilation."""
    name: str
    project: Project
    files: int


class Reporter:
    """Collects and formats diagnostics."""

    def __init__(self) -> None:
        self.diagnostics: list[Diagnostic] = []
        self.compilations: list[CompilationSummary] = []

    def add(self, diagnostic: Diagnostic) -> None:
        """Add a diagnostic."""
        self.diagnostics.append(diagnostic)

    def add_compilation(self, summary: CompilationSummary) -> None:
        self.compilations.append(summary)

    @property
    def errors(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    def sorted_diagnostics(self) -> list[Diagnostic]:
        """Stable display order: errors first, then by path/line/col/id."""
        return sorted(
            self.diagnostics,
            key=lambda d: (
                d.severity is not Severity.ERROR,
                d.location.path,
                d.location.line,
                d.location.column,
                d.id,
            ),
        )

    def render_human(self) -> str:
        """Render diagnostics as human-readable text."""
        lines = [f"multiservice_lint v{__version__}"]
        for c in self.compilations:
            lines.append(f"  {c.name}: {c.project} [{c.files} files]")

        if not self.diagnostics:
            lines.append("OK -- no findings")
            return "\n".join(lines)

        lines.append(f"Errors: {len(self.errors)}  Warnings: {len(self.warnings)}")
        lines.append("")
        for d in self.sorted_diagnostics():
            lines.append(str(d))
        return "\n".join(lines)

    def render_json(self) -> str:
        """Render diagnostics as JSON."""
        return json.dumps(
            {
                "version": __version__,
                "compilations": [
                    {
                        "name": c.name,
                        "role": c.project.role.value,
                        "root_namespace": c.project.root_namespace,
                        "files": c.files,
                    }
                    for c in self.compilations
                ],
                "diagnostics": [d.to_dict() for d in self.sorted_diagnostics()],
            },
            indent=2,
            default=str,
        )
