"""
multiservice_lint v0.3 - Diagnostic descriptors and records.

A DiagnosticDescriptor is the static contract of a rule (id, message
template, default severity). A Diagnostic is one violation instance:
descriptor + location + message arguments. Both are immutable.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Mapping, Optional

from .config import SEVERITY_KEY_TEMPLATE
from .syntax import Location

logger = logging.getLogger(__name__)

HELP_LINK = "https://github.com/Applicita/Orleans.Multiservice#pattern-rules"
CATEGORY = "Multiservice"


class Severity(Enum):
    ERROR = "ERROR"
    WARNING = "WARN"
    INFO = "INFO"


@dataclass(frozen=True)
class DiagnosticDescriptor:
    id: str
    title: str
    message_format: str
    category: str
    default_severity: Severity
    help_link: str = HELP_LINK


NAMESPACE_DECLARATIONS_MUST_HONOR_KNOWN_PROJECT_TYPES = DiagnosticDescriptor(
    id="MCS001",
    title=(
        "Either none or all of the namespace declarations in a project must fall under "
        "a single well-known namespace root: Apis, Contracts or <Name>Service"
    ),
    message_format="Invalid namespace declaration in '{0}' project: '{1}'",
    category=CATEGORY,
    default_severity=Severity.ERROR,
)

NAMESPACE_USINGS_MUST_HONOR_ALLOWED_DEPENDENCIES = DiagnosticDescriptor(
    id="MCS002",
    title="Namespace usings must honor the allowed dependencies between Apis, Contracts and Services",
    message_format="Invalid using for namespace '{0}': '{1}'",
    category=CATEGORY,
    default_severity=Severity.ERROR,
)

TYPE_REFERENCES_MUST_HONOR_ALLOWED_DEPENDENCIES = DiagnosticDescriptor(
    id="MCS003",
    title="Type reference must honor the allowed dependencies between Apis, Contracts and Services",
    message_format="Invalid type reference in namespace '{0}': '{1}'",
    category=CATEGORY,
    default_severity=Severity.ERROR,
)

SUPPORTED_DIAGNOSTICS = (
    NAMESPACE_DECLARATIONS_MUST_HONOR_KNOWN_PROJECT_TYPES,
    NAMESPACE_USINGS_MUST_HONOR_ALLOWED_DEPENDENCIES,
    TYPE_REFERENCES_MUST_HONOR_ALLOWED_DEPENDENCIES,
)


@dataclass(frozen=True)
class Diagnostic:
    """A single reported violation."""
    descriptor: DiagnosticDescriptor
    location: Location
    args: tuple[str, ...]
    severity: Severity = Severity.ERROR

    @property
    def id(self) -> str:
        return self.descriptor.id

    @property
    def message(self) -> str:
        return self.descriptor.message_format.format(*self.args)

    def __str__(self) -> str:
        return f"{self.severity.value} {self.id} {self.location} -- {self.message}"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "severity": self.severity.value,
            "path": self.location.path,
            "line": self.location.line,
            "col": self.location.column,
            "end_line": self.location.end_line,
            "end_col": self.location.end_column,
            "message": self.message,
            "args": list(self.args),
            "help": self.descriptor.help_link,
        }


def create(descriptor: DiagnosticDescriptor, location: Location, *args: str) -> Diagnostic:
    return Diagnostic(descriptor, location, tuple(args), descriptor.default_severity)


# .editorconfig severity values; None means suppressed
_SEVERITY_VALUES: dict[str, Optional[Severity]] = {
    "error": Severity.ERROR,
    "warning": Severity.WARNING,
    "suggestion": Severity.INFO,
    "silent": None,
    "none": None,
}


@dataclass(frozen=True)
class SeverityOverrides:
    """Per-diagnostic severities configured with dotnet_diagnostic.<ID>.severity."""
    overrides: tuple[tuple[str, Optional[Severity]], ...] = ()

    @classmethod
    def from_config(cls, config: Mapping[str, Optional[str]]) -> "SeverityOverrides":
        found: list[tuple[str, Optional[Severity]]] = []
        for descriptor in SUPPORTED_DIAGNOSTICS:
            value = config.get(SEVERITY_KEY_TEMPLATE.format(id=descriptor.id).lower())
            if value is None:
                continue
            value = value.strip().lower()
            if value == "default":
                continue
            if value not in _SEVERITY_VALUES:
                logger.warning(f"Ignoring unknown severity {value!r} for {descriptor.id}")
                continue
            found.append((descriptor.id, _SEVERITY_VALUES[value]))
        return cls(tuple(found))

    def apply(self, diagnostic: Diagnostic) -> Optional[Diagnostic]:
        """Return the diagnostic with its configured severity, or None if suppressed."""
        for diag_id, severity in self.overrides:
            if diag_id == diagnostic.id:
                if severity is None:
                    return None
                return Diagnostic(diagnostic.descriptor, diagnostic.location, diagnostic.args, severity)
        return diagnostic
