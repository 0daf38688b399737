"""
multiservice_lint v0.3 - Configuration.

Runtime configuration and CLI-derived settings, plus the names of the
.editorconfig keys the classifier reads.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional


# .editorconfig keys: comma-separated literal namespace prefixes per role.
APIS_NAMESPACES_KEY = "mcs_multiservice_apis_namespaces"
CONTRACTS_NAMESPACES_KEY = "mcs_multiservice_contracts_namespaces"
SERVICES_NAMESPACES_KEY = "mcs_multiservice_services_namespaces"
OTHER_NAMESPACES_KEY = "mcs_multiservice_other_namespaces"

NAMESPACE_KEYS = (
    APIS_NAMESPACES_KEY,
    CONTRACTS_NAMESPACES_KEY,
    SERVICES_NAMESPACES_KEY,
    OTHER_NAMESPACES_KEY,
)

# Roslyn convention for per-diagnostic severity: dotnet_diagnostic.MCS001.severity = warning
SEVERITY_KEY_TEMPLATE = "dotnet_diagnostic.{id}.severity"


@dataclass
class LintConfig:
    """Runtime configuration for multiservice_lint."""

    root: Path

    # File extensions
    source_exts: tuple[str, ...] = (".cs",)
    project_exts: tuple[str, ...] = (".csproj",)

    # Directory exclusions
    exclude_dirs: tuple[str, ...] = (
        ".git",
        ".vs",
        ".idea",
        "bin",
        "obj",
        "node_modules",
        "packages",
        "TestResults",
    )

    # Generated code is classified but never validated
    generated_suffixes: tuple[str, ...] = (
        ".g.cs",
        ".g.i.cs",
        ".designer.cs",
        ".generated.cs",
    )
    generated_markers: tuple[str, ...] = ("<auto-generated",)

    # Optional YAML dependency policy; None means the built-in table
    policy_path: Optional[Path] = None

    # Worker threads for per-file validation
    jobs: int = 1

    # Output settings
    json_output: bool = False
    errors_only: bool = False

    # Explicit file list (disables project discovery)
    explicit_files: Optional[tuple[Path, ...]] = None


def should_exclude_path(cfg: LintConfig, path: Path) -> bool:
    """Check if path should be excluded from scanning."""
    return any(d in path.parts for d in cfg.exclude_dirs)


def is_generated_path(cfg: LintConfig, path: Path) -> bool:
    """Check if the file name marks generated code."""
    name = path.name.lower()
    return any(name.endswith(s) for s in cfg.generated_suffixes)
