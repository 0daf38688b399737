"""
multiservice_lint v0.3 - Source discovery and loading.

Handles:
- Directory walking with exclusions
- Compilation (project) discovery from *.csproj locations
- Source file loading and parsing
- Generated code detection
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional, Sequence

from .config import LintConfig, is_generated_path, should_exclude_path
from .lexer import LexerError
from .syntax import SourceTree, parse_source

logger = logging.getLogger(__name__)

# Roslyn only looks at the leading comment block for the generated marker
_GENERATED_HEADER_LINES = 10


@dataclass(frozen=True)
class Compilation:
    """One compiled unit: a project directory and the sources it owns."""
    name: str
    root: Path
    paths: tuple[Path, ...]


def iter_files(cfg: LintConfig, exts: Sequence[str]) -> Iterator[Path]:
    """Iterate over files under root with one of the given extensions."""
    wanted = {e.lower() for e in exts}
    for path in cfg.root.rglob("*"):
        if not path.is_file():
            continue
        if should_exclude_path(cfg, path.relative_to(cfg.root)):
            continue
        if path.suffix.lower() in wanted:
            yield path


def _owning_project_dir(path: Path, project_dirs: set[Path]) -> Optional[Path]:
    """The deepest project directory containing path."""
    for parent in path.parents:
        if parent in project_dirs:
            return parent
    return None


def discover_compilations(cfg: LintConfig) -> list[Compilation]:
    """
    Group source files into compilations.

    Every directory holding a project file is one compilation owning the
    sources below it, except those below a nested project directory.
    Without project files the whole root is one compilation. An explicit
    file list always forms a single compilation.
    """
    if cfg.explicit_files is not None:
        paths = tuple(
            p for p in cfg.explicit_files
            if p.is_file() and p.suffix.lower() in cfg.source_exts
        )
        if not paths:
            return []
        return [Compilation(cfg.root.name or str(cfg.root), cfg.root, paths)]

    project_names: dict[Path, str] = {}
    for project_file in sorted(iter_files(cfg, cfg.project_exts)):
        project_names.setdefault(project_file.parent, project_file.stem)

    sources = sorted(iter_files(cfg, cfg.source_exts))

    if not project_names:
        if not sources:
            return []
        logger.info(f"No project files under {cfg.root}; treating it as one compilation")
        return [Compilation(cfg.root.name or str(cfg.root), cfg.root, tuple(sources))]

    owned: dict[Path, list[Path]] = {d: [] for d in project_names}
    project_dirs = set(project_names)
    for source in sources:
        owner = _owning_project_dir(source, project_dirs)
        if owner is None:
            logger.debug(f"Skipping {source}: not inside any project directory")
            continue
        owned[owner].append(source)

    compilations = [
        Compilation(project_names[d], d, tuple(owned[d]))
        for d in sorted(project_names)
    ]
    logger.info(f"Discovered {len(compilations)} compilation(s) under {cfg.root}")
    return compilations


def has_generated_header(text: str, markers: Sequence[str]) -> bool:
    """Check the leading lines for an <auto-generated> marker."""
    head = text.splitlines()[:_GENERATED_HEADER_LINES]
    return any(marker in line for line in head for marker in markers)


def load_tree(cfg: LintConfig, path: Path) -> Optional[SourceTree]:
    """Load and parse a single source file. Returns None if it can't be analyzed."""
    try:
        text = path.read_text(encoding="utf-8-sig", errors="replace")
    except OSError as e:
        logger.warning(f"Could not read {path}: {e}")
        return None

    try:
        tree = parse_source(text, str(path))
    except LexerError as e:
        logger.warning(f"Skipping {path}: {e}")
        return None

    if is_generated_path(cfg, path) or has_generated_header(text, cfg.generated_markers):
        tree = dataclasses.replace(tree, generated=True)
    return tree


def load_trees(cfg: LintConfig, paths: Sequence[Path]) -> list[SourceTree]:
    """Load all analyzable source files of a compilation."""
    trees: list[SourceTree] = []
    for path in paths:
        tree = load_tree(cfg, path)
        if tree is not None:
            trees.append(tree)
    return trees
