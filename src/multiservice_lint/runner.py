"""
multiservice_lint v0.3 - Main runner and CLI.

Discovers compilations, classifies each one and runs all rules over its
source trees.
"""

from __future__ import annotations

import argparse
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Mapping, Optional, Sequence

from . import __version__
from .config import LintConfig
from .diagnostics import Diagnostic, SeverityOverrides
from .editorconfig import load_options
from .policy import DEFAULT_POLICY, DependencyPolicy, PolicyError, load_policy
from .reporting import CompilationSummary, Reporter
from .roles import Project, Role, classify, designated_tree
from .rules import ALL_RULES, CompilationContext, build_context
from .scanner import Compilation, discover_compilations, load_trees
from .syntax import SourceTree

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    """Classification and diagnostics for one compilation."""
    project: Project
    diagnostics: tuple[Diagnostic, ...] = ()


def check_tree(ctx: CompilationContext, overrides: SeverityOverrides, tree: SourceTree) -> list[Diagnostic]:
    """Run every rule over one tree. Generated code is never validated."""
    if tree.generated:
        return []
    findings: list[Diagnostic] = []
    for rule in ALL_RULES:
        for diagnostic in rule(ctx, tree):
            diagnostic = overrides.apply(diagnostic)
            if diagnostic is not None:
                findings.append(diagnostic)
    return findings


def analyze_compilation(
    trees: Sequence[SourceTree],
    config: Mapping[str, Optional[str]],
    policy: DependencyPolicy = DEFAULT_POLICY,
    jobs: int = 1,
) -> AnalysisResult:
    """
    Classify a compilation and validate all of its trees.

    config is the settings of the designated (shallowest) source file.
    Pure: no I/O, inputs are not modified.
    """
    project = classify(config, trees)
    if project.role is Role.UNKNOWN:
        return AnalysisResult(project)

    ctx = build_context(project, config, trees, policy)
    overrides = SeverityOverrides.from_config(config)
    check = partial(check_tree, ctx, overrides)

    if jobs > 1 and len(trees) > 1:
        with ThreadPoolExecutor(max_workers=jobs) as pool:
            per_tree = list(pool.map(check, trees))
    else:
        per_tree = [check(tree) for tree in trees]

    return AnalysisResult(project, tuple(d for findings in per_tree for d in findings))


def compilation_config(trees: Sequence[SourceTree]) -> dict[str, str]:
    """.editorconfig settings of the designated source file of a compilation."""
    tree = designated_tree(trees)
    if tree is None:
        return {}
    return load_options(Path(tree.path))


def analyze(
    cfg: LintConfig,
    compilation: Compilation,
    policy: DependencyPolicy = DEFAULT_POLICY,
) -> tuple[AnalysisResult, int]:
    """Load, classify and validate one compilation. Returns (result, file count)."""
    trees = load_trees(cfg, compilation.paths)
    config = compilation_config(trees)
    result = analyze_compilation(trees, config, policy, jobs=cfg.jobs)
    logger.info(
        f"{compilation.name}: {result.project}, {len(trees)} files, "
        f"{len(result.diagnostics)} diagnostics"
    )
    return result, len(trees)


def lint_compilations(
    cfg: LintConfig,
    policy: DependencyPolicy,
    compilations: Sequence[Compilation],
) -> Reporter:
    """Analyze the given compilations and collect everything in a Reporter."""
    reporter = Reporter()
    for compilation in compilations:
        result, files = analyze(cfg, compilation, policy)
        reporter.add_compilation(CompilationSummary(compilation.name, result.project, files))
        for diagnostic in result.diagnostics:
            reporter.add(diagnostic)
    return reporter


def run(root: Path, cfg: LintConfig | None = None, policy: DependencyPolicy | None = None) -> Reporter:
    """Run all checks on every compilation under root and return a Reporter."""
    cfg = cfg or LintConfig(root=root)
    if policy is None:
        policy = load_policy(cfg.policy_path) if cfg.policy_path else DEFAULT_POLICY

    return lint_compilations(cfg, policy, discover_compilations(cfg))


def main(argv: Optional[list[str]] = None) -> int:
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="multiservice-lint",
        description=f"multiservice_lint v{__version__} -- namespace dependency linter for C# multiservice solutions",
    )
    parser.add_argument(
        "root",
        nargs="?",
        default=".",
        help="Root directory to scan (default: current directory)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output as JSON",
    )
    parser.add_argument(
        "--errors-only",
        action="store_true",
        help="Only show ERROR severity",
    )
    parser.add_argument(
        "--policy",
        metavar="FILE",
        help="YAML file overriding the allowed dependencies between roles",
    )
    parser.add_argument(
        "--files",
        nargs="*",
        metavar="FILE",
        help="Lint only these files as one compilation (disables project discovery)",
    )
    parser.add_argument(
        "--jobs",
        type=int,
        default=1,
        help="Worker threads per compilation (default: 1)",
    )
    parser.add_argument(
        "--watch",
        action="store_true",
        help="Watch the root and re-lint changed projects",
    )
    parser.add_argument(
        "--interval",
        type=float,
        default=0.75,
        help="Watch poll interval in seconds (default: 0.75)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Debug logging on stderr",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    root = Path(args.root).resolve()

    explicit_files = None
    if args.files:
        explicit_files = tuple(Path(f).resolve() for f in args.files)

    cfg = LintConfig(
        root=root,
        policy_path=Path(args.policy) if args.policy else None,
        jobs=max(1, args.jobs),
        json_output=args.json,
        errors_only=args.errors_only,
        explicit_files=explicit_files,
    )

    try:
        policy = load_policy(cfg.policy_path) if cfg.policy_path else DEFAULT_POLICY
    except (FileNotFoundError, PolicyError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    if args.watch:
        from .daemon import run_daemon
        return run_daemon(cfg, policy, interval=max(0.1, args.interval))

    reporter = run(root, cfg, policy)

    if args.errors_only:
        reporter.diagnostics = reporter.errors

    if args.json:
        print(reporter.render_json())
    else:
        print(reporter.render_human())

    return 1 if reporter.errors else 0


if __name__ == "__main__":
    raise SystemExit(main())
