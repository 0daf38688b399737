"""
multiservice_lint v0.3 - Rule implementations.

Each rule takes the compilation context and one source tree and returns
diagnostics. Rules never mutate shared state, so they can run concurrently
over the trees of one compilation.

    MCS001  check_namespace_declarations
    MCS002  check_using_dependencies
    MCS003  check_type_references
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Optional, Sequence

from .diagnostics import (
    NAMESPACE_DECLARATIONS_MUST_HONOR_KNOWN_PROJECT_TYPES,
    NAMESPACE_USINGS_MUST_HONOR_ALLOWED_DEPENDENCIES,
    TYPE_REFERENCES_MUST_HONOR_ALLOWED_DEPENDENCIES,
    Diagnostic,
    create,
)
from .policy import DEFAULT_POLICY, DependencyPolicy, is_reportable
from .roles import Project, Role, match_namespace
from .syntax import Location, NamespaceDeclaration, SourceTree, TypeReference, UsingDirective

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompilationContext:
    """Read-only inputs shared by every rule for one compilation."""
    project: Project
    config: Mapping[str, Optional[str]]
    policy: DependencyPolicy
    global_usings: tuple[UsingDirective, ...] = ()
    known_roots: frozenset[str] = frozenset()
    known_namespaces: frozenset[str] = frozenset()


def _first_segment(name: str) -> str:
    return name.split(".", 1)[0]


def build_context(
    project: Project,
    config: Mapping[str, Optional[str]],
    trees: Sequence[SourceTree],
    policy: DependencyPolicy = DEFAULT_POLICY,
) -> CompilationContext:
    """Collect compilation-wide facts: global usings, known namespaces and their roots."""
    global_usings: list[UsingDirective] = []
    roots: set[str] = set()
    namespaces: set[str] = set()
    if project.root_namespace:
        roots.add(_first_segment(project.root_namespace))
    for tree in trees:
        global_usings.extend(tree.global_usings)
        for ns in tree.namespaces:
            roots.add(_first_segment(ns.full_name))
            namespaces.add(ns.full_name)
        for using in tree.all_usings():
            roots.add(_first_segment(using.name))
            if using.alias is None and not using.is_static:
                namespaces.add(using.name)
    return CompilationContext(
        project=project,
        config=dict(config),
        policy=policy,
        global_usings=tuple(global_usings),
        known_roots=frozenset(roots),
        known_namespaces=frozenset(namespaces),
    )


# =============================================================================
# MCS001: namespace declarations
# =============================================================================

def check_namespace_declarations(ctx: CompilationContext, tree: SourceTree) -> list[Diagnostic]:
    """Every namespace declared must be the project root or nested below it."""
    project = ctx.project
    if project.role is Role.UNKNOWN:
        return []

    findings: list[Diagnostic] = []
    for ns in tree.namespaces:
        logger.debug(
            f"Project {project}: namespace declaration {ns.full_name} "
            f"({'file-scoped' if ns.file_scoped else 'block'}) with usings: "
            f"{', '.join(u.name for u in ns.usings)} and import scopes: "
            f"{', '.join(u.name for u in (*tree.usings, *ns.enclosing_usings))}"
        )
        if project.contains(ns.full_name):
            continue
        findings.append(create(
            NAMESPACE_DECLARATIONS_MUST_HONOR_KNOWN_PROJECT_TYPES,
            ns.location,
            project.root_namespace,
            ns.full_name,
        ))
    return findings


# =============================================================================
# Dependency targets
# =============================================================================

def declaring_namespace(name: str, known_namespaces: Iterable[str]) -> str:
    """
    The namespace that declares the type (or member) named by name.

    The longest namespace known to the compilation that prefixes name wins.
    Otherwise the last segment is taken to be the type and dropped, so a
    type called BackgroundService never reads as a Service project.
    """
    best = ""
    for namespace in known_namespaces:
        if len(namespace) > len(best) and (name == namespace or name.startswith(namespace + ".")):
            best = namespace
    if best:
        return best
    return name.rpartition(".")[0]


def using_target(using: UsingDirective, known_namespaces: Iterable[str]) -> str:
    """Namespace a directive imports. using static and aliases may name a type."""
    if using.alias is None and not using.is_static:
        return using.name
    return declaring_namespace(using.name, known_namespaces)


# =============================================================================
# MCS002: using directives
# =============================================================================

def visible_usings(tree: SourceTree, ns: NamespaceDeclaration) -> list[UsingDirective]:
    """Usings in scope at a namespace declaration that are written in this file."""
    return [*tree.usings, *ns.enclosing_usings, *ns.usings]


def check_using_dependencies(ctx: CompilationContext, tree: SourceTree) -> list[Diagnostic]:
    """Each imported namespace must be a permitted dependency of the project."""
    project = ctx.project
    if not is_reportable(project.role):
        return []

    findings: list[Diagnostic] = []
    seen: set[Location] = set()

    def check(using: UsingDirective, namespace: str) -> None:
        # A directive is visible to several declarations; report it once
        if using.location in seen:
            return
        seen.add(using.location)
        target = match_namespace(using_target(using, ctx.known_namespaces), ctx.config)
        if ctx.policy.is_violation(project, target):
            findings.append(create(
                NAMESPACE_USINGS_MUST_HONOR_ALLOWED_DEPENDENCIES,
                using.location,
                namespace,
                using.name,
            ))

    if not tree.namespaces:
        # Top-level statements: no declaration, the directives still count
        for using in tree.usings:
            check(using, project.root_namespace)

    for ns in tree.namespaces:
        for using in visible_usings(tree, ns):
            check(using, ns.full_name)

    return findings


# =============================================================================
# MCS003: qualified type references
# =============================================================================

def alias_map(usings: Iterable[UsingDirective]) -> dict[str, str]:
    """Map using alias names to their targets; later directives win."""
    return {u.alias: u.name for u in usings if u.alias}


def resolve_alias(name: str, aliases: Mapping[str, str]) -> str:
    head, _, rest = name.partition(".")
    target = aliases.get(head)
    if target is None:
        return name
    return f"{target}.{rest}" if rest else target


def check_type_references(ctx: CompilationContext, tree: SourceTree) -> list[Diagnostic]:
    """Fully qualified references must honor the policy even without a using."""
    project = ctx.project
    if not is_reportable(project.role):
        return []

    findings: list[Diagnostic] = []

    def check(ref: TypeReference, aliases: Mapping[str, str], namespace: str) -> None:
        name = resolve_alias(ref.name, aliases)
        # Only chains rooted at a known namespace; orderService.Run() is a member access
        if _first_segment(name) not in ctx.known_roots:
            return
        target = match_namespace(declaring_namespace(name, ctx.known_namespaces), ctx.config)
        if ctx.policy.is_violation(project, target):
            findings.append(create(
                TYPE_REFERENCES_MUST_HONOR_ALLOWED_DEPENDENCIES,
                ref.location,
                namespace,
                ref.name,
            ))

    # Top-level statements and assembly attributes sit outside any declaration
    file_aliases = alias_map([*ctx.global_usings, *tree.usings])
    for ref in tree.references:
        check(ref, file_aliases, project.root_namespace)

    for ns in tree.namespaces:
        aliases = alias_map([*ctx.global_usings, *visible_usings(tree, ns)])
        for ref in ns.references:
            check(ref, aliases, ns.full_name)
    return findings


ALL_RULES = (
    check_namespace_declarations,
    check_using_dependencies,
    check_type_references,
)
