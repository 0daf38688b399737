"""
Project role classification.

A project (compiled unit) plays one architectural role, decided from the
first namespace it declares:

    Apis        a segment named exactly "Apis"       Acme.Billing.Apis
    Contracts   a segment named exactly "Contracts"  Acme.Contracts
    Service     a segment ending with "Service"      Acme.OrderService
    Other       only when configured explicitly
    Unknown     nothing matched

The matching segment ends the project's root namespace. When a role's
.editorconfig key is set, its comma-separated literal prefixes replace the
convention for that role. Rules are tried in the order above.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import PurePath
from typing import Mapping, Optional, Sequence

from .config import (
    APIS_NAMESPACES_KEY,
    CONTRACTS_NAMESPACES_KEY,
    OTHER_NAMESPACES_KEY,
    SERVICES_NAMESPACES_KEY,
)
from .syntax import SourceTree

logger = logging.getLogger(__name__)


class Role(Enum):
    """Architectural role of a project."""
    UNKNOWN = "Unknown"
    APIS = "Apis"
    CONTRACTS = "Contracts"
    SERVICE = "Service"
    OTHER = "Other"


@dataclass(frozen=True)
class Project:
    """Classification result for one compiled unit. Immutable once created."""
    role: Role
    root_namespace: str

    def contains(self, namespace: str) -> bool:
        """True if namespace is the root namespace or nested below it."""
        return namespace == self.root_namespace or namespace.startswith(self.root_namespace + ".")

    def __str__(self) -> str:
        return f"{self.role.value} ({self.root_namespace or '<no root>'})"


UNKNOWN_PROJECT = Project(Role.UNKNOWN, "")


@dataclass(frozen=True)
class NamespaceMatchRule:
    """How one role recognizes its root namespace."""
    role: Role
    config_key: str
    default_name: str
    default_is_suffix: bool = False
    matches_by_default: bool = True

    def match(self, namespace: str, configured: Optional[str]) -> Optional[str]:
        """Return the root namespace if namespace matches this rule, else None."""
        if configured is not None:
            for candidate in configured.split(","):
                prefix = candidate.strip()
                if namespace == prefix or namespace.startswith(prefix + "."):
                    return prefix
            return None

        if not self.matches_by_default:
            return None

        length = 0
        for segment in namespace.split("."):
            length += len(segment)
            if self.default_is_suffix:
                matched = segment.endswith(self.default_name)
            else:
                matched = segment == self.default_name
            if matched:
                return namespace[:length]
            length += 1  # the dot
        return None


# Priority order: the first matching rule decides the role.
MATCH_RULES: tuple[NamespaceMatchRule, ...] = (
    NamespaceMatchRule(Role.APIS, APIS_NAMESPACES_KEY, "Apis"),
    NamespaceMatchRule(Role.CONTRACTS, CONTRACTS_NAMESPACES_KEY, "Contracts"),
    NamespaceMatchRule(Role.SERVICE, SERVICES_NAMESPACES_KEY, "Service", default_is_suffix=True),
    NamespaceMatchRule(Role.OTHER, OTHER_NAMESPACES_KEY, "", matches_by_default=False),
)


def match_namespace(namespace: str, config: Mapping[str, Optional[str]]) -> Project:
    """Classify a single namespace name with the given configuration."""
    for rule in MATCH_RULES:
        root = rule.match(namespace, config.get(rule.config_key))
        if root is not None:
            return Project(rule.role, root)
    return UNKNOWN_PROJECT


def tree_order_key(tree: SourceTree) -> tuple[int, str]:
    """Total order over source files: shallowest path first, then path text."""
    path = PurePath(tree.path)
    return len(path.parts), path.as_posix()


def order_trees(trees: Sequence[SourceTree]) -> list[SourceTree]:
    return sorted(trees, key=tree_order_key)


def designated_tree(trees: Sequence[SourceTree]) -> Optional[SourceTree]:
    """The source file whose configuration applies to the whole project."""
    ordered = order_trees(trees)
    return ordered[0] if ordered else None


def first_namespace(trees: Sequence[SourceTree]) -> str:
    """First declared namespace of the shallowest file that declares one, or ""."""
    for tree in order_trees(trees):
        if tree.first_namespace is not None:
            return tree.first_namespace
    return ""


def classify(config: Mapping[str, Optional[str]], trees: Sequence[SourceTree]) -> Project:
    """
    Determine the role and root namespace of a project.

    config holds the settings of the designated (shallowest) source file;
    trees are all source files of the compiled unit, in any order.
    """
    if not trees:
        return UNKNOWN_PROJECT
    namespace = first_namespace(trees)
    project = match_namespace(namespace, config)
    logger.debug(f"First namespace {namespace!r} classified as {project}")
    return project
