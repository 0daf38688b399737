"""
Dependency policy between project roles.

A process-wide, immutable table answering "may a project of role A depend
on a project of role B?". The default table:

    Apis       -> Contracts, Other
    Service    -> Contracts, Other          (not Apis, not sibling services)
    Contracts  -> nothing but Contracts
    Other      -> anything classified
    Unknown    -> nothing but Unknown

Self-dependencies are always allowed. Other and Unknown are never the
source or target of a reported violation: an unclassified dependency
cannot be verified, so it is not reported.

The table can be replaced per run with a YAML file (see load_policy).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Mapping

import yaml

from .roles import Project, Role

REPORTABLE_ROLES = frozenset({Role.APIS, Role.CONTRACTS, Role.SERVICE})

DEFAULT_DEPENDENCIES: Mapping[Role, frozenset[Role]] = MappingProxyType({
    Role.APIS: frozenset({Role.CONTRACTS, Role.OTHER}),
    Role.CONTRACTS: frozenset(),
    Role.SERVICE: frozenset({Role.CONTRACTS, Role.OTHER}),
    Role.OTHER: frozenset({Role.APIS, Role.CONTRACTS, Role.SERVICE}),
    Role.UNKNOWN: frozenset(),
})


class PolicyError(ValueError):
    """The dependency policy file is malformed."""


def is_reportable(role: Role) -> bool:
    """Only Apis, Contracts and Service take part in reported violations."""
    return role in REPORTABLE_ROLES


@dataclass(frozen=True)
class DependencyPolicy:
    """Allowed role-to-role dependencies."""
    dependencies: Mapping[Role, frozenset[Role]] = field(default_factory=lambda: DEFAULT_DEPENDENCIES)
    allow_sibling_services: bool = False

    def allowed(self, source: Role, target: Role) -> bool:
        """May a project of role source depend on one of role target?"""
        if source is target:
            return True
        return target in self.dependencies.get(source, frozenset())

    def permits(self, source: Project, target: Project) -> bool:
        """May project source depend on the namespace tree of target?"""
        # Anything inside the project's own root is its own code
        if source.contains(target.root_namespace):
            return True
        if source.role is Role.SERVICE and target.role is Role.SERVICE:
            return self.allow_sibling_services
        return self.allowed(source.role, target.role)

    def is_violation(self, source: Project, target: Project) -> bool:
        """A reportable dependency the policy does not permit."""
        if not (is_reportable(source.role) and is_reportable(target.role)):
            return False
        return not self.permits(source, target)


DEFAULT_POLICY = DependencyPolicy()


def allowed(source: Role, target: Role) -> bool:
    """Lookup in the default policy table."""
    return DEFAULT_POLICY.allowed(source, target)


def _parse_role(name: Any) -> Role:
    for role in Role:
        if isinstance(name, str) and name.strip().lower() == role.value.lower():
            return role
    raise PolicyError(f"Unknown role {name!r}; expected one of {[r.value for r in Role]}")


def policy_from_dict(data: Mapping[str, Any]) -> DependencyPolicy:
    """
    Build a policy from a mapping like:

        allowed_dependencies:
          Apis: [Contracts, Other]
          Service: [Contracts]
        allow_sibling_services: false

    Roles that are not listed keep their default row.
    """
    dependencies = dict(DEFAULT_DEPENDENCIES)

    rows = data.get("allowed_dependencies") or {}
    if not isinstance(rows, Mapping):
        raise PolicyError("allowed_dependencies must be a mapping of role -> list of roles")
    for source_name, targets in rows.items():
        source = _parse_role(source_name)
        if targets is None:
            targets = []
        if not isinstance(targets, list):
            raise PolicyError(f"allowed_dependencies.{source_name} must be a list, got {type(targets).__name__}")
        dependencies[source] = frozenset(_parse_role(t) for t in targets)

    allow_siblings = data.get("allow_sibling_services", False)
    if not isinstance(allow_siblings, bool):
        raise PolicyError("allow_sibling_services must be true or false")

    return DependencyPolicy(
        dependencies=MappingProxyType(dependencies),
        allow_sibling_services=allow_siblings,
    )


def load_policy(policy_path: Path | str) -> DependencyPolicy:
    """
    Load a dependency policy from YAML.

    Raises:
        FileNotFoundError: If the policy file doesn't exist.
        PolicyError: If the file is not valid YAML or has the wrong shape.
    """
    path = Path(policy_path)
    if not path.exists():
        raise FileNotFoundError(f"Policy file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise PolicyError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return DEFAULT_POLICY
    if not isinstance(data, dict):
        raise PolicyError(f"Policy must be a YAML mapping, got {type(data).__name__}")

    return policy_from_dict(data)
