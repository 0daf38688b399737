"""
multiservice_lint v0.3 - Namespace dependency linter for C# multiservice solutions.

Classifies each project (compiled unit) as Apis, Contracts, Service or Other
from its namespace convention or .editorconfig settings, then checks:
- MCS001: namespace declarations fall under the project's root namespace
- MCS002: using directives honor the allowed dependencies between roles
- MCS003: qualified type references honor the same dependencies

Usage:
    python -m multiservice_lint [root]
    python -m multiservice_lint --json
    python -m multiservice_lint --errors-only
    python -m multiservice_lint --policy policy.yaml
    python -m multiservice_lint --watch
"""

__version__ = "0.3"
