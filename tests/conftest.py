"""
Pytest configuration and shared fixtures.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from multiservice_lint.syntax import SourceTree, parse_source


# =============================================================================
# FILESYSTEM FIXTURES
# =============================================================================

@pytest.fixture
def write_files(tmp_path):
    """Write {relative_path: text} under tmp_path and return tmp_path."""
    def _write(files: dict) -> Path:
        for rel, text in files.items():
            path = tmp_path / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        return tmp_path
    return _write


@pytest.fixture
def solution(write_files):
    """A small multiservice solution: Apis, Contracts and two services."""
    return write_files({
        ".editorconfig": "root = true\n\n[*.cs]\nindent_style = space\n",
        "Acme.Billing.Apis/Acme.Billing.Apis.csproj": "<Project />",
        "Acme.Billing.Apis/Handlers.cs": (
            "using Acme.Billing.Contracts;\n"
            "namespace Acme.Billing.Apis;\n"
            "public class Handler { }\n"
        ),
        "Acme.Billing.Apis/Internal/Bad.cs": (
            "namespace Acme.Billing.Internal;\n"
            "class Bad { }\n"
        ),
        "Acme.Billing.Contracts/Acme.Billing.Contracts.csproj": "<Project />",
        "Acme.Billing.Contracts/Money.cs": (
            "namespace Acme.Billing.Contracts\n"
            "{\n"
            "    public record Money(decimal Amount);\n"
            "}\n"
        ),
        "Acme.OrderService/Acme.OrderService.csproj": "<Project />",
        "Acme.OrderService/Orders.cs": (
            "using Acme.InventoryService;\n"
            "namespace Acme.OrderService;\n"
            "class Orders { }\n"
        ),
        "Acme.OrderService/Orders.g.cs": "namespace Generated.Stuff;\n",
        "Acme.OrderService/obj/Debug/AssemblyInfo.cs": "namespace Whatever;\n",
    })


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def tree(path: str, source: str) -> SourceTree:
    """Parse source as if it were the file at path."""
    return parse_source(source, path)
