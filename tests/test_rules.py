"""
Tests for the MCS001, MCS002 and MCS003 rules.
"""

import dataclasses

from multiservice_lint.config import OTHER_NAMESPACES_KEY
from multiservice_lint.diagnostics import Severity
from multiservice_lint.policy import DependencyPolicy
from multiservice_lint.roles import Project, Role
from multiservice_lint.rules import (
    build_context,
    check_namespace_declarations,
    check_type_references,
    check_using_dependencies,
    declaring_namespace,
)
from multiservice_lint.runner import analyze_compilation

from conftest import tree


def ids(diagnostics):
    return [d.id for d in diagnostics]


def run(*trees, config=None, **kwargs):
    return analyze_compilation(list(trees), config or {}, **kwargs)


class TestNamespaceDeclarations:
    """MCS001: declarations must stay under the project root."""

    def test_declaration_outside_root(self):
        result = run(
            tree("p/Api.cs", "namespace Acme.Apis;"),
            tree("p/x/Other.cs", "namespace Acme.Internal;"),
        )
        assert result.project == Project(Role.APIS, "Acme.Apis")
        (diag,) = result.diagnostics
        assert diag.id == "MCS001"
        assert diag.message == "Invalid namespace declaration in 'Acme.Apis' project: 'Acme.Internal'"
        assert diag.location.path == "p/x/Other.cs"
        assert (diag.location.line, diag.location.column) == (1, 11)
        assert diag.severity is Severity.ERROR

    def test_apis_project_declarations(self):
        result = run(
            tree("p/Api.cs", "namespace Acme.Billing.Apis;"),
            tree("p/x/Handlers.cs", "namespace Acme.Billing.Apis.Handlers;"),
            tree("p/x/Internal.cs", "namespace Acme.Billing.Internal;"),
        )
        (diag,) = result.diagnostics
        assert diag.args == ("Acme.Billing.Apis", "Acme.Billing.Internal")

    def test_nested_declarations_use_full_name(self):
        result = run(tree(
            "p/Svc.cs",
            "namespace Acme.OrderService { namespace Endpoints { } }\n"
            "namespace Acme { namespace Stray { } }\n",
        ))
        messages = [d.message for d in result.diagnostics]
        assert messages == [
            "Invalid namespace declaration in 'Acme.OrderService' project: 'Acme'",
            "Invalid namespace declaration in 'Acme.OrderService' project: 'Acme.Stray'",
        ]

    def test_prefix_without_dot_is_outside(self):
        result = run(
            tree("p/A.cs", "namespace Acme.OrderService;"),
            tree("p/x/B.cs", "namespace Acme.OrderServiceHost;"),
        )
        assert ids(result.diagnostics) == ["MCS001"]

    def test_unknown_project_is_not_validated(self):
        result = run(
            tree("p/A.cs", "using Acme.OrderService;\nnamespace Acme.Tools;"),
            tree("p/x/B.cs", "namespace Totally.Different;"),
        )
        assert result.project.role is Role.UNKNOWN
        assert result.diagnostics == ()

    def test_other_project_checks_declarations_only(self):
        config = {OTHER_NAMESPACES_KEY: "Acme.Shared"}
        result = run(
            tree("p/A.cs", "using Acme.Apis;\nnamespace Acme.Shared;"),
            tree("p/x/B.cs", "namespace Acme.Elsewhere;"),
            config=config,
        )
        assert result.project.role is Role.OTHER
        assert ids(result.diagnostics) == ["MCS001"]


class TestUsingDependencies:
    """MCS002: using directives must name permitted namespaces."""

    def test_sibling_service_using(self):
        result = run(tree(
            "p/Orders.cs",
            "using Acme.InventoryService;\nusing Acme.Contracts;\nnamespace Acme.OrderService;\n",
        ))
        (diag,) = result.diagnostics
        assert diag.id == "MCS002"
        assert diag.message == "Invalid using for namespace 'Acme.OrderService': 'Acme.InventoryService'"
        assert (diag.location.line, diag.location.column) == (1, 7)

    def test_own_subnamespace_allowed(self):
        result = run(tree(
            "p/Orders.cs",
            "using Acme.OrderService.Internal;\nnamespace Acme.OrderService;\n",
        ))
        assert result.diagnostics == ()

    def test_apis_using_service(self):
        result = run(tree(
            "p/Api.cs",
            "namespace Acme.Apis\n{\n    using Acme.OrderService;\n}\n",
        ))
        assert ids(result.diagnostics) == ["MCS002"]
        assert result.diagnostics[0].args == ("Acme.Apis", "Acme.OrderService")

    def test_contracts_using_apis(self):
        result = run(tree("p/C.cs", "using Acme.Apis;\nnamespace Acme.Contracts;\n"))
        assert ids(result.diagnostics) == ["MCS002"]

    def test_unclassified_using_never_reported(self):
        result = run(tree(
            "p/Orders.cs",
            "using System.Linq;\nusing Acme.Tools;\nnamespace Acme.OrderService;\n",
        ))
        assert result.diagnostics == ()

    def test_directive_shared_by_namespaces_reported_once(self):
        result = run(tree(
            "p/Orders.cs",
            "using Acme.Apis;\n"
            "namespace Acme.OrderService { }\n"
            "namespace Acme.OrderService.Sub { }\n",
        ))
        assert ids(result.diagnostics) == ["MCS002"]

    def test_file_without_namespace(self):
        result = run(
            tree("p/A.cs", "namespace Acme.OrderService;"),
            tree("p/x/Program.cs", "using Acme.InventoryService;\nRun();\n"),
        )
        (diag,) = result.diagnostics
        assert diag.args == ("Acme.OrderService", "Acme.InventoryService")
        assert diag.location.path == "p/x/Program.cs"

    def test_alias_using(self):
        result = run(tree(
            "p/Orders.cs",
            "using Inv = Acme.InventoryService.Client;\nnamespace Acme.OrderService;\n",
        ))
        assert ids(result.diagnostics) == ["MCS002"]

    def test_sibling_services_permitted_by_policy(self):
        result = run(
            tree("p/Orders.cs", "using Acme.InventoryService;\nnamespace Acme.OrderService;\n"),
            policy=DependencyPolicy(allow_sibling_services=True),
        )
        assert result.diagnostics == ()


class TestTypeReferences:
    """MCS003: qualified references must name permitted namespaces."""

    def test_fully_qualified_sibling_reference(self):
        source = (
            "using Acme.Contracts;\n"
            "namespace Acme.OrderService;\n"
            "class Orders\n"
            "{\n"
            "    void Run() { var c = new Acme.InventoryService.Client(); }\n"
            "}\n"
        )
        result = run(tree("p/Orders.cs", source))
        (diag,) = result.diagnostics
        assert diag.id == "MCS003"
        assert diag.message == (
            "Invalid type reference in namespace 'Acme.OrderService': 'Acme.InventoryService.Client'"
        )
        assert (diag.location.line, diag.location.column) == (5, 30)

    def test_member_access_is_not_reported(self):
        source = (
            "namespace Acme.OrderService;\n"
            "class Orders { void Run(IService inventoryService) { inventoryService.Apis.Call(); } }\n"
        )
        assert run(tree("p/Orders.cs", source)).diagnostics == ()

    def test_alias_resolved(self):
        source = (
            "namespace Acme.OrderService\n"
            "{\n"
            "    using Api = Acme.Apis;\n"
            "    class Orders { Api.Endpoint e; }\n"
            "}\n"
        )
        result = run(tree("p/Orders.cs", source))
        # The alias target could be a type in namespace Acme; the use site is reported
        (mcs003,) = result.diagnostics
        assert mcs003.id == "MCS003"
        assert mcs003.args == ("Acme.OrderService", "Api.Endpoint")

    def test_global_alias_from_another_file(self):
        result = run(
            tree("p/A.cs", "namespace Acme.OrderService;"),
            tree("p/Globals.cs", "global using Inv = Acme.InventoryService;\n"),
            tree("p/x/B.cs", "namespace Acme.OrderService;\nclass B { Inv.Client c; }\n"),
        )
        by_path = {d.location.path: d.id for d in result.diagnostics}
        assert by_path == {"p/x/B.cs": "MCS003"}

    def test_own_and_contracts_references_allowed(self):
        source = (
            "namespace Acme.OrderService;\n"
            "class Orders { Acme.Contracts.Money m; Acme.OrderService.Internal.Cache c; }\n"
        )
        assert run(tree("p/Orders.cs", source)).diagnostics == ()

    def test_top_level_statement_reference(self):
        result = run(
            tree("p/A.cs", "namespace Acme.OrderService;"),
            tree("p/x/Program.cs", "Acme.InventoryService.Client.Run();\n"),
        )
        (diag,) = result.diagnostics
        assert diag.id == "MCS003"
        assert diag.args == ("Acme.OrderService", "Acme.InventoryService.Client.Run")
        assert diag.location.path == "p/x/Program.cs"

    def test_top_level_alias_reference(self):
        result = run(
            tree("p/A.cs", "namespace Acme.OrderService;"),
            tree("p/x/Program.cs", "using Inv = Acme.InventoryService;\nInv.Client.Run();\n"),
        )
        (diag,) = result.diagnostics
        assert diag.id == "MCS003"
        assert diag.args == ("Acme.OrderService", "Inv.Client.Run")

    def test_top_level_allowed_reference(self):
        result = run(
            tree("p/A.cs", "namespace Acme.OrderService;"),
            tree("p/x/Program.cs", "Acme.OrderService.Host.Run(Acme.Contracts.Money.Zero);\n"),
        )
        assert result.diagnostics == ()


class TestDeclaringNamespace:
    """Dependencies are classified by the namespace that declares the named type."""

    def test_type_named_like_a_service(self):
        source = (
            "using Microsoft.Extensions.Logging;\n"
            "namespace Acme.OrderService;\n"
            "class Worker : Microsoft.Extensions.Hosting.BackgroundService { }\n"
        )
        result = run(tree("p/Worker.cs", source))
        assert result.project.role is Role.SERVICE
        assert result.diagnostics == ()

    def test_using_static_of_a_type_named_like_a_service(self):
        result = run(tree("p/Api.cs", "using static Acme.Shared.TimeService;\nnamespace Acme.Apis;\n"))
        assert result.diagnostics == ()

    def test_using_static_of_a_service_type(self):
        result = run(tree("p/Api.cs", "using static Acme.OrderService.Client;\nnamespace Acme.Apis;\n"))
        (diag,) = result.diagnostics
        assert diag.id == "MCS002"
        assert diag.args == ("Acme.Apis", "Acme.OrderService.Client")

    def test_alias_of_a_type_named_like_a_service(self):
        source = (
            "using Clock = Acme.Shared.TimeService;\n"
            "namespace Acme.Apis;\n"
            "class A { Clock clock; }\n"
        )
        assert run(tree("p/Api.cs", source)).diagnostics == ()

    def test_known_namespace_wins_over_last_segment(self):
        source = (
            "using Acme.Shared;\n"
            "namespace Acme.Apis;\n"
            "class A { object t = Acme.Shared.TimeService.Now; }\n"
        )
        assert run(tree("p/Api.cs", source)).diagnostics == ()

    def test_declaring_namespace(self):
        known = {"Acme", "Acme.Shared", "Acme.Shared.Text"}
        assert declaring_namespace("Acme.Shared.Text.Encoder", known) == "Acme.Shared.Text"
        assert declaring_namespace("Acme.Shared.TimeService.Now", known) == "Acme.Shared"
        assert declaring_namespace("Acme.Shared", known) == "Acme.Shared"
        assert declaring_namespace("Other.Lib.Widget", known) == "Other.Lib"
        assert declaring_namespace("Widget", set()) == ""


class TestCompilation:
    """Whole-compilation behavior shared by all rules."""

    def test_generated_code_classified_but_not_validated(self):
        generated = dataclasses.replace(
            tree("p/A.g.cs", "using Acme.Apis;\nnamespace Acme.OrderService;"),
            generated=True,
        )
        result = run(
            generated,
            tree("p/x/B.cs", "namespace Acme.Elsewhere;"),
        )
        assert result.project == Project(Role.SERVICE, "Acme.OrderService")
        assert ids(result.diagnostics) == ["MCS001"]

    def test_severity_override(self):
        config = {
            "dotnet_diagnostic.mcs001.severity": "warning",
            "dotnet_diagnostic.mcs002.severity": "none",
        }
        result = run(
            tree("p/A.cs", "using Acme.Apis;\nnamespace Acme.OrderService;"),
            tree("p/x/B.cs", "namespace Acme.Elsewhere;"),
            config=config,
        )
        (diag,) = result.diagnostics
        assert diag.id == "MCS001"
        assert diag.severity is Severity.WARNING

    def test_parallel_matches_sequential(self):
        trees = [
            tree("p/A.cs", "namespace Acme.OrderService;"),
            *(
                tree(f"p/x/F{i}.cs", f"using Acme.Apis;\nnamespace Acme.Stray{i};")
                for i in range(8)
            ),
        ]
        sequential = run(*trees)
        parallel = run(*trees, jobs=4)
        assert parallel == sequential
        assert len(parallel.diagnostics) == 16

    def test_inputs_not_modified(self):
        trees = [tree("p/A.cs", "using Acme.Apis;\nnamespace Acme.OrderService;")]
        before = list(trees)
        run(*trees)
        assert trees == before


class TestRuleFunctions:
    """Rules can be called one by one with an explicit context."""

    def test_individual_rules(self):
        t = tree("p/A.cs", "using Acme.Apis;\nnamespace Acme.Stray;\nclass A { Acme.Apis.X x; }\n")
        project = Project(Role.SERVICE, "Acme.OrderService")
        ctx = build_context(project, {}, [t])
        assert ids(check_namespace_declarations(ctx, t)) == ["MCS001"]
        assert ids(check_using_dependencies(ctx, t)) == ["MCS002"]
        assert ids(check_type_references(ctx, t)) == ["MCS003"]
        assert ctx.known_roots == frozenset({"Acme"})
