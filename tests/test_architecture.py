"""Architectural boundary tests using pytest-archon.

These tests verify that the codebase follows clean architecture principles:
- Domain layer has no dependencies on adapters or application
- Application services only see the provider port, never a concrete adapter
- Backend adapters do not know about the HTTP service
"""

from pytest_archon import archrule


def test_domain_models_have_no_dependencies() -> None:
    """Domain models should only import other models and the domain exceptions."""
    (
        archrule("domain models", comment="Domain models should be independent")
        .match("transit_enabler.domain.models*")
        .should_not_import("transit_enabler.adapters*")
        .should_not_import("transit_enabler.application*")
        .should_not_import("transit_enabler.domain.ports*")
        .may_import("transit_enabler.domain.models*")
        .may_import("transit_enabler.domain.exceptions")
        .check("transit_enabler")
    )


def test_domain_ports_have_no_dependencies() -> None:
    """Domain ports (interfaces) should not import adapters or application."""
    (
        archrule("domain ports", comment="Domain ports should be independent")
        .match("transit_enabler.domain.ports*")
        .should_not_import("transit_enabler.adapters*")
        .should_not_import("transit_enabler.application*")
        .may_import("transit_enabler.domain*")
        .check("transit_enabler")
    )


def test_application_services_dont_import_adapters() -> None:
    """Application services should not depend on adapters (infrastructure layer)."""
    (
        archrule(
            "application services", comment="Application services should not depend on adapters"
        )
        .match("transit_enabler.application*")
        .should_not_import("transit_enabler.adapters*")
        .may_import("transit_enabler.domain*")
        .may_import("transit_enabler.application*")
        .check("transit_enabler")
    )


def test_backend_adapters_dont_import_application() -> None:
    """Backend adapters should not import application services (to avoid cycles)."""
    (
        archrule(
            "backend adapters independence",
            comment="Backend adapters should not depend on application services",
        )
        .match(
            "transit_enabler.adapters.transport_rest*",
            "transit_enabler.adapters.hafas_api*",
            "transit_enabler.adapters.http_client",
        )
        .should_not_import("transit_enabler.application*")
        .may_import("transit_enabler.domain*")
        .may_import("transit_enabler.adapters*")
        .check("transit_enabler", only_direct_imports=True)
    )


def test_backend_adapters_dont_import_web() -> None:
    """Backend adapters should work without the HTTP service."""
    (
        archrule("backend adapters without web", comment="Only main and web may use the web adapter")
        .match(
            "transit_enabler.adapters.transport_rest*",
            "transit_enabler.adapters.hafas_api*",
            "transit_enabler.adapters.provider_factory",
        )
        .should_not_import("transit_enabler.adapters.web*")
        .check("transit_enabler")
    )


def test_no_circular_dependencies_in_domain() -> None:
    """Domain layer should not have circular dependencies."""
    (
        archrule("domain no cycles", comment="Domain layer should not have circular dependencies")
        .match("transit_enabler.domain*")
        .should_not_import("transit_enabler.adapters*")
        .should_not_import("transit_enabler.application*")
        .may_import("transit_enabler.domain*")
        .check("transit_enabler", only_direct_imports=True)
    )
