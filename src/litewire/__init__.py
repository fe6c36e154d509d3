"""Annotation-driven dependency wiring for live objects.

Providers declare what they supply, consumers declare what they need, and the
container connects the two without either side knowing about the other.
No constructor injection: fields, methods and properties of already-built
objects are wired in place.

Exports:
- `Container`: scans candidates, wires them, validates and clears injected fields.
- `DependencyProvider`, `provide`: mark providers and their provider methods.
- `Inject`, `inject`: mark injectable fields (`x: Inject[T]`), methods and properties.
- `Registry`: the capability type -> instance mapping used by a container.
- Errors: `InjectionError` and its subclasses.
"""

from ._container import Container, ValidationIssue, ValidationReport
from ._errors import (
    DuplicateProviderError,
    InjectionError,
    InvalidDeclarationError,
    MemberKind,
    ProviderReturnedNullError,
    UnresolvedDependency,
    UnresolvedDependencyError,
)
from ._markers import INJECT, DependencyProvider, Inject, inject, provide
from ._registry import Registry


__all__ = [
    "INJECT",
    "Container",
    "DependencyProvider",
    "DuplicateProviderError",
    "Inject",
    "InjectionError",
    "InvalidDeclarationError",
    "MemberKind",
    "ProviderReturnedNullError",
    "Registry",
    "UnresolvedDependency",
    "UnresolvedDependencyError",
    "ValidationIssue",
    "ValidationReport",
    "inject",
    "provide",
]
