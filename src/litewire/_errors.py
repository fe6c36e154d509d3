from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class MemberKind(Enum):
    FIELD = "field"
    METHOD = "method"
    PROPERTY = "property"


@dataclass(frozen=True)
class UnresolvedDependency:
    owner: type
    member: str
    kind: MemberKind
    capability: Any

    def __str__(self) -> str:
        return (
            f"Failed to inject dependency {type_name(self.capability)} into {self.kind.value} "
            f"'{self.member}' of class '{self.owner.__name__}'"
        )


class InjectionError(RuntimeError):
    pass


class DuplicateProviderError(InjectionError):
    def __init__(self, capability: Any, existing: object, instance: object) -> None:
        self.capability = capability
        self.existing = existing
        self.instance = instance
        msg = (
            f"A provider for {type_name(capability)} is already registered "
            f"({type(existing).__name__}); refusing {type(instance).__name__}."
        )
        super().__init__(msg)


class ProviderReturnedNullError(InjectionError):
    def __init__(self, owner: type, method: str, capability: Any) -> None:
        self.owner = owner
        self.method = method
        self.capability = capability
        msg = (
            f"Provider method '{method}' in class '{owner.__name__}' returned None "
            f"when providing type '{type_name(capability)}'."
        )
        super().__init__(msg)


class UnresolvedDependencyError(InjectionError):
    """Raised once per consumer, carrying every member that could not be wired."""

    def __init__(self, failures: list[UnresolvedDependency]) -> None:
        self.failures = list(failures)
        if len(self.failures) == 1:
            msg = f"{self.failures[0]}."
        else:
            lines = "\n".join(f"  - {f}" for f in self.failures)
            msg = f"{len(self.failures)} dependencies could not be resolved:\n{lines}"
        super().__init__(msg)


class InvalidDeclarationError(InjectionError, TypeError):
    pass


def type_name(tp: Any) -> str:
    return getattr(tp, "__name__", repr(tp))
