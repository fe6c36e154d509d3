from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ._errors import ProviderReturnedNullError, type_name
from ._injector import Injector, is_unset
from ._markers import DependencyProvider, injectable_members, provider_declarations
from ._registry import Registry, check_instance


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable


@dataclass(frozen=True)
class ValidationIssue:
    consumer: type
    member: str
    capability: Any
    label: str

    def __str__(self) -> str:
        return f"{self.consumer.__name__} is missing dependency {type_name(self.capability)} on {self.label}"


@dataclass
class ValidationReport:
    provided: frozenset[Any]
    issues: list[ValidationIssue] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.issues)

    @property
    def is_valid(self) -> bool:
        return not self.issues


def default_label(obj: object) -> str:
    name = getattr(obj, "name", None)
    if isinstance(name, str) and name:
        return name
    return f"{type(obj).__name__}@{id(obj):#x}"


class Container:
    """Wires live objects together by their annotations.

    - providers: `DependencyProvider` instances exposing `@provide` methods
    - consumers: objects with `Inject[...]` fields, `@inject` methods or properties
    - `wire()` registers every provided instance, then injects every consumer
    - `validate()` / `clear()` inspect or reset the current candidates on demand.

    `candidates` is called once per operation and must return the host's live objects.
    """

    def __init__(
        self,
        candidates: Callable[[], Iterable[object]],
        *,
        fail_fast: bool = False,
        label: Callable[[object], str] | None = None,
    ) -> None:
        self._candidates = candidates
        self._label = label or default_label
        self._registry = Registry()
        self._injector = Injector(self._registry, fail_fast=fail_fast)
        self._lock = threading.RLock()

    @property
    def registry(self) -> Registry:
        return self._registry

    def wire(self) -> None:
        """Register what every provider provides, then inject every consumer.

        Running it twice without `clear_registry()` raises `DuplicateProviderError`.
        """
        with self._lock:
            candidates = list(self._candidates())
            for obj in candidates:
                if isinstance(obj, DependencyProvider):
                    self._register_provider(obj)

            consumers = [obj for obj in candidates if injectable_members(type(obj))]
            for obj in consumers:
                self._injector.inject(obj)

        logger.info("Wired %d consumer(s) from %d provided type(s)", len(consumers), len(self._registry))

    def register_instance(self, capability: Any, instance: object) -> None:
        """Register an externally built instance, bypassing provider declarations."""
        if instance is not None:
            check_instance(capability, instance)
        self._registry.register(capability, instance)

    def resolve(self, capability: Any) -> object | None:
        return self._registry.resolve(capability)

    def inject(self, instance: object) -> None:
        """Inject a single object against the current registry."""
        with self._lock:
            self._injector.inject(instance)

    def validate(self) -> ValidationReport:
        """Report injectable fields that are unset and that no provider declares.

        Read-only: no provider is called and the registry is left untouched.
        """
        with self._lock:
            candidates = list(self._candidates())
            provided = frozenset(
                decl.capability
                for obj in candidates
                if isinstance(obj, DependencyProvider)
                for decl in provider_declarations(type(obj))
            )

            report = ValidationReport(provided=provided)
            for obj in candidates:
                for f in injectable_members(type(obj)).fields:
                    if f.capability not in provided and is_unset(getattr(obj, f.name, None)):
                        report.issues.append(
                            ValidationIssue(consumer=type(obj), member=f.name, capability=f.capability, label=self._label(obj))
                        )

        for capability in provided:
            logger.debug("Provided: %s", type_name(capability))

        if report.is_valid:
            logger.info("All dependencies are valid.")
        else:
            logger.error("%d dependencies are invalid:", report.count)
            for issue in report.issues:
                logger.error("%s", issue)

        return report

    def clear(self) -> int:
        """Reset every injectable field of every candidate to None. Methods and properties are left alone."""
        cleared = 0
        with self._lock:
            for obj in self._candidates():
                for f in injectable_members(type(obj)).fields:
                    setattr(obj, f.name, None)
                    cleared += 1

        logger.info("All injectable fields cleared (%d).", cleared)
        return cleared

    def clear_registry(self) -> None:
        self._registry.clear()

    def _register_provider(self, provider: DependencyProvider) -> None:
        cls = type(provider)
        for decl in provider_declarations(cls):
            instance = getattr(provider, decl.name)()
            if instance is None:
                raise ProviderReturnedNullError(cls, decl.name, decl.capability)

            try:
                check_instance(decl.capability, instance)
            except TypeError as e:
                msg = f"Provider method '{decl.name}' in class '{cls.__name__}' returned a bad instance: {e}"
                raise TypeError(msg) from e

            self._registry.register(decl.capability, instance)
