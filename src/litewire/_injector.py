from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ._errors import MemberKind, UnresolvedDependency, UnresolvedDependencyError
from ._markers import injectable_members


if TYPE_CHECKING:
    from ._markers import FieldPoint, MethodPoint, PropertyPoint
    from ._registry import Registry


logger = logging.getLogger(__name__)


def is_unset(value: object) -> bool:
    return value is None


class Injector:
    """Wires one consumer against the current registry contents.

    Passes run in a fixed order: fields, then methods, then properties.
    A member with a missing dependency is skipped and recorded; the remaining
    members are still attempted, and one `UnresolvedDependencyError` is raised at
    the end. With `fail_fast` the first missing dependency raises immediately.
    Nothing is rolled back.
    """

    def __init__(self, registry: Registry, *, fail_fast: bool = False) -> None:
        self._registry = registry
        self._fail_fast = fail_fast

    def inject(self, instance: object) -> None:
        cls = type(instance)
        members = injectable_members(cls)
        failures: list[UnresolvedDependency] = []

        for f in members.fields:
            self._inject_field(instance, f, failures)
        for m in members.methods:
            self._inject_method(instance, m, failures)
        for p in members.properties:
            self._inject_property(instance, p, failures)

        if failures:
            raise UnresolvedDependencyError(failures)

        logger.debug("Injected %s", cls.__name__)

    def _inject_field(self, instance: object, f: FieldPoint, failures: list[UnresolvedDependency]) -> None:
        if not is_unset(getattr(instance, f.name, None)):
            logger.warning("Field '%s' of class '%s' is already set.", f.name, type(instance).__name__)
            return

        resolved = self._registry.resolve(f.capability)
        if resolved is None:
            self._fail(UnresolvedDependency(type(instance), f.name, MemberKind.FIELD, f.capability), failures)
            return

        setattr(instance, f.name, resolved)

    def _inject_method(self, instance: object, m: MethodPoint, failures: list[UnresolvedDependency]) -> None:
        args = []
        for _, capability in m.parameters:
            resolved = self._registry.resolve(capability)
            if resolved is None:
                self._fail(UnresolvedDependency(type(instance), m.name, MemberKind.METHOD, capability), failures)
                return
            args.append(resolved)

        getattr(instance, m.name)(*args)

    def _inject_property(self, instance: object, p: PropertyPoint, failures: list[UnresolvedDependency]) -> None:
        # no "already set" check: properties are always re-assigned
        resolved = self._registry.resolve(p.capability)
        if resolved is None:
            self._fail(UnresolvedDependency(type(instance), p.name, MemberKind.PROPERTY, p.capability), failures)
            return

        setattr(instance, p.name, resolved)

    def _fail(self, failure: UnresolvedDependency, failures: list[UnresolvedDependency]) -> None:
        if self._fail_fast:
            raise UnresolvedDependencyError([failure])
        failures.append(failure)
