import logging
import unittest

import pytest

from example_app import ClassA, ClassB, FactoryA, ServiceA, ServiceB, ServiceC
from litewire import Inject, MemberKind, Registry, UnresolvedDependencyError, inject
from litewire._injector import Injector


class SpyRegistry(Registry):
    def __init__(self):
        super().__init__()
        self.lookups = []

    def resolve(self, capability):
        self.lookups.append(capability)
        return super().resolve(capability)


class TestFullResolution(unittest.TestCase):
    registry: Registry

    def setUp(self):
        self.registry = Registry()
        self.service_a, self.service_b, self.service_c, self.factory_a = ServiceA(), ServiceB(), ServiceC(), FactoryA()
        self.registry.register(ServiceA, self.service_a)
        self.registry.register(ServiceB, self.service_b)
        self.registry.register(ServiceC, self.service_c)
        self.registry.register(FactoryA, self.factory_a)
        self.injector = Injector(self.registry)

    def test_inject_sets_field_calls_method_once_and_sets_property(self):
        a = ClassA()

        self.injector.inject(a)

        assert a._service_a is self.service_a
        assert a._service_b is self.service_b
        assert a.init_calls == 1
        assert a.service_c is self.service_c

    def test_inject_passes_method_arguments_in_declared_order(self):
        b = ClassB()

        self.injector.inject(b)

        assert b._service_b is self.service_b
        assert b._factory_a is self.factory_a

    def test_passes_run_fields_then_methods_then_properties(self):
        calls = []

        class Ordered:
            @inject
            @property
            def service_c(self) -> ServiceC:
                return None

            @service_c.setter
            def service_c(self, value: ServiceC) -> None:
                calls.append(("property", value))

            @inject
            def init(self, service_b: ServiceB) -> None:
                calls.append(("method", self.service_a))

            service_a: Inject[ServiceA] = None

        self.injector.inject(Ordered())

        assert calls == [("method", self.service_a), ("property", self.service_c)]

    def test_property_is_always_reassigned(self):
        a = ClassA()
        previous = ServiceC()
        a.service_c = previous

        self.injector.inject(a)

        assert a.service_c is self.service_c

    def test_reinjecting_same_object_is_stable(self):
        a = ClassA()

        self.injector.inject(a)
        self.injector.inject(a)

        assert a._service_a is self.service_a
        assert a.service_c is self.service_c


class TestPresetFields(unittest.TestCase):
    def test_preset_field_is_kept_and_registry_not_consulted(self):
        registry = SpyRegistry()
        registry.register(ServiceA, ServiceA())
        preset = ServiceA()

        class Consumer:
            service_a: Inject[ServiceA] = None

        consumer = Consumer()
        consumer.service_a = preset

        Injector(registry).inject(consumer)

        assert consumer.service_a is preset
        assert ServiceA not in registry.lookups

    def test_preset_field_without_provider_is_not_an_error(self):
        class Consumer:
            service_a: Inject[ServiceA] = None

        consumer = Consumer()
        consumer.service_a = ServiceA()

        Injector(Registry()).inject(consumer)

    def test_preset_field_logs_warning(self):
        class Consumer:
            service_a: Inject[ServiceA] = None

        consumer = Consumer()
        consumer.service_a = ServiceA()

        with self.assertLogs("litewire", level=logging.WARNING) as logs:
            Injector(Registry()).inject(consumer)

        assert "Field 'service_a' of class 'Consumer' is already set." in logs.output[0]


class TestUnresolvedDependencies(unittest.TestCase):
    def test_missing_field_dependency_raises_with_field_and_type(self):
        class Consumer:
            service_a: Inject[ServiceA] = None

        with pytest.raises(UnresolvedDependencyError) as ctx:
            Injector(Registry()).inject(Consumer())

        [failure] = ctx.value.failures
        assert failure.owner is Consumer
        assert failure.member == "service_a"
        assert failure.kind is MemberKind.FIELD
        assert failure.capability is ServiceA
        assert "'service_a'" in str(ctx.value)
        assert "ServiceA" in str(ctx.value)

    def test_method_with_missing_parameter_is_not_called(self):
        registry = Registry()
        registry.register(ServiceB, ServiceB())
        b = ClassB()

        with pytest.raises(UnresolvedDependencyError) as ctx:
            Injector(registry).inject(b)

        assert b._service_b is None
        method_failures = [f for f in ctx.value.failures if f.kind is MemberKind.METHOD]
        assert [(f.member, f.capability) for f in method_failures] == [("initialize", FactoryA)]

    def test_method_failure_names_first_missing_parameter(self):
        class Consumer:
            @inject
            def init(self, service_a: ServiceA, service_b: ServiceB) -> None:
                raise AssertionError("must not be called")

        with pytest.raises(UnresolvedDependencyError) as ctx:
            Injector(Registry()).inject(Consumer())

        [failure] = ctx.value.failures
        assert failure.capability is ServiceA

    def test_failures_are_aggregated_across_members(self):
        registry = Registry()
        service_b = ServiceB()
        registry.register(ServiceB, service_b)
        a = ClassA()

        with pytest.raises(UnresolvedDependencyError) as ctx:
            Injector(registry).inject(a)

        assert [(f.kind, f.member) for f in ctx.value.failures] == [
            (MemberKind.FIELD, "_service_a"),
            (MemberKind.PROPERTY, "service_c"),
        ]
        # resolvable members are still wired, nothing is rolled back
        assert a._service_b is service_b
        assert "2 dependencies could not be resolved" in str(ctx.value)

    def test_fail_fast_raises_on_first_failure(self):
        registry = Registry()
        registry.register(ServiceB, ServiceB())
        a = ClassA()

        with pytest.raises(UnresolvedDependencyError) as ctx:
            Injector(registry, fail_fast=True).inject(a)

        assert [f.member for f in ctx.value.failures] == ["_service_a"]
        assert a.init_calls == 0


def test_inherited_members_are_injected_base_first():
    seen = []

    class Base:
        service_a: Inject[ServiceA] = None

        @inject
        def init_base(self, service_a: ServiceA) -> None:
            seen.append("base")

    class Child(Base):
        service_b: Inject[ServiceB] = None

        @inject
        def init_child(self, service_b: ServiceB) -> None:
            seen.append("child")

    registry = Registry()
    registry.register(ServiceA, ServiceA())
    registry.register(ServiceB, ServiceB())
    child = Child()

    Injector(registry).inject(child)

    assert child.service_a is registry.resolve(ServiceA)
    assert child.service_b is registry.resolve(ServiceB)
    assert seen == ["base", "child"]


def test_overridden_injectable_method_runs_once():
    calls = []

    class Base:
        @inject
        def init(self, service_a: ServiceA) -> None:
            calls.append("base")

    class Child(Base):
        @inject
        def init(self, service_a: ServiceA) -> None:
            calls.append("child")

    registry = Registry()
    registry.register(ServiceA, ServiceA())

    Injector(registry).inject(Child())

    assert calls == ["child"]
