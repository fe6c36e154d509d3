from __future__ import annotations

import inspect
import logging
import re
import sys
import typing
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Annotated, Any, TypeVar, get_type_hints

from ._errors import InvalidDeclarationError


logger = logging.getLogger(__name__)

if TYPE_CHECKING:
    from collections.abc import Callable

    F = TypeVar("F", bound=Callable[..., Any])

_INJECT_FLAG = "__litewire_inject__"
_PROVIDE_FLAG = "__litewire_provide__"


class _InjectMarker:
    def __repr__(self) -> str:
        return "INJECT"


INJECT = _InjectMarker()


class Inject:
    """Field marker: ``service: Inject[Service]`` is ``Annotated[Service, INJECT]``."""

    def __class_getitem__(cls, item: Any) -> Any:
        return Annotated[item, INJECT]


class DependencyProvider:
    """Marker base class. Only instances of subclasses are scanned for ``@provide`` methods."""


@typing.overload
def inject(member: property) -> property: ...


@typing.overload
def inject(member: F) -> F: ...


def inject(member: Any) -> Any:
    """Mark a method or a property as injectable.

    Example:
      class Consumer:
          @inject
          def init(self, repo: Repo, clock: Clock) -> None: ...

          @inject
          @property
          def logger(self) -> Logger: ...

    """
    if isinstance(member, property):
        if member.fget is None:
            msg = "Injectable properties need a getter annotated with the dependency type."
            raise InvalidDeclarationError(msg)
        setattr(member.fget, _INJECT_FLAG, True)
        return member

    if inspect.isfunction(member):
        setattr(member, _INJECT_FLAG, True)
        return member

    msg = f"@inject applies to methods and properties, not {type(member).__name__}"
    raise InvalidDeclarationError(msg)


def provide(func: F) -> F:
    """Mark a zero-argument method of a ``DependencyProvider`` as the provider of its return type."""
    if not inspect.isfunction(func):
        msg = f"@provide applies to methods, not {type(func).__name__}"
        raise InvalidDeclarationError(msg)
    setattr(func, _PROVIDE_FLAG, True)
    return func


@dataclass(frozen=True)
class FieldPoint:
    name: str
    capability: Any


@dataclass(frozen=True)
class MethodPoint:
    name: str
    parameters: tuple[tuple[str, Any], ...]


@dataclass(frozen=True)
class PropertyPoint:
    name: str
    capability: Any


@dataclass(frozen=True)
class ProviderPoint:
    name: str
    capability: Any


@dataclass
class Members:
    fields: list[FieldPoint] = field(default_factory=list)
    methods: list[MethodPoint] = field(default_factory=list)
    properties: list[PropertyPoint] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.fields or self.methods or self.properties)


def injectable_members(cls: type) -> Members:
    """Collect the injectable fields, methods and properties declared on ``cls`` and its bases.

    Base classes come first; an override keeps the position of the member it replaces.
    Class dictionaries are read directly, so property getters never run here.
    """
    members = Members()

    for name, capability in _injectable_fields(cls).items():
        members.fields.append(FieldPoint(name=name, capability=capability))

    for name, attr in _class_attributes(cls).items():
        if inspect.isfunction(attr) and getattr(attr, _INJECT_FLAG, False):
            members.methods.append(MethodPoint(name=name, parameters=_method_parameters(cls, name, attr)))
        elif isinstance(attr, property) and getattr(attr.fget, _INJECT_FLAG, False):
            if attr.fset is None:
                msg = f"Injectable property '{name}' of class '{cls.__name__}' has no setter."
                raise InvalidDeclarationError(msg)
            members.properties.append(PropertyPoint(name=name, capability=_return_type(cls, name, attr.fget)))

    return members


def provider_declarations(cls: type) -> list[ProviderPoint]:
    declarations = []
    for name, attr in _class_attributes(cls).items():
        if not (inspect.isfunction(attr) and getattr(attr, _PROVIDE_FLAG, False)):
            continue

        params = list(inspect.signature(attr).parameters.values())[1:]
        if params:
            msg = (
                f"Provider method '{name}' in class '{cls.__name__}' must not take arguments "
                f"(got: {', '.join(p.name for p in params)})."
            )
            raise InvalidDeclarationError(msg)

        declarations.append(ProviderPoint(name=name, capability=_return_type(cls, name, attr)))

    return declarations


def _is_inject_annotation(hint: Any) -> bool:
    if typing.get_origin(hint) is not Annotated:
        return False
    return any(meta is INJECT for meta in hint.__metadata__)


def _class_attributes(cls: type) -> dict[str, Any]:
    attrs: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        attrs.update(vars(klass))
    return attrs


def _injectable_fields(cls: type) -> dict[str, Any]:
    """Map each `Inject[...]` field of ``cls`` (bases first) to its capability type.

    Annotations are evaluated one by one, so an unrelated annotation that cannot be
    evaluated never hides the injectable fields next to it. An injectable field
    that cannot be evaluated raises `InvalidDeclarationError`.
    """
    fields: dict[str, Any] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue

        module = sys.modules.get(klass.__module__)
        # module globals win over class attributes, as in typing.get_type_hints
        namespace = {**vars(klass), **getattr(module, "__dict__", {})}

        for name, raw in _own_annotations(klass).items():
            try:
                hint = _evaluate(raw, namespace)
                is_field = _is_inject_annotation(hint)
                capability = _evaluate(typing.get_args(hint)[0], namespace) if is_field else None
            except Exception as exc:  # noqa: BLE001
                if _mentions_inject(raw):
                    msg = f"Cannot evaluate injectable field '{name}' of class '{klass.__name__}': {exc}"
                    raise InvalidDeclarationError(msg) from exc
                logger.debug("Skipping annotation '%s' of %s (%s)", name, klass.__qualname__, exc)
                fields.pop(name, None)
                continue

            # a re-annotation in a subclass replaces the base declaration
            if is_field:
                fields[name] = capability
            else:
                fields.pop(name, None)

    return fields


def _own_annotations(klass: type) -> dict[str, Any]:
    try:
        return dict(inspect.get_annotations(klass))
    except NameError:
        # lazily evaluated annotations (3.14+) referring to undefined names
        if sys.version_info < (3, 14):
            raise
        import annotationlib

        return dict(annotationlib.get_annotations(klass, format=annotationlib.Format.FORWARDREF))


def _evaluate(value: Any, namespace: dict[str, Any]) -> Any:
    # same evaluation as inspect.get_annotations(eval_str=True), one entry at a time
    if isinstance(value, typing.ForwardRef):
        value = value.__forward_arg__
    if isinstance(value, str):
        return eval(value, namespace)  # noqa: S307
    return value


def _mentions_inject(raw: Any) -> bool:
    if isinstance(raw, typing.ForwardRef):
        raw = raw.__forward_arg__
    if isinstance(raw, str):
        return re.search(r"\b(Inject|INJECT)\b", raw) is not None
    return _is_inject_annotation(raw)


def _function_type_hints(cls: type, name: str, func: Callable[..., Any]) -> dict[str, Any]:
    try:
        return get_type_hints(func)
    except NameError as exc:
        msg = f"Cannot evaluate annotations of '{name}' in class '{cls.__name__}': {exc}"
        raise InvalidDeclarationError(msg) from exc


def _method_parameters(cls: type, name: str, func: Callable[..., Any]) -> tuple[tuple[str, Any], ...]:
    hints = _function_type_hints(cls, name, func)
    params = list(inspect.signature(func).parameters.values())[1:]  # drop 'self'

    resolved = []
    for p in params:
        # arguments are passed positionally, in declared order
        if p.kind not in (p.POSITIONAL_ONLY, p.POSITIONAL_OR_KEYWORD):
            msg = f"Injectable method '{name}' of class '{cls.__name__}' cannot declare {p.kind.description} '{p.name}'."
            raise InvalidDeclarationError(msg)
        if p.name not in hints:
            msg = f"Parameter '{p.name}' of injectable method '{name}' in class '{cls.__name__}' has no annotation."
            raise InvalidDeclarationError(msg)
        resolved.append((p.name, hints[p.name]))

    return tuple(resolved)


def _return_type(cls: type, name: str, func: Callable[..., Any]) -> Any:
    ret = _function_type_hints(cls, name, func).get("return", inspect.Signature.empty)
    if ret is inspect.Signature.empty or ret is type(None):
        msg = f"'{name}' in class '{cls.__name__}' needs a return annotation naming the provided type."
        raise InvalidDeclarationError(msg)
    return ret
