from __future__ import annotations

import inspect
import logging
import threading
import typing
from typing import Any, Protocol, cast

from ._errors import DuplicateProviderError, type_name


logger = logging.getLogger(__name__)


class Registry:
    """Capability type -> instance mapping, at most one instance per type.

    Never overwrites: a second registration under the same type raises `DuplicateProviderError`.
    """

    def __init__(self) -> None:
        self._instances: dict[Any, object] = {}
        self._lock = threading.RLock()

    def register(self, capability: Any, instance: object) -> None:
        if instance is None:
            msg = f"Cannot register None for {type_name(capability)}"
            raise ValueError(msg)

        with self._lock:
            if capability in self._instances:
                raise DuplicateProviderError(capability, self._instances[capability], instance)
            self._instances[capability] = instance
        logger.debug("Registered %s as %r", type(instance).__name__, capability)

    def resolve(self, capability: Any) -> object | None:
        """Return the instance registered for `capability`, or None when nothing provides it."""
        with self._lock:
            return self._instances.get(capability)

    def capabilities(self) -> frozenset[Any]:
        with self._lock:
            return frozenset(self._instances)

    def clear(self) -> None:
        with self._lock:
            self._instances.clear()

    def __contains__(self, capability: object) -> bool:
        with self._lock:
            return capability in self._instances

    def __len__(self) -> int:
        with self._lock:
            return len(self._instances)


def check_instance(capability: Any, instance: object) -> None:
    """Raise TypeError when `instance` cannot stand in for `capability`.

    - concrete classes and ABCs: isinstance.
    - runtime-checkable protocols: isinstance.
    - other protocols, parameterized generics (`list[int]`) and non-class tokens
      cannot be checked; they are accepted.
    """
    if typing.get_origin(capability) is not None or not inspect.isclass(capability):
        return

    if _is_protocol(capability):
        if _is_runtime_checkable_protocol(capability) and not isinstance(instance, capability):
            msg = f"{type(instance).__name__} does not implement runtime protocol {capability.__name__}"
            raise TypeError(msg)
        return

    if not isinstance(instance, capability):
        msg = f"{type(instance).__name__} is not an instance of {capability.__name__}"
        raise TypeError(msg)


if hasattr(typing, "is_protocol"):
    # https://docs.python.org/3/library/typing.html#typing.is_protocol
    def _is_protocol(tp: type) -> bool:
        return typing.is_protocol(tp)

else:

    def _is_protocol(tp: type) -> bool:
        return issubclass(tp, cast("type", Protocol)) and bool(getattr(tp, "_is_protocol", False))


def _is_runtime_checkable_protocol(tp: type) -> bool:
    try:
        isinstance(None, tp)
    except TypeError:
        return False
    else:
        return True
