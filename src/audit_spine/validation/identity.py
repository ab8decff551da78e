"""
Entity identity resolution.

Audit records are keyed by a stable string identity. Two resolvers derive
it from an arbitrary entity instance:

- :class:`SelectorIdentityResolver`: an explicit ``cls -> (entity -> str)``
  mapping registered at setup time. Unregistered types raise.
- :class:`FieldIdentityResolver`: scans a priority-ordered list of field
  names (default ``Name, Code, Key, Identifier, Title, Label``) and takes
  the first one holding a non-blank string, falling back to the class's own
  ``__str__`` or, without one, the qualified class name.

Field lookup is exact and case-sensitive. The candidate list for a class is
computed once and cached; typed accessors can be registered per class to
skip discovery altogether.

Examples:
    >>> resolver = FieldIdentityResolver(["Name", "Code"])
    >>> resolver.resolve(Item(Name="", Code="X"))
    'X'

    >>> selectors = SelectorIdentityResolver()
    >>> selectors.register_selector(Order, lambda o: o.order_no)
    >>> selectors.resolve(Order(order_no="A-1"))
    'A-1'

Tags:
    identity, entity-id, audit-key, audit-spine
"""

from __future__ import annotations

import typing
from collections.abc import Callable, Sequence
from types import NoneType, UnionType
from typing import Any, Protocol, TypeVar, runtime_checkable

from audit_spine.core.errors import InvalidArgumentError, UnregisteredError

T = TypeVar("T")

DEFAULT_IDENTITY_FIELDS: tuple[str, ...] = ("Name", "Code", "Key", "Identifier", "Title", "Label")

Accessor = Callable[[Any], Any]


@runtime_checkable
class EntityIdentityResolver(Protocol):
    """Derives a stable string identity for an entity instance."""

    def resolve(self, entity: Any) -> str: ...


class SelectorIdentityResolver:
    """Identity from explicitly registered per-type selector functions."""

    def __init__(self) -> None:
        self._selectors: dict[type, Callable[[Any], str]] = {}

    def register_selector(self, cls: type[T], selector: Callable[[T], str]) -> SelectorIdentityResolver:
        """Register (or replace) the selector for *cls*. Returns self for chaining."""
        if cls is None:
            raise InvalidArgumentError("cls must not be None", param="cls")
        if selector is None:
            raise InvalidArgumentError("selector must not be None", param="selector")
        self._selectors[cls] = selector
        return self

    def has_selector(self, cls: type) -> bool:
        return self._find(cls) is not None

    def resolve(self, entity: Any) -> str:
        if entity is None:
            raise InvalidArgumentError("entity must not be None", param="entity")
        selector = self._find(type(entity))
        if selector is None:
            raise UnregisteredError(
                type(entity).__name__,
                f"No identity selector registered for type {type(entity).__name__}",
            )
        return str(selector(entity))

    def _find(self, cls: type) -> Callable[[Any], str] | None:
        for klass in cls.__mro__:
            if klass in self._selectors:
                return self._selectors[klass]
        return None


def _is_str_annotation(hint: Any) -> bool:
    if hint is str:
        return True
    if isinstance(hint, str):
        # unresolved forward reference
        return hint.replace(" ", "") in {"str", "str|None", "None|str", "Optional[str]"}
    origin = typing.get_origin(hint)
    if origin in (typing.Union, UnionType):
        args = [a for a in typing.get_args(hint) if a is not NoneType]
        return len(args) == 1 and args[0] is str
    return False


def _annotations(cls: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(cls)
    except (NameError, TypeError):
        merged: dict[str, Any] = {}
        for klass in reversed(cls.__mro__):
            merged.update(getattr(klass, "__annotations__", {}))
        return merged


def fallback_identity(entity: Any) -> str:
    """Identity for an entity with no usable field.

    A class that defines its own ``__str__`` decides its identity. Otherwise
    the qualified class name is used, so every instance of the type shares
    one audit key. Dataclass and default reprs embed field values (metrics
    included) and never qualify.
    """
    cls = type(entity)
    if cls.__str__ is not object.__str__:
        return str(entity)
    return cls.__qualname__


class FieldIdentityResolver:
    """Identity from the first non-blank string field in priority order.

    Args:
        priority: Candidate field names, highest priority first. An empty
            sequence means the default list; ``None`` is rejected.
    """

    def __init__(self, priority: Sequence[str] = DEFAULT_IDENTITY_FIELDS) -> None:
        if priority is None:
            raise InvalidArgumentError("priority must not be None", param="priority")
        self.priority: tuple[str, ...] = tuple(priority) or DEFAULT_IDENTITY_FIELDS
        self._accessors: dict[type, tuple[Accessor, ...]] = {}

    def register_accessors(self, cls: type[T], *accessors: Callable[[T], str | None]) -> FieldIdentityResolver:
        """Use *accessors* (in order) for *cls* instead of field discovery."""
        if cls is None:
            raise InvalidArgumentError("cls must not be None", param="cls")
        if any(a is None for a in accessors):
            raise InvalidArgumentError("accessors must not contain None", param="accessors")
        self._accessors[cls] = tuple(accessors)
        return self

    def resolve(self, entity: Any) -> str:
        if entity is None:
            raise InvalidArgumentError("entity must not be None", param="entity")
        for accessor in self._accessors_for(type(entity)):
            value = accessor(entity)
            if isinstance(value, str) and value.strip():
                return value
        return fallback_identity(entity)

    def candidate_fields(self, cls: type) -> tuple[str, ...]:
        """Priority names that may hold a string on *cls*."""
        hints = _annotations(cls)
        names = []
        for name in self.priority:
            if name.startswith("_"):
                continue
            if name in hints and not _is_str_annotation(hints[name]):
                continue
            names.append(name)
        return tuple(names)

    def _accessors_for(self, cls: type) -> tuple[Accessor, ...]:
        accessors = self._accessors.get(cls)
        if accessors is None:
            accessors = tuple(
                (lambda entity, _n=name: getattr(entity, _n, None))
                for name in self.candidate_fields(cls)
            )
            self._accessors[cls] = accessors
        return accessors


__all__ = [
    "DEFAULT_IDENTITY_FIELDS",
    "EntityIdentityResolver",
    "SelectorIdentityResolver",
    "FieldIdentityResolver",
    "fallback_identity",
]
