"""
Domain object access for the traversal engines.

The engines only ever talk to domain objects through three capabilities:

- get_attribute(name): the value of a named attribute
- get_relation(name): None, a single related object, or an iterable of them
- identity(): a hashable value unique within the object's type

Objects may implement these methods themselves (see DomainObject). Plain
Python objects, dataclasses and Pydantic models are read reflectively: a
missing attribute or relation reads as None, and identity comes from the
attribute named by the definition's ``identifier``.

Accessor selection happens once per class and is cached, since the engines
call these on every node of graphs with hundreds of thousands of objects.
"""

from __future__ import annotations

import functools
from collections.abc import Iterable, Mapping
from typing import Any, Callable, Protocol, runtime_checkable

from pydantic import BaseModel
from pydantic_core import to_jsonable_python


@runtime_checkable
class DomainObject(Protocol):
    """Capability interface a domain object may implement explicitly."""

    def get_attribute(self, name: str) -> Any: ...

    def get_relation(self, name: str) -> Any: ...

    def identity(self) -> Any: ...


Reader = Callable[[Any, str], Any]


def _read_attr(obj: Any, name: str) -> Any:
    return getattr(obj, name, None)


def _call_get_attribute(obj: Any, name: str) -> Any:
    return obj.get_attribute(name)


def _call_get_relation(obj: Any, name: str) -> Any:
    return obj.get_relation(name)


@functools.lru_cache(maxsize=None)
def attribute_reader(cls: type) -> Reader:
    """Return the attribute accessor for instances of ``cls``."""
    if callable(getattr(cls, "get_attribute", None)):
        return _call_get_attribute
    return _read_attr


@functools.lru_cache(maxsize=None)
def relation_reader(cls: type) -> Reader:
    """Return the relation accessor for instances of ``cls``."""
    if callable(getattr(cls, "get_relation", None)):
        return _call_get_relation
    return _read_attr


@functools.lru_cache(maxsize=None)
def _has_identity(cls: type) -> bool:
    return callable(getattr(cls, "identity", None))


def identity(obj: Any, identifier: str = "id") -> Any:
    """
    Return the identity of a domain object.

    Args:
        obj: The domain object.
        identifier: Attribute to read when the object has no identity().
    """
    if _has_identity(type(obj)):
        return obj.identity()
    return getattr(obj, identifier)


def is_collection(value: Any) -> bool:
    """
    Check whether a value is a collection of domain objects.

    Any iterable counts: lists, tuples, sets, dict views, iterators and
    custom collections defining only __iter__ (ORM relation managers).
    Strings, bytes and mappings do not. Pydantic models are iterable but
    are single objects.
    """
    if isinstance(value, (str, bytes, bytearray, Mapping, BaseModel)):
        return False
    return isinstance(value, Iterable)


def iter_related(value: Any) -> Any:
    """Return the elements of a has_many value, wrapping a lone object."""
    if is_collection(value):
        return value
    return (value,)


# =============================================================================
# JSON coercion
# =============================================================================

# Directly JSON-serializable; everything else goes through pydantic_core
_PRIMITIVES = frozenset({str, int, float, bool, type(None)})


def to_jsonable(value: Any) -> Any:
    """Convert a value to JSON-compatible data (dates, UUIDs, enums, models...)."""
    if type(value) in _PRIMITIVES:
        return value
    return to_jsonable_python(value)


def passthrough(value: Any) -> Any:
    return value
