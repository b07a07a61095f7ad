"""
graphson - object graph to JSON serialization with nesting and sideloading.

This library serializes graphs of domain objects into JSON-compatible data,
following only the relations a caller asks for. The same domain model can
be rendered in two shapes:

- Nesting: related objects are embedded inline, mirroring the graph
- Sideloading: related objects are flattened into one array per type and
  referenced by identifier, so each object appears exactly once and cyclic
  graphs terminate

Declaring Serializers:
    >>> from graphson import SideloadingSerializer
    >>>
    >>> class CompanySerializer(SideloadingSerializer):
    ...     serializes = Company
    ...     attributes = ("id", "name")
    ...     has_many = {"employees": "person"}
    ...     includable = ("employees",)
    >>>
    >>> class PersonSerializer(SideloadingSerializer):
    ...     serializes = Person
    ...     attributes = ("id", "first_name")
    ...     has_one = {"employer": "company"}
    ...     has_many = {"skills": "skill"}
    ...     includable = ("skills",)

Serializing:
    >>> CompanySerializer(company).includes({"employees": ["skills"]}).as_json()
    {'root': 1, 'company': [...], 'person': [...], 'skill': [...]}
    >>>
    >>> # Or without a serializer class in hand
    >>> from graphson import serialize
    >>> serialize(company, {"employees": ["skills"]})

Include requests are validated against each type's ``includable`` names
before anything is traversed; a bad request raises InvalidIncludeError.

Nesting mode keeps no visited set. Include plans are finite so traversal
always terminates, but objects reachable along several paths are emitted
once per path. Keep nesting include plans shallow on cyclic graphs.
"""

from typing import Any, Optional

from pydantic_core import to_json as _to_json

from graphson.adapter import DomainObject
from graphson.dsl import JsonSerializer, NestingSerializer, SideloadingSerializer
from graphson.errors import (
    DuplicateRegistrationError,
    InvalidIncludeError,
    SerializerError,
    UnknownTypeError,
    UnsupportedSerializerTypeError,
)
from graphson.includes import resolve_includes
from graphson.options import SerializationOptions
from graphson.registry import SerializerRegistry, register_serializer, registry
from graphson.serialize import SerializationContext
from graphson.stypes import NESTING, SIDELOADING, IncludeSpec, Relation, SerializerDefinition


def serialize(
    root: Any,
    includes: Any = None,
    *,
    mode: Optional[str] = None,
    type_id: Optional[str] = None,
    registry: Optional[SerializerRegistry] = None,
    options: Optional[SerializationOptions] = None,
) -> Any:
    """
    Serialize a root object or collection into JSON-compatible data.

    Args:
        root: A domain object, or a collection of objects of one type.
        includes: Relations to traverse, e.g. ``{"employees": ["skills"]}``.
        mode: NESTING or SIDELOADING. Defaults to sideloading when the
            root type has a sideloading serializer, nesting otherwise.
        type_id: Type id of the root objects. Required for empty
            collections; otherwise looked up from the root's class.
        registry: Registry to use instead of the default one.
        options: SerializationOptions for this call.

    Returns:
        Nested mappings (nesting) or a root-plus-buckets mapping
        (sideloading), containing only str, int, float, bool, None, lists
        and string-keyed dicts.

    Raises:
        UnknownTypeError: If no serializer is registered for a type.
        InvalidIncludeError: If the include request is not allowed.
        UnsupportedSerializerTypeError: If a definition has an unknown mode.

    Example:
        >>> serialize([alice, bob], ["skills"], mode=NESTING)
        [{'id': 10, 'first_name': 'Alice', 'skills': [...]}, ...]
    """
    context = SerializationContext(registry=registry, options=options)
    return context.serialize(root, includes, mode=mode, type_id=type_id)


def to_json(data: Any, *, indent: Optional[int] = None) -> str:
    """Render serialized data as a JSON string."""
    return _to_json(data, indent=indent).decode()


__all__ = [
    # Core API
    "serialize",
    "to_json",
    "SerializationContext",
    "SerializationOptions",
    # Declaration
    "JsonSerializer",
    "NestingSerializer",
    "SideloadingSerializer",
    "SerializerDefinition",
    "Relation",
    "NESTING",
    "SIDELOADING",
    # Registration
    "SerializerRegistry",
    "register_serializer",
    "registry",
    # Includes
    "IncludeSpec",
    "resolve_includes",
    # Domain objects
    "DomainObject",
    # Errors
    "SerializerError",
    "UnknownTypeError",
    "DuplicateRegistrationError",
    "UnsupportedSerializerTypeError",
    "InvalidIncludeError",
]
