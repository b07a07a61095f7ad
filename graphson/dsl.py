"""
Declarative serializer classes.

Serializers are declared as classes deriving from NestingSerializer or
SideloadingSerializer. Declarations are plain class attributes:

    class PersonSerializer(SideloadingSerializer):
        serializes = Person
        attributes = ("id", "first_name", "last_name")
        has_one = {"employer": "company"}
        has_many = {"skills": "skill"}
        includable = ("employer", "skills")

When a class body sets ``serializes``, the declarations are compiled once
into a frozen SerializerDefinition, stored on the class as ``definition``
and registered in the class's ``registry``. Subclasses inherit the
declarations but compile their own definition only if they set
``serializes`` themselves.

Instances serialize a root object or collection:

    >>> PersonSerializer(people).includes({"skills": []}).as_json()
    {'root': [...], 'person': [...], 'skill': [...]}
"""

from __future__ import annotations

import re
from typing import Any, ClassVar, Mapping, Optional

from pydantic_core import to_json

from graphson.errors import UnsupportedSerializerTypeError
from graphson.options import SerializationOptions
from graphson.registry import SerializerRegistry, registry as default_registry
from graphson.serialize import SerializationContext
from graphson.stypes import NESTING, SIDELOADING, SerializerDefinition, Target


def type_id_from_class(cls: type) -> str:
    """Derive a type id from a class name: ParentCompany -> parent_company."""
    return re.sub(r"(?<=[a-z0-9])(?=[A-Z])|(?<=[A-Z])(?=[A-Z][a-z])", "_", cls.__name__).lower()


class JsonSerializer:
    """
    Base class for declarative serializers.

    Do not derive from this class directly; derive from NestingSerializer or
    SideloadingSerializer, which set ``mode``.

    Class Attributes:
        serializes: The domain class this serializer handles.
        type_id: Type id to register under; derived from ``serializes`` by
            default.
        attributes: Attribute names to emit, in order.
        has_one: ``{relation name: target type id or class}``.
        has_many: ``{relation name: target type id or class}``.
        includable: Relation names callers may include.
        identifier: Attribute holding the object identity.
        registry: Registry the definition is registered in.
        options: Default SerializationOptions for instances.
    """

    mode: ClassVar[Optional[str]] = None
    serializes: ClassVar[Optional[type]] = None
    type_id: ClassVar[Optional[str]] = None
    attributes: ClassVar[tuple[str, ...]] = ()
    has_one: ClassVar[Mapping[str, Target]] = {}
    has_many: ClassVar[Mapping[str, Target]] = {}
    includable: ClassVar[tuple[str, ...]] = ()
    identifier: ClassVar[str] = "id"
    registry: ClassVar[SerializerRegistry] = default_registry
    options: ClassVar[Optional[SerializationOptions]] = None

    definition: ClassVar[Optional[SerializerDefinition]] = None

    def __init_subclass__(cls, **kwargs):
        super().__init_subclass__(**kwargs)
        if "serializes" not in cls.__dict__:
            return
        cls.definition = SerializerDefinition(
            type_id=cls.__dict__.get("type_id") or type_id_from_class(cls.serializes),
            mode=_mode_of(cls),
            attributes=tuple(cls.attributes),
            has_one=dict(cls.has_one),
            has_many=dict(cls.has_many),
            includable=frozenset(cls.includable),
            identifier=cls.identifier,
            domain_class=cls.serializes,
        )
        cls.registry.register(cls.definition.type_id, cls.serializes, cls.definition)

    def __init__(self, root: Any, *, options: Optional[SerializationOptions] = None):
        if self.definition is None:
            raise TypeError(f"{type(self).__name__} does not declare what it serializes")
        self.root = root
        self._options = options or self.options
        self._includes: list[Any] = []

    def includes(self, *requests: Any) -> "JsonSerializer":
        """Select relations to traverse; may be called repeatedly."""
        self._includes.extend(requests)
        return self

    def as_json(self) -> Any:
        """Serialize the root into JSON-compatible data."""
        context = SerializationContext(self.registry, self._options)
        return context.serialize(
            self.root,
            self._includes,
            mode=self.definition.mode,
            type_id=self.definition.type_id,
        )

    def to_json(self, *, indent: Optional[int] = None) -> str:
        """Serialize the root into a JSON string."""
        return to_json(self.as_json(), indent=indent).decode()


class NestingSerializer(JsonSerializer):
    """Serializer embedding included relations inline."""

    mode = NESTING


class SideloadingSerializer(JsonSerializer):
    """Serializer flattening included relations into per-type buckets."""

    mode = SIDELOADING


def _mode_of(cls: type) -> str:
    if issubclass(cls, NestingSerializer) and issubclass(cls, SideloadingSerializer):
        raise UnsupportedSerializerTypeError(
            f"{cls.__name__} cannot be both a nesting and a sideloading serializer",
            type_id=cls.__dict__.get("type_id"),
        )
    if cls.mode is None:
        raise UnsupportedSerializerTypeError(
            f"Unsupported serializer type for {cls.__name__}. Must be sideloading or nesting serializer.",
            type_id=cls.__dict__.get("type_id"),
        )
    return cls.mode
