"""
Serializer definition types for the graphson library.

This module defines the immutable Pydantic models the traversal engines
consume:

- Relation: A named single-valued (has_one) or multi-valued (has_many)
  relationship and the type id of the objects on the other end
- SerializerDefinition: Per-type configuration: attributes to emit,
  declared relations, which relations may be included, and the output mode
- IncludeSpec: A validated node of the include tree, pairing a relation
  with the definition of its target type and its own child selections

Definitions are built once (usually by the class DSL in graphson.dsl) and
never mutated afterwards. Registries and engines share them freely.

Modes:
    Every definition carries an explicit ``mode`` tag, either NESTING or
    SIDELOADING. The registry rejects any other value with
    UnsupportedSerializerTypeError.
"""

from __future__ import annotations

from typing import Any, Mapping, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, PrivateAttr, field_validator, model_validator


# =============================================================================
# Modes
# =============================================================================

# Related objects are embedded inline, mirroring the object graph
NESTING = "nesting"

# Related objects are flattened into per-type buckets and referenced by id
SIDELOADING = "sideloading"

MODES: frozenset[str] = frozenset({NESTING, SIDELOADING})

# A relation target is either a registered type id or a domain class that
# the registry can map back to one.
Target = Union[str, Type[Any]]


# =============================================================================
# Relations
# =============================================================================


class Relation(BaseModel):
    """
    A declared relationship on a domain type.

    Attributes:
        name: The relation accessor name, also used as the output key.
        target: Type id (or domain class) of the related objects.
        many: True for has_many relations, False for has_one.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    target: Target
    many: bool = False


def _relations_from(value: Any, many: bool) -> Any:
    """Accept ``{name: target}`` mappings as shorthand for Relation tuples."""
    if value is None:
        return ()
    if isinstance(value, Mapping):
        return tuple(Relation(name=name, target=target, many=many) for name, target in value.items())
    # Otherwise Relation instances or (name, target) pairs
    return tuple(
        item if isinstance(item, Relation) else Relation(name=item[0], target=item[1], many=many)
        for item in value
    )


# =============================================================================
# Serializer Definition
# =============================================================================


class SerializerDefinition(BaseModel):
    """
    Immutable serializer configuration for one domain type.

    Attributes:
        type_id: Identifier of the domain type; also the bucket name in
            sideloaded output.
        mode: NESTING or SIDELOADING.
        attributes: Attribute names to emit, in output order.
        has_one: Single-valued relations, in declaration order.
        has_many: Multi-valued relations, in declaration order.
        includable: Relation names callers may select for traversal.
        identifier: Attribute holding the object's identity, used for
            deduplication and references when the object has no
            ``identity()`` method of its own.
        domain_class: The domain class being serialized, if known.

    Example:
        >>> SerializerDefinition(
        ...     type_id="company",
        ...     mode=SIDELOADING,
        ...     attributes=("id", "name"),
        ...     has_many={"employees": "person"},
        ...     includable={"employees"},
        ... )
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    type_id: str
    mode: str
    attributes: tuple[str, ...] = ()
    has_one: tuple[Relation, ...] = ()
    has_many: tuple[Relation, ...] = ()
    includable: frozenset[str] = frozenset()
    identifier: str = "id"
    domain_class: Optional[Type[Any]] = None

    _relations: dict[str, Relation] = PrivateAttr(default_factory=dict)

    @field_validator("has_one", mode="before")
    @classmethod
    def _coerce_has_one(cls, value):
        return _relations_from(value, many=False)

    @field_validator("has_many", mode="before")
    @classmethod
    def _coerce_has_many(cls, value):
        return _relations_from(value, many=True)

    @field_validator("has_one")
    @classmethod
    def _check_has_one(cls, value: tuple[Relation, ...]):
        if any(relation.many for relation in value):
            raise ValueError("has_one relations cannot be multi-valued")
        return value

    @field_validator("has_many")
    @classmethod
    def _check_has_many(cls, value: tuple[Relation, ...]):
        if not all(relation.many for relation in value):
            raise ValueError("has_many relations must be multi-valued")
        return value

    @model_validator(mode="after")
    def _check_names(self):
        names = [relation.name for relation in self.has_one + self.has_many]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"{self.type_id}: relations declared more than once: {duplicates}")

        # Relation keys share the record with attribute keys
        clashes = sorted(set(names) & set(self.attributes))
        if clashes:
            raise ValueError(f"{self.type_id}: names used as both attribute and relation: {clashes}")

        unknown = sorted(self.includable - set(names))
        if unknown:
            raise ValueError(f"{self.type_id}: includable names are not declared relations: {unknown}")
        return self

    def model_post_init(self, __context: Any) -> None:
        self._relations = {relation.name: relation for relation in self.has_one + self.has_many}

    def relation(self, name: str) -> Relation | None:
        """Return the declared relation called ``name``, or None."""
        return self._relations.get(name)

    @property
    def relations(self) -> tuple[Relation, ...]:
        """All declared relations, has_one first."""
        return self.has_one + self.has_many


# =============================================================================
# Include Specification
# =============================================================================


class Reference(BaseModel):
    """How to emit the reference field for one declared relation."""

    model_config = ConfigDict(frozen=True)

    name: str
    many: bool
    identifier: str


class IncludeSpec(BaseModel):
    """
    A validated node of an include tree.

    The root node has no relation (``name`` is None); each child node is a
    relation selected on its parent's type, paired with the definition of
    the relation's target type.

    Attributes:
        name: Relation name on the parent type, or None for the root.
        many: Whether the relation is has_many.
        definition: Serializer definition of the objects at this node.
        children: Selected relations of this node's type, in request order.
        references: Reference fields emitted for every declared relation of
            this node's type (sideloading mode).
    """

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    many: bool = False
    definition: SerializerDefinition
    children: tuple["IncludeSpec", ...] = ()
    references: tuple[Reference, ...] = ()

    def reachable_types(self) -> list[str]:
        """Type ids this plan can reach, in depth-first discovery order."""
        seen: dict[str, None] = {}
        stack = [self]
        while stack:
            node = stack.pop()
            seen.setdefault(node.definition.type_id, None)
            stack.extend(reversed(node.children))
        return list(seen)

    def to_request(self) -> dict[str, Any]:
        """Render this node's selections back as a nested request mapping."""
        return {child.name: child.to_request() for child in self.children}


IncludeSpec.model_rebuild()
