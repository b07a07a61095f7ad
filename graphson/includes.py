"""
Include request resolution.

Callers select relations to traverse with a loosely structured request:

    "employees"                              # one relation
    ["address", {"employees": ["skills"]}]   # several, one with nested picks
    {"employees": {"skills": None}}          # mapping form
    "employees.skills"                       # dotted path shorthand

resolve_includes() normalizes any of these into a merged tree, then walks it
depth-first against the serializer definitions, checking every name against
its type's ``includable`` set and looking up the definition of each
relation's target type. The first violation raises InvalidIncludeError;
nothing is traversed for a malformed request.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from graphson.errors import InvalidIncludeError, UnknownTypeError
from graphson.registry import SerializerRegistry
from graphson.stypes import IncludeSpec, Reference, SerializerDefinition

logger = logging.getLogger(__name__)

# Nested name -> child tree, insertion ordered
Tree = dict[str, "Tree"]


def normalize(request: Any) -> Tree:
    """
    Normalize a raw include request into a nested name tree.

    Repeated names at the same level are merged.

    Raises:
        InvalidIncludeError: If the request contains something other than
            strings, sequences and mappings.
    """
    tree: Tree = {}
    _merge_request(tree, request)
    return tree


def _merge_request(tree: Tree, request: Any) -> None:
    if request is None:
        return
    if isinstance(request, str):
        if not request:
            raise InvalidIncludeError("Empty relation name in include request")
        node = tree
        for part in request.split("."):
            if not part:
                raise InvalidIncludeError(f"Malformed include path {request!r}", relation=request)
            node = node.setdefault(part, {})
    elif isinstance(request, Mapping):
        for name, child in request.items():
            if not isinstance(name, str):
                raise InvalidIncludeError(f"Relation names must be strings, got {name!r}")
            node = tree
            for part in name.split("."):
                node = node.setdefault(part, {})
            _merge_request(node, child)
    elif isinstance(request, (list, tuple, set, frozenset)):
        for item in request:
            _merge_request(tree, item)
    else:
        raise InvalidIncludeError(f"Cannot interpret {request!r} as an include request")


def resolve_includes(
    definition: SerializerDefinition,
    request: Any,
    registry: SerializerRegistry,
) -> IncludeSpec:
    """
    Resolve a raw include request against a root definition.

    Args:
        definition: Serializer definition of the root objects.
        request: The raw include request (see module docstring).
        registry: Registry used to find each relation's target definition,
            in the root definition's mode.

    Returns:
        The root IncludeSpec node.

    Raises:
        InvalidIncludeError: If a name is not a relation of its type or is
            not in its type's includable set.
        UnknownTypeError: If an included relation's target type has no
            serializer registered in the root's mode.
    """
    spec = _resolve(definition, normalize(request), registry, name=None, many=False)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("Resolved includes for %r: %r", definition.type_id, spec.to_request())
    return spec


def _resolve(
    definition: SerializerDefinition,
    tree: Tree,
    registry: SerializerRegistry,
    name: str | None,
    many: bool,
) -> IncludeSpec:
    children = []
    for relation_name, subtree in tree.items():
        relation = definition.relation(relation_name)
        if relation is None:
            raise InvalidIncludeError(
                f"{relation_name!r} is not a relation of type {definition.type_id!r}",
                type_id=definition.type_id,
                relation=relation_name,
            )
        if relation_name not in definition.includable:
            raise InvalidIncludeError(
                f"{relation_name!r} is not includable for type {definition.type_id!r}",
                type_id=definition.type_id,
                relation=relation_name,
            )
        target = registry.resolve_target(relation.target, definition.mode)
        children.append(_resolve(target, subtree, registry, name=relation_name, many=relation.many))

    return IncludeSpec(
        name=name,
        many=many,
        definition=definition,
        children=tuple(children),
        references=_references(definition, registry),
    )


def _references(definition: SerializerDefinition, registry: SerializerRegistry) -> tuple[Reference, ...]:
    # Targets of relations that are never included need no serializer of
    # their own; their references fall back to the default identifier.
    references = []
    for relation in definition.relations:
        try:
            identifier = registry.resolve_target(relation.target, definition.mode).identifier
        except UnknownTypeError:
            identifier = "id"
        references.append(Reference(name=relation.name, many=relation.many, identifier=identifier))
    return tuple(references)
