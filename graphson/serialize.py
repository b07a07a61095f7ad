"""
Serialization context and mode dispatch for the graphson library.

This module contains the SerializationContext class which runs one
serialization request end to end:

1. Find the root's serializer definition (by type id or by the class of the
   root object)
2. Resolve the include request against it, failing before any traversal
3. Dispatch to the traversal engine registered for the definition's mode
4. Return the engine's assembled, JSON-compatible result

The dispatch table maps each mode to its traversal class. A definition
whose mode has no engine raises UnsupportedSerializerTypeError.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any, Optional

from graphson.adapter import is_collection
from graphson.errors import UnsupportedSerializerTypeError
from graphson.includes import resolve_includes
from graphson.nesting import NestingTraversal
from graphson.options import DEFAULT_OPTIONS, SerializationOptions
from graphson.registry import SerializerRegistry, registry as default_registry
from graphson.sideloading import SideloadingTraversal
from graphson.stypes import NESTING, SIDELOADING, IncludeSpec, SerializerDefinition


# Dispatch table mapping modes to their traversal engines.
dispatch_table: dict[str, type] = {
    NESTING: NestingTraversal,
    SIDELOADING: SideloadingTraversal,
}


class SerializationContext:
    """
    Resolves and runs serialization requests against a registry.

    A context holds no per-call state: every call to serialize() builds
    a fresh traversal, so one context may serve many threads.

    Attributes:
        registry: Registry holding the serializer definitions.
        options: SerializationOptions applied to every call.

    Example:
        >>> context = SerializationContext()
        >>> context.serialize(company, {"employees": ["skills"]})
        {'root': 1, 'company': [...], 'person': [...], 'skill': [...]}
    """

    def __init__(
        self,
        registry: SerializerRegistry | None = None,
        options: SerializationOptions | None = None,
    ):
        self.registry = registry if registry is not None else default_registry
        self.options = options or DEFAULT_OPTIONS

    def root_definition(
        self,
        root: Any,
        mode: Optional[str] = None,
        type_id: Optional[str] = None,
    ) -> SerializerDefinition:
        """
        Find the serializer definition for a root object or collection.

        Args:
            root: The root object, or a collection of them.
            mode: Mode to serialize in. If None, sideloading is preferred.
            type_id: Type id of the root objects. If None, it is looked up
                from the class of the root (or of its first element).

        Raises:
            UnknownTypeError: If no serializer is registered.
            ValueError: If the type of an empty collection or None root
                cannot be inferred.
        """
        if type_id is not None:
            return self.registry.lookup(type_id, mode)

        sample = root
        if isinstance(root, Iterator):
            # Peeking would consume it
            sample = None
        elif is_collection(root):
            sample = next(iter(root), None)
        if sample is None:
            raise ValueError("Cannot infer the serializer of an empty, None or iterator root; pass type_id")
        return self.registry.lookup_class(type(sample), mode)

    def resolve(self, definition: SerializerDefinition, includes: Any = None) -> IncludeSpec:
        """Resolve an include request, checking the sideloaded root key."""
        spec = resolve_includes(definition, includes, self.registry)
        if definition.mode == SIDELOADING and self.options.root_key in spec.reachable_types():
            raise ValueError(
                f"Root key {self.options.root_key!r} collides with a sideloaded type id; "
                f"choose another SerializationOptions.root_key"
            )
        return spec

    def serialize(
        self,
        root: Any,
        includes: Any = None,
        *,
        mode: Optional[str] = None,
        type_id: Optional[str] = None,
    ) -> Any:
        """
        Serialize a root object or collection.

        Args:
            root: The root object, or a collection of them.
            includes: Raw include request selecting relations to traverse.
            mode: NESTING or SIDELOADING; see root_definition().
            type_id: Type id of the root objects; see root_definition().

        Returns:
            Nesting: a mapping (single root) or list of mappings.
            Sideloading: a mapping with the root key and one bucket per type.

        Raises:
            UnknownTypeError, InvalidIncludeError,
            UnsupportedSerializerTypeError: Before anything is traversed.
        """
        definition = self.root_definition(root, mode, type_id)
        engine = dispatch_table.get(self.registry.mode_of(definition))
        if engine is None:
            raise UnsupportedSerializerTypeError(
                f"No traversal engine for {definition.mode!r} serializers",
                type_id=definition.type_id,
                mode=definition.mode,
            )
        spec = self.resolve(definition, includes)
        return engine(self.options).run(root, spec)
