"""
Sideloading mode traversal.

Every object reached is flattened into a record in its type's bucket and
referenced everywhere else by identifier:

    {
        "root": 1,
        "company": [{"id": 1, "name": "Acme", "employees": [10, 11]}],
        "person": [{"id": 10, "skills": [100], ...}, {"id": 11, ...}],
        "skill": [{"id": 100, ...}],
    }

A record holds the type's attributes followed by a reference field for
every declared relation whose target is present, whether or not that
relation is included. Only included relations are descended into, so only
their targets get records of their own.

Deduplication:
    One visited set, keyed by (type id, identity), is shared by the whole
    call. An object already visited is not flattened again; its identifier
    is simply returned to the caller. This also makes cycles terminate.

    The first visit decides how deep an object is walked. If a later path
    selects deeper relations on an object already visited, the object is not
    walked again, so the targets of those deeper relations may have no
    records. Its reference fields are emitted regardless.

Buckets are appended in first-discovery order. Only types actually
encountered get a bucket unless SerializationOptions.empty_buckets is set.
"""

from __future__ import annotations

import logging
from typing import Any

from graphson.adapter import (
    attribute_reader,
    identity,
    is_collection,
    iter_related,
    passthrough,
    relation_reader,
    to_jsonable,
)
from graphson.options import SerializationOptions
from graphson.stypes import IncludeSpec

logger = logging.getLogger(__name__)


class SideloadingTraversal:
    """
    Walks an object graph collecting flattened records into type buckets.

    A traversal object holds per-call state and must not be reused across
    calls or shared between threads.

    Attributes:
        options: The SerializationOptions for this call.
        visited: (type id, identity) keys of objects already flattened.
        buckets: Type id -> list of records, in first-discovery order.
    """

    def __init__(self, options: SerializationOptions):
        self.options = options
        self.coerce = to_jsonable if options.coerce_values else passthrough
        self.visited: set[tuple[str, Any]] = set()
        self.buckets: dict[str, list[dict[str, Any]]] = {}

    def run(self, root: Any, spec: IncludeSpec) -> dict[str, Any]:
        """Traverse from ``root`` and assemble the sideloaded result."""
        if root is None:
            root_ref = None
        elif is_collection(root):
            root_ref = [self.visit(obj, spec) for obj in root]
        else:
            root_ref = self.visit(root, spec)
        return self.assemble(root_ref, spec)

    def visit(self, obj: Any, spec: IncludeSpec) -> Any:
        """
        Flatten one object (once) and descend into its included relations.

        Returns:
            The object's identifier, for use as a reference.
        """
        definition = spec.definition
        ident = identity(obj, definition.identifier)
        ref = self.coerce(ident)

        key = (definition.type_id, ident)
        if key in self.visited:
            return ref
        self.visited.add(key)

        coerce = self.coerce
        read = attribute_reader(type(obj))
        record = {name: coerce(read(obj, name)) for name in definition.attributes}

        read_relation = relation_reader(type(obj))
        related = {}
        for reference in spec.references:
            value = read_relation(obj, reference.name)
            if value is None:
                continue
            if reference.many:
                # Iterators can only be consumed once
                value = list(iter_related(value))
                record[reference.name] = [coerce(identity(item, reference.identifier)) for item in value]
            else:
                record[reference.name] = coerce(identity(value, reference.identifier))
            related[reference.name] = value

        bucket = self.buckets.get(definition.type_id)
        if bucket is None:
            bucket = self.buckets[definition.type_id] = []
        bucket.append(record)

        for child in spec.children:
            value = related.get(child.name)
            if value is None:
                continue
            if child.many:
                for item in value:
                    self.visit(item, child)
            else:
                self.visit(value, child)
        return ref

    def assemble(self, root_ref: Any, spec: IncludeSpec) -> dict[str, Any]:
        """Build the result mapping: root reference first, then buckets."""
        result: dict[str, Any] = {self.options.root_key: root_ref}
        result.update(self.buckets)
        if self.options.empty_buckets:
            for type_id in spec.reachable_types():
                result.setdefault(type_id, [])
        logger.debug(
            "Sideloaded %d records into %d buckets for %r",
            len(self.visited),
            len(self.buckets),
            spec.definition.type_id,
        )
        return result
