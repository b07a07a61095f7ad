"""
Nesting mode traversal.

Each object becomes a mapping of its declared attributes; every relation
selected in the include plan is nested under its own key, holding the
related object's mapping (has_one) or a list of them in relation order
(has_many). Absent relations are emitted as null.

Cycles:
    Nesting is a pure tree unfold with no visited set. The include plan is
    finite, so traversal depth is bounded by its depth; an object reachable
    twice is emitted twice. A caller who builds a very deep (or generated,
    unbounded) include plan over a cyclic graph gets a correspondingly deep
    output and, eventually, RecursionError. Keep include plans acyclic and
    shallow.
"""

from __future__ import annotations

import logging
from typing import Any

from graphson.adapter import attribute_reader, is_collection, iter_related, passthrough, relation_reader, to_jsonable
from graphson.options import SerializationOptions
from graphson.stypes import IncludeSpec

logger = logging.getLogger(__name__)


class NestingTraversal:
    """
    Walks an object graph producing nested mappings.

    Attributes:
        options: The SerializationOptions for this call.
        count: Number of object mappings emitted so far.
    """

    def __init__(self, options: SerializationOptions):
        self.options = options
        self.coerce = to_jsonable if options.coerce_values else passthrough
        self.count = 0

    def run(self, root: Any, spec: IncludeSpec) -> Any:
        """Serialize a root object (-> mapping) or collection (-> list)."""
        if root is None:
            result = None
        elif is_collection(root):
            result = [self.visit(obj, spec) for obj in root]
        else:
            result = self.visit(root, spec)
        logger.debug("Nested %d %r objects", self.count, spec.definition.type_id)
        return result

    def visit(self, obj: Any, spec: IncludeSpec) -> dict[str, Any]:
        """Serialize one object and the relations selected under ``spec``."""
        self.count += 1
        coerce = self.coerce
        read = attribute_reader(type(obj))
        record = {name: coerce(read(obj, name)) for name in spec.definition.attributes}

        if spec.children:
            read_relation = relation_reader(type(obj))
            for child in spec.children:
                value = read_relation(obj, child.name)
                if value is None:
                    record[child.name] = None
                elif child.many:
                    record[child.name] = [self.visit(item, child) for item in iter_related(value)]
                else:
                    record[child.name] = self.visit(value, child)
        return record
