"""
Options controlling serialization output.

>>> from graphson import serialize
>>> from graphson.options import SerializationOptions
>>>
>>> # Emit an empty bucket for every type the include plan can reach
>>> serialize(companies, includes=["employees"],
...           options=SerializationOptions(empty_buckets=True))
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class SerializationOptions:
    """
    Configuration for a serialization call.

    Attributes:
        coerce_values: If True, attribute values and identifiers that are
            not JSON primitives (dates, decimals, UUIDs, enums, models) are
            converted with pydantic_core.to_jsonable_python.
        empty_buckets: Sideloading only. If True, the result carries a
            bucket for every type reachable through the include plan, even
            when no object of that type was found. If False, only buckets
            for types actually encountered are present.
        root_key: Sideloading only. Key holding the root identifier(s).
    """

    coerce_values: bool = True
    empty_buckets: bool = False
    root_key: str = "root"


DEFAULT_OPTIONS = SerializationOptions()
