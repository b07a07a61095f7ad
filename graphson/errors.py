"""
Errors raised while resolving a serialization request.

Every error here is a configuration or programming error detected before
traversal starts. None of them is transient, so callers should not retry.
"""

from __future__ import annotations

from typing import Optional


class SerializerError(Exception):
    """Base class for graphson errors."""

    def __init__(
        self,
        message: str,
        *,
        type_id: Optional[str] = None,
        relation: Optional[str] = None,
        mode: Optional[str] = None,
    ):
        self.type_id = type_id
        self.relation = relation
        self.mode = mode
        super().__init__(message)


class UnknownTypeError(SerializerError, KeyError):
    """Raised when the registry has no serializer for a type."""

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return self.args[0]


class DuplicateRegistrationError(SerializerError):
    """Raised when a type is registered twice for the same mode."""


class UnsupportedSerializerTypeError(SerializerError):
    """Raised when a serializer is neither nesting nor sideloading, or both."""


class InvalidIncludeError(SerializerError, ValueError):
    """Raised when an include request selects a relation its type does not allow."""
