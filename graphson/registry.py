"""
Serializer registry for the graphson library.

The registry maps a type id to its SerializerDefinition, separately for each
mode, so the same domain type can have a nesting and a sideloading
serializer side by side. It also maps domain classes back to type ids so a
root object's serializer can be found from the object alone.

Duplicate Policy:
    Registering a second, different definition for the same (mode, type_id)
    raises DuplicateRegistrationError. Registering an identical definition
    again is a no-op. A registry created with ``replace=True`` lets the last
    registration win instead, logging a warning.

The registry is only written during start-up, while serializer classes are
being declared. After that it is read-only and safe to share between
threads.
"""

from __future__ import annotations

import logging
from typing import Any, Iterator, Optional

from graphson.errors import DuplicateRegistrationError, UnknownTypeError, UnsupportedSerializerTypeError
from graphson.stypes import MODES, NESTING, SIDELOADING, SerializerDefinition, Target

logger = logging.getLogger(__name__)

# Lookup order when no mode is requested
_MODE_PREFERENCE = (SIDELOADING, NESTING)


class SerializerRegistry:
    """
    Maps type ids and domain classes to serializer definitions.

    Attributes:
        replace: If True, re-registering a type replaces the previous
            definition instead of raising DuplicateRegistrationError.

    Example:
        >>> registry = SerializerRegistry()
        >>> registry.register("company", Company, company_definition)
        >>> registry.lookup("company", SIDELOADING)
        SerializerDefinition(type_id='company', ...)
    """

    def __init__(self, *, replace: bool = False):
        self.replace = replace
        self._definitions: dict[tuple[str, str], SerializerDefinition] = {}
        self._classes: dict[tuple[str, type], str] = {}

    def register(
        self,
        type_id: str,
        domain_class: Optional[type],
        definition: SerializerDefinition,
    ) -> SerializerDefinition:
        """
        Register a serializer definition for a domain type.

        Args:
            type_id: The type id; must match ``definition.type_id``.
            domain_class: The domain class serialized by this definition,
                or None if objects are only ever reached by type id.
            definition: The serializer definition.

        Returns:
            The registered definition.

        Raises:
            UnsupportedSerializerTypeError: If the definition's mode is not
                nesting or sideloading.
            DuplicateRegistrationError: If a different definition is already
                registered for this type and mode (and replace is False).
            ValueError: If ``type_id`` disagrees with the definition.
        """
        mode = self.mode_of(definition)
        if type_id != definition.type_id:
            raise ValueError(f"Type id {type_id!r} does not match definition type id {definition.type_id!r}")

        key = (mode, type_id)
        existing = self._definitions.get(key)
        if existing is not None and existing != definition:
            if not self.replace:
                raise DuplicateRegistrationError(
                    f"A {mode} serializer is already registered for type {type_id!r}",
                    type_id=type_id,
                    mode=mode,
                )
            logger.warning("Replacing %s serializer for type %r", mode, type_id)

        self._definitions[key] = definition
        if domain_class is not None:
            self._classes[(mode, domain_class)] = type_id
        logger.debug("Registered %s serializer for type %r", mode, type_id)
        return definition

    def unregister(self, type_id: str, mode: str) -> None:
        """Remove a registration; unknown types are ignored."""
        self._definitions.pop((mode, type_id), None)
        for key in [key for key, value in self._classes.items() if key[0] == mode and value == type_id]:
            del self._classes[key]

    def mode_of(self, definition: SerializerDefinition) -> str:
        """
        Return the mode of a definition, validating it.

        Raises:
            UnsupportedSerializerTypeError: If the mode is not recognized.
        """
        if definition.mode not in MODES:
            raise UnsupportedSerializerTypeError(
                f"Unsupported serializer type {definition.mode!r} for {definition.type_id!r}. "
                f"Must be sideloading or nesting serializer.",
                type_id=definition.type_id,
                mode=definition.mode,
            )
        return definition.mode

    def lookup(self, type_id: str, mode: Optional[str] = None) -> SerializerDefinition:
        """
        Return the definition registered for ``type_id``.

        Args:
            type_id: The type id to look up.
            mode: The mode to look up. If None, a sideloading definition is
                preferred over a nesting one.

        Raises:
            UnknownTypeError: If no definition is registered.
        """
        for candidate in (mode,) if mode is not None else _MODE_PREFERENCE:
            definition = self._definitions.get((candidate, type_id))
            if definition is not None:
                return definition
        raise UnknownTypeError(
            f"No {mode or 'nesting or sideloading'} serializer registered for type {type_id!r}",
            type_id=type_id,
            mode=mode,
        )

    def type_id_for(self, domain_class: type, mode: Optional[str] = None) -> str:
        """
        Return the type id registered for a domain class.

        Base classes are searched too, so instances of a subclass use the
        serializer of their nearest registered ancestor.

        Raises:
            UnknownTypeError: If neither the class nor any base is registered.
        """
        modes = (mode,) if mode is not None else _MODE_PREFERENCE
        for klass in domain_class.__mro__:
            for candidate in modes:
                type_id = self._classes.get((candidate, klass))
                if type_id is not None:
                    return type_id
        raise UnknownTypeError(
            f"No {mode or 'nesting or sideloading'} serializer registered for class {domain_class.__name__}",
            mode=mode,
        )

    def lookup_class(self, domain_class: type, mode: Optional[str] = None) -> SerializerDefinition:
        """Return the definition registered for a domain class (see type_id_for)."""
        modes = (mode,) if mode is not None else _MODE_PREFERENCE
        for candidate in modes:
            try:
                return self.lookup(self.type_id_for(domain_class, candidate), candidate)
            except UnknownTypeError:
                continue
        raise UnknownTypeError(
            f"No {mode or 'nesting or sideloading'} serializer registered for class {domain_class.__name__}",
            mode=mode,
        )

    def resolve_target(self, target: Target, mode: str) -> SerializerDefinition:
        """Return the definition for a relation target given as type id or class."""
        if isinstance(target, str):
            return self.lookup(target, mode)
        return self.lookup_class(target, mode)

    def definitions(self, mode: Optional[str] = None) -> Iterator[SerializerDefinition]:
        """Iterate registered definitions, optionally for one mode only."""
        for (candidate, _), definition in self._definitions.items():
            if mode is None or candidate == mode:
                yield definition

    def __contains__(self, key: Any) -> bool:
        if isinstance(key, tuple):
            return key in self._definitions
        return any(type_id == key for _, type_id in self._definitions)

    def __len__(self) -> int:
        return len(self._definitions)


# The registry serializer classes register into unless they name another.
registry = SerializerRegistry()


def register_serializer(
    type_id: str,
    domain_class: Optional[type],
    definition: SerializerDefinition,
) -> SerializerDefinition:
    """
    Register a definition in the default registry.

    Example:
        >>> register_serializer("skill", Skill, SerializerDefinition(
        ...     type_id="skill", mode=NESTING, attributes=("id", "name"),
        ... ))
    """
    return registry.register(type_id, domain_class, definition)
