"""Compiled property paths used to read values from rows."""

from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from typing import Any, Optional, Tuple, get_args, get_origin, get_type_hints
import types
import typing

from ..errors import ConfigurationError


class PropertyPathError(ConfigurationError):
    """Raised when a row does not expose a segment of a property path."""

    pass


_MISSING = object()


class PropertyPath:
    """Dot-separated property path, e.g. ``Location.City``.

    The path is split once on construction; resolving it against a row walks
    mappings by key and any other object by attribute. A ``None`` value in the
    middle of the path resolves to ``None`` instead of failing.
    """

    __slots__ = ("path", "segments")

    def __init__(self, path: str):
        if not path or not path.strip():
            raise ConfigurationError("Property path must not be empty")
        segments = tuple(part.strip() for part in path.split("."))
        for segment in segments:
            if not segment:
                raise ConfigurationError(f"Invalid property path: {path!r}")
        self.path = path
        self.segments: Tuple[str, ...] = segments

    @property
    def root(self) -> str:
        """First segment of the path."""
        return self.segments[0]

    def resolve(self, row: Any) -> Any:
        """Read the value this path points to.

        Args:
            row: Mapping or object to read from

        Returns:
            Resolved value (``None`` if an intermediate value is ``None``)

        Raises:
            PropertyPathError: If a segment does not exist on the row
        """
        current = row
        for segment in self.segments:
            if current is None:
                return None
            current = self._read_segment(current, segment)
        return current

    def _read_segment(self, value: Any, segment: str) -> Any:
        if isinstance(value, Mapping):
            found = value.get(segment, _MISSING)
        else:
            found = getattr(value, segment, _MISSING)
        if found is _MISSING:
            raise PropertyPathError(
                f"Property '{segment}' of path '{self.path}' does not exist on "
                f"{type(value).__name__}"
            )
        return found

    def exists_on(self, entity_type: Any) -> bool:
        """Check the path against a declared entity type.

        Dataclasses and classes with annotations are walked through their type
        hints. Mappings and types without declared members cannot be checked
        statically and are accepted.
        """
        current = entity_type
        for segment in self.segments:
            current = _unwrap_optional(current)
            if current is None or current is Any:
                return True
            if isinstance(current, type) and issubclass(current, Mapping):
                return True
            members = _declared_members(current)
            if members is None:
                return True
            if segment not in members:
                return False
            current = members[segment]
        return True

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PropertyPath):
            return NotImplemented
        return self.segments == other.segments

    def __hash__(self) -> int:
        return hash(self.segments)

    def __repr__(self) -> str:
        return f"PropertyPath({self.path})"


def _unwrap_optional(hint: Any) -> Any:
    """Strip ``Optional[...]`` so nested paths can be followed."""
    origin = get_origin(hint)
    if origin is typing.Union or origin is types.UnionType:
        candidates = [arg for arg in get_args(hint) if arg is not type(None)]
        if len(candidates) == 1:
            return candidates[0]
        return None
    return hint


def _declared_members(entity_type: Any) -> Optional[dict]:
    """Map member names to their type hints, or ``None`` if unknown."""
    if not isinstance(entity_type, type):
        return None
    try:
        hints = get_type_hints(entity_type)
    except (NameError, TypeError):
        hints = dict(getattr(entity_type, "__annotations__", {}))
    members = dict(hints)
    if is_dataclass(entity_type):
        for item in fields(entity_type):
            members.setdefault(item.name, item.type)
    for name in dir(entity_type):
        if name.startswith("_"):
            continue
        attribute = getattr(entity_type, name, None)
        if isinstance(attribute, property):
            members.setdefault(name, _property_hint(attribute))
    if not members:
        return None
    return members


def _property_hint(attribute: property) -> Any:
    getter = attribute.fget
    if getter is None:
        return Any
    try:
        return get_type_hints(getter).get("return", Any)
    except (NameError, TypeError):
        return Any
