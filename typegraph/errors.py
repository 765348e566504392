from collections.abc import Sequence
from typing import Any

from typegraph.language import Location
from typegraph.path import Path, PathKey, path_list


class TypeGraphError(Exception):
    """Base exception for all type-graph errors."""

    pass


class SchemaBuildError(TypeGraphError, ValueError):
    """Raised when type definitions cannot form a valid registry."""

    def __init__(self, message: str, problems: Sequence[str] | None = None):
        self.problems = list(problems) if problems else [message]
        super().__init__(message)


class TypeNotFoundError(TypeGraphError, KeyError):
    """Raised when a type name is not registered."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"Unknown type: {self.name}"


class GraphQLError(TypeGraphError):
    """A field-scoped error, recorded in the result instead of aborting execution."""

    def __init__(
        self,
        message: str,
        path: Path | Sequence[PathKey] | None = None,
        locations: Sequence[Location] | None = None,
        original_error: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.path: list[PathKey] | None = (
            path_list(path) if isinstance(path, Path) else (list(path) if path is not None else None)
        )
        self.locations: list[Location] = list(locations or [])
        self.original_error = original_error

    def with_location(self, path: Path | None, locations: Sequence[Location]) -> "GraphQLError":
        """Attach a result path and source locations unless already set."""
        if self.path is None:
            self.path = path_list(path)
        if not self.locations:
            self.locations = list(locations)
        return self

    @property
    def formatted(self) -> dict[str, Any]:
        formatted: dict[str, Any] = {"message": self.message, "path": self.path}
        formatted["locations"] = [loc.to_dict() for loc in self.locations]
        return formatted

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r}, path={self.path!r})"


class CoercionError(GraphQLError):
    """Raised when a raw input value does not fit its declared input type.

    ``input_path`` locates the offending value inside the input (e.g. ``[1, "name"]``);
    ``errors`` holds every leaf failure when several elements failed.
    """

    def __init__(
        self,
        message: str,
        input_path: Sequence[PathKey] | None = None,
        errors: Sequence["CoercionError"] | None = None,
        original_error: BaseException | None = None,
    ):
        super().__init__(message, original_error=original_error)
        self.input_path: list[PathKey] = list(input_path or [])
        self.errors: list[CoercionError] = list(errors) if errors else [self]


class MissingVariableError(CoercionError):
    """Raised when a required variable was not supplied."""

    def __init__(self, variable_name: str, type_str: str):
        self.variable_name = variable_name
        super().__init__(f'Variable "${variable_name}" of required type "{type_str}" was not provided.')


class ResolverError(GraphQLError):
    """Wraps an exception raised (or error returned) by a resolver."""

    pass


class AbstractResolutionError(GraphQLError):
    """Raised when an interface or union value cannot be mapped to exactly one object type."""

    pass


class FieldNotFoundError(GraphQLError):
    """Raised when a selection names a field its parent type does not define."""

    pass


class SerializationError(GraphQLError):
    """Raised when a leaf value cannot be serialized by its scalar or enum type."""

    pass


class NonNullViolationError(GraphQLError):
    """Raised when null is produced where a non-null type was declared."""

    pass


__all__ = [
    "TypeGraphError",
    "SchemaBuildError",
    "TypeNotFoundError",
    "GraphQLError",
    "CoercionError",
    "MissingVariableError",
    "ResolverError",
    "AbstractResolutionError",
    "FieldNotFoundError",
    "SerializationError",
    "NonNullViolationError",
]
