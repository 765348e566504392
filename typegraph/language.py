"""Parsed query input.

Query text is parsed and validated elsewhere; these dataclasses are the shape the
engine consumes. Argument literals are plain Python values (``None``, bool, int,
float, str, list, dict) with ``VariableNode`` wherever a ``$variable`` appears.
Enum literals are their symbol name as a string.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, TypeAlias, Union

from typegraph.undefined import Undefined


class OperationType(str, Enum):
    QUERY = "query"
    MUTATION = "mutation"
    SUBSCRIPTION = "subscription"


@dataclass(frozen=True)
class Location:
    line: int
    column: int

    def to_dict(self) -> dict[str, int]:
        return {"line": self.line, "column": self.column}


@dataclass(frozen=True)
class VariableNode:
    name: str


@dataclass(frozen=True)
class DirectiveNode:
    name: str
    arguments: Mapping[str, Any] = field(default_factory=dict)


def _as_tuple(items: Sequence[Any] | None) -> tuple[Any, ...] | None:
    if items is None:
        return None
    return tuple(items)


@dataclass(frozen=True)
class FieldNode:
    name: str
    alias: str | None = None
    arguments: Mapping[str, Any] = field(default_factory=dict)
    selections: "tuple[SelectionNode, ...] | None" = None
    directives: tuple[DirectiveNode, ...] = ()
    loc: Location | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "selections", _as_tuple(self.selections))
        object.__setattr__(self, "directives", tuple(self.directives))

    @property
    def response_key(self) -> str:
        return self.alias or self.name


@dataclass(frozen=True)
class InlineFragmentNode:
    type_condition: str | None
    selections: "tuple[SelectionNode, ...]"
    directives: tuple[DirectiveNode, ...] = ()
    loc: Location | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "selections", tuple(self.selections))
        object.__setattr__(self, "directives", tuple(self.directives))


@dataclass(frozen=True)
class FragmentSpreadNode:
    name: str
    directives: tuple[DirectiveNode, ...] = ()
    loc: Location | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "directives", tuple(self.directives))


SelectionNode: TypeAlias = Union[FieldNode, InlineFragmentNode, FragmentSpreadNode]


@dataclass(frozen=True)
class FragmentDefinitionNode:
    name: str
    type_condition: str
    selections: tuple[SelectionNode, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "selections", tuple(self.selections))


@dataclass(frozen=True)
class VariableDefinitionNode:
    name: str
    default_value: Any = Undefined


@dataclass(frozen=True)
class OperationDefinitionNode:
    operation: OperationType
    selections: tuple[SelectionNode, ...]
    name: str | None = None
    variable_definitions: tuple[VariableDefinitionNode, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "operation", OperationType(self.operation))
        object.__setattr__(self, "selections", tuple(self.selections))
        object.__setattr__(self, "variable_definitions", tuple(self.variable_definitions))


def query(*selections: SelectionNode, name: str | None = None) -> OperationDefinitionNode:
    """Shorthand for an anonymous (or named) query operation."""
    return OperationDefinitionNode(OperationType.QUERY, selections, name=name)


def mutation(*selections: SelectionNode, name: str | None = None) -> OperationDefinitionNode:
    return OperationDefinitionNode(OperationType.MUTATION, selections, name=name)


__all__ = [
    "OperationType",
    "Location",
    "VariableNode",
    "DirectiveNode",
    "FieldNode",
    "InlineFragmentNode",
    "FragmentSpreadNode",
    "SelectionNode",
    "FragmentDefinitionNode",
    "VariableDefinitionNode",
    "OperationDefinitionNode",
    "query",
    "mutation",
]
