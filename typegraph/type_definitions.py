"""Type-graph node kinds.

Named types (scalars, enums, objects, interfaces, unions, input objects) are
identified by name. ``ListType`` and ``NonNullType`` are structural wrappers.
Every cross-type reference is a *type reference*: a type name, or a wrapper
around a type reference. Only the registry maps names to definitions, so a
self-referential schema never forms an ownership cycle.
"""

import dataclasses
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, TypeAlias, Union

from typegraph.errors import SchemaBuildError
from typegraph.naming import camelize_lower
from typegraph.undefined import Undefined

if TYPE_CHECKING:
    from typegraph.graph_executor import ExecutionContext


class TypeKind(str, Enum):
    SCALAR = "SCALAR"
    OBJECT = "OBJECT"
    INTERFACE = "INTERFACE"
    UNION = "UNION"
    ENUM = "ENUM"
    INPUT_OBJECT = "INPUT_OBJECT"
    LIST = "LIST"
    NON_NULL = "NON_NULL"


class DirectiveLocation(str, Enum):
    QUERY = "QUERY"
    MUTATION = "MUTATION"
    SUBSCRIPTION = "SUBSCRIPTION"
    FIELD = "FIELD"
    FRAGMENT_DEFINITION = "FRAGMENT_DEFINITION"
    FRAGMENT_SPREAD = "FRAGMENT_SPREAD"
    INLINE_FRAGMENT = "INLINE_FRAGMENT"
    VARIABLE_DEFINITION = "VARIABLE_DEFINITION"
    SCHEMA = "SCHEMA"
    SCALAR = "SCALAR"
    OBJECT = "OBJECT"
    FIELD_DEFINITION = "FIELD_DEFINITION"
    ARGUMENT_DEFINITION = "ARGUMENT_DEFINITION"
    INTERFACE = "INTERFACE"
    UNION = "UNION"
    ENUM = "ENUM"
    ENUM_VALUE = "ENUM_VALUE"
    INPUT_OBJECT = "INPUT_OBJECT"
    INPUT_FIELD_DEFINITION = "INPUT_FIELD_DEFINITION"


# Resolver signature: (parent value, coerced arguments, execution context) -> raw value
Resolver: TypeAlias = Callable[[Any, dict[str, Any], "ExecutionContext"], Any]
TypeResolver: TypeAlias = Callable[[Any], Any]
IsTypeOf: TypeAlias = Callable[[Any], Any]

TypeRef: TypeAlias = Union[str, "ListType", "NonNullType"]


def to_type_ref(type_: Any) -> TypeRef:
    """Normalize a type, wrapper or name into a type reference."""
    if isinstance(type_, (str, ListType, NonNullType)):
        return type_
    if isinstance(type_, NamedType):
        return type_.name
    raise TypeError(f"Expected a type name or type definition, got {type_!r}")


# ============================================================================
# Wrapper Types
# ============================================================================


@dataclass(frozen=True)
class ListType:
    of_type: TypeRef

    kind: ClassVar[TypeKind] = TypeKind.LIST

    def __post_init__(self) -> None:
        object.__setattr__(self, "of_type", to_type_ref(self.of_type))

    def __str__(self) -> str:
        return f"[{self.of_type}]"


@dataclass(frozen=True)
class NonNullType:
    of_type: TypeRef

    kind: ClassVar[TypeKind] = TypeKind.NON_NULL

    def __post_init__(self) -> None:
        of_type = to_type_ref(self.of_type)
        if isinstance(of_type, NonNullType):
            raise SchemaBuildError(f"Non-null type cannot wrap another non-null type: {of_type}!")
        object.__setattr__(self, "of_type", of_type)

    def __str__(self) -> str:
        return f"{self.of_type}!"


def list_of(type_: Any) -> ListType:
    return ListType(to_type_ref(type_))


def non_null(type_: Any) -> NonNullType:
    return NonNullType(to_type_ref(type_))


def named_type_name(type_ref: TypeRef) -> str:
    """Strip every wrapper and return the underlying type name."""
    while not isinstance(type_ref, str):
        type_ref = type_ref.of_type
    return type_ref


def is_non_null(type_ref: TypeRef) -> bool:
    return isinstance(type_ref, NonNullType)


def nullable(type_ref: TypeRef) -> TypeRef:
    return type_ref.of_type if isinstance(type_ref, NonNullType) else type_ref


# ============================================================================
# Fields and Arguments
# ============================================================================


@dataclass
class Argument:
    """An argument (or input-object field) declaration.

    ``name`` is the public name; ``source`` is the Python identifier the coerced
    value is stored under. Both are filled in by the owning field or type when
    left unset.
    """

    type: TypeRef
    default_value: Any = Undefined
    description: str | None = None
    name: str | None = None
    source: str | None = None

    def __post_init__(self) -> None:
        self.type = to_type_ref(self.type)

    @property
    def has_default(self) -> bool:
        return self.default_value is not Undefined


@dataclass
class InputField(Argument):
    """A field of an input object type; declared exactly like an argument."""


@dataclass
class Field:
    type: TypeRef
    args: Mapping[str, Argument] = field(default_factory=dict)
    resolve: Resolver | None = None
    description: str | None = None
    deprecation_reason: str | None = None
    name: str | None = None
    source: str | None = None

    def __post_init__(self) -> None:
        self.type = to_type_ref(self.type)
        self.args = _named_members(self.args)

    @property
    def is_deprecated(self) -> bool:
        return self.deprecation_reason is not None


def _named_members(members: Mapping[str, Any]) -> dict[str, Any]:
    """Key members by public name, filling in ``name`` and ``source`` from the identifier."""
    named: dict[str, Any] = {}
    for identifier, member in members.items():
        public = member.name or camelize_lower(identifier)
        if public in named:
            raise SchemaBuildError(f"Duplicate member name: {public}")
        if member.name != public or member.source is None:
            member = dataclasses.replace(member, name=public, source=member.source or identifier)
        named[public] = member
    return named


# ============================================================================
# Named Types
# ============================================================================


class NamedType:
    """Common behaviour of every named type definition."""

    name: str
    description: str | None
    kind: ClassVar[TypeKind]

    def __str__(self) -> str:
        return self.name

    @property
    def is_leaf(self) -> bool:
        return self.kind in (TypeKind.SCALAR, TypeKind.ENUM)

    @property
    def is_abstract(self) -> bool:
        return self.kind in (TypeKind.INTERFACE, TypeKind.UNION)

    @property
    def is_composite(self) -> bool:
        return self.kind in (TypeKind.OBJECT, TypeKind.INTERFACE, TypeKind.UNION)

    @property
    def is_input(self) -> bool:
        return self.kind in (TypeKind.SCALAR, TypeKind.ENUM, TypeKind.INPUT_OBJECT)

    @property
    def is_output(self) -> bool:
        return self.kind != TypeKind.INPUT_OBJECT


def _identity(value: Any) -> Any:
    return value


@dataclass(eq=True)
class ScalarType(NamedType):
    name: str
    serialize: Callable[[Any], Any] = _identity
    parse_value: Callable[[Any], Any] = _identity
    description: str | None = None
    specified_by_url: str | None = None

    kind: ClassVar[TypeKind] = TypeKind.SCALAR


@dataclass
class EnumValue:
    value: Any = Undefined
    description: str | None = None
    deprecation_reason: str | None = None
    name: str | None = None

    @property
    def is_deprecated(self) -> bool:
        return self.deprecation_reason is not None


@dataclass(eq=True)
class EnumType(NamedType):
    """An enum: symbol names mapped to internal values.

    ``values`` may be a mapping of symbol name to ``EnumValue`` (or to a bare
    internal value), or a plain sequence of symbol names whose internal value is
    the name itself.
    """

    name: str
    values: Mapping[str, Any] = field(default_factory=dict)
    description: str | None = None

    kind: ClassVar[TypeKind] = TypeKind.ENUM

    def __post_init__(self) -> None:
        raw = self.values if isinstance(self.values, Mapping) else {symbol: symbol for symbol in self.values}
        normalized: dict[str, EnumValue] = {}
        for symbol, entry in raw.items():
            if not isinstance(entry, EnumValue):
                entry = EnumValue(value=entry)
            value = symbol if entry.value is Undefined else entry.value
            normalized[symbol] = dataclasses.replace(entry, name=symbol, value=value)
        self.values = normalized

    @classmethod
    def from_python_enum(
        cls, python_enum: type[Enum], name: str | None = None, description: str | None = None
    ) -> "EnumType":
        """Build an enum whose internal values are the members of ``python_enum``."""
        return cls(
            name=name or python_enum.__name__,
            values={member.name: EnumValue(value=member) for member in python_enum},
            description=description or python_enum.__doc__,
        )

    def value_for(self, symbol: str) -> EnumValue | None:
        return self.values.get(symbol)

    def symbol_for(self, value: Any) -> str | None:
        """Return the symbol whose internal value equals ``value``, if any."""
        for symbol, entry in self.values.items():
            if entry.value is value:
                return symbol
        for symbol, entry in self.values.items():
            if type(entry.value) is type(value) and entry.value == value:
                return symbol
        return None


@dataclass(eq=True)
class ObjectType(NamedType):
    name: str
    fields: Mapping[str, Field] = field(default_factory=dict)
    interfaces: Sequence[Any] = ()
    is_type_of: IsTypeOf | None = None
    description: str | None = None

    kind: ClassVar[TypeKind] = TypeKind.OBJECT

    def __post_init__(self) -> None:
        self.fields = _named_members(self.fields)
        self.interfaces = tuple(to_type_ref(i) for i in self.interfaces)

    def get_field(self, name: str) -> Field | None:
        return self.fields.get(name)


@dataclass(eq=True)
class InterfaceType(NamedType):
    name: str
    fields: Mapping[str, Field] = field(default_factory=dict)
    interfaces: Sequence[Any] = ()
    resolve_type: TypeResolver | None = None
    description: str | None = None

    kind: ClassVar[TypeKind] = TypeKind.INTERFACE

    def __post_init__(self) -> None:
        self.fields = _named_members(self.fields)
        self.interfaces = tuple(to_type_ref(i) for i in self.interfaces)

    def get_field(self, name: str) -> Field | None:
        return self.fields.get(name)


@dataclass(eq=True)
class UnionType(NamedType):
    name: str
    types: Sequence[Any] = ()
    resolve_type: TypeResolver | None = None
    description: str | None = None

    kind: ClassVar[TypeKind] = TypeKind.UNION

    def __post_init__(self) -> None:
        self.types = tuple(to_type_ref(t) for t in self.types)


@dataclass(eq=True)
class InputObjectType(NamedType):
    name: str
    fields: Mapping[str, Argument] = field(default_factory=dict)
    description: str | None = None

    kind: ClassVar[TypeKind] = TypeKind.INPUT_OBJECT

    def __post_init__(self) -> None:
        self.fields = _named_members(self.fields)


@dataclass
class Directive:
    name: str
    locations: Sequence[DirectiveLocation] = ()
    args: Mapping[str, Argument] = field(default_factory=dict)
    description: str | None = None
    is_repeatable: bool = False

    def __post_init__(self) -> None:
        self.locations = tuple(DirectiveLocation(loc) for loc in self.locations)
        self.args = _named_members(self.args)


__all__ = [
    "TypeKind",
    "DirectiveLocation",
    "Resolver",
    "TypeResolver",
    "IsTypeOf",
    "TypeRef",
    "to_type_ref",
    "ListType",
    "NonNullType",
    "list_of",
    "non_null",
    "named_type_name",
    "is_non_null",
    "nullable",
    "Argument",
    "InputField",
    "Field",
    "NamedType",
    "ScalarType",
    "EnumValue",
    "EnumType",
    "ObjectType",
    "InterfaceType",
    "UnionType",
    "InputObjectType",
    "Directive",
]
