"""Self-hosted introspection.

The ``__Schema`` / ``__Type`` / ... meta types are ordinary object types,
registered in every registry and executed by the ordinary engine. Their parent
values are the live definitions themselves: the registry for ``__Schema``,
a type reference (a name or a List/NonNull wrapper) for ``__Type``, and the
``Field`` / ``Argument`` / ``EnumValue`` / ``Directive`` records for the rest.
Every resolver reaches the registry through the execution context.
"""

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from typegraph.type_definitions import (
    Argument,
    DirectiveLocation,
    EnumType,
    Field,
    InputObjectType,
    InterfaceType,
    ListType,
    NamedType,
    NonNullType,
    ObjectType,
    TypeKind,
    TypeRef,
    list_of,
    non_null,
)

if TYPE_CHECKING:
    from typegraph.graph_executor import ExecutionContext
    from typegraph.type_registry import TypeRegistry


def _named(type_ref: TypeRef, context: "ExecutionContext") -> NamedType | None:
    if isinstance(type_ref, str):
        return context.registry.get(type_ref)
    return None


# ============================================================================
# __Type resolvers
# ============================================================================


def _type_kind(type_ref: TypeRef, args: dict[str, Any], context: "ExecutionContext") -> TypeKind:
    if isinstance(type_ref, (ListType, NonNullType)):
        return type_ref.kind
    return context.registry.lookup(type_ref).kind


def _type_name(type_ref: TypeRef, args: dict[str, Any], context: "ExecutionContext") -> str | None:
    return type_ref if isinstance(type_ref, str) else None


def _type_description(type_ref: TypeRef, args: dict[str, Any], context: "ExecutionContext") -> str | None:
    type_def = _named(type_ref, context)
    return type_def.description if type_def is not None else None


def _type_specified_by_url(type_ref: TypeRef, args: dict[str, Any], context: "ExecutionContext") -> str | None:
    return getattr(_named(type_ref, context), "specified_by_url", None)


def _type_fields(type_ref: TypeRef, args: dict[str, Any], context: "ExecutionContext") -> list[Field] | None:
    type_def = _named(type_ref, context)
    if not isinstance(type_def, (ObjectType, InterfaceType)):
        return None
    fields = list(type_def.fields.values())
    if not args.get("include_deprecated"):
        fields = [f for f in fields if not f.is_deprecated]
    return fields


def _type_interfaces(type_ref: TypeRef, args: dict[str, Any], context: "ExecutionContext") -> list[str] | None:
    type_def = _named(type_ref, context)
    if not isinstance(type_def, (ObjectType, InterfaceType)):
        return None
    return list(type_def.interfaces)


def _type_possible_types(type_ref: TypeRef, args: dict[str, Any], context: "ExecutionContext") -> list[str] | None:
    type_def = _named(type_ref, context)
    if type_def is None or not type_def.is_abstract:
        return None
    return [object_type.name for object_type in context.registry.possible_types(type_def)]


def _type_enum_values(type_ref: TypeRef, args: dict[str, Any], context: "ExecutionContext") -> list[Any] | None:
    type_def = _named(type_ref, context)
    if not isinstance(type_def, EnumType):
        return None
    values = list(type_def.values.values())
    if not args.get("include_deprecated"):
        values = [v for v in values if not v.is_deprecated]
    return values


def _type_input_fields(type_ref: TypeRef, args: dict[str, Any], context: "ExecutionContext") -> list[Argument] | None:
    type_def = _named(type_ref, context)
    if not isinstance(type_def, InputObjectType):
        return None
    return list(type_def.fields.values())


def _type_of_type(type_ref: TypeRef, args: dict[str, Any], context: "ExecutionContext") -> TypeRef | None:
    if isinstance(type_ref, (ListType, NonNullType)):
        return type_ref.of_type
    return None


# ============================================================================
# Default value printing
# ============================================================================


def print_value(value: Any, type_ref: TypeRef, registry: "TypeRegistry") -> str:
    """Render a raw input value as a GraphQL literal for ``defaultValue``."""
    if value is None:
        return "null"
    if isinstance(type_ref, NonNullType):
        return print_value(value, type_ref.of_type, registry)
    if isinstance(type_ref, ListType):
        if isinstance(value, (list, tuple)):
            return "[" + ", ".join(print_value(item, type_ref.of_type, registry) for item in value) + "]"
        return print_value(value, type_ref.of_type, registry)

    type_def = registry.get(type_ref)
    if isinstance(type_def, EnumType):
        if isinstance(value, str) and value in type_def.values:
            return value
        symbol = type_def.symbol_for(value)
        if symbol is not None:
            return symbol
    if isinstance(type_def, InputObjectType) and isinstance(value, Mapping):
        parts = []
        for name, input_field in type_def.fields.items():
            if name in value:
                parts.append(f"{name}: {print_value(value[name], input_field.type, registry)}")
        return "{" + ", ".join(parts) + "}"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return repr(value)
    return json.dumps(value, default=str)


def _input_default_value(arg: Argument, args: dict[str, Any], context: "ExecutionContext") -> str | None:
    if not arg.has_default:
        return None
    return print_value(arg.default_value, arg.type, context.registry)


def _not_deprecated(value: Any, args: dict[str, Any], context: "ExecutionContext") -> bool:
    return False


def _no_reason(value: Any, args: dict[str, Any], context: "ExecutionContext") -> None:
    return None


def _member_args(member: Any, args: dict[str, Any], context: "ExecutionContext") -> list[Argument]:
    return list(member.args.values())


# ============================================================================
# Meta types
# ============================================================================

_INCLUDE_DEPRECATED = {"include_deprecated": Argument("Boolean", default_value=False)}

TYPE_KIND = EnumType.from_python_enum(
    TypeKind, name="__TypeKind", description="An enum describing what kind of type a given `__Type` is."
)

DIRECTIVE_LOCATION = EnumType.from_python_enum(
    DirectiveLocation,
    name="__DirectiveLocation",
    description="A Directive can be adjacent to many parts of the GraphQL language.",
)

SCHEMA = ObjectType(
    "__Schema",
    description="A GraphQL Schema defines the capabilities of a GraphQL server.",
    fields={
        "description": Field("String", resolve=_no_reason),
        "types": Field(
            non_null(list_of(non_null("__Type"))),
            resolve=lambda registry, args, context: [type_def.name for type_def in registry.types],
            description="A list of all types supported by this server.",
        ),
        "query_type": Field(
            non_null("__Type"),
            resolve=lambda registry, args, context: registry.query_type.name,
            description="The type that query operations will be rooted at.",
        ),
        "mutation_type": Field(
            "__Type",
            resolve=lambda registry, args, context: registry.mutation_type.name if registry.mutation_type else None,
            description="If this server supports mutation, the type that mutation operations will be rooted at.",
        ),
        "subscription_type": Field(
            "__Type",
            resolve=lambda registry, args, context: (
                registry.subscription_type.name if registry.subscription_type else None
            ),
            description="If this server supports subscription, the type that subscription operations will be "
            "rooted at.",
        ),
        "directives": Field(
            non_null(list_of(non_null("__Directive"))),
            resolve=lambda registry, args, context: list(registry.directives),
            description="A list of all directives supported by this server.",
        ),
    },
)

TYPE = ObjectType(
    "__Type",
    description="The fundamental unit of any GraphQL Schema is the type.",
    fields={
        "kind": Field(non_null("__TypeKind"), resolve=_type_kind),
        "name": Field("String", resolve=_type_name),
        "description": Field("String", resolve=_type_description),
        "specified_by_url": Field("String", resolve=_type_specified_by_url, name="specifiedByURL"),
        "fields": Field(list_of(non_null("__Field")), args=_INCLUDE_DEPRECATED, resolve=_type_fields),
        "interfaces": Field(list_of(non_null("__Type")), resolve=_type_interfaces),
        "possible_types": Field(list_of(non_null("__Type")), resolve=_type_possible_types),
        "enum_values": Field(list_of(non_null("__EnumValue")), args=_INCLUDE_DEPRECATED, resolve=_type_enum_values),
        "input_fields": Field(list_of(non_null("__InputValue")), args=_INCLUDE_DEPRECATED, resolve=_type_input_fields),
        "of_type": Field("__Type", resolve=_type_of_type),
    },
)

FIELD = ObjectType(
    "__Field",
    description="Object and Interface types are described by a list of Fields, each of which has a name, "
    "potentially a list of arguments, and a return type.",
    fields={
        "name": Field(non_null("String")),
        "description": Field("String"),
        "args": Field(non_null(list_of(non_null("__InputValue"))), args=_INCLUDE_DEPRECATED, resolve=_member_args),
        "type": Field(non_null("__Type")),
        "is_deprecated": Field(non_null("Boolean")),
        "deprecation_reason": Field("String"),
    },
)

INPUT_VALUE = ObjectType(
    "__InputValue",
    description="Arguments provided to Fields or Directives and the input fields of an InputObject are "
    "represented as Input Values which describe their type and optionally a default value.",
    fields={
        "name": Field(non_null("String")),
        "description": Field("String"),
        "type": Field(non_null("__Type")),
        "default_value": Field(
            "String",
            resolve=_input_default_value,
            description="A GraphQL-formatted string representing the default value for this input value.",
        ),
        "is_deprecated": Field(non_null("Boolean"), resolve=_not_deprecated),
        "deprecation_reason": Field("String", resolve=_no_reason),
    },
)

ENUM_VALUE = ObjectType(
    "__EnumValue",
    description="One possible value for a given Enum.",
    fields={
        "name": Field(non_null("String")),
        "description": Field("String"),
        "is_deprecated": Field(non_null("Boolean")),
        "deprecation_reason": Field("String"),
    },
)

DIRECTIVE = ObjectType(
    "__Directive",
    description="A Directive provides a way to describe alternate runtime execution and type validation "
    "behavior in a GraphQL document.",
    fields={
        "name": Field(non_null("String")),
        "description": Field("String"),
        "is_repeatable": Field(non_null("Boolean")),
        "locations": Field(non_null(list_of(non_null("__DirectiveLocation")))),
        "args": Field(non_null(list_of(non_null("__InputValue"))), args=_INCLUDE_DEPRECATED, resolve=_member_args),
    },
)

INTROSPECTION_TYPES: tuple[NamedType, ...] = (
    SCHEMA,
    TYPE,
    TYPE_KIND,
    FIELD,
    INPUT_VALUE,
    ENUM_VALUE,
    DIRECTIVE,
    DIRECTIVE_LOCATION,
)

# ============================================================================
# Meta fields
# ============================================================================

SCHEMA_META_FIELD = Field(
    non_null("__Schema"),
    resolve=lambda parent, args, context: context.registry,
    description="Access the current type schema of this server.",
    name="__schema",
)

TYPE_META_FIELD = Field(
    "__Type",
    args={"name": Argument(non_null("String"))},
    resolve=lambda parent, args, context: args["name"] if args["name"] in context.registry else None,
    description="Request the type information of a single type.",
    name="__type",
)

# Completed by the executor from the runtime object type, never through a resolver.
TYPENAME_META_FIELD = Field(
    non_null("String"),
    description="The name of the current Object type at runtime.",
    name="__typename",
)

__all__ = [
    "INTROSPECTION_TYPES",
    "SCHEMA_META_FIELD",
    "TYPE_META_FIELD",
    "TYPENAME_META_FIELD",
    "print_value",
]
