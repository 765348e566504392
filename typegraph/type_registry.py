import logging
from collections.abc import Callable, Iterable, Iterator, Mapping, Sequence
from types import MappingProxyType
from typing import Any

import rustworkx as rx

from typegraph.directives import SPECIFIED_DIRECTIVES
from typegraph.errors import SchemaBuildError, TypeNotFoundError
from typegraph.introspection import (
    INTROSPECTION_TYPES,
    SCHEMA_META_FIELD,
    TYPE_META_FIELD,
    TYPENAME_META_FIELD,
)
from typegraph.language import OperationType
from typegraph.scalars import BUILTIN_SCALARS
from typegraph.type_definitions import (
    Directive,
    EnumType,
    Field,
    InputObjectType,
    InterfaceType,
    ListType,
    NamedType,
    NonNullType,
    ObjectType,
    ScalarType,
    TypeRef,
    UnionType,
    named_type_name,
    to_type_ref,
)

logger = logging.getLogger(__name__)

MissingTypeCallback = Callable[[str, str, str], None]


# ============================================================================
# Traversal
# ============================================================================


def child_references(type_def: NamedType) -> Iterator[tuple[str, TypeRef]]:
    """Yield ``(context, type_ref)`` for every type a definition refers to.

    Objects and interfaces yield their field types, argument types and declared
    interfaces; unions yield their members; input objects yield their field types.
    """
    if isinstance(type_def, (ObjectType, InterfaceType)):
        for field_name, field in type_def.fields.items():
            yield f"field {field_name}", field.type
            for arg_name, arg in field.args.items():
                yield f"argument {field_name}({arg_name})", arg.type
        for interface in type_def.interfaces:
            yield "interface", interface
    elif isinstance(type_def, UnionType):
        for member in type_def.types:
            yield "union member", member
    elif isinstance(type_def, InputObjectType):
        for field_name, field in type_def.fields.items():
            yield f"input field {field_name}", field.type


def _raise_missing(referrer: str, context: str, name: str) -> None:
    raise TypeNotFoundError(name)


def walk(
    roots: Iterable[str],
    lookup: Callable[[str], NamedType | None],
    on_missing: MissingTypeCallback = _raise_missing,
    on_edge: Callable[[str, str, str], None] | None = None,
) -> Iterator[NamedType]:
    """Depth-first walk over named types reachable from ``roots``.

    Uses an explicit stack and a visited set keyed by type name, so
    self-referential and mutually recursive graphs terminate and every distinct
    type is yielded exactly once regardless of how many references point at it.
    """
    visited: set[str] = set()
    stack: list[str] = list(reversed(list(roots)))
    while stack:
        name = stack.pop()
        if name in visited:
            continue
        type_def = lookup(name)
        if type_def is None:
            on_missing("<root>", "root", name)
            continue
        visited.add(name)
        yield type_def

        children: list[str] = []
        for context, ref in child_references(type_def):
            child = named_type_name(ref)
            if lookup(child) is None:
                on_missing(type_def.name, context, child)
                continue
            if on_edge is not None:
                on_edge(type_def.name, child, context)
            if child not in visited:
                children.append(child)
        stack.extend(reversed(children))


# ============================================================================
# Registry
# ============================================================================


class TypeRegistry:
    """Flat, name-indexed table of every type definition in a schema.

    Built once through :meth:`build` and read-only afterwards; every component
    that needs a definition looks it up here by name.
    """

    def __init__(
        self,
        type_map: dict[str, NamedType],
        roots: dict[OperationType, str],
        directives: dict[str, Directive],
        graph: rx.PyDiGraph,
        node_indices: dict[str, int],
    ):
        self._type_map = type_map
        self._roots = roots
        self._directives = directives
        self._graph = graph
        self._node_indices = node_indices
        self._possible_types = self._collect_possible_types()

    # ------------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------------

    @classmethod
    def build(
        cls,
        query: Any,
        mutation: Any = None,
        subscription: Any = None,
        types: Sequence[NamedType] = (),
        directives: Sequence[Directive] = (),
    ) -> "TypeRegistry":
        """Build and validate a registry from root operation types and definitions.

        Root types may be given as names or definitions. ``types`` supplies every
        other definition, including implementers that no field refers to directly.

        Raises:
            SchemaBuildError: listing every problem found.
        """
        problems: list[str] = []
        definitions: dict[str, NamedType] = {}

        def add(type_def: NamedType) -> None:
            if not isinstance(type_def, NamedType):
                problems.append(f"Expected a named type definition, got {type_def!r}")
                return
            existing = definitions.get(type_def.name)
            if existing is None:
                definitions[type_def.name] = type_def
            elif existing is not type_def and existing != type_def:
                problems.append(f'Type name "{type_def.name}" is bound to two different definitions')

        for builtin in (*BUILTIN_SCALARS, *INTROSPECTION_TYPES):
            add(builtin)
        roots: dict[OperationType, str] = {}
        for operation, root in (
            (OperationType.QUERY, query),
            (OperationType.MUTATION, mutation),
            (OperationType.SUBSCRIPTION, subscription),
        ):
            if root is None:
                continue
            if isinstance(root, NamedType):
                add(root)
            roots[operation] = to_type_ref(root)
        for type_def in types:
            add(type_def)

        if OperationType.QUERY not in roots:
            problems.append("Query root type must be provided")

        directive_map: dict[str, Directive] = {}
        for directive in (*SPECIFIED_DIRECTIVES, *directives):
            if directive.name in directive_map and directive_map[directive.name] is not directive:
                problems.append(f'Directive "@{directive.name}" is defined more than once')
            directive_map[directive.name] = directive

        def on_missing(referrer: str, context: str, name: str) -> None:
            if referrer == "<root>":
                problems.append(f'Root type "{name}" is not defined')
            else:
                problems.append(f'Type "{referrer}" references unknown type "{name}" ({context})')

        edges: list[tuple[str, str, str]] = []
        start = [*roots.values(), "__Schema", *definitions.keys()]
        type_map: dict[str, NamedType] = {
            type_def.name: type_def
            for type_def in walk(
                start,
                definitions.get,
                on_missing=on_missing,
                on_edge=lambda src, dst, ctx: edges.append((src, dst, ctx)),
            )
        }

        for directive in directive_map.values():
            for arg_name, arg in directive.args.items():
                if named_type_name(arg.type) not in type_map:
                    problems.append(
                        f'Directive "@{directive.name}" argument "{arg_name}" references unknown type '
                        f'"{named_type_name(arg.type)}"'
                    )

        for operation, root_name in roots.items():
            root_def = type_map.get(root_name)
            if root_def is not None and not isinstance(root_def, ObjectType):
                problems.append(f'{operation.value.capitalize()} root type "{root_name}" must be an Object type')

        if not problems:
            problems.extend(_validate_types(type_map, directive_map))
        if problems:
            for problem in problems:
                logger.error(f"Schema build problem: {problem}")
            raise SchemaBuildError("Invalid schema:\n - " + "\n - ".join(problems), problems)

        graph: rx.PyDiGraph = rx.PyDiGraph()
        node_indices = {name: graph.add_node(name) for name in type_map}
        for src, dst, context in edges:
            graph.add_edge(node_indices[src], node_indices[dst], context)

        registry = cls(type_map, roots, directive_map, graph, node_indices)
        logger.info(
            f"Built type registry with {len(type_map)} types "
            f"({len(type_map) - len(BUILTIN_SCALARS) - len(INTROSPECTION_TYPES)} user-defined)"
        )
        recursive = registry.recursive_types()
        if recursive:
            logger.debug(f"Recursive types in registry: {sorted(recursive)}")
        return registry

    # ------------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------------

    def lookup(self, name: str) -> NamedType:
        """Return the definition registered under ``name``.

        Raises:
            TypeNotFoundError: if no such type is registered.
        """
        type_def = self._type_map.get(name)
        if type_def is None:
            raise TypeNotFoundError(name)
        return type_def

    def get(self, name: str) -> NamedType | None:
        return self._type_map.get(name)

    def resolve(self, type_ref: TypeRef) -> NamedType:
        """Return the named type underneath a (possibly wrapped) reference."""
        return self.lookup(named_type_name(type_ref))

    def __contains__(self, name: object) -> bool:
        return name in self._type_map

    def __len__(self) -> int:
        return len(self._type_map)

    @property
    def type_map(self) -> Mapping[str, NamedType]:
        return MappingProxyType(self._type_map)

    @property
    def types(self) -> tuple[NamedType, ...]:
        return tuple(self._type_map.values())

    @property
    def directives(self) -> tuple[Directive, ...]:
        return tuple(self._directives.values())

    def get_directive(self, name: str) -> Directive | None:
        return self._directives.get(name)

    def root_type(self, operation: OperationType) -> ObjectType | None:
        name = self._roots.get(OperationType(operation))
        return self._type_map[name] if name is not None else None  # type: ignore[return-value]

    @property
    def query_type(self) -> ObjectType | None:
        return self.root_type(OperationType.QUERY)

    @property
    def mutation_type(self) -> ObjectType | None:
        return self.root_type(OperationType.MUTATION)

    @property
    def subscription_type(self) -> ObjectType | None:
        return self.root_type(OperationType.SUBSCRIPTION)

    def get_field(self, parent_type: NamedType, field_name: str) -> Field | None:
        """Look up a field, falling back to the meta fields.

        ``__typename`` is available on every composite type; ``__schema`` and
        ``__type`` only on the query root.
        """
        if field_name == TYPENAME_META_FIELD.name and parent_type.is_composite:
            return TYPENAME_META_FIELD
        if parent_type is self.query_type and field_name in (SCHEMA_META_FIELD.name, TYPE_META_FIELD.name):
            return SCHEMA_META_FIELD if field_name == SCHEMA_META_FIELD.name else TYPE_META_FIELD
        fields = getattr(parent_type, "fields", None)
        if fields is None:
            return None
        return fields.get(field_name)

    # ------------------------------------------------------------------------
    # Abstract types
    # ------------------------------------------------------------------------

    def _collect_possible_types(self) -> dict[str, tuple[str, ...]]:
        possible: dict[str, list[str]] = {}
        for type_def in self._type_map.values():
            if isinstance(type_def, UnionType):
                possible.setdefault(type_def.name, []).extend(type_def.types)
            elif isinstance(type_def, InterfaceType):
                possible.setdefault(type_def.name, [])
        for type_def in self._type_map.values():
            if isinstance(type_def, ObjectType):
                for interface in type_def.interfaces:
                    possible[interface].append(type_def.name)
        return {name: tuple(members) for name, members in possible.items()}

    def possible_types(self, abstract_type: NamedType | str) -> tuple[ObjectType, ...]:
        """Union members in declared order, or interface implementers in registration order."""
        name = abstract_type if isinstance(abstract_type, str) else abstract_type.name
        return tuple(self._type_map[member] for member in self._possible_types.get(name, ()))  # type: ignore[misc]

    def is_possible_type(self, abstract_type: NamedType | str, object_type: NamedType | str) -> bool:
        name = abstract_type if isinstance(abstract_type, str) else abstract_type.name
        object_name = object_type if isinstance(object_type, str) else object_type.name
        return object_name in self._possible_types.get(name, ())

    def implements(self, object_type: NamedType, interface_name: str) -> bool:
        return interface_name in getattr(object_type, "interfaces", ())

    def is_sub_type(self, maybe_sub: TypeRef, super_type: TypeRef) -> bool:
        """Return whether ``maybe_sub`` may stand in for ``super_type`` (covariant or equal)."""
        return _is_sub_type(self._type_map, maybe_sub, super_type)

    # ------------------------------------------------------------------------
    # Reference graph
    # ------------------------------------------------------------------------

    def dependencies(self, name: str) -> list[str]:
        """Names of every type transitively referenced by ``name``, in registry order."""
        idx = self._node_index(name)
        reachable = {self._graph[i] for i in _rx_descendants(self._graph, idx)}
        return [type_name for type_name in self._type_map if type_name in reachable]

    def referrers(self, name: str) -> list[str]:
        """Names of the types that refer to ``name`` directly, in registry order."""
        idx = self._node_index(name)
        direct = {self._graph[i] for i in self._graph.predecessor_indices(idx)}
        return [type_name for type_name in self._type_map if type_name in direct]

    def recursive_types(self) -> set[str]:
        """Names of every type that participates in a reference cycle."""
        recursive: set[str] = set()
        for component in _rx_strongly_connected(self._graph):
            if len(component) > 1 or self._graph.has_edge(component[0], component[0]):
                recursive.update(self._graph[i] for i in component)
        return recursive

    def _node_index(self, name: str) -> int:
        idx = self._node_indices.get(name)
        if idx is None:
            raise TypeNotFoundError(name)
        return idx


# ============================================================================
# Validation
# ============================================================================


def _is_sub_type(type_map: Mapping[str, NamedType], maybe_sub: TypeRef, super_type: TypeRef) -> bool:
    if maybe_sub == super_type:
        return True
    if isinstance(super_type, NonNullType):
        if isinstance(maybe_sub, NonNullType):
            return _is_sub_type(type_map, maybe_sub.of_type, super_type.of_type)
        return False
    if isinstance(maybe_sub, NonNullType):
        return _is_sub_type(type_map, maybe_sub.of_type, super_type)
    if isinstance(super_type, ListType):
        if isinstance(maybe_sub, ListType):
            return _is_sub_type(type_map, maybe_sub.of_type, super_type.of_type)
        return False
    if isinstance(maybe_sub, ListType):
        return False
    super_def = type_map.get(super_type)
    sub_def = type_map.get(maybe_sub)
    if isinstance(super_def, UnionType):
        return maybe_sub in super_def.types
    if isinstance(super_def, InterfaceType) and isinstance(sub_def, (ObjectType, InterfaceType)):
        return super_type in sub_def.interfaces
    return False


def _validate_types(type_map: Mapping[str, NamedType], directives: Mapping[str, Directive]) -> list[str]:
    problems: list[str] = []

    def named(ref: TypeRef) -> NamedType:
        return type_map[named_type_name(ref)]

    for type_def in type_map.values():
        if isinstance(type_def, (ObjectType, InterfaceType)):
            if not type_def.fields:
                problems.append(f'Type "{type_def.name}" must define one or more fields')
            for field_name, field in type_def.fields.items():
                if not named(field.type).is_output:
                    problems.append(
                        f'Field "{type_def.name}.{field_name}" must have an output type, got "{field.type}"'
                    )
                for arg_name, arg in field.args.items():
                    if not named(arg.type).is_input:
                        problems.append(
                            f'Argument "{type_def.name}.{field_name}({arg_name})" must have an input type, '
                            f'got "{arg.type}"'
                        )
            problems.extend(_validate_interfaces(type_map, type_def))
        elif isinstance(type_def, UnionType):
            if not type_def.types:
                problems.append(f'Union "{type_def.name}" must include one or more member types')
            for member in type_def.types:
                if not isinstance(type_map[member], ObjectType):
                    problems.append(f'Union "{type_def.name}" member "{member}" must be an Object type')
        elif isinstance(type_def, InputObjectType):
            for field_name, field in type_def.fields.items():
                if not named(field.type).is_input:
                    problems.append(
                        f'Input field "{type_def.name}.{field_name}" must have an input type, got "{field.type}"'
                    )
        elif isinstance(type_def, EnumType):
            if not type_def.values:
                problems.append(f'Enum "{type_def.name}" must define one or more values')
        elif not isinstance(type_def, ScalarType):
            problems.append(f'Unsupported type definition "{type_def.name}"')

    for directive in directives.values():
        for arg_name, arg in directive.args.items():
            if not named(arg.type).is_input:
                problems.append(f'Directive argument "@{directive.name}({arg_name})" must have an input type')
    return problems


def _validate_interfaces(type_map: Mapping[str, NamedType], type_def: ObjectType | InterfaceType) -> list[str]:
    problems: list[str] = []
    for interface_name in type_def.interfaces:
        interface = type_map[interface_name]
        if not isinstance(interface, InterfaceType):
            problems.append(f'Type "{type_def.name}" can only implement Interface types, got "{interface_name}"')
            continue
        if interface_name == type_def.name:
            problems.append(f'Type "{type_def.name}" cannot implement itself')
            continue
        for transitive in interface.interfaces:
            if transitive not in type_def.interfaces:
                problems.append(
                    f'Type "{type_def.name}" must implement "{transitive}" because it is implemented by '
                    f'"{interface_name}"'
                )
        for field_name, iface_field in interface.fields.items():
            field = type_def.fields.get(field_name)
            location = f"{type_def.name}.{field_name}"
            if field is None:
                problems.append(f'Interface field "{interface_name}.{field_name}" expected but "{type_def.name}" '
                                f"does not provide it")
                continue
            if not _is_sub_type(type_map, field.type, iface_field.type):
                problems.append(
                    f'Interface field "{interface_name}.{field_name}" expects type "{iface_field.type}" but '
                    f'"{location}" is type "{field.type}"'
                )
            for arg_name, iface_arg in iface_field.args.items():
                arg = field.args.get(arg_name)
                if arg is None:
                    problems.append(
                        f'Interface field argument "{interface_name}.{field_name}({arg_name})" expected but '
                        f'"{location}" does not provide it'
                    )
                elif arg.type != iface_arg.type:
                    problems.append(
                        f'Interface field argument "{interface_name}.{field_name}({arg_name})" expects type '
                        f'"{iface_arg.type}" but "{location}({arg_name})" is type "{arg.type}"'
                    )
            for arg_name, arg in field.args.items():
                if arg_name not in iface_field.args and isinstance(arg.type, NonNullType) and not arg.has_default:
                    problems.append(
                        f'Argument "{location}({arg_name})" must not be required because it is not declared by '
                        f'interface field "{interface_name}.{field_name}"'
                    )
    return problems


# ---- rustworkx helper shims with precise typing to satisfy the type checker ----
def _rx_descendants(graph: Any, idx: int) -> set[int]:
    return set(rx.descendants(graph, idx))


def _rx_strongly_connected(graph: Any) -> list[list[int]]:
    return [list(component) for component in rx.strongly_connected_components(graph)]


__all__ = ["TypeRegistry", "walk", "child_references"]
