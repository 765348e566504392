"""Typed-query execution engine over a registry of named GraphQL types.

Modules:
- type_definitions: Type-graph node kinds (scalars, enums, objects, interfaces, unions, wrappers)
- type_registry: Registry build, validation and cycle-safe traversal
- coercion: Argument, variable and input-object coercion
- abstract_types: Run-time resolution of interface/union values to object types
- graph_executor: Selection-set execution with null propagation and error collection
- introspection: Self-hosted __schema / __type / __typename meta types
"""

# No explicit imports to avoid circular dependencies
# Import these modules directly (e.g., from typegraph.graph_executor import execute)
# instead of from typegraph import graph_executor

__all__ = []
