import asyncio
import inspect
import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from typegraph.abstract_types import resolve_concrete_type
from typegraph.coercion import coerce_arguments
from typegraph.directives import INCLUDE, SKIP
from typegraph.errors import (
    FieldNotFoundError,
    GraphQLError,
    NonNullViolationError,
    ResolverError,
    SerializationError,
)
from typegraph.introspection import TYPENAME_META_FIELD
from typegraph.language import (
    FieldNode,
    FragmentDefinitionNode,
    FragmentSpreadNode,
    InlineFragmentNode,
    OperationDefinitionNode,
    OperationType,
    SelectionNode,
)
from typegraph.path import Path
from typegraph.settings import ExecutionSettings
from typegraph.type_definitions import (
    EnumType,
    Field,
    ListType,
    NamedType,
    NonNullType,
    ObjectType,
    ScalarType,
    TypeRef,
    is_non_null,
)
from typegraph.type_registry import TypeRegistry
from typegraph.undefined import Undefined

logger = logging.getLogger(__name__)

FieldGroups = dict[str, list[FieldNode]]


class _ExecutionState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPING = "stopping"
    STOPPED = "stopped"
    COMPLETED = "completed"


class _PropagateNull(Exception):
    """A non-null position produced null; its error is already recorded.

    Raised upwards until a nullable field or list item absorbs it by becoming null.
    """


@dataclass(frozen=True)
class ExecutionContext:
    """Immutable per-request bundle handed to every resolver."""

    registry: TypeRegistry
    operation: OperationDefinitionNode
    variable_values: Mapping[str, Any] = field(default_factory=dict)
    fragments: Mapping[str, FragmentDefinitionNode] = field(default_factory=dict)
    root_value: Any = None
    context_value: Any = None
    settings: ExecutionSettings = field(default_factory=ExecutionSettings)


@dataclass
class ExecutionResult:
    data: dict[str, Any] | None
    errors: list[GraphQLError] = field(default_factory=list)

    @property
    def formatted_errors(self) -> list[dict[str, Any]]:
        return [error.formatted for error in self.errors]

    def to_dict(self) -> dict[str, Any]:
        return {"data": self.data, "errors": self.formatted_errors}


@dataclass(frozen=True)
class _FieldInfo:
    parent_type: NamedType
    field_def: Field
    field_nodes: Sequence[FieldNode]

    @property
    def label(self) -> str:
        return f"{self.parent_type.name}.{self.field_def.name}"

    @property
    def locations(self) -> list[Any]:
        return [node.loc for node in self.field_nodes if node.loc is not None]


class GraphExecutor:
    """Executes one operation against a type registry.

    One instance serves one request: it owns the error list and the in-flight
    root tasks, so ``force_stop`` can abandon them. Sibling fields resolve
    concurrently; results are keyed in selection order regardless of which
    resolver finishes first.
    """

    def __init__(self, context: ExecutionContext):
        self.context = context
        self.registry = context.registry
        self.settings = context.settings
        self.errors: list[GraphQLError] = []
        self._state: _ExecutionState = _ExecutionState.IDLE
        self._cancellation_reason: str | None = None
        self._active_tasks: list[asyncio.Task[Any]] = []

    # ============================================================================
    # Execution Flow
    # ============================================================================

    async def execute(self) -> ExecutionResult:
        operation = self.context.operation
        root_type = self.registry.root_type(operation.operation)
        if root_type is None:
            return ExecutionResult(
                None, [GraphQLError(f"Schema is not configured to execute {operation.operation.value} operation.")]
            )

        logger.debug(f"Executing {operation.operation.value} {operation.name or '<anonymous>'} on {root_type.name}")
        self._active_tasks.clear()
        if not self._should_stop():
            self._state = _ExecutionState.RUNNING
        try:
            data = await self._execute_root(root_type)
        except _PropagateNull:
            data = None
        finally:
            await self._cleanup_execution()

        return ExecutionResult(data, self.errors)

    async def _execute_root(self, root_type: ObjectType) -> dict[str, Any] | None:
        try:
            fields = self._collect_fields(root_type, self.context.operation.selections)
        except GraphQLError as error:
            self._record(error)
            return None
        if not fields:
            return {}

        loop = asyncio.get_running_loop()
        timeout = self.settings.timeout
        deadline = loop.time() + timeout if timeout is not None else None
        # Mutation root fields run one after another; everything else runs concurrently.
        if self.context.operation.operation == OperationType.MUTATION:
            batches = [[key] for key in fields]
        else:
            batches = [list(fields)]

        tasks: dict[str, asyncio.Task[Any]] = {}
        for batch in batches:
            if self._should_stop():
                break
            for key in batch:
                task = asyncio.create_task(
                    self._execute_field(root_type, self.context.root_value, fields[key], Path(None, key))
                )
                tasks[key] = task
                self._active_tasks.append(task)

            remaining = None if deadline is None else max(deadline - loop.time(), 0.0)
            _done, pending = await asyncio.wait([tasks[key] for key in batch], timeout=remaining)
            if pending:
                logger.debug(f"STOP_TRACE: Timed out with {len(pending)} root fields still running")
                self.force_stop(reason="timeout")
                await asyncio.gather(*pending, return_exceptions=True)
                break

        return self._assemble_root(root_type, fields, tasks)

    def _assemble_root(
        self, root_type: ObjectType, fields: FieldGroups, tasks: dict[str, asyncio.Task[Any]]
    ) -> dict[str, Any] | None:
        unfinished = [key for key in fields if key not in tasks or tasks[key].cancelled()]
        if unfinished and not self.settings.partial_results:
            self._record(GraphQLError(self._stop_message()))
            return None

        data: dict[str, Any] = {}
        propagate = False
        for key, field_nodes in fields.items():
            if key in unfinished:
                self._record(
                    GraphQLError(
                        self._stop_message(),
                        Path(None, key),
                        [node.loc for node in field_nodes if node.loc is not None],
                    )
                )
                field_def = self.registry.get_field(root_type, field_nodes[0].name)
                if field_def is not None and is_non_null(field_def.type):
                    propagate = True
                data[key] = None
                continue
            exc = tasks[key].exception()
            if isinstance(exc, _PropagateNull):
                propagate = True
            elif exc is not None:
                raise exc
            else:
                data[key] = tasks[key].result()
        if propagate:
            return None
        return data

    async def _execute_fields(
        self, parent_type: ObjectType, source: Any, fields: FieldGroups, path: Path | None
    ) -> dict[str, Any]:
        keys = list(fields)
        results = await asyncio.gather(
            *(self._execute_field(parent_type, source, fields[key], Path(path, key)) for key in keys),
            return_exceptions=True,
        )
        data: dict[str, Any] = {}
        propagate = False
        for key, result in zip(keys, results):
            if isinstance(result, _PropagateNull):
                propagate = True
            elif isinstance(result, BaseException):
                raise result
            else:
                data[key] = result
        if propagate:
            raise _PropagateNull()
        return data

    async def _execute_field(
        self, parent_type: ObjectType, source: Any, field_nodes: Sequence[FieldNode], path: Path
    ) -> Any:
        node = field_nodes[0]
        field_def = self.registry.get_field(parent_type, node.name)
        if field_def is None:
            self._record(
                FieldNotFoundError(
                    f'Cannot query field "{node.name}" on type "{parent_type.name}".',
                    path,
                    [n.loc for n in field_nodes if n.loc is not None],
                )
            )
            return None

        info = _FieldInfo(parent_type, field_def, field_nodes)
        try:
            if field_def is TYPENAME_META_FIELD:
                result = parent_type.name
            else:
                args = coerce_arguments(
                    field_def.args,
                    node.arguments,
                    self.registry,
                    self.context.variable_values,
                    self.settings.unknown_input_fields,
                )
                result = await self._resolve(info, source, args)
            return await self._complete_value(field_def.type, info, path, result)
        except GraphQLError as error:
            return self._handle_field_error(error, field_def.type, info, path)
        except _PropagateNull:
            if is_non_null(field_def.type):
                raise
            return None

    def _handle_field_error(self, error: GraphQLError, return_type: TypeRef, info: _FieldInfo, path: Path) -> None:
        self._record(error.with_location(path, info.locations))
        if is_non_null(return_type):
            raise _PropagateNull()
        return None

    # ============================================================================
    # Resolvers
    # ============================================================================

    async def _resolve(self, info: _FieldInfo, source: Any, args: dict[str, Any]) -> Any:
        if self._should_stop():
            raise asyncio.CancelledError()

        resolver = info.field_def.resolve
        try:
            if resolver is None:
                result = self._default_resolve(info.field_def, source, args)
            elif self.settings.sync_resolvers_in_threads and not inspect.iscoroutinefunction(resolver):
                result = await asyncio.to_thread(resolver, source, args, self.context)
            else:
                result = resolver(source, args, self.context)
            if inspect.isawaitable(result):
                result = await result
        except GraphQLError:
            raise
        except Exception as e:
            logger.error(f"Resolver for {info.label} failed: {type(e).__name__}: {e}", exc_info=True)
            raise ResolverError(str(e) or type(e).__name__, original_error=e) from e

        if isinstance(result, GraphQLError):
            raise result
        if isinstance(result, Exception):
            raise ResolverError(str(result) or type(result).__name__, original_error=result)
        return result

    @staticmethod
    def _default_resolve(field_def: Field, source: Any, args: dict[str, Any]) -> Any:
        """Read the field's identifier (or public name) from a mapping or attribute."""
        key = field_def.source or field_def.name
        if isinstance(source, Mapping):
            if key in source:
                return source[key]
            return source.get(field_def.name)
        value = getattr(source, key, Undefined)
        if value is Undefined:
            value = getattr(source, field_def.name, None)
        if inspect.ismethod(value):
            return value(**args)
        return value

    # ============================================================================
    # Value Completion
    # ============================================================================

    async def _complete_value(self, return_type: TypeRef, info: _FieldInfo, path: Path, result: Any) -> Any:
        if isinstance(return_type, NonNullType):
            completed = await self._complete_value(return_type.of_type, info, path, result)
            if completed is None:
                raise NonNullViolationError(f"Cannot return null for non-nullable field {info.label}.")
            return completed

        if result is None:
            return None

        if isinstance(return_type, ListType):
            return await self._complete_list_value(return_type, info, path, result)

        type_def = self.registry.lookup(return_type)
        if type_def.is_leaf:
            return self._complete_leaf_value(type_def, result)
        if type_def.is_abstract:
            object_type = await resolve_concrete_type(self.registry, type_def, result)  # type: ignore[arg-type]
            return await self._complete_object_value(object_type, info, path, result)
        if isinstance(type_def, ObjectType):
            if type_def.is_type_of is not None:
                try:
                    matches = type_def.is_type_of(result)
                    if inspect.isawaitable(matches):
                        matches = await matches
                except GraphQLError:
                    raise
                except Exception as e:
                    raise GraphQLError(
                        f'"{type_def.name}.is_type_of" failed: {type(e).__name__}: {e}', original_error=e
                    ) from e
                if not matches:
                    raise GraphQLError(f'Expected value of type "{type_def.name}" but got: {result!r}.')
            return await self._complete_object_value(type_def, info, path, result)

        raise GraphQLError(f'Cannot complete value of unexpected output type "{type_def.name}".')

    async def _complete_list_value(self, return_type: ListType, info: _FieldInfo, path: Path, result: Any) -> list[Any]:
        if isinstance(result, (str, bytes, Mapping)) or not isinstance(result, Iterable):
            raise GraphQLError(
                f'Expected Iterable, but did not find one for field "{info.label}" (got {type(result).__name__}).'
            )

        item_type = return_type.of_type
        items = list(result)
        completed = await asyncio.gather(
            *(self._complete_list_item(item_type, info, path.add_key(index), item) for index, item in enumerate(items)),
            return_exceptions=True,
        )
        values: list[Any] = []
        propagate = False
        for value in completed:
            if isinstance(value, _PropagateNull):
                propagate = True
            elif isinstance(value, BaseException):
                raise value
            else:
                values.append(value)
        if propagate:
            raise _PropagateNull()
        return values

    async def _complete_list_item(self, item_type: TypeRef, info: _FieldInfo, item_path: Path, item: Any) -> Any:
        try:
            if inspect.isawaitable(item):
                try:
                    item = await item
                except GraphQLError:
                    raise
                except Exception as e:
                    raise ResolverError(str(e) or type(e).__name__, original_error=e) from e
            return await self._complete_value(item_type, info, item_path, item)
        except GraphQLError as error:
            return self._handle_field_error(error, item_type, info, item_path)
        except _PropagateNull:
            if is_non_null(item_type):
                raise
            return None

    @staticmethod
    def _complete_leaf_value(type_def: NamedType, result: Any) -> Any:
        if isinstance(type_def, EnumType):
            symbol = type_def.symbol_for(result)
            if symbol is None:
                raise SerializationError(f'Enum "{type_def.name}" cannot represent value: {result!r}')
            return symbol
        if isinstance(type_def, ScalarType):
            try:
                serialized = type_def.serialize(result)
            except Exception as e:
                raise SerializationError(str(e) or type(e).__name__, original_error=e) from e
            if serialized is None:
                raise SerializationError(
                    f"Expected `{type_def.name}.serialize({result!r})` to return non-nullish value, returned: None"
                )
            return serialized
        raise SerializationError(f'Type "{type_def.name}" is not a leaf type.')

    async def _complete_object_value(
        self, object_type: ObjectType, info: _FieldInfo, path: Path, result: Any
    ) -> dict[str, Any]:
        fields: FieldGroups = {}
        visited: set[str] = set()
        for node in info.field_nodes:
            if node.selections:
                self._collect_fields(object_type, node.selections, fields, visited)
        return await self._execute_fields(object_type, result, fields, path)

    # ============================================================================
    # Field Collection
    # ============================================================================

    def _collect_fields(
        self,
        object_type: ObjectType,
        selections: Sequence[SelectionNode],
        fields: FieldGroups | None = None,
        visited_fragments: set[str] | None = None,
    ) -> FieldGroups:
        """Group selections by response key in first-occurrence order.

        Fragments apply only when their type condition matches ``object_type``;
        ``@skip`` / ``@include`` are honoured on fields and fragments.
        """
        if fields is None:
            fields = {}
        if visited_fragments is None:
            visited_fragments = set()

        for selection in selections:
            if not self._should_include(selection):
                continue
            if isinstance(selection, FieldNode):
                fields.setdefault(selection.response_key, []).append(selection)
            elif isinstance(selection, InlineFragmentNode):
                if not self._fragment_applies(selection.type_condition, object_type):
                    continue
                self._collect_fields(object_type, selection.selections, fields, visited_fragments)
            elif isinstance(selection, FragmentSpreadNode):
                if selection.name in visited_fragments:
                    continue
                visited_fragments.add(selection.name)
                fragment = self.context.fragments.get(selection.name)
                if fragment is None:
                    logger.warning(f"Fragment {selection.name} is not defined, skipping")
                    continue
                if not self._fragment_applies(fragment.type_condition, object_type):
                    continue
                self._collect_fields(object_type, fragment.selections, fields, visited_fragments)
        return fields

    def _should_include(self, selection: SelectionNode) -> bool:
        for directive in selection.directives:
            if directive.name not in (SKIP.name, INCLUDE.name):
                continue
            definition = self.registry.get_directive(directive.name)
            args = coerce_arguments(definition.args, directive.arguments, self.registry, self.context.variable_values)
            if directive.name == SKIP.name and args["if"]:
                return False
            if directive.name == INCLUDE.name and not args["if"]:
                return False
        return True

    def _fragment_applies(self, type_condition: str | None, object_type: ObjectType) -> bool:
        if type_condition is None or type_condition == object_type.name:
            return True
        condition = self.registry.get(type_condition)
        if condition is None or not condition.is_abstract:
            return False
        return self.registry.is_possible_type(condition, object_type)

    # ============================================================================
    # State Management
    # ============================================================================

    def _record(self, error: GraphQLError) -> None:
        logger.debug(f"Field error at {error.path}: {error.message}")
        self.errors.append(error)

    def _stop_message(self) -> str:
        if self._cancellation_reason == "timeout":
            return f"Execution timed out after {self.settings.timeout} seconds."
        return f"Execution cancelled: {self._cancellation_reason or 'stopped'}."

    async def _cleanup_execution(self) -> None:
        """Cancel remaining tasks and settle the final state."""
        if self._active_tasks:
            self._cancel_all_tasks(self._active_tasks)
            await asyncio.gather(*self._active_tasks, return_exceptions=True)

        if self._should_stop():
            self._state = _ExecutionState.STOPPED
        else:
            self._state = _ExecutionState.COMPLETED

    def _cancel_all_tasks(self, tasks: list[asyncio.Task[Any]]) -> None:
        for task in tasks:
            if not task.done():
                task.cancel()

    def force_stop(self, reason: str = "user") -> None:
        """Abandon in-flight resolvers and stop scheduling new ones. Idempotent."""
        if self._state in (_ExecutionState.STOPPING, _ExecutionState.STOPPED):
            return

        self._state = _ExecutionState.STOPPING
        self._cancellation_reason = reason
        logger.debug(f"STOP_TRACE: Cancelling {len(self._active_tasks)} active tasks ({reason})")
        self._cancel_all_tasks(self._active_tasks)

    @property
    def state(self) -> _ExecutionState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state == _ExecutionState.RUNNING

    @property
    def is_stopped(self) -> bool:
        return self._state == _ExecutionState.STOPPED

    @property
    def cancellation_reason(self) -> str | None:
        return self._cancellation_reason

    def _should_stop(self) -> bool:
        return self._state in (_ExecutionState.STOPPING, _ExecutionState.STOPPED)


# ============================================================================
# Entry points
# ============================================================================


def build_execution_context(
    registry: TypeRegistry,
    operation: OperationDefinitionNode,
    root_value: Any = None,
    variable_values: Mapping[str, Any] | None = None,
    fragments: Mapping[str, FragmentDefinitionNode] | Sequence[FragmentDefinitionNode] | None = None,
    context_value: Any = None,
    settings: ExecutionSettings | None = None,
) -> ExecutionContext:
    """Bundle one request's inputs; variable defaults fill in unsupplied variables."""
    variables: dict[str, Any] = {}
    for definition in operation.variable_definitions:
        if definition.default_value is not Undefined:
            variables[definition.name] = definition.default_value
    variables.update(variable_values or {})

    if fragments is None:
        fragment_map: dict[str, FragmentDefinitionNode] = {}
    elif isinstance(fragments, Mapping):
        fragment_map = dict(fragments)
    else:
        fragment_map = {fragment.name: fragment for fragment in fragments}

    return ExecutionContext(
        registry=registry,
        operation=operation,
        variable_values=MappingProxyType(variables),
        fragments=MappingProxyType(fragment_map),
        root_value=root_value,
        context_value=context_value,
        settings=settings or ExecutionSettings(),
    )


async def execute(
    registry: TypeRegistry,
    operation: OperationDefinitionNode,
    root_value: Any = None,
    variable_values: Mapping[str, Any] | None = None,
    fragments: Mapping[str, FragmentDefinitionNode] | Sequence[FragmentDefinitionNode] | None = None,
    context_value: Any = None,
    settings: ExecutionSettings | None = None,
) -> ExecutionResult:
    """Execute ``operation`` against ``registry`` and return ``{data, errors}``."""
    context = build_execution_context(
        registry, operation, root_value, variable_values, fragments, context_value, settings
    )
    return await GraphExecutor(context).execute()


def execute_sync(
    registry: TypeRegistry,
    operation: OperationDefinitionNode,
    root_value: Any = None,
    variable_values: Mapping[str, Any] | None = None,
    fragments: Mapping[str, FragmentDefinitionNode] | Sequence[FragmentDefinitionNode] | None = None,
    context_value: Any = None,
    settings: ExecutionSettings | None = None,
) -> ExecutionResult:
    """Run :func:`execute` on a fresh event loop; not for use inside a running loop."""
    return asyncio.run(
        execute(registry, operation, root_value, variable_values, fragments, context_value, settings)
    )


__all__ = [
    "ExecutionContext",
    "ExecutionResult",
    "GraphExecutor",
    "build_execution_context",
    "execute",
    "execute_sync",
]
