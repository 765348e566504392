import inspect
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from typegraph.errors import AbstractResolutionError
from typegraph.type_definitions import InterfaceType, NamedType, ObjectType, UnionType

if TYPE_CHECKING:
    from typegraph.type_registry import TypeRegistry

logger = logging.getLogger(__name__)


async def _call_hook(abstract_type: NamedType, label: str, hook: Any, value: Any) -> Any:
    """Call a user ``resolve_type`` / ``is_type_of`` hook, awaiting it if needed."""
    try:
        result = hook(value)
        if inspect.isawaitable(result):
            result = await result
    except AbstractResolutionError:
        raise
    except Exception as e:
        logger.debug(f"{label} failed while resolving {abstract_type.name}: {type(e).__name__}: {e}")
        raise AbstractResolutionError(
            f'Abstract type "{abstract_type.name}" could not be resolved: {label} raised {type(e).__name__}: {e}',
            original_error=e,
        ) from e
    return result


async def resolve_concrete_type(
    registry: "TypeRegistry", abstract_type: InterfaceType | UnionType, value: Any
) -> ObjectType:
    """Determine which object type backs an interface- or union-typed value.

    An explicit ``resolve_type`` on the abstract type wins; its answer must be a
    member (or implementer) and must not be rejected by that type's own
    ``is_type_of``. Otherwise each candidate's ``is_type_of`` is tried in
    declaration order and the first match is returned. As a last resort a
    ``__typename`` key on a mapping value names the type.

    Raises:
        AbstractResolutionError: when no single valid object type is found.
    """
    if abstract_type.resolve_type is not None:
        resolved = await _call_hook(
            abstract_type, f"{abstract_type.name}.resolve_type", abstract_type.resolve_type, value
        )
        object_type = _ensure_object_type(registry, abstract_type, resolved)
        if object_type.is_type_of is not None and not await _call_hook(
            abstract_type, f"{object_type.name}.is_type_of", object_type.is_type_of, value
        ):
            raise AbstractResolutionError(
                f'Abstract type "{abstract_type.name}" resolved to "{object_type.name}", '
                f'but "{object_type.name}.is_type_of" rejects the value.'
            )
        return object_type

    candidates = registry.possible_types(abstract_type)
    checked_any = False
    for candidate in candidates:
        if candidate.is_type_of is None:
            continue
        checked_any = True
        if await _call_hook(abstract_type, f"{candidate.name}.is_type_of", candidate.is_type_of, value):
            return candidate

    if not checked_any and isinstance(value, Mapping) and "__typename" in value:
        return _ensure_object_type(registry, abstract_type, value["__typename"])

    logger.debug(
        f"No concrete type for {abstract_type.name} among {[c.name for c in candidates]} (value={value!r})"
    )
    raise AbstractResolutionError(
        f'Abstract type "{abstract_type.name}" must resolve to an Object type at runtime. '
        f"Either the \"{abstract_type.name}\" type should provide a resolve_type function or each possible "
        f"type should provide an is_type_of function."
        if not checked_any
        else f'Abstract type "{abstract_type.name}" could not resolve a concrete type for value {value!r}.'
    )


def _ensure_object_type(registry: "TypeRegistry", abstract_type: NamedType, resolved: Any) -> ObjectType:
    if isinstance(resolved, NamedType):
        resolved = resolved.name
    if not isinstance(resolved, str):
        raise AbstractResolutionError(
            f'Abstract type "{abstract_type.name}" must resolve to an Object type name, got {resolved!r}.'
        )
    object_type = registry.get(resolved)
    if object_type is None:
        raise AbstractResolutionError(
            f'Abstract type "{abstract_type.name}" was resolved to a type "{resolved}" that does not exist.'
        )
    if not isinstance(object_type, ObjectType):
        raise AbstractResolutionError(
            f'Abstract type "{abstract_type.name}" was resolved to a non-object type "{resolved}".'
        )
    if not registry.is_possible_type(abstract_type, object_type):
        raise AbstractResolutionError(
            f'Runtime Object type "{object_type.name}" is not a possible type for "{abstract_type.name}".'
        )
    return object_type


__all__ = ["resolve_concrete_type"]
