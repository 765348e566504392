import logging
from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Any, Literal

from typegraph.errors import CoercionError, MissingVariableError
from typegraph.language import VariableNode
from typegraph.path import PathKey
from typegraph.type_definitions import (
    Argument,
    EnumType,
    InputObjectType,
    ListType,
    NonNullType,
    ScalarType,
    TypeRef,
)
from typegraph.undefined import Undefined

if TYPE_CHECKING:
    from typegraph.type_registry import TypeRegistry

logger = logging.getLogger(__name__)

UnknownFieldPolicy = Literal["reject", "ignore"]


def describe_input_path(input_path: Sequence[PathKey]) -> str:
    """Render an input path such as ``["ids", 1, "name"]`` as ``ids[1].name``."""
    parts: list[str] = []
    for key in input_path:
        if isinstance(key, int):
            parts.append(f"[{key}]")
        elif parts:
            parts.append(f".{key}")
        else:
            parts.append(key)
    return "".join(parts)


def _error(message: str, input_path: Sequence[PathKey], original_error: BaseException | None = None) -> CoercionError:
    if input_path:
        message = f'{message} (at "{describe_input_path(input_path)}")'
    return CoercionError(message, input_path, original_error=original_error)


def _aggregate(failures: list[CoercionError], input_path: Sequence[PathKey]) -> CoercionError:
    if len(failures) == 1:
        return failures[0]
    return CoercionError("; ".join(f.message for f in failures), input_path, errors=failures)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def coerce_input_value(
    raw: Any,
    type_ref: TypeRef,
    registry: "TypeRegistry",
    variables: Mapping[str, Any] | None = None,
    unknown_fields: UnknownFieldPolicy = "reject",
    input_path: Sequence[PathKey] = (),
) -> Any:
    """Coerce a raw literal or variable reference into the internal value for ``type_ref``.

    Returns ``Undefined`` when the raw value is a reference to a variable that was
    not supplied and the type allows it to be left out.

    Raises:
        CoercionError: when the value does not fit the type. When several list
            elements or input fields fail, every leaf failure is in ``errors``.
    """
    variables = variables or {}
    if isinstance(raw, VariableNode):
        if raw.name in variables:
            raw = variables[raw.name]
        elif isinstance(type_ref, NonNullType):
            raise MissingVariableError(raw.name, str(type_ref))
        else:
            return Undefined

    if isinstance(type_ref, NonNullType):
        if raw is None:
            raise _error(f'Expected non-null value of type "{type_ref}", found null; value required.', input_path)
        return coerce_input_value(raw, type_ref.of_type, registry, variables, unknown_fields, input_path)

    if raw is None:
        return None

    if isinstance(type_ref, ListType):
        # A single value where a list is expected is treated as a one-element list.
        items = raw if _is_sequence(raw) else [raw]
        coerced: list[Any] = []
        failures: list[CoercionError] = []
        for index, item in enumerate(items):
            try:
                value = coerce_input_value(
                    item, type_ref.of_type, registry, variables, unknown_fields, [*input_path, index]
                )
            except CoercionError as exc:
                failures.extend(exc.errors)
                continue
            coerced.append(None if value is Undefined else value)
        if failures:
            raise _aggregate(failures, input_path)
        return coerced

    type_def = registry.lookup(type_ref)

    if isinstance(type_def, ScalarType):
        try:
            return type_def.parse_value(raw)
        except Exception as exc:
            raise _error(f'Expected type "{type_def.name}", found {raw!r}; {exc}', input_path, exc) from exc

    if isinstance(type_def, EnumType):
        entry = type_def.value_for(raw) if isinstance(raw, str) else None
        if entry is None:
            raise _error(f'Value {raw!r} does not exist in "{type_def.name}" enum.', input_path)
        return entry.value

    if isinstance(type_def, InputObjectType):
        return _coerce_input_object(raw, type_def, registry, variables, unknown_fields, input_path)

    raise _error(f'Type "{type_def.name}" is not an input type.', input_path)


def _coerce_input_object(
    raw: Any,
    type_def: InputObjectType,
    registry: "TypeRegistry",
    variables: Mapping[str, Any],
    unknown_fields: UnknownFieldPolicy,
    input_path: Sequence[PathKey],
) -> dict[str, Any]:
    if not isinstance(raw, Mapping):
        raise _error(f'Expected type "{type_def.name}" to be an object, found {raw!r}.', input_path)

    coerced: dict[str, Any] = {}
    failures: list[CoercionError] = []
    for name, input_field in type_def.fields.items():
        field_path = [*input_path, name]
        try:
            value = Undefined
            field_raw = raw.get(name, Undefined)
            if isinstance(field_raw, VariableNode) and field_raw.name not in variables:
                field_raw = Undefined
            if field_raw is not Undefined:
                value = coerce_input_value(field_raw, input_field.type, registry, variables, unknown_fields, field_path)
            if value is Undefined:
                if input_field.has_default:
                    value = coerce_input_value(
                        input_field.default_value, input_field.type, registry, variables, unknown_fields, field_path
                    )
                elif isinstance(input_field.type, NonNullType):
                    raise _error(
                        f'Field "{type_def.name}.{name}" of required type "{input_field.type}" was not provided.',
                        input_path,
                    )
                else:
                    continue
            coerced[input_field.source or name] = value
        except CoercionError as exc:
            failures.extend(exc.errors)

    for key in raw:
        if key in type_def.fields:
            continue
        if unknown_fields == "reject":
            failures.append(_error(f'Field "{key}" is not defined by type "{type_def.name}".', input_path))
        else:
            logger.debug(f"Ignoring unknown field {key!r} for input type {type_def.name}")

    if failures:
        raise _aggregate(failures, input_path)
    return coerced


def coerce_arguments(
    definitions: Mapping[str, Argument],
    literals: Mapping[str, Any],
    registry: "TypeRegistry",
    variables: Mapping[str, Any] | None = None,
    unknown_fields: UnknownFieldPolicy = "reject",
) -> dict[str, Any]:
    """Coerce every declared argument from the selection's literals.

    The result is keyed by each argument's Python identifier. Absent arguments
    fall back to their default; absent nullable arguments without a default are
    left out.

    Raises:
        CoercionError: listing every argument that failed.
    """
    variables = variables or {}
    coerced: dict[str, Any] = {}
    failures: list[CoercionError] = []
    for name, arg in definitions.items():
        raw = literals.get(name, Undefined)
        try:
            value = Undefined
            if isinstance(raw, VariableNode) and raw.name not in variables:
                raw = Undefined
                if not arg.has_default and isinstance(arg.type, NonNullType):
                    raise MissingVariableError(literals[name].name, str(arg.type))
            if raw is not Undefined:
                value = coerce_input_value(raw, arg.type, registry, variables, unknown_fields, [name])
            if value is Undefined:
                if arg.has_default:
                    value = coerce_input_value(arg.default_value, arg.type, registry, variables, unknown_fields, [name])
                elif isinstance(arg.type, NonNullType):
                    raise CoercionError(f'Argument "{name}" of required type "{arg.type}" was not provided.', [name])
                else:
                    continue
            coerced[arg.source or name] = value
        except CoercionError as exc:
            failures.extend(exc.errors)
    if failures:
        raise _aggregate(failures, ())
    return coerced


__all__ = ["UnknownFieldPolicy", "coerce_input_value", "coerce_arguments", "describe_input_path"]
