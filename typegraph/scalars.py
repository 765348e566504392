"""Built-in scalar types.

Input values are validated in pydantic strict mode: ``"1"`` is not an Int and
``True`` is not a number. Output serialization runs in lax mode so a resolver
returning ``"42"`` or ``42.0`` still yields the Int ``42``.
"""

import math
from typing import Annotated, Any, Union

from pydantic import Field as PydanticField
from pydantic import StrictBool, StrictInt, StrictStr, TypeAdapter, ValidationError

from typegraph.type_definitions import ScalarType

GRAPHQL_MAX_INT = 2**31 - 1
GRAPHQL_MIN_INT = -(2**31)

_STRICT_INT = TypeAdapter(Annotated[int, PydanticField(strict=True, ge=GRAPHQL_MIN_INT, le=GRAPHQL_MAX_INT)])
_LAX_INT = TypeAdapter(Annotated[int, PydanticField(ge=GRAPHQL_MIN_INT, le=GRAPHQL_MAX_INT)])
_STRICT_FLOAT = TypeAdapter(Annotated[float, PydanticField(strict=True, allow_inf_nan=False)])
_LAX_FLOAT = TypeAdapter(Annotated[float, PydanticField(allow_inf_nan=False)])
_STRICT_STR = TypeAdapter(StrictStr)
_STRICT_BOOL = TypeAdapter(StrictBool)
_STRICT_ID = TypeAdapter(Union[StrictStr, StrictInt])


def _validate(adapter: TypeAdapter, type_name: str, value: Any) -> Any:
    try:
        return adapter.validate_python(value)
    except ValidationError as ve:
        detail = ve.errors()[0]["msg"] if ve.errors() else str(ve)
        raise ValueError(f"{type_name} cannot represent value {value!r}: {detail}") from ve


def serialize_int(value: Any) -> int:
    return _validate(_LAX_INT, "Int", value)


def parse_int(value: Any) -> int:
    return _validate(_STRICT_INT, "Int", value)


def serialize_float(value: Any) -> float:
    return _validate(_LAX_FLOAT, "Float", value)


def parse_float(value: Any) -> float:
    return _validate(_STRICT_FLOAT, "Float", value)


def serialize_string(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int) or (isinstance(value, float) and math.isfinite(value)):
        return str(value)
    raise ValueError(f"String cannot represent value {value!r}")


def parse_string(value: Any) -> str:
    return _validate(_STRICT_STR, "String", value)


def serialize_boolean(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) or (isinstance(value, float) and math.isfinite(value)):
        return value != 0
    raise ValueError(f"Boolean cannot represent a non boolean value {value!r}")


def parse_boolean(value: Any) -> bool:
    return _validate(_STRICT_BOOL, "Boolean", value)


def serialize_id(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    raise ValueError(f"ID cannot represent value {value!r}")


def parse_id(value: Any) -> str:
    return str(_validate(_STRICT_ID, "ID", value))


INT = ScalarType(
    "Int",
    serialize=serialize_int,
    parse_value=parse_int,
    description="The `Int` scalar type represents non-fractional signed whole numeric values "
    "between -(2^31) and 2^31 - 1.",
)

FLOAT = ScalarType(
    "Float",
    serialize=serialize_float,
    parse_value=parse_float,
    description="The `Float` scalar type represents signed double-precision finite values.",
)

STRING = ScalarType(
    "String",
    serialize=serialize_string,
    parse_value=parse_string,
    description="The `String` scalar type represents textual data as UTF-8 character sequences.",
)

BOOLEAN = ScalarType(
    "Boolean",
    serialize=serialize_boolean,
    parse_value=parse_boolean,
    description="The `Boolean` scalar type represents `true` or `false`.",
)

ID = ScalarType(
    "ID",
    serialize=serialize_id,
    parse_value=parse_id,
    description="The `ID` scalar type represents a unique identifier, accepted as a string or integer "
    "and always serialized as a string.",
)

BUILTIN_SCALARS: tuple[ScalarType, ...] = (INT, FLOAT, STRING, BOOLEAN, ID)

__all__ = [
    "GRAPHQL_MAX_INT",
    "GRAPHQL_MIN_INT",
    "INT",
    "FLOAT",
    "STRING",
    "BOOLEAN",
    "ID",
    "BUILTIN_SCALARS",
]
