import pytest

from typegraph.errors import NonNullViolationError
from typegraph.graph_executor import execute
from typegraph.language import FieldNode, query
from typegraph.type_definitions import Field, ObjectType, list_of, non_null
from typegraph.type_registry import TypeRegistry


def _value(value):
    return lambda parent, args, context: value


@pytest.fixture
def registry():
    """Parent objects with nullable and non-null children."""
    child = ObjectType(
        "Child",
        fields={
            "a": Field(non_null("String"), resolve=_value(None)),
            "b": Field("String", resolve=_value("ok")),
        },
    )
    strict_parent = ObjectType(
        "StrictParent",
        fields={"child": Field(non_null("Child"), resolve=_value({})), "c": Field("String", resolve=_value("c"))},
    )
    query_type = ObjectType(
        "Query",
        fields={
            "child": Field("Child", resolve=_value({})),
            "strict_child": Field(non_null("Child"), resolve=_value({})),
            "strict_parent": Field("StrictParent", resolve=_value({})),
            "sibling": Field("String", resolve=_value("still here")),
            "nullable": Field("String", resolve=_value(None)),
            "required": Field(non_null("String"), resolve=_value(None)),
            "words": Field(list_of("String"), resolve=_value(["x", object(), "z"])),
            "strict_words": Field(list_of(non_null("String")), resolve=_value(["x", None, "z"])),
            "very_strict_words": Field(non_null(list_of(non_null("String"))), resolve=_value(["x", None])),
            "lazy_words": Field(list_of("String"), resolve=_value(["x", FailingAwaitable(), "z"])),
        },
    )
    return TypeRegistry.build(query_type, types=[child, strict_parent])


class FailingAwaitable:
    """A list element that fails when awaited."""

    def __await__(self):
        raise RuntimeError("element failed")
        yield  # pragma: no cover


class TestNonNullFields:
    """Non-null violations bubble to the nearest nullable position."""

    @pytest.mark.asyncio
    async def test_nullable_parent_becomes_null(self, registry):
        op = query(FieldNode("child", selections=[FieldNode("a"), FieldNode("b")]), FieldNode("sibling"))
        result = await execute(registry, op)

        assert result.data == {"child": None, "sibling": "still here"}
        assert len(result.errors) == 1
        assert result.errors[0].path == ["child", "a"]
        assert isinstance(result.errors[0], NonNullViolationError)
        assert result.errors[0].message == "Cannot return null for non-nullable field Child.a."

    @pytest.mark.asyncio
    async def test_null_bubbles_through_non_null_parents(self, registry):
        op = query(
            FieldNode("strictParent", selections=[FieldNode("child", selections=[FieldNode("a")]), FieldNode("c")]),
            FieldNode("sibling"),
        )
        result = await execute(registry, op)

        assert result.data == {"strictParent": None, "sibling": "still here"}
        assert [e.path for e in result.errors] == [["strictParent", "child", "a"]]

    @pytest.mark.asyncio
    async def test_null_reaching_root_nulls_data(self, registry):
        op = query(FieldNode("strictChild", selections=[FieldNode("a"), FieldNode("b")]), FieldNode("sibling"))
        result = await execute(registry, op)

        assert result.data is None
        assert [e.path for e in result.errors] == [["strictChild", "a"]]

    @pytest.mark.asyncio
    async def test_legitimate_null_is_not_an_error(self, registry):
        result = await execute(registry, query(FieldNode("nullable")))

        assert result.to_dict() == {"data": {"nullable": None}, "errors": []}

    @pytest.mark.asyncio
    async def test_required_root_field_null(self, registry):
        result = await execute(registry, query(FieldNode("required"), FieldNode("sibling")))

        assert result.data is None
        assert result.errors[0].path == ["required"]


class TestListElements:
    """Element failures null the element or the list, per the element type."""

    @pytest.mark.asyncio
    async def test_failed_element_becomes_null(self, registry):
        result = await execute(registry, query(FieldNode("words")))

        assert result.data == {"words": ["x", None, "z"]}
        assert [e.path for e in result.errors] == [["words", 1]]

    @pytest.mark.asyncio
    async def test_failed_awaitable_element(self, registry):
        result = await execute(registry, query(FieldNode("lazyWords")))

        assert result.data == {"lazyWords": ["x", None, "z"]}
        assert result.errors[0].path == ["lazyWords", 1]
        assert result.errors[0].message == "element failed"

    @pytest.mark.asyncio
    async def test_non_null_element_nulls_the_list(self, registry):
        result = await execute(registry, query(FieldNode("strictWords"), FieldNode("sibling")))

        assert result.data == {"strictWords": None, "sibling": "still here"}
        assert [e.path for e in result.errors] == [["strictWords", 1]]

    @pytest.mark.asyncio
    async def test_non_null_list_of_non_null_reaches_root(self, registry):
        result = await execute(registry, query(FieldNode("veryStrictWords"), FieldNode("sibling")))

        assert result.data is None
        assert [e.path for e in result.errors] == [["veryStrictWords", 1]]
