import pytest

from typegraph.graph_executor import execute
from typegraph.introspection import print_value
from typegraph.language import FieldNode, InlineFragmentNode, query
from typegraph.type_definitions import (
    Argument,
    EnumType,
    EnumValue,
    Field,
    InputField,
    InputObjectType,
    ObjectType,
    list_of,
    non_null,
)
from typegraph.type_registry import TypeRegistry


def _type_ref_selection(depth: int = 3) -> list[FieldNode]:
    selections = [FieldNode("kind"), FieldNode("name")]
    if depth:
        selections.append(FieldNode("ofType", selections=_type_ref_selection(depth - 1)))
    return selections


@pytest.fixture
def catalog_registry():
    """Registry with deprecations, defaults and an input object."""
    status = EnumType(
        "Status",
        {"ACTIVE": EnumValue(1), "LEGACY": EnumValue(2, deprecation_reason="Use ACTIVE")},
    )
    filt = InputObjectType(
        "Filter",
        fields={"status": InputField("Status", default_value="ACTIVE"), "tags": InputField(list_of("String"))},
    )
    product = ObjectType(
        "Product",
        description="Something for sale.",
        fields={
            "sku": Field(non_null("ID")),
            "old_price": Field("Float", deprecation_reason="Use price"),
            "price": Field("Float"),
        },
    )
    query_type = ObjectType(
        "Query",
        fields={
            "products": Field(
                non_null(list_of(non_null("Product"))),
                args={"filter": Argument("Filter"), "limit": Argument("Int", default_value=10)},
            )
        },
    )
    return TypeRegistry.build(query_type, types=[status, filt, product])


class TestSchemaIntrospection:
    """Tests for __schema queries."""

    @pytest.mark.asyncio
    async def test_root_types(self, star_wars_registry):
        op = query(
            FieldNode(
                "__schema",
                selections=[
                    FieldNode("queryType", selections=[FieldNode("name")]),
                    FieldNode("mutationType", selections=[FieldNode("name")]),
                ],
            )
        )
        result = await execute(star_wars_registry, op)

        assert result.errors == []
        assert result.data == {"__schema": {"queryType": {"name": "Query"}, "mutationType": None}}

    @pytest.mark.asyncio
    async def test_types_list_every_registered_type(self, star_wars_registry):
        op = query(FieldNode("__schema", selections=[FieldNode("types", selections=[FieldNode("name")])]))
        result = await execute(star_wars_registry, op)

        names = {t["name"] for t in result.data["__schema"]["types"]}
        assert {"Query", "Character", "Human", "Droid", "Episode", "String", "__Type"} <= names
        assert len(names) == len(star_wars_registry)

    @pytest.mark.asyncio
    async def test_directives(self, star_wars_registry):
        op = query(
            FieldNode(
                "__schema",
                selections=[
                    FieldNode(
                        "directives",
                        selections=[
                            FieldNode("name"),
                            FieldNode("locations"),
                            FieldNode("args", selections=[FieldNode("name"), FieldNode("defaultValue")]),
                        ],
                    )
                ],
            )
        )
        result = await execute(star_wars_registry, op)

        directives = {d["name"]: d for d in result.data["__schema"]["directives"]}
        assert directives["skip"]["locations"] == ["FIELD", "FRAGMENT_SPREAD", "INLINE_FRAGMENT"]
        assert directives["deprecated"]["args"] == [{"name": "reason", "defaultValue": '"No longer supported"'}]


class TestTypeIntrospection:
    """Tests for __type queries."""

    @pytest.mark.asyncio
    async def test_object_type(self, star_wars_registry):
        op = query(
            FieldNode(
                "__type",
                arguments={"name": "Droid"},
                selections=[
                    FieldNode("kind"),
                    FieldNode("name"),
                    FieldNode("interfaces", selections=[FieldNode("name")]),
                    FieldNode(
                        "fields", selections=[FieldNode("name"), FieldNode("type", selections=_type_ref_selection())]
                    ),
                ],
            )
        )
        result = await execute(star_wars_registry, op)

        droid = result.data["__type"]
        assert droid["kind"] == "OBJECT"
        assert droid["interfaces"] == [{"name": "Character"}]
        fields = {f["name"]: f["type"] for f in droid["fields"]}
        assert list(fields) == ["id", "name", "friends", "appearsIn", "primaryFunction"]
        assert fields["id"] == {
            "kind": "NON_NULL",
            "name": None,
            "ofType": {"kind": "SCALAR", "name": "String", "ofType": None},
        }
        assert fields["friends"]["kind"] == "LIST"
        assert fields["friends"]["ofType"] == {"kind": "INTERFACE", "name": "Character", "ofType": None}

    @pytest.mark.asyncio
    async def test_unknown_type_is_null(self, star_wars_registry):
        op = query(FieldNode("__type", arguments={"name": "Wookiee"}, selections=[FieldNode("name")]))
        result = await execute(star_wars_registry, op)
        assert result.data == {"__type": None}
        assert result.errors == []

    @pytest.mark.asyncio
    async def test_possible_types(self, star_wars_registry):
        op = query(
            FieldNode(
                "__type",
                arguments={"name": "Character"},
                selections=[FieldNode("kind"), FieldNode("possibleTypes", selections=[FieldNode("name")])],
            )
        )
        result = await execute(star_wars_registry, op)

        assert result.data == {
            "__type": {"kind": "INTERFACE", "possibleTypes": [{"name": "Human"}, {"name": "Droid"}]}
        }

    @pytest.mark.asyncio
    async def test_enum_values_and_deprecation(self, catalog_registry):
        values = [FieldNode("name"), FieldNode("isDeprecated"), FieldNode("deprecationReason")]
        op = query(
            FieldNode(
                "__type",
                alias="current",
                arguments={"name": "Status"},
                selections=[FieldNode("enumValues", selections=values)],
            ),
            FieldNode(
                "__type",
                alias="all",
                arguments={"name": "Status"},
                selections=[FieldNode("enumValues", arguments={"includeDeprecated": True}, selections=values)],
            ),
        )
        result = await execute(catalog_registry, op)

        assert result.data["current"]["enumValues"] == [
            {"name": "ACTIVE", "isDeprecated": False, "deprecationReason": None}
        ]
        assert result.data["all"]["enumValues"][1] == {
            "name": "LEGACY",
            "isDeprecated": True,
            "deprecationReason": "Use ACTIVE",
        }

    @pytest.mark.asyncio
    async def test_deprecated_fields_hidden_by_default(self, catalog_registry):
        op = query(
            FieldNode(
                "__type",
                arguments={"name": "Product"},
                selections=[FieldNode("description"), FieldNode("fields", selections=[FieldNode("name")])],
            )
        )
        result = await execute(catalog_registry, op)

        assert result.data["__type"]["description"] == "Something for sale."
        assert result.data["__type"]["fields"] == [{"name": "sku"}, {"name": "price"}]

    @pytest.mark.asyncio
    async def test_arguments_and_input_fields(self, catalog_registry):
        input_value = [FieldNode("name"), FieldNode("defaultValue")]
        op = query(
            FieldNode(
                "__type",
                alias="query",
                arguments={"name": "Query"},
                selections=[FieldNode("fields", selections=[FieldNode("args", selections=input_value)])],
            ),
            FieldNode(
                "__type",
                alias="filter",
                arguments={"name": "Filter"},
                selections=[FieldNode("kind"), FieldNode("inputFields", selections=input_value)],
            ),
        )
        result = await execute(catalog_registry, op)

        assert result.errors == []
        assert result.data["query"]["fields"][0]["args"] == [
            {"name": "filter", "defaultValue": None},
            {"name": "limit", "defaultValue": "10"},
        ]
        assert result.data["filter"] == {
            "kind": "INPUT_OBJECT",
            "inputFields": [{"name": "status", "defaultValue": "ACTIVE"}, {"name": "tags", "defaultValue": None}],
        }

    @pytest.mark.asyncio
    async def test_typename_on_abstract_field(self, star_wars_registry):
        op = query(
            FieldNode(
                "hero",
                selections=[FieldNode("__typename"), InlineFragmentNode("Droid", [FieldNode("primaryFunction")])],
            )
        )
        result = await execute(star_wars_registry, op)

        assert result.data == {"hero": {"__typename": "Droid", "primaryFunction": "Astromech"}}


class TestPrintValue:
    """Tests for default value literals."""

    def test_scalars(self, catalog_registry):
        assert print_value(10, "Int", catalog_registry) == "10"
        assert print_value("a\"b", "String", catalog_registry) == '"a\\"b"'
        assert print_value(True, "Boolean", catalog_registry) == "true"
        assert print_value(None, "Int", catalog_registry) == "null"

    def test_lists_and_input_objects(self, catalog_registry):
        assert print_value(["a", "b"], list_of("String"), catalog_registry) == '["a", "b"]'
        assert print_value({"status": "LEGACY", "tags": ["x"]}, "Filter", catalog_registry) == (
            '{status: LEGACY, tags: ["x"]}'
        )

    def test_enum_internal_value(self, catalog_registry):
        assert print_value(2, "Status", catalog_registry) == "LEGACY"
