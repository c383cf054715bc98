"""Unit tests for the schema -> type node mapper and single-root conversion."""

from __future__ import annotations

import enum

import pytest
from hypothesis import given
from hypothesis import strategies as st

from schema_to_ts import schema as s
from schema_to_ts import ts_nodes as ts
from schema_to_ts.converter import (
    DEFAULT_IDENTIFIER,
    EnumStore,
    NativeEnumIdentifierError,
    UnsupportedSchemaKindError,
    convert,
    map_schema,
    strip_undefined_members,
)
from schema_to_ts.config import ConversionOptions

STRING = ts.KeywordType("string")
NUMBER = ts.KeywordType("number")
BOOLEAN = ts.KeywordType("boolean")
UNDEFINED = ts.KeywordType("undefined")
UNKNOWN = ts.KeywordType("unknown")
NULL = ts.LiteralType("null")


class CustomSchema(s.Schema):
    kind = "custom"


class Color(enum.Enum):
    RED = "red"
    GREEN = 2


def _node(schema: s.Schema, **kwargs) -> ts.TypeNode:
    return convert(schema, **kwargs).node


@pytest.mark.parametrize(
    ("schema_factory", "expected"),
    [
        (s.string, STRING),
        (s.number, NUMBER),
        (s.bigint, ts.KeywordType("bigint")),
        (s.boolean, BOOLEAN),
        (s.date, ts.TypeReference("Date")),
        (s.undefined, UNDEFINED),
        (s.null, NULL),
        (s.void, ts.UnionType((ts.KeywordType("void"), UNDEFINED))),
        (s.any_, ts.KeywordType("any")),
        (s.unknown, UNKNOWN),
        (s.never, ts.KeywordType("never")),
    ],
)
def test_primitive_kinds_map_to_keywords(schema_factory, expected) -> None:
    result = convert(schema_factory())
    assert result.node == expected
    assert result.store.native_enums == []


primitive_schemas = st.sampled_from(
    [s.string, s.number, s.bigint, s.boolean, s.date, s.undefined, s.null, s.void, s.any_, s.unknown, s.never]
).map(lambda factory: factory())

schema_trees = st.recursive(
    primitive_schemas,
    lambda children: st.one_of(
        children.map(s.array),
        children.map(lambda child: child.optional()),
        children.map(lambda child: child.nullable()),
        st.lists(children, min_size=1, max_size=3).map(s.union),
        st.lists(children, max_size=3).map(s.tuple_),
        st.dictionaries(st.from_regex(r"[a-z][a-z0-9_]{0,6}", fullmatch=True), children, max_size=3).map(s.object_),
    ),
    max_leaves=12,
)


@given(schema_trees)
def test_conversion_is_deterministic(schema: s.Schema) -> None:
    first = convert(schema)
    second = convert(schema)
    assert first.node == second.node
    assert first.store == second.store


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("hi", ts.LiteralType("string", "hi")),
        (42, ts.LiteralType("number", 42)),
        (1.5, ts.LiteralType("number", 1.5)),
        (True, ts.LiteralType("true")),
        (False, ts.LiteralType("false")),
    ],
)
def test_literal_picks_node_by_host_value_type(value, expected) -> None:
    assert _node(s.literal(value)) == expected


def test_object_preserves_property_order_and_optionality() -> None:
    node = _node(s.object_({"a": s.string(), "b": s.number().optional()}))

    assert node == ts.TypeLiteral(
        (
            ts.PropertySignature("a", STRING, optional=False),
            ts.PropertySignature("b", ts.UnionType((NUMBER, UNDEFINED)), optional=True),
        )
    )


def test_object_copies_description_and_marks_self_reported_optional_children() -> None:
    node = _node(
        s.object_(
            {
                "name": s.string().describe("Display name"),
                "extra": s.any_(),
                "maybe": s.union([s.string(), s.undefined()]),
            }
        )
    )

    name, extra, maybe = node.members
    assert name.doc == "Display name"
    assert name.optional is False
    assert extra.optional is True
    assert maybe.optional is True


def test_array_and_tuple() -> None:
    assert _node(s.array(s.string())) == ts.ArrayType(STRING)
    assert _node(s.tuple_([s.string(), s.number()])) == ts.TupleType((STRING, NUMBER))


def test_enum_maps_to_union_of_string_literals_in_order() -> None:
    assert _node(s.enum_(["a", "b", "c"])) == ts.UnionType(
        (ts.string_literal("a"), ts.string_literal("b"), ts.string_literal("c"))
    )


def test_union_and_discriminated_union() -> None:
    assert _node(s.union([s.string(), s.number()])) == ts.UnionType((STRING, NUMBER))

    circle = s.object_({"kind": s.literal("circle"), "radius": s.number()})
    square = s.object_({"kind": s.literal("square"), "size": s.number()})
    node = _node(s.discriminated_union("kind", [circle, square]))

    assert isinstance(node, ts.UnionType)
    assert [member.members[0].type for member in node.types] == [
        ts.string_literal("circle"),
        ts.string_literal("square"),
    ]


def test_effects_and_brands_are_transparent() -> None:
    assert _node(s.string().refine(lambda value: bool(value))) == STRING
    assert _node(s.number().transform(str)) == NUMBER
    assert _node(s.string().brand("UserId")) == STRING


def test_optional_and_nullable_wrap_inner_type() -> None:
    assert _node(s.string().optional()) == ts.UnionType((STRING, UNDEFINED))
    assert _node(s.string().nullable()) == ts.UnionType((STRING, NULL))


def test_record_ignores_key_schema_and_uses_string_index() -> None:
    node = _node(s.record(s.number(), key=s.enum_(["a", "b"])))
    assert node == ts.TypeLiteral((ts.IndexSignature("x", STRING, NUMBER),))


def test_map_set_intersection_and_promise() -> None:
    assert _node(s.map_(s.string(), s.number())) == ts.TypeReference("Map", (STRING, NUMBER))
    assert _node(s.set_(s.string())) == ts.TypeReference("Set", (STRING,))
    assert _node(s.intersection(s.string(), s.number())) == ts.IntersectionType((STRING, NUMBER))
    assert _node(s.promise(s.boolean())) == ts.TypeReference("Promise", (BOOLEAN,))


def test_function_has_positional_params_plus_one_rest_param() -> None:
    node = _node(s.function([s.string(), s.number()], s.boolean()))

    assert node == ts.FunctionType(
        parameters=(
            ts.Parameter("args_0", STRING),
            ts.Parameter("args_1", NUMBER),
            ts.Parameter("args_2", ts.ArrayType(UNKNOWN), rest=True),
        ),
        return_type=BOOLEAN,
    )


def test_function_without_declared_params() -> None:
    node = _node(s.function())
    assert node.parameters == (ts.Parameter("args_0", ts.ArrayType(UNKNOWN), rest=True),)
    assert node.return_type == UNKNOWN


def test_default_strips_undefined_from_optional_inner() -> None:
    assert _node(s.string().optional().default("x")) == STRING


def test_default_strips_every_direct_undefined_member() -> None:
    schema = s.union([s.string(), s.undefined(), s.number(), s.undefined()]).default("x")
    assert _node(schema) == ts.UnionType((STRING, NUMBER))


def test_default_edge_cases() -> None:
    assert _node(s.string().default("x")) == STRING
    assert _node(s.undefined().default(None)) == UNDEFINED
    assert _node(s.union([s.undefined(), s.undefined()]).default(None)) == ts.KeywordType("never")


def test_default_property_is_optional_with_the_inner_type() -> None:
    node = _node(
        s.object_(
            {
                "greeting": s.string().default("hi"),
                "farewell": s.string().optional().default("bye"),
            }
        )
    )

    assert node.members == (
        ts.PropertySignature("greeting", STRING, optional=True),
        ts.PropertySignature("farewell", STRING, optional=True),
    )


def test_lazy_and_intersection_properties_follow_their_parts() -> None:
    node = _node(
        s.object_(
            {
                "maybe": s.lazy(lambda: s.string().optional()),
                "always": s.lazy(lambda: s.string()),
                "both": s.intersection(s.any_(), s.unknown()),
                "one": s.intersection(s.any_(), s.string()),
            }
        )
    )

    assert [member.optional for member in node.members] == [True, False, True, False]


def test_strip_undefined_members_does_not_touch_the_input_node() -> None:
    original = ts.UnionType((STRING, UNDEFINED, NUMBER))
    stripped = strip_undefined_members(original)
    assert stripped == ts.UnionType((STRING, NUMBER))
    assert original.types == (STRING, UNDEFINED, NUMBER)


def test_lazy_without_override_references_the_identifier() -> None:
    tree = s.lazy(lambda: s.string())
    assert _node(tree) == ts.TypeReference(DEFAULT_IDENTIFIER)
    assert convert(tree, "Tree").node == ts.TypeReference("Tree")


def test_override_short_circuits_kind_logic_and_receives_identifier() -> None:
    seen_identifiers: list[str] = []

    def override(identifier: str) -> ts.TypeNode:
        seen_identifiers.append(identifier)
        return ts.TypeReference("Custom")

    schema = s.with_override(s.object_({"a": s.string()}), override)
    assert convert(schema, "Root").node == ts.TypeReference("Custom")
    assert seen_identifiers == ["Root"]


def test_override_identifier_results_become_references() -> None:
    assert _node(s.with_override(s.lazy(lambda: s.string()), lambda _: ts.Identifier("Node"))) == ts.TypeReference("Node")
    assert _node(s.with_override(s.string(), lambda _: "Alias")) == ts.TypeReference("Alias")


def test_native_enum_without_override_is_unknown() -> None:
    result = convert(s.native_enum({"Apple": "apple"}))
    assert result.node == UNKNOWN
    assert result.store.native_enums == []


def test_native_enum_materialises_declaration_into_store() -> None:
    fruit = s.with_override(s.native_enum({"Apple": "apple", "Two": 2}), lambda _: ts.Identifier("Fruit"))
    result = convert(fruit)

    assert result.node == ts.TypeReference("Fruit")
    assert result.store.native_enums == [
        ts.EnumDeclaration(
            name="Fruit",
            members=(
                ts.EnumMember("Apple", ts.string_literal("apple")),
                ts.EnumMember("Two", ts.numeric_literal(2)),
            ),
        )
    ]


def test_native_enum_from_python_enum_class() -> None:
    color = s.with_override(s.native_enum(Color), lambda _: "Color")
    result = convert(color)
    assert result.store.native_enums[0].members == (
        ts.EnumMember("RED", ts.string_literal("red")),
        ts.EnumMember("GREEN", ts.numeric_literal(2)),
    )


def test_native_enum_override_must_return_identifier_when_resolving() -> None:
    fruit = s.with_override(s.native_enum({"Apple": "apple"}), lambda _: ts.TypeReference("Fruit"))
    with pytest.raises(NativeEnumIdentifierError, match="must return an identifier"):
        convert(fruit)


def test_native_enum_reference_only_when_not_resolving() -> None:
    fruit = s.with_override(s.native_enum({"Apple": "apple"}), lambda _: ts.Identifier("Fruit"))
    result = convert(fruit, options={"resolve_native_enums": False})
    assert result.node == ts.TypeReference("Fruit")
    assert result.store.native_enums == []

    typed = s.with_override(s.native_enum({"Apple": "apple"}), lambda _: ts.TypeReference("Fruits"))
    assert convert(typed, options=ConversionOptions(resolve_native_enums=False)).node == ts.TypeReference("Fruits")


def test_enum_store_keeps_duplicates_within_one_conversion() -> None:
    # Known sharp edge: the same enum reached twice is declared twice
    fruit = s.with_override(s.native_enum({"Apple": "apple"}), lambda _: ts.Identifier("Fruit"))
    result = convert(s.object_({"first": fruit, "second": fruit}))

    assert [declaration.name for declaration in result.store.native_enums] == ["Fruit", "Fruit"]


def test_unknown_kind_falls_back_to_any() -> None:
    assert _node(CustomSchema()) == ts.KeywordType("any")
    assert _node(s.array(CustomSchema())) == ts.ArrayType(ts.KeywordType("any"))


def test_unknown_kind_raises_in_strict_mode() -> None:
    with pytest.raises(UnsupportedSchemaKindError, match="custom"):
        convert(CustomSchema(), options={"strict": True})


def test_map_schema_writes_into_the_given_store() -> None:
    store = EnumStore()
    fruit = s.with_override(s.native_enum({"Apple": "apple"}), lambda _: ts.Identifier("Fruit"))
    node = map_schema(s.array(fruit), "Basket", store, ConversionOptions())

    assert node == ts.ArrayType(ts.TypeReference("Fruit"))
    assert len(store.native_enums) == 1


def test_convert_does_not_mutate_the_schema() -> None:
    child = s.string()
    root = s.object_({"child": child})
    convert(root)

    assert root.shape == {"child": child}
    assert root.override is None
    assert child.override is None
