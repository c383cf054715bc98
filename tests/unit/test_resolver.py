"""Unit tests for multi-root conversion and reference sharing."""

from __future__ import annotations

from schema_to_ts import schema as s
from schema_to_ts import ts_nodes as ts
from schema_to_ts.converter import convert
from schema_to_ts.printer import print_node
from schema_to_ts.resolver import convert_many, install_reference_overrides, iter_child_schemas

STRING = ts.KeywordType("string")
NUMBER = ts.KeywordType("number")
UNDEFINED = ts.KeywordType("undefined")


def _aliases_by_name(result) -> dict[str, ts.TypeAliasDeclaration]:
    return {alias.name: alias for alias in result.type_aliases}


def test_shared_root_is_referenced_by_name() -> None:
    item = s.object_({"name": s.string()})
    result = convert_many({"Item": item, "Items": s.array(item)})

    aliases = _aliases_by_name(result)
    assert aliases["Item"].type == ts.TypeLiteral((ts.PropertySignature("name", STRING),))
    assert aliases["Items"].type == ts.ArrayType(ts.TypeReference("Item"))


def test_aliases_follow_root_insertion_order() -> None:
    address = s.object_({"street": s.string()})
    result = convert_many({"User": s.object_({"home": address}), "Address": address})

    assert [alias.name for alias in result.type_aliases] == ["User", "Address"]


def test_references_survive_optional_and_nullable_wrappers() -> None:
    address = s.object_({"street": s.string()})
    user = s.object_({"home": address, "work": address.optional(), "billing": address.nullable()})
    aliases = _aliases_by_name(convert_many({"Address": address, "User": user}))

    home, work, billing = aliases["User"].type.members
    assert home == ts.PropertySignature("home", ts.TypeReference("Address"))
    assert work == ts.PropertySignature(
        "work", ts.UnionType((ts.TypeReference("Address"), UNDEFINED)), optional=True
    )
    assert billing.type == ts.UnionType((ts.TypeReference("Address"), ts.LiteralType("null")))


def test_every_container_kind_resolves_to_the_shared_root() -> None:
    point = s.object_({"x": s.number()})
    wrappers = s.object_(
        {
            "optional": point.optional(),
            "nullable": point.nullable(),
            "withDefault": point.default({"x": 0}),
            "promise": point.promise(),
            "branded": point.brand("Point"),
            "refined": point.refine(lambda value: True),
            "callback": s.function([point], point),
            "byName": s.record(point),
            "byKey": s.map_(s.string(), point),
            "unique": s.set_(point),
            "merged": s.intersection(point, s.object_({})),
            "pair": s.tuple_([point]),
            "either": s.union([point, s.string()]),
        }
    )
    aliases = _aliases_by_name(convert_many({"Point": point, "Wrappers": wrappers}))

    wrappers_text = print_node(aliases["Wrappers"])
    assert "x: number" not in wrappers_text
    # callback mentions the root twice, everything else once
    assert wrappers_text.count("Point") == 14


def test_direct_self_cycle_terminates_with_reference() -> None:
    node = s.object_({"value": s.number()})
    node.shape["children"] = s.array(node)

    result = convert_many({"Node": node})

    assert result.type_aliases == (
        ts.TypeAliasDeclaration(
            name="Node",
            type=ts.TypeLiteral(
                (
                    ts.PropertySignature("value", NUMBER),
                    ts.PropertySignature("children", ts.ArrayType(ts.TypeReference("Node"))),
                )
            ),
        ),
    )


def test_mutual_cycle_between_roots() -> None:
    author = s.object_({"name": s.string()})
    book = s.object_({"title": s.string(), "author": author})
    author.shape["books"] = s.array(book)

    aliases = _aliases_by_name(convert_many({"Author": author, "Book": book}))

    assert aliases["Author"].type.members[1].type == ts.ArrayType(ts.TypeReference("Book"))
    assert aliases["Book"].type.members[1].type == ts.TypeReference("Author")


def test_lazy_self_reference_uses_root_name() -> None:
    tree = s.object_({"label": s.string()})
    tree.shape["children"] = s.array(s.lazy(lambda: tree))

    aliases = _aliases_by_name(convert_many({"Tree": tree}))

    assert aliases["Tree"].type.members[1].type == ts.ArrayType(ts.TypeReference("Tree"))


def test_native_enum_root_feeds_merged_store() -> None:
    fruit = s.native_enum({"Apple": "apple", "Banana": "banana"})
    basket = s.object_({"fruit": fruit})
    order = s.object_({"items": s.array(fruit)})

    result = convert_many({"Fruit": fruit, "Basket": basket, "Order": order})
    aliases = _aliases_by_name(result)

    assert aliases["Basket"].type.members[0].type == ts.TypeReference("Fruit")
    assert aliases["Order"].type.members[0].type == ts.ArrayType(ts.TypeReference("Fruit"))
    # The root's own clone has no hook, and each visit appends a declaration
    assert aliases["Fruit"].type == ts.KeywordType("unknown")
    assert [declaration.name for declaration in result.store.native_enums] == ["Fruit", "Fruit"]


def test_native_enum_root_without_resolving() -> None:
    fruit = s.native_enum({"Apple": "apple"})
    result = convert_many(
        {"Fruit": fruit, "Basket": s.object_({"fruit": fruit})},
        {"resolve_native_enums": False},
    )

    assert _aliases_by_name(result)["Basket"].type.members[0].type == ts.TypeReference("Fruit")
    assert result.store.native_enums == []


def test_reference_hooks_stay_on_the_callers_instances() -> None:
    address = s.object_({"street": s.string()})
    convert_many({"Address": address, "User": s.object_({"home": address})})

    assert address.override is not None
    assert convert(address).node == ts.TypeReference("Address")


def test_install_reference_overrides_handles_cycles_and_skips_unknown_instances() -> None:
    loop = s.object_({})
    loop.shape["self"] = loop
    other = s.string()
    loop.shape["other"] = other

    install_reference_overrides(loop, {loop: ts.Identifier("Loop")})

    assert loop.override is not None
    assert loop.override("anything") == ts.Identifier("Loop")
    assert other.override is None


def test_iter_child_schemas_follows_definition_order() -> None:
    first, second = s.string(), s.number()
    function_schema = s.function([first], second)

    assert iter_child_schemas(s.object_({"a": first, "b": second})) == [first, second]
    assert iter_child_schemas(s.union([second, first])) == [second, first]
    assert iter_child_schemas(function_schema) == [function_schema.parameters, second]
    assert iter_child_schemas(s.lazy(lambda: first)) == []
    assert iter_child_schemas(first) == []


def test_user_hooks_receive_the_root_name() -> None:
    seen_identifiers: list[str] = []

    def override(identifier: str) -> ts.TypeNode:
        seen_identifiers.append(identifier)
        return ts.KeywordType("string")

    user = s.object_({"id": s.with_override(s.number(), override)})
    convert_many({"User": user})

    assert seen_identifiers == ["User"]
