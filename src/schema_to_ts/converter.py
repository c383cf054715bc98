"""Convert a schema graph into a TypeScript type node.

`convert()` handles one root. The mapper walks the schema depth-first and
builds immutable type nodes; auxiliary enum declarations discovered on the
way land in the returned `EnumStore`.
"""
from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from schema_to_ts import ts_nodes as ts
from schema_to_ts.config import ConversionOptions, OptionsInput, resolve_options
from schema_to_ts.schema import Schema, SchemaKind

logger = logging.getLogger(__name__)

DEFAULT_IDENTIFIER = "Identifier"


# ============================================================
# Errors
# ============================================================

class SchemaConversionError(RuntimeError):
    """Base error for conversions that cannot produce a type."""


class NativeEnumIdentifierError(SchemaConversionError):
    """A native enum override returned something other than an identifier."""


class UnsupportedSchemaKindError(SchemaConversionError):
    """Strict mode met a schema kind it has no mapping for."""


# ============================================================
# Enum store + results
# ============================================================

@dataclass
class EnumStore:
    """Enum declarations collected during one conversion, in append order. Not deduplicated."""
    native_enums: list[ts.EnumDeclaration] = field(default_factory=list)

    def add(self, declaration: ts.EnumDeclaration) -> None:
        self.native_enums.append(declaration)

    @classmethod
    def merged(cls, stores: Iterable[EnumStore]) -> EnumStore:
        merged_store = cls()
        for store in stores:
            merged_store.native_enums.extend(store.native_enums)
        return merged_store


@dataclass(frozen=True)
class ConversionResult:
    node: ts.TypeNode
    store: EnumStore


# ============================================================
# Override hook
# ============================================================

OverrideResult = Optional[ts.Identifier | ts.TypeNode]


def call_override(schema: Schema, identifier: str) -> OverrideResult:
    """Run the schema's override hook, if any. A plain string result becomes an Identifier."""
    hook = getattr(schema, "override", None)
    if hook is None:
        return None
    override_result = hook(identifier)
    if isinstance(override_result, str):
        return ts.Identifier(override_result)
    return override_result


# ============================================================
# Node mapper
# ============================================================

PRIMITIVE_TYPE_FACTORIES: dict[str, Callable[[], ts.TypeNode]] = {
    SchemaKind.STRING: lambda: ts.keyword("string"),
    SchemaKind.NUMBER: lambda: ts.keyword("number"),
    SchemaKind.BIGINT: lambda: ts.keyword("bigint"),
    SchemaKind.BOOLEAN: lambda: ts.keyword("boolean"),
    SchemaKind.DATE: lambda: ts.type_reference("Date"),
    SchemaKind.UNDEFINED: ts.undefined_keyword,
    SchemaKind.NULL: ts.null_literal,
    # Omitted return values are undefined in most runtimes
    SchemaKind.VOID: lambda: ts.UnionType((ts.keyword("void"), ts.undefined_keyword())),
    SchemaKind.ANY: lambda: ts.keyword("any"),
    SchemaKind.UNKNOWN: ts.unknown_keyword,
    SchemaKind.NEVER: lambda: ts.keyword("never"),
}


@dataclass
class SchemaToTypeScriptMapper:
    """Map schema nodes to TypeScript type nodes, one kind handler per schema kind."""
    identifier: str
    store: EnumStore
    options: ConversionOptions

    def to_type_node(self, schema: Schema) -> ts.TypeNode:
        """Translate a schema node (and everything under it) into a type node."""
        override_result = call_override(schema, self.identifier)
        kind = schema.kind

        # Native enums still need their members materialised
        if override_result is not None and kind != SchemaKind.NATIVE_ENUM:
            return ts.maybe_identifier_to_type_reference(override_result)

        primitive_factory = PRIMITIVE_TYPE_FACTORIES.get(kind)
        if primitive_factory is not None:
            return primitive_factory()

        handler = self._kind_handlers().get(kind)
        if handler is not None:
            return handler(schema, override_result)

        if self.options.strict:
            raise UnsupportedSchemaKindError(
                f"No TypeScript mapping for schema kind {kind!r} ({type(schema).__name__})."
            )
        logger.debug("Unrecognised schema kind %r, falling back to any", kind)
        return ts.keyword("any")

    def _kind_handlers(self) -> dict[str, Callable[[Schema, OverrideResult], ts.TypeNode]]:
        return {
            SchemaKind.LAZY: self._map_lazy,
            SchemaKind.LITERAL: self._map_literal,
            SchemaKind.OBJECT: self._map_object,
            SchemaKind.ARRAY: self._map_array,
            SchemaKind.ENUM: self._map_enum,
            SchemaKind.UNION: self._map_union,
            SchemaKind.DISCRIMINATED_UNION: self._map_discriminated_union,
            SchemaKind.EFFECTS: self._map_effects,
            SchemaKind.NATIVE_ENUM: self._map_native_enum,
            SchemaKind.OPTIONAL: self._map_optional,
            SchemaKind.NULLABLE: self._map_nullable,
            SchemaKind.TUPLE: self._map_tuple,
            SchemaKind.RECORD: self._map_record,
            SchemaKind.MAP: self._map_map,
            SchemaKind.SET: self._map_set,
            SchemaKind.INTERSECTION: self._map_intersection,
            SchemaKind.PROMISE: self._map_promise,
            SchemaKind.FUNCTION: self._map_function,
            SchemaKind.DEFAULT: self._map_default,
            SchemaKind.BRANDED: self._map_branded,
        }

    # ---- kind handlers ----

    def _map_lazy(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        # The lazy target may reference itself without bound; the caller declares the identifier.
        logger.debug("Lazy schema without override, referencing %s", self.identifier)
        return ts.type_reference(self.identifier)

    def _map_literal(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        literal_value = schema.value
        # bool before int: True/False are ints in Python
        if isinstance(literal_value, bool):
            if literal_value is True:
                return ts.boolean_literal(True)
            return ts.boolean_literal(False)
        if isinstance(literal_value, (int, float)):
            return ts.numeric_literal(literal_value)
        return ts.string_literal(str(literal_value))

    def _map_object(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        members: list[ts.TypeElement] = []
        for property_name, property_schema in schema.shape.items():
            property_type = self.to_type_node(property_schema)
            is_optional = property_schema.kind == SchemaKind.OPTIONAL or property_schema.is_optional()
            members.append(
                ts.PropertySignature(
                    name=property_name,
                    type=property_type,
                    optional=is_optional,
                    doc=property_schema.description or None,
                )
            )
        return ts.TypeLiteral(tuple(members))

    def _map_array(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        return ts.ArrayType(self.to_type_node(schema.element))

    def _map_enum(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        # enum_(["a", "b"]) -> "a" | "b"
        return ts.UnionType(tuple(ts.string_literal(value) for value in schema.values))

    def _map_union(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        return ts.UnionType(tuple(self.to_type_node(option) for option in schema.options))

    def _map_discriminated_union(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        # Each option's own literal property carries the discriminant
        options = list(schema.options_by_value.values())
        return ts.UnionType(tuple(self.to_type_node(option) for option in options))

    def _map_effects(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        # Refinements and transforms have no static shape
        return self.to_type_node(schema.schema)

    def _map_native_enum(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        if override_result is None:
            return ts.unknown_keyword()

        if self.options.resolve_native_enums:
            if not isinstance(override_result, ts.Identifier):
                raise NativeEnumIdentifierError(
                    "Override on a native enum must return an identifier when resolve_native_enums is set.\n"
                    f"Got: {override_result!r}"
                )
            enum_members = tuple(
                ts.EnumMember(
                    name=member_name,
                    initializer=(
                        ts.numeric_literal(member_value)
                        if isinstance(member_value, (int, float)) and not isinstance(member_value, bool)
                        else ts.string_literal(str(member_value))
                    ),
                )
                for member_name, member_value in schema.values.items()
            )
            self.store.add(ts.EnumDeclaration(name=override_result.name, members=enum_members))

        return ts.maybe_identifier_to_type_reference(override_result)

    def _map_optional(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        return ts.UnionType((self.to_type_node(schema.inner), ts.undefined_keyword()))

    def _map_nullable(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        return ts.UnionType((self.to_type_node(schema.inner), ts.null_literal()))

    def _map_tuple(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        return ts.TupleType(tuple(self.to_type_node(item) for item in schema.items))

    def _map_record(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        # record(number()) -> { [x: string]: number }; the key schema is not reflected
        value_type = self.to_type_node(schema.value)
        return ts.TypeLiteral(
            (ts.IndexSignature(parameter_name="x", key_type=ts.keyword("string"), value_type=value_type),)
        )

    def _map_map(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        value_type = self.to_type_node(schema.value)
        key_type = self.to_type_node(schema.key)
        return ts.type_reference("Map", key_type, value_type)

    def _map_set(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        return ts.type_reference("Set", self.to_type_node(schema.value))

    def _map_intersection(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        left_type = self.to_type_node(schema.left)
        right_type = self.to_type_node(schema.right)
        return ts.IntersectionType((left_type, right_type))

    def _map_promise(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        return ts.type_reference("Promise", self.to_type_node(schema.inner))

    def _map_function(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        # function([string()], number()) -> (args_0: string, ...args_1: unknown[]) => number
        parameters = [
            ts.Parameter(name=f"args_{index}", type=self.to_type_node(parameter_schema))
            for index, parameter_schema in enumerate(schema.parameters.items)
        ]
        parameters.append(
            ts.Parameter(name=f"args_{len(parameters)}", type=ts.ArrayType(ts.unknown_keyword()), rest=True)
        )
        return_type = self.to_type_node(schema.returns)
        return ts.FunctionType(parameters=tuple(parameters), return_type=return_type)

    def _map_default(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        # string().optional().default("hi") -> string
        return strip_undefined_members(self.to_type_node(schema.inner))

    def _map_branded(self, schema: Schema, override_result: OverrideResult) -> ts.TypeNode:
        return self.to_type_node(schema.inner)


def strip_undefined_members(node: ts.TypeNode) -> ts.TypeNode:
    """
    Drop direct `undefined` members from a union or intersection.
    One survivor is returned on its own; none left means `never`.
    """
    if not isinstance(node, (ts.UnionType, ts.IntersectionType)):
        return node

    remaining_types = tuple(member for member in node.types if not ts.is_undefined_keyword(member))
    if len(remaining_types) == len(node.types):
        return node
    if not remaining_types:
        return ts.keyword("never")
    if len(remaining_types) == 1:
        return remaining_types[0]
    return dataclasses.replace(node, types=remaining_types)


# ============================================================
# Entry points
# ============================================================

def map_schema(
    schema: Schema,
    identifier: str,
    store: EnumStore,
    options: ConversionOptions,
) -> ts.TypeNode:
    """Map one schema with an explicit store and resolved options."""
    mapper = SchemaToTypeScriptMapper(identifier=identifier, store=store, options=options)
    return mapper.to_type_node(schema)


def convert(
    schema: Schema,
    identifier: str | None = None,
    options: OptionsInput = None,
) -> ConversionResult:
    """Convert a single schema into a type node plus the enums it referenced."""
    resolved_identifier = identifier if identifier is not None else DEFAULT_IDENTIFIER
    resolved_options = resolve_options(options)
    store = EnumStore()
    node = map_schema(schema, resolved_identifier, store, resolved_options)
    return ConversionResult(node=node, store=store)
