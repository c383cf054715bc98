"""Schema nodes: a small zod-style validation schema model.

Every node carries a `kind` tag from `SchemaKind` plus a kind-specific
payload. Nodes compare and hash by identity, so the same instance reached
from two places is the same dictionary key, and two structurally identical
instances never are.

    user = object_({
        "id": number(),
        "name": string().describe("Display name"),
        "email": string().optional(),
    })
"""
from __future__ import annotations

import dataclasses
import enum
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Iterable, Mapping, Optional, Union


class SchemaKind(str, enum.Enum):
    """Closed set of kinds the converter understands."""
    STRING = "string"
    NUMBER = "number"
    BIGINT = "bigint"
    BOOLEAN = "boolean"
    DATE = "date"
    UNDEFINED = "undefined"
    NULL = "null"
    VOID = "void"
    ANY = "any"
    UNKNOWN = "unknown"
    NEVER = "never"
    LITERAL = "literal"
    OBJECT = "object"
    ARRAY = "array"
    ENUM = "enum"
    UNION = "union"
    DISCRIMINATED_UNION = "discriminated-union"
    EFFECTS = "effects"
    NATIVE_ENUM = "native-enum"
    OPTIONAL = "optional"
    NULLABLE = "nullable"
    TUPLE = "tuple"
    RECORD = "record"
    MAP = "map"
    SET = "set"
    INTERSECTION = "intersection"
    PROMISE = "promise"
    FUNCTION = "function"
    DEFAULT = "default"
    LAZY = "lazy"
    BRANDED = "branded"


LiteralValue = Union[str, int, float, bool]
NativeEnumValue = Union[str, int, float]

# (identifier) -> TypeNode | Identifier | str. Typed loosely to keep this
# module independent of the type AST.
OverrideHook = Callable[[str], Any]


# ============================================================
# Base node
# ============================================================

@dataclass(eq=False)
class Schema:
    """Base class for all schema nodes."""
    kind: ClassVar[str] = "schema"

    description: Optional[str] = field(default=None, kw_only=True)
    override: Optional[OverrideHook] = field(default=None, kw_only=True, repr=False)

    def is_optional(self) -> bool:
        """Return True if this schema accepts the undefined value."""
        return False

    def describe(self, description: str) -> Schema:
        """Return a copy of this schema carrying a description."""
        return dataclasses.replace(self, description=description, override=None)

    def optional(self) -> OptionalSchema:
        return OptionalSchema(self)

    def nullable(self) -> NullableSchema:
        return NullableSchema(self)

    def nullish(self) -> OptionalSchema:
        return OptionalSchema(NullableSchema(self))

    def default(self, value: Any) -> DefaultSchema:
        return DefaultSchema(self, value)

    def array(self) -> ArraySchema:
        return ArraySchema(self)

    def promise(self) -> PromiseSchema:
        return PromiseSchema(self)

    def or_(self, other: Schema) -> UnionSchema:
        return UnionSchema((self, other))

    def and_(self, other: Schema) -> IntersectionSchema:
        return IntersectionSchema(self, other)

    def refine(self, check: Callable[[Any], bool], message: str | None = None) -> EffectsSchema:
        return EffectsSchema(self, effect="refinement", function=check, message=message)

    def transform(self, function: Callable[[Any], Any]) -> EffectsSchema:
        return EffectsSchema(self, effect="transform", function=function)

    def brand(self, brand_name: str) -> BrandedSchema:
        return BrandedSchema(self, brand_name)


def with_override(schema: Schema, hook: OverrideHook) -> Schema:
    """Attach an override hook to this exact schema instance and return it."""
    schema.override = hook
    return schema


# ============================================================
# Primitives
# ============================================================

@dataclass(eq=False)
class StringSchema(Schema):
    kind: ClassVar[str] = SchemaKind.STRING


@dataclass(eq=False)
class NumberSchema(Schema):
    kind: ClassVar[str] = SchemaKind.NUMBER


@dataclass(eq=False)
class BigIntSchema(Schema):
    kind: ClassVar[str] = SchemaKind.BIGINT


@dataclass(eq=False)
class BooleanSchema(Schema):
    kind: ClassVar[str] = SchemaKind.BOOLEAN


@dataclass(eq=False)
class DateSchema(Schema):
    kind: ClassVar[str] = SchemaKind.DATE


@dataclass(eq=False)
class UndefinedSchema(Schema):
    kind: ClassVar[str] = SchemaKind.UNDEFINED

    def is_optional(self) -> bool:
        return True


@dataclass(eq=False)
class NullSchema(Schema):
    kind: ClassVar[str] = SchemaKind.NULL


@dataclass(eq=False)
class VoidSchema(Schema):
    kind: ClassVar[str] = SchemaKind.VOID

    def is_optional(self) -> bool:
        return True


@dataclass(eq=False)
class AnySchema(Schema):
    kind: ClassVar[str] = SchemaKind.ANY

    def is_optional(self) -> bool:
        return True


@dataclass(eq=False)
class UnknownSchema(Schema):
    kind: ClassVar[str] = SchemaKind.UNKNOWN

    def is_optional(self) -> bool:
        return True


@dataclass(eq=False)
class NeverSchema(Schema):
    kind: ClassVar[str] = SchemaKind.NEVER


@dataclass(eq=False)
class LiteralSchema(Schema):
    kind: ClassVar[str] = SchemaKind.LITERAL
    value: LiteralValue


# ============================================================
# Containers + combinators
# ============================================================

@dataclass(eq=False)
class ObjectSchema(Schema):
    """Ordered mapping of property name to child schema."""
    kind: ClassVar[str] = SchemaKind.OBJECT
    shape: dict[str, Schema] = field(default_factory=dict)

    def extend(self, extra_shape: Mapping[str, Schema]) -> ObjectSchema:
        return ObjectSchema({**self.shape, **extra_shape})

    def partial(self) -> ObjectSchema:
        return ObjectSchema({name: child.optional() for name, child in self.shape.items()})


@dataclass(eq=False)
class ArraySchema(Schema):
    kind: ClassVar[str] = SchemaKind.ARRAY
    element: Schema


@dataclass(eq=False)
class EnumSchema(Schema):
    kind: ClassVar[str] = SchemaKind.ENUM
    values: tuple[str, ...]


@dataclass(eq=False)
class UnionSchema(Schema):
    kind: ClassVar[str] = SchemaKind.UNION
    options: tuple[Schema, ...]

    def is_optional(self) -> bool:
        return any(option.is_optional() for option in self.options)


@dataclass(eq=False)
class DiscriminatedUnionSchema(Schema):
    """Union of object schemas told apart by the literal at `discriminator`."""
    kind: ClassVar[str] = SchemaKind.DISCRIMINATED_UNION
    discriminator: str
    options_by_value: dict[LiteralValue, ObjectSchema]

    @property
    def options(self) -> list[ObjectSchema]:
        return list(self.options_by_value.values())


@dataclass(eq=False)
class EffectsSchema(Schema):
    """A refinement or transform around an inner schema."""
    kind: ClassVar[str] = SchemaKind.EFFECTS
    schema: Schema
    effect: str = "refinement"
    function: Optional[Callable[[Any], Any]] = field(default=None, repr=False)
    message: Optional[str] = None

    def inner_type(self) -> Schema:
        return self.schema

    def is_optional(self) -> bool:
        return self.schema.is_optional()


@dataclass(eq=False)
class NativeEnumSchema(Schema):
    """Ordered mapping of member name to scalar value."""
    kind: ClassVar[str] = SchemaKind.NATIVE_ENUM
    values: dict[str, NativeEnumValue]


@dataclass(eq=False)
class OptionalSchema(Schema):
    kind: ClassVar[str] = SchemaKind.OPTIONAL
    inner: Schema

    def is_optional(self) -> bool:
        return True

    def unwrap(self) -> Schema:
        return self.inner


@dataclass(eq=False)
class NullableSchema(Schema):
    kind: ClassVar[str] = SchemaKind.NULLABLE
    inner: Schema

    def is_optional(self) -> bool:
        return self.inner.is_optional()

    def unwrap(self) -> Schema:
        return self.inner


@dataclass(eq=False)
class TupleSchema(Schema):
    kind: ClassVar[str] = SchemaKind.TUPLE
    items: tuple[Schema, ...] = ()


@dataclass(eq=False)
class RecordSchema(Schema):
    kind: ClassVar[str] = SchemaKind.RECORD
    key: Schema
    value: Schema


@dataclass(eq=False)
class MapSchema(Schema):
    kind: ClassVar[str] = SchemaKind.MAP
    key: Schema
    value: Schema


@dataclass(eq=False)
class SetSchema(Schema):
    kind: ClassVar[str] = SchemaKind.SET
    value: Schema


@dataclass(eq=False)
class IntersectionSchema(Schema):
    kind: ClassVar[str] = SchemaKind.INTERSECTION
    left: Schema
    right: Schema

    def is_optional(self) -> bool:
        return self.left.is_optional() and self.right.is_optional()


@dataclass(eq=False)
class PromiseSchema(Schema):
    kind: ClassVar[str] = SchemaKind.PROMISE
    inner: Schema

    def unwrap(self) -> Schema:
        return self.inner


@dataclass(eq=False)
class FunctionSchema(Schema):
    kind: ClassVar[str] = SchemaKind.FUNCTION
    parameters: TupleSchema = field(default_factory=TupleSchema)
    returns: Schema = field(default_factory=lambda: UnknownSchema())

    def args(self, *parameter_schemas: Schema) -> FunctionSchema:
        return FunctionSchema(TupleSchema(tuple(parameter_schemas)), self.returns)

    def returns_(self, return_schema: Schema) -> FunctionSchema:
        return FunctionSchema(self.parameters, return_schema)

    def return_type(self) -> Schema:
        return self.returns


@dataclass(eq=False)
class DefaultSchema(Schema):
    """Inner schema plus a default used when the value is missing."""
    kind: ClassVar[str] = SchemaKind.DEFAULT
    inner: Schema
    default_value: Any = None

    def is_optional(self) -> bool:
        # A missing value is filled in with the default
        return True

    def unwrap(self) -> Schema:
        return self.inner


@dataclass(eq=False)
class LazySchema(Schema):
    """Deferred schema, used for self-reference. The converter only calls the getter to check optionality."""
    kind: ClassVar[str] = SchemaKind.LAZY
    getter: Callable[[], Schema] = field(repr=False)

    @property
    def schema(self) -> Schema:
        return self.getter()

    def is_optional(self) -> bool:
        return self.schema.is_optional()


@dataclass(eq=False)
class BrandedSchema(Schema):
    kind: ClassVar[str] = SchemaKind.BRANDED
    inner: Schema
    brand_name: str = ""

    def is_optional(self) -> bool:
        return self.inner.is_optional()

    def unwrap(self) -> Schema:
        return self.inner


# ============================================================
# Builders
# ============================================================

def string() -> StringSchema:
    return StringSchema()


def number() -> NumberSchema:
    return NumberSchema()


def bigint() -> BigIntSchema:
    return BigIntSchema()


def boolean() -> BooleanSchema:
    return BooleanSchema()


def date() -> DateSchema:
    return DateSchema()


def undefined() -> UndefinedSchema:
    return UndefinedSchema()


def null() -> NullSchema:
    return NullSchema()


def void() -> VoidSchema:
    return VoidSchema()


def any_() -> AnySchema:
    return AnySchema()


def unknown() -> UnknownSchema:
    return UnknownSchema()


def never() -> NeverSchema:
    return NeverSchema()


def literal(value: LiteralValue) -> LiteralSchema:
    if not isinstance(value, (str, int, float, bool)):
        raise TypeError(f"literal() expects str, int, float or bool, got {type(value).__name__}")
    return LiteralSchema(value)


def object_(shape: Mapping[str, Schema] | None = None) -> ObjectSchema:
    return ObjectSchema(dict(shape or {}))


def array(element: Schema) -> ArraySchema:
    return ArraySchema(element)


def enum_(values: Iterable[str]) -> EnumSchema:
    return EnumSchema(tuple(values))


def union(options: Iterable[Schema]) -> UnionSchema:
    return UnionSchema(tuple(options))


def discriminated_union(discriminator: str, options: Iterable[ObjectSchema]) -> DiscriminatedUnionSchema:
    """Index each option by the literal value of its discriminator property."""
    options_by_value: dict[LiteralValue, ObjectSchema] = {}
    for option in options:
        discriminator_schema = option.shape.get(discriminator)
        if not isinstance(discriminator_schema, LiteralSchema):
            raise ValueError(
                f"Discriminator property {discriminator!r} must be a literal schema on every option."
            )
        discriminator_value = discriminator_schema.value
        if discriminator_value in options_by_value:
            raise ValueError(
                f"Discriminator property {discriminator!r} has duplicate value {discriminator_value!r}."
            )
        options_by_value[discriminator_value] = option
    return DiscriminatedUnionSchema(discriminator, options_by_value)


def native_enum(values: Mapping[str, NativeEnumValue] | type[enum.Enum]) -> NativeEnumSchema:
    """Build from a name -> value mapping or from a Python Enum class."""
    if isinstance(values, type) and issubclass(values, enum.Enum):
        return NativeEnumSchema({member.name: member.value for member in values})
    return NativeEnumSchema(dict(values))


def tuple_(items: Iterable[Schema]) -> TupleSchema:
    return TupleSchema(tuple(items))


def record(value: Schema, key: Schema | None = None) -> RecordSchema:
    return RecordSchema(key if key is not None else StringSchema(), value)


def map_(key: Schema, value: Schema) -> MapSchema:
    return MapSchema(key, value)


def set_(value: Schema) -> SetSchema:
    return SetSchema(value)


def intersection(left: Schema, right: Schema) -> IntersectionSchema:
    return IntersectionSchema(left, right)


def promise(inner: Schema) -> PromiseSchema:
    return PromiseSchema(inner)


def function(parameters: Iterable[Schema] = (), returns: Schema | None = None) -> FunctionSchema:
    return FunctionSchema(TupleSchema(tuple(parameters)), returns if returns is not None else UnknownSchema())


def lazy(getter: Callable[[], Schema]) -> LazySchema:
    return LazySchema(getter)
