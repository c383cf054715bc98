"""TypeScript type AST nodes and the small factory helpers used to build them."""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union


# ============================================================
# Keywords + identifiers
# ============================================================

TYPE_KEYWORDS = frozenset(
    {
        "string",
        "number",
        "bigint",
        "boolean",
        "undefined",
        "void",
        "any",
        "unknown",
        "never",
    }
)

IDENTIFIER_REGEX = re.compile(r"^[$A-Za-z_][\w$]*$", re.ASCII)


def is_identifier_name(text: str) -> bool:
    """Return True if text can be emitted as a bare TypeScript identifier."""
    return bool(IDENTIFIER_REGEX.match(text))


@dataclass(frozen=True)
class Identifier:
    """A bare identifier. Override hooks return these to request a named reference."""
    name: str


# ============================================================
# Type nodes
# ============================================================

@dataclass(frozen=True)
class KeywordType:
    """`string`, `number`, `unknown`, ..."""
    keyword: str

    def __post_init__(self) -> None:
        if self.keyword not in TYPE_KEYWORDS:
            raise ValueError(f"Not a TypeScript type keyword: {self.keyword!r}")


@dataclass(frozen=True)
class LiteralType:
    """
    A literal type. `literal_kind` is one of:
      "string"  -> "text"
      "number"  -> 42
      "true" / "false"
      "null"
    """
    literal_kind: str
    value: str | int | float | None = None


@dataclass(frozen=True)
class PropertySignature:
    """One named member of a type literal."""
    name: str
    type: TypeNode
    optional: bool = False
    doc: str | None = None


@dataclass(frozen=True)
class IndexSignature:
    """`[parameter_name: key_type]: value_type` member of a type literal."""
    parameter_name: str
    key_type: TypeNode
    value_type: TypeNode


TypeElement = Union[PropertySignature, IndexSignature]


@dataclass(frozen=True)
class TypeLiteral:
    members: tuple[TypeElement, ...] = ()


@dataclass(frozen=True)
class ArrayType:
    element_type: TypeNode


@dataclass(frozen=True)
class TupleType:
    elements: tuple[TypeNode, ...] = ()


@dataclass(frozen=True)
class UnionType:
    types: tuple[TypeNode, ...]


@dataclass(frozen=True)
class IntersectionType:
    types: tuple[TypeNode, ...]


@dataclass(frozen=True)
class TypeReference:
    """A named type, optionally generic: `Date`, `Map<K, V>`."""
    name: str
    type_arguments: tuple[TypeNode, ...] = ()


@dataclass(frozen=True)
class Parameter:
    name: str
    type: TypeNode
    rest: bool = False


@dataclass(frozen=True)
class FunctionType:
    parameters: tuple[Parameter, ...]
    return_type: TypeNode


TypeNode = Union[
    KeywordType,
    LiteralType,
    TypeLiteral,
    ArrayType,
    TupleType,
    UnionType,
    IntersectionType,
    TypeReference,
    FunctionType,
]


# ============================================================
# Declarations
# ============================================================

@dataclass(frozen=True)
class EnumMember:
    name: str
    initializer: LiteralType


@dataclass(frozen=True)
class EnumDeclaration:
    name: str
    members: tuple[EnumMember, ...]


@dataclass(frozen=True)
class TypeAliasDeclaration:
    name: str
    type: TypeNode
    doc: str | None = None


# ============================================================
# Factory helpers
# ============================================================

def keyword(name: str) -> KeywordType:
    return KeywordType(name)


def undefined_keyword() -> KeywordType:
    return KeywordType("undefined")


def unknown_keyword() -> KeywordType:
    return KeywordType("unknown")


def null_literal() -> LiteralType:
    return LiteralType("null")


def string_literal(value: str) -> LiteralType:
    return LiteralType("string", value)


def numeric_literal(value: int | float) -> LiteralType:
    return LiteralType("number", value)


def boolean_literal(value: bool) -> LiteralType:
    return LiteralType("true") if value else LiteralType("false")


def type_reference(name: str, *type_arguments: TypeNode) -> TypeReference:
    return TypeReference(name, tuple(type_arguments))


def is_undefined_keyword(node: object) -> bool:
    return isinstance(node, KeywordType) and node.keyword == "undefined"


def maybe_identifier_to_type_reference(node: Identifier | TypeNode) -> TypeNode:
    """Turn an Identifier into a reference to it; pass any other type node through."""
    if isinstance(node, Identifier):
        return TypeReference(node.name)
    return node


def create_type_alias(node: TypeNode, identifier: str, comment: str | None = None) -> TypeAliasDeclaration:
    """Build `type <identifier> = <node>;`, optionally with a doc comment."""
    return TypeAliasDeclaration(name=identifier, type=node, doc=comment)
