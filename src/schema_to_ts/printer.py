"""Render type nodes and declarations as TypeScript source text."""
from __future__ import annotations

import json
from typing import TYPE_CHECKING, Iterable, Union

from schema_to_ts import ts_nodes as ts

if TYPE_CHECKING:
    from schema_to_ts.resolver import MultiConversionResult

INDENT = "    "

Printable = Union[ts.TypeNode, ts.EnumDeclaration, ts.TypeAliasDeclaration, ts.Identifier]


# ============================================================
# Names + literals
# ============================================================

def quote_string(text: str) -> str:
    """Double-quoted TypeScript string literal with non-ASCII escaped."""
    return json.dumps(text, ensure_ascii=True)


def render_property_name(name: str) -> str:
    """Bare identifier when possible, otherwise a string literal."""
    if ts.is_identifier_name(name):
        return name
    return quote_string(name)


def render_number(value: int | float) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return repr(value)


def render_doc_comment(text: str) -> str:
    return f"/** {text} */"


# ============================================================
# Type nodes
# ============================================================

def render_type(node: ts.TypeNode, depth: int = 0) -> str:
    """Render a type node. `depth` is the indentation level of the line it starts on."""
    if isinstance(node, ts.KeywordType):
        return node.keyword

    if isinstance(node, ts.LiteralType):
        return render_literal(node)

    if isinstance(node, ts.TypeReference):
        if not node.type_arguments:
            return node.name
        type_arguments = ", ".join(render_type(argument, depth) for argument in node.type_arguments)
        return f"{node.name}<{type_arguments}>"

    if isinstance(node, ts.ArrayType):
        element_text = render_type(node.element_type, depth)
        if isinstance(node.element_type, (ts.UnionType, ts.IntersectionType, ts.FunctionType)):
            element_text = f"({element_text})"
        return f"{element_text}[]"

    if isinstance(node, ts.TupleType):
        return "[" + ", ".join(render_type(element, depth) for element in node.elements) + "]"

    if isinstance(node, ts.UnionType):
        # enum_([]) has no members to choose from
        if not node.types:
            return "never"
        return " | ".join(
            _parenthesize_if(member, (ts.FunctionType,), depth) for member in node.types
        )

    if isinstance(node, ts.IntersectionType):
        if not node.types:
            return "unknown"
        return " & ".join(
            _parenthesize_if(member, (ts.FunctionType, ts.UnionType), depth) for member in node.types
        )

    if isinstance(node, ts.FunctionType):
        parameters = ", ".join(render_parameter(parameter, depth) for parameter in node.parameters)
        return f"({parameters}) => {render_type(node.return_type, depth)}"

    if isinstance(node, ts.TypeLiteral):
        return render_type_literal(node, depth)

    raise TypeError(f"Cannot render {type(node).__name__} as a TypeScript type")


def _parenthesize_if(node: ts.TypeNode, wrapped_types: tuple[type, ...], depth: int) -> str:
    rendered = render_type(node, depth)
    if isinstance(node, wrapped_types):
        return f"({rendered})"
    return rendered


def render_literal(node: ts.LiteralType) -> str:
    if node.literal_kind == "string":
        return quote_string(str(node.value))
    if node.literal_kind == "number":
        return render_number(node.value)  # type: ignore[arg-type]
    if node.literal_kind in ("true", "false", "null"):
        return node.literal_kind
    raise ValueError(f"Unknown literal kind: {node.literal_kind!r}")


def render_parameter(parameter: ts.Parameter, depth: int = 0) -> str:
    rest_marker = "..." if parameter.rest else ""
    return f"{rest_marker}{parameter.name}: {render_type(parameter.type, depth)}"


def render_type_literal(node: ts.TypeLiteral, depth: int = 0) -> str:
    """
    Multi-line object type:
      {
          name: string;
          /** Age in years */
          age?: number | undefined;
      }
    """
    if not node.members:
        return "{}"

    member_indent = INDENT * (depth + 1)
    output_lines: list[str] = ["{"]
    for member in node.members:
        if isinstance(member, ts.PropertySignature):
            if member.doc:
                output_lines.append(f"{member_indent}{render_doc_comment(member.doc)}")
            optional_marker = "?" if member.optional else ""
            member_type = render_type(member.type, depth + 1)
            output_lines.append(f"{member_indent}{render_property_name(member.name)}{optional_marker}: {member_type};")
        elif isinstance(member, ts.IndexSignature):
            key_type = render_type(member.key_type, depth + 1)
            value_type = render_type(member.value_type, depth + 1)
            output_lines.append(f"{member_indent}[{member.parameter_name}: {key_type}]: {value_type};")
        else:
            raise TypeError(f"Cannot render {type(member).__name__} inside a type literal")
    output_lines.append(f"{INDENT * depth}}}")
    return "\n".join(output_lines)


# ============================================================
# Declarations
# ============================================================

def render_enum_declaration(declaration: ts.EnumDeclaration, *, export: bool = False) -> str:
    export_prefix = "export " if export else ""
    if not declaration.members:
        return f"{export_prefix}enum {declaration.name} {{\n}}"

    member_lines = [
        f"{INDENT}{render_property_name(member.name)} = {render_literal(member.initializer)}"
        for member in declaration.members
    ]
    return f"{export_prefix}enum {declaration.name} {{\n" + ",\n".join(member_lines) + "\n}"


def render_type_alias(declaration: ts.TypeAliasDeclaration, *, export: bool = False) -> str:
    export_prefix = "export " if export else ""
    alias_text = f"{export_prefix}type {declaration.name} = {render_type(declaration.type)};"
    if declaration.doc:
        return f"{render_doc_comment(declaration.doc)}\n{alias_text}"
    return alias_text


def print_node(node: Printable) -> str:
    """Print any type node, identifier, enum declaration or type alias."""
    if isinstance(node, ts.Identifier):
        return node.name
    if isinstance(node, ts.EnumDeclaration):
        return render_enum_declaration(node)
    if isinstance(node, ts.TypeAliasDeclaration):
        return render_type_alias(node)
    return render_type(node)


def print_declarations(
    enum_declarations: Iterable[ts.EnumDeclaration],
    type_aliases: Iterable[ts.TypeAliasDeclaration],
    *,
    export: bool = True,
    header: str | None = None,
) -> str:
    """Render enums first, then aliases, separated by blank lines."""
    output_blocks: list[str] = []
    if header:
        output_blocks.append(header)
    output_blocks.extend(render_enum_declaration(declaration, export=export) for declaration in enum_declarations)
    output_blocks.extend(render_type_alias(declaration, export=export) for declaration in type_aliases)
    return "\n\n".join(output_blocks).rstrip() + "\n"


def print_module(result: MultiConversionResult, *, export: bool = True, header: str | None = None) -> str:
    """Render a multi-root conversion as one TypeScript module."""
    return print_declarations(result.store.native_enums, result.type_aliases, export=export, header=header)
