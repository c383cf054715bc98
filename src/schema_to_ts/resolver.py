"""Convert several named root schemas at once, sharing declarations between them.

Any schema instance that is itself one of the named roots is rendered as a
reference to that root's name wherever it appears, including inside its own
body. Shared sub-schemas are declared once and cyclic graphs that pass through
a named instance terminate.

Identity matters: pass the *same* instance to reuse a declaration. Overrides
are installed on the caller's instances and stay there after the call; treat
the schemas passed in as single-use, or copy them first.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Mapping

from schema_to_ts import ts_nodes as ts
from schema_to_ts.config import OptionsInput
from schema_to_ts.converter import EnumStore, convert
from schema_to_ts.schema import Schema, SchemaKind, with_override

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MultiConversionResult:
    type_aliases: tuple[ts.TypeAliasDeclaration, ...]
    store: EnumStore


# ============================================================
# Graph traversal
# ============================================================

def iter_child_schemas(schema: Schema) -> list[Schema]:
    """Return the directly reachable child schemas of a node, in definition order."""
    kind = schema.kind

    if kind == SchemaKind.ARRAY:
        return [schema.element]
    if kind in (SchemaKind.UNION, SchemaKind.DISCRIMINATED_UNION):
        return list(schema.options)
    if kind == SchemaKind.EFFECTS:
        return [schema.inner_type()]
    if kind == SchemaKind.TUPLE:
        return list(schema.items)
    if kind in (SchemaKind.RECORD, SchemaKind.MAP):
        return [schema.key, schema.value]
    if kind == SchemaKind.SET:
        return [schema.value]
    if kind == SchemaKind.INTERSECTION:
        return [schema.left, schema.right]
    if kind in (
        SchemaKind.BRANDED,
        SchemaKind.NULLABLE,
        SchemaKind.OPTIONAL,
        SchemaKind.DEFAULT,
        SchemaKind.PROMISE,
    ):
        unwrap = getattr(schema, "unwrap", None)
        return [unwrap()] if callable(unwrap) else []
    if kind == SchemaKind.FUNCTION:
        return [schema.parameters, schema.return_type()]
    if kind == SchemaKind.OBJECT:
        return [value for value in schema.shape.values() if isinstance(value, Schema)]

    # Primitives, literals, enums and native enums have no children; lazy targets are not followed
    return []


def install_reference_overrides(
    schema: Schema,
    identifiers_by_schema: Mapping[Schema, ts.Identifier],
    *,
    visited: set[int] | None = None,
) -> None:
    """
    Depth-first walk of `schema`, attaching an override that returns the
    known identifier to every instance found in `identifiers_by_schema`.
    """
    if visited is None:
        visited = set()

    stack = [schema]
    while stack:
        current_schema = stack.pop()
        if id(current_schema) in visited:
            continue
        visited.add(id(current_schema))

        known_identifier = identifiers_by_schema.get(current_schema)
        if known_identifier is not None:
            logger.debug("Referencing %s schema as %s", current_schema.kind, known_identifier.name)
            with_override(current_schema, _make_reference_override(known_identifier))

        # Reversed so children are visited in definition order
        stack.extend(reversed(iter_child_schemas(current_schema)))


def _make_reference_override(identifier: ts.Identifier):
    """Build an override hook that always answers with `identifier`."""
    def reference_override(_requested_identifier: str) -> ts.Identifier:
        return identifier
    return reference_override


# ============================================================
# Entry point
# ============================================================

def convert_many(roots_by_name: Mapping[str, Schema], options: OptionsInput = None) -> MultiConversionResult:
    """
    Convert every named root into a type alias, referencing roots by name where they are reused.

    Each root is converted with its own name as the identifier, so user override
    hooks and unhooked lazy schemas inside root `User` receive / reference "User"
    rather than the single-root default "Identifier".
    """
    schemas_by_identifier = {ts.Identifier(name): schema for name, schema in roots_by_name.items()}
    identifiers_by_schema = {schema: identifier for identifier, schema in schemas_by_identifier.items()}

    visited: set[int] = set()
    for root_schema in schemas_by_identifier.values():
        install_reference_overrides(root_schema, identifiers_by_schema, visited=visited)

    type_aliases: list[ts.TypeAliasDeclaration] = []
    stores: list[EnumStore] = []
    for identifier, root_schema in schemas_by_identifier.items():
        # A root must not resolve to a reference to itself at the top level
        root_clone = copy.copy(root_schema)
        root_clone.override = None

        conversion = convert(root_clone, identifier.name, options)
        type_aliases.append(ts.create_type_alias(conversion.node, identifier.name))
        stores.append(conversion.store)

    return MultiConversionResult(type_aliases=tuple(type_aliases), store=EnumStore.merged(stores))
