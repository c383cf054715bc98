"""Generate TypeScript types from validation schemas."""
from __future__ import annotations

from schema_to_ts.config import ConversionOptions, GeneratorSettings, resolve_options
from schema_to_ts.converter import (
    DEFAULT_IDENTIFIER,
    ConversionResult,
    EnumStore,
    NativeEnumIdentifierError,
    SchemaConversionError,
    UnsupportedSchemaKindError,
    convert,
    map_schema,
)
from schema_to_ts.printer import print_declarations, print_module, print_node
from schema_to_ts.resolver import MultiConversionResult, convert_many
from schema_to_ts.schema import Schema, SchemaKind, with_override
from schema_to_ts.ts_nodes import Identifier, create_type_alias

__all__ = [
    "DEFAULT_IDENTIFIER",
    "ConversionOptions",
    "ConversionResult",
    "EnumStore",
    "GeneratorSettings",
    "Identifier",
    "MultiConversionResult",
    "NativeEnumIdentifierError",
    "Schema",
    "SchemaConversionError",
    "SchemaKind",
    "UnsupportedSchemaKindError",
    "convert",
    "convert_many",
    "create_type_alias",
    "map_schema",
    "print_declarations",
    "print_module",
    "print_node",
    "resolve_options",
    "with_override",
]
