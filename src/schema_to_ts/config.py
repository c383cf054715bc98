"""Conversion options and process-level settings."""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any, Mapping

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


@dataclass(frozen=True)
class ConversionOptions:
    """Per-call options for schema conversion."""
    # When False, native enums are referenced by identifier and the caller declares them.
    resolve_native_enums: bool = True

    # Raise on unrecognised schema kinds instead of falling back to `any`.
    strict: bool = False


OptionsInput = ConversionOptions | Mapping[str, Any] | None


def resolve_options(raw: OptionsInput = None, *, base: ConversionOptions | None = None) -> ConversionOptions:
    """Merge caller overrides onto defaults (or onto `base`)."""
    resolved = base if base is not None else ConversionOptions()
    if raw is None:
        return resolved
    if isinstance(raw, ConversionOptions):
        return raw

    known_option_names = {option_field.name for option_field in dataclasses.fields(ConversionOptions)}
    unknown_option_names = sorted(set(raw) - known_option_names)
    if unknown_option_names:
        raise ValueError(
            f"Unknown conversion option(s): {', '.join(unknown_option_names)}. "
            f"Known options: {', '.join(sorted(known_option_names))}."
        )
    return dataclasses.replace(resolved, **dict(raw))


class GeneratorSettings(BaseSettings):
    """Defaults for the command line generator, read from the environment or a .env file."""
    model_config = SettingsConfigDict(env_file=(".env",), env_file_encoding="utf-8", extra="ignore")

    resolve_native_enums: bool = Field(default=True, alias="SCHEMA_TO_TS_RESOLVE_NATIVE_ENUMS")
    strict: bool = Field(default=False, alias="SCHEMA_TO_TS_STRICT")

    # Module attribute holding the {name: schema} mapping of roots
    roots_attribute: str = Field(default="SCHEMAS", alias="SCHEMA_TO_TS_ROOTS_ATTRIBUTE")
    export_declarations: bool = Field(default=True, alias="SCHEMA_TO_TS_EXPORT")

    @property
    def conversion_options(self) -> ConversionOptions:
        return ConversionOptions(resolve_native_enums=self.resolve_native_enums, strict=self.strict)
