"""Generate TypeScript declarations from Python modules that define schemas."""
from __future__ import annotations

import argparse
import ast
import importlib
import importlib.util
import re
import sys
import time
from contextlib import contextmanager
from pathlib import Path
from types import ModuleType
from typing import Any, Iterable, Iterator, Mapping

import glob as glob_module
from watchfiles import DefaultFilter, watch

from schema_to_ts.config import ConversionOptions, GeneratorSettings, resolve_options
from schema_to_ts.printer import print_module
from schema_to_ts.resolver import convert_many
from schema_to_ts.schema import Schema

PROG_NAME = "schema-to-ts"
LOG_PREFIX = "[schema-to-ts]"
AUTOGENERATED_HEADER = "// AUTOGENERATED by schema-to-ts. Do not edit by hand."


# ============================================================
# Input discovery
# ============================================================

def collect_python_files(inputs: Iterable[str]) -> list[Path]:
    """Collect Python files from paths, directories, or globs."""
    discovered_files: list[Path] = []

    for raw_input in inputs:
        input_path = Path(raw_input)

        if input_path.is_dir():
            discovered_files.extend(
                file_path for file_path in sorted(input_path.rglob("*.py")) if "__pycache__" not in file_path.parts
            )
            continue

        if input_path.is_file() and input_path.suffix == ".py":
            discovered_files.append(input_path)
            continue

        glob_matches = sorted(Path(match) for match in glob_module.glob(raw_input, recursive=True))
        discovered_files.extend(match for match in glob_matches if match.suffix == ".py")

    seen_resolved_paths: set[Path] = set()
    unique_files: list[Path] = []
    for file_path in discovered_files:
        resolved_path = file_path.resolve()
        if resolved_path not in seen_resolved_paths:
            seen_resolved_paths.add(resolved_path)
            unique_files.append(file_path)

    if not unique_files:
        raise RuntimeError("No .py files found from inputs.")

    return unique_files


@contextmanager
def _module_directory_on_path(directory: Path) -> Iterator[None]:
    """Let an input module import its siblings while it is being loaded."""
    directory_text = str(directory)
    added = directory_text not in sys.path
    if added:
        sys.path.insert(0, directory_text)
    try:
        yield
    finally:
        if added and directory_text in sys.path:
            sys.path.remove(directory_text)


def module_name_for_path(file_path: Path) -> tuple[str, Path]:
    """
    Dotted module name of a file plus the directory it imports from:
      schemas/models.py            -> ("models", schemas/)
      app/schemas/models.py        -> ("schemas.models", app/)   when schemas/ has __init__.py
    """
    resolved_path = file_path.resolve()
    name_parts = [resolved_path.stem]
    import_root = resolved_path.parent
    while (import_root / "__init__.py").is_file():
        name_parts.insert(0, import_root.name)
        import_root = import_root.parent
    if name_parts[-1] == "__init__":
        name_parts.pop()
    return ".".join(name_parts), import_root


# Modules executed on behalf of the inputs; dropped before the next run so reloads see fresh code
_input_module_names: set[str] = set()


def forget_input_modules() -> None:
    for module_name in sorted(_input_module_names):
        sys.modules.pop(module_name, None)
    _input_module_names.clear()
    importlib.invalidate_caches()


def _remember_input_modules(modules_before: set[str], import_roots: Iterable[Path]) -> None:
    roots = list(import_roots)
    for module_name in set(sys.modules) - modules_before:
        module_file = getattr(sys.modules[module_name], "__file__", None)
        if module_file and any(root in Path(module_file).resolve().parents for root in roots):
            _input_module_names.add(module_name)


def _load_module_under_private_name(file_path: Path, import_root: Path) -> ModuleType:
    """Execute a file whose natural name is taken by an unrelated module (e.g. `types.py`)."""
    resolved_path = file_path.resolve()
    module_name = "schema_to_ts_input_" + re.sub(r"\W", "_", resolved_path.with_suffix("").as_posix())

    spec = importlib.util.spec_from_file_location(module_name, resolved_path)
    if spec is None or spec.loader is None:
        raise RuntimeError(f"Failed to load schema module from {file_path}")

    module = importlib.util.module_from_spec(spec)
    # dataclasses and enums defined in the module look themselves up here
    sys.modules[module_name] = module
    try:
        with _module_directory_on_path(import_root):
            spec.loader.exec_module(module)
    except Exception as load_error:
        sys.modules.pop(module_name, None)
        raise RuntimeError(f"{file_path}: failed to import: {load_error}") from load_error
    return module


def load_module_from_path(file_path: Path) -> ModuleType:
    """
    Import a Python file under its own module name, so a sibling that does
    `from common import Address` gets the very same schema instances.
    """
    module_name, import_root = module_name_for_path(file_path)
    resolved_path = file_path.resolve()

    cached_module = sys.modules.get(module_name)
    cached_file = getattr(cached_module, "__file__", None)
    if cached_module is not None and (not cached_file or Path(cached_file).resolve() != resolved_path):
        return _load_module_under_private_name(file_path, import_root)

    try:
        with _module_directory_on_path(import_root):
            module = importlib.import_module(module_name)
    except Exception as load_error:
        raise RuntimeError(f"{file_path}: failed to import: {load_error}") from load_error

    module_file = getattr(module, "__file__", None)
    if not module_file or Path(module_file).resolve() != resolved_path:
        return _load_module_under_private_name(file_path, import_root)
    return module


def module_level_assignments(file_path: Path) -> set[str]:
    """Names bound by top-level assignments in a file. Imported names are not included."""
    source_text = file_path.read_text(encoding="utf-8")
    try:
        module_node = ast.parse(source_text, filename=str(file_path))
    except SyntaxError as syntax_error:
        offending_line = source_text.splitlines()[syntax_error.lineno - 1] if syntax_error.lineno else ""
        raise RuntimeError(
            f"{file_path}:{syntax_error.lineno}:{syntax_error.offset} {syntax_error.msg}\n{offending_line}"
        ) from syntax_error

    assigned_names: set[str] = set()
    for top_level_node in module_node.body:
        if isinstance(top_level_node, ast.Assign):
            for target_node in top_level_node.targets:
                assigned_names.update(
                    name_node.id for name_node in ast.walk(target_node) if isinstance(name_node, ast.Name)
                )
        elif isinstance(top_level_node, ast.AnnAssign) and isinstance(top_level_node.target, ast.Name):
            assigned_names.add(top_level_node.target.id)
    return assigned_names


def collect_schema_roots(module: ModuleType, *, roots_attribute: str) -> dict[str, Schema]:
    """
    Roots come from the module's `roots_attribute` mapping when it defines one,
    otherwise from every public schema the module itself assigns, in definition order.
    Schemas imported from other modules are left to the module that defines them.
    """
    source_display = getattr(module, "__file__", None) or module.__name__
    declared_roots: Any = getattr(module, roots_attribute, None)

    if declared_roots is not None:
        if not isinstance(declared_roots, Mapping):
            raise RuntimeError(
                f"{source_display}: {roots_attribute} must be a mapping of name -> schema, "
                f"got {type(declared_roots).__name__}."
            )
        schema_roots: dict[str, Schema] = {}
        for root_name, root_schema in declared_roots.items():
            if not isinstance(root_name, str) or not isinstance(root_schema, Schema):
                raise RuntimeError(
                    f"{source_display}: {roots_attribute}[{root_name!r}] is not a schema "
                    f"(got {type(root_schema).__name__})."
                )
            schema_roots[root_name] = root_schema
        return schema_roots

    module_file = getattr(module, "__file__", None)
    assigned_names = module_level_assignments(Path(module_file)) if module_file else None
    return {
        attribute_name: attribute_value
        for attribute_name, attribute_value in vars(module).items()
        if not attribute_name.startswith("_")
        and isinstance(attribute_value, Schema)
        and (assigned_names is None or attribute_name in assigned_names)
    }


def load_schema_roots(python_files: Iterable[Path], *, roots_attribute: str) -> dict[str, Schema]:
    """Load every file and merge their roots. A name bound to two different schemas is an error."""
    python_files = list(python_files)
    schema_roots: dict[str, Schema] = {}
    root_sources: dict[str, Path] = {}

    # Previous runs left hooks on their schema instances; start from freshly executed modules
    forget_input_modules()
    modules_before = set(sys.modules)
    try:
        modules = [(file_path, load_module_from_path(file_path)) for file_path in python_files]
    finally:
        _remember_input_modules(modules_before, (module_name_for_path(file_path)[1] for file_path in python_files))

    for file_path, module in modules:
        for root_name, root_schema in collect_schema_roots(module, roots_attribute=roots_attribute).items():
            existing_schema = schema_roots.get(root_name)
            if existing_schema is not None:
                if existing_schema is root_schema:
                    continue
                raise RuntimeError(
                    f"Schema name collision: {root_name} defined in both {root_sources[root_name]} and {file_path}.\n"
                    "Fix: rename one schema, or define it in a single module and import it."
                )
            schema_roots[root_name] = root_schema
            root_sources[root_name] = file_path

    if not schema_roots:
        raise RuntimeError(
            f"No schemas found. Define a {roots_attribute} mapping or module-level schema values."
        )
    return schema_roots


# ============================================================
# Generation
# ============================================================

def generate_typescript(
    inputs: Iterable[str],
    *,
    options: ConversionOptions,
    roots_attribute: str = "SCHEMAS",
    export: bool = True,
) -> str:
    """Load schema modules from inputs and render their declarations as one TypeScript module."""
    python_files = collect_python_files(inputs)
    schema_roots = load_schema_roots(python_files, roots_attribute=roots_attribute)
    conversion = convert_many(schema_roots, options)
    return print_module(conversion, export=export, header=AUTOGENERATED_HEADER)


def write_output(generated_typescript: str, out: str | None) -> None:
    if out:
        output_path = Path(out)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(generated_typescript, encoding="utf-8")
        print(f"{LOG_PREFIX} OK -> {output_path}", flush=True)
    else:
        print(generated_typescript, end="")


# ============================================================
# Watch mode
# ============================================================

class SchemaInputsFilter(DefaultFilter):
    """Only react to .py files that belong to the generator inputs."""

    def __init__(self, input_paths: Iterable[Path]) -> None:
        super().__init__()
        self.input_paths = [input_path.resolve() for input_path in input_paths]

    def __call__(self, change, path: str) -> bool:
        if not super().__call__(change, path):
            return False
        changed_path = Path(path).resolve()
        if changed_path.suffix != ".py" or "__pycache__" in changed_path.parts:
            return False
        return any(
            changed_path == input_path or input_path in changed_path.parents
            for input_path in self.input_paths
        )


def watch_directories(inputs: Iterable[str]) -> list[Path]:
    directories: list[Path] = []
    for raw_input in inputs:
        input_path = Path(raw_input)
        directory = input_path if input_path.is_dir() else input_path.parent
        if directory.exists() and directory.resolve() not in directories:
            directories.append(directory.resolve())
    return directories


def run_generation(inputs: list[str], *, options: ConversionOptions, roots_attribute: str, export: bool, out: str | None) -> None:
    generated_typescript = generate_typescript(
        inputs,
        options=options,
        roots_attribute=roots_attribute,
        export=export,
    )
    write_output(generated_typescript, out)


def watch_and_generate(
    inputs: list[str],
    *,
    options: ConversionOptions,
    roots_attribute: str,
    export: bool,
    out: str | None,
) -> int:
    """Generate once, then regenerate whenever an input changes. Failures are reported, not fatal."""
    directories = watch_directories(inputs)
    if not directories:
        print(f"{LOG_PREFIX} ERROR: nothing to watch for inputs: {', '.join(inputs)}", file=sys.stderr)
        return 2

    def regenerate() -> None:
        print(f"\n{LOG_PREFIX} Generating TS types...", flush=True)
        try:
            run_generation(inputs, options=options, roots_attribute=roots_attribute, export=export, out=out)
        except Exception as generation_error:
            print(f"{LOG_PREFIX} FAILED: {generation_error}", file=sys.stderr, flush=True)

    regenerate()

    print(f"{LOG_PREFIX} Watching:", flush=True)
    for directory in directories:
        print(f"  - {directory}", flush=True)

    input_filter = SchemaInputsFilter(Path(raw_input) for raw_input in inputs)
    for changes in watch(*map(str, directories), watch_filter=input_filter, debounce=300):
        changed = sorted({changed_path.replace("\\", "/") for (_change, changed_path) in changes})
        print(f"\n{LOG_PREFIX} Change detected:", flush=True)
        for changed_path in changed:
            print(f"  - {changed_path}", flush=True)

        regenerate()
        time.sleep(0.05)

    return 0


# ============================================================
# CLI
# ============================================================

def build_parser() -> argparse.ArgumentParser:
    """Create the CLI parser."""
    parser = argparse.ArgumentParser(
        prog=PROG_NAME,
        description="Generate TypeScript types from Python schema modules.",
    )
    parser.add_argument("inputs", nargs="+", help="Python files, globs, or directories")
    parser.add_argument("--out", dest="out", default=None, help="Write to file instead of stdout.")
    parser.add_argument(
        "--attr",
        dest="roots_attribute",
        default=None,
        help="Module attribute holding the {name: schema} mapping (default: SCHEMAS).",
    )
    parser.add_argument(
        "--no-resolve-native-enums",
        dest="no_resolve_native_enums",
        action="store_true",
        help="Reference native enums by name without emitting enum declarations.",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Fail on schema kinds with no TypeScript mapping instead of emitting any.",
    )
    parser.add_argument("--no-export", dest="no_export", action="store_true", help="Do not prefix declarations with export.")
    parser.add_argument("--watch", action="store_true", help="Regenerate whenever an input file changes.")
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint for generating TypeScript types."""
    parser = build_parser()
    parsed_args = parser.parse_args(argv)

    settings = GeneratorSettings()

    option_overrides: dict[str, bool] = {}
    if parsed_args.no_resolve_native_enums:
        option_overrides["resolve_native_enums"] = False
    if parsed_args.strict:
        option_overrides["strict"] = True
    options = resolve_options(option_overrides, base=settings.conversion_options)

    roots_attribute = parsed_args.roots_attribute or settings.roots_attribute
    export = settings.export_declarations and not parsed_args.no_export

    if parsed_args.watch:
        return watch_and_generate(
            parsed_args.inputs,
            options=options,
            roots_attribute=roots_attribute,
            export=export,
            out=parsed_args.out,
        )

    try:
        run_generation(
            parsed_args.inputs,
            options=options,
            roots_attribute=roots_attribute,
            export=export,
            out=parsed_args.out,
        )
    except Exception as exc:
        print(f"{PROG_NAME}: {exc}", file=sys.stderr)
        return 1

    return 0


if __name__ == "__main__":
    raise SystemExit(main())
