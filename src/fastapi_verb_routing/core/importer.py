"""Module importer for verb-file routing.

Dynamically imports verb files and resolves their ``handler`` export
into a DirectHandler or a ConfiguredHandler.
"""

import hashlib
import importlib.util
import re
import sys
from pathlib import Path
from types import ModuleType

from fastapi_verb_routing.core.handlers import (
    ConfiguredHandler,
    DirectHandler,
    HandlerExport,
    configured_handler,
)
from fastapi_verb_routing.core.scanner import RouteFile
from fastapi_verb_routing.exceptions import RouteValidationError

# Root of the synthetic package tree verb files are imported under
MODULE_PREFIX = "_verb_routes"

# Module-level attributes that turn a bare handler into a configured one
CONFIG_ATTRIBUTES: tuple[str, ...] = (
    "params_schema",
    "query_schema",
    "body_schema",
    "before",
    "strict",
)

_ESCAPED_NAME_CHARS = re.compile(r"[^A-Za-z0-9]")


def _validate_file_path(file_path: Path, *, base_path: Path | None = None) -> Path:
    """Validate a verb file path for security and correctness.

    Args:
        file_path: Path to the verb file.
        base_path: Optional base directory to restrict imports to.

    Returns:
        Resolved absolute path to the verb file.

    Raises:
        RouteValidationError: If the path is invalid or insecure.
    """
    resolved_path = file_path.resolve()

    # Check for path traversal attempts (.. as path component, not inside filenames)
    if ".." in file_path.parts:
        raise RouteValidationError(f"Path traversal detected in file path: {file_path}")

    if base_path is not None:
        resolved_base = base_path.resolve()
        try:
            resolved_path.relative_to(resolved_base)
        except ValueError:
            raise RouteValidationError(
                f"Route file outside allowed directory: {resolved_path}\n"
                f"Allowed base: {resolved_base}"
            ) from None

    if resolved_path.suffix != ".py":
        raise RouteValidationError(f"Invalid route file name: {resolved_path.name}")

    return resolved_path


def _path_to_module_name(file_path: Path, base_path: Path | None = None) -> str:
    """Convert a file path to a deterministic module name.

    The name is scoped by a digest of the base path, so two route trees
    with the same layout never share modules.

    Every character outside [A-Za-z0-9] is escaped reversibly (``_`` as
    ``__``, anything else as ``_<hex>_``), so distinct paths never map to
    the same module.

    Examples:
        <base>/users/[id]/get.py -> _verb_routes.r1a2b3c4d.users._5b_id_5d_.get
        <base>/line-items/get.py -> _verb_routes.r1a2b3c4d.line_2d_items.get
        <base>/line_items/get.py -> _verb_routes.r1a2b3c4d.line__items.get
    """
    base = base_path.resolve() if base_path is not None else file_path.parent
    try:
        rel_path = file_path.relative_to(base)
    except ValueError:
        rel_path = Path(file_path.name)

    digest = hashlib.sha1(str(base).encode()).hexdigest()[:8]
    converted = [MODULE_PREFIX, f"r{digest}"]
    converted.extend(_escape_name_part(part) for part in rel_path.with_suffix("").parts)

    return ".".join(converted)


def _escape_name_part(part: str) -> str:
    return _ESCAPED_NAME_CHARS.sub(_escape_char, part)


def _escape_char(match: re.Match[str]) -> str:
    char = match.group()
    if char == "_":
        return "__"
    return f"_{ord(char):x}_"


def _register_parent_packages(module_name: str) -> None:
    """Register placeholder parent packages in sys.modules for nested module names."""
    parts = module_name.split(".")
    for i in range(1, len(parts)):
        parent_name = ".".join(parts[:i])
        if parent_name not in sys.modules:
            parent_module = ModuleType(parent_name)
            parent_module.__path__ = []
            parent_module.__package__ = parent_name
            sys.modules[parent_name] = parent_module


def _import_module_from_file(file_path: Path, module_name: str) -> ModuleType:
    """Low-level module import from file path.

    Handles spec creation, sys.modules registration, and error cleanup.

    Raises:
        RouteValidationError: If spec creation fails or module execution fails.
    """
    spec = importlib.util.spec_from_file_location(module_name, file_path)
    if spec is None or spec.loader is None:
        raise RouteValidationError(f"Cannot create module spec for: {file_path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module

    try:
        spec.loader.exec_module(module)
    except Exception as exc:
        del sys.modules[module_name]
        raise RouteValidationError(
            f"Failed to import module: {file_path}\nError: {type(exc).__name__}: {exc}"
        ) from exc

    return module


def import_route_module(file_path: Path, *, base_path: Path | None = None) -> ModuleType:
    """Import a verb file as a Python module.

    Args:
        file_path: Path to the verb file.
        base_path: Optional base directory to restrict imports to.

    Returns:
        The imported module.

    Raises:
        RouteValidationError: If the path is invalid, file doesn't exist,
            or import fails.
    """
    validated_path = _validate_file_path(file_path, base_path=base_path)

    if not validated_path.exists():
        raise RouteValidationError(f"Route file does not exist: {validated_path}")

    module_name = _path_to_module_name(validated_path, base_path)

    # Return cached module if already imported
    if module_name in sys.modules:
        return sys.modules[module_name]

    _register_parent_packages(module_name)

    return _import_module_from_file(validated_path, module_name)


def resolve_handler(module: ModuleType, file_path: Path) -> HandlerExport:
    """Classify a verb module's export.

    Args:
        module: The imported verb module.
        file_path: Path to the verb file (for error messages).

    Returns:
        DirectHandler for a bare ``handler`` callable, ConfiguredHandler
        when the module also declares schemas, a ``before`` hook, or uses
        ``class handler(route)``.

    Raises:
        RouteValidationError: If no callable handler is exported or a
            declared hook is not callable.
    """
    handler = getattr(module, "handler", None)

    if isinstance(handler, (ConfiguredHandler, DirectHandler)):
        return handler

    if handler is None or not callable(handler):
        raise RouteValidationError(
            f"No request handler found in {file_path}\n"
            f"  Hint: Define 'async def handler(data)' or 'class handler(route)'"
        )

    options = {name: getattr(module, name) for name in CONFIG_ATTRIBUTES if hasattr(module, name)}
    if not options:
        return DirectHandler(handler)

    return configured_handler(handler, **options, source=str(file_path))


def load_route(route_file: RouteFile, *, base_path: Path | None = None) -> HandlerExport:
    """Import a verb file and resolve its handler (convenience function).

    Raises:
        RouteValidationError: If the path is invalid, import fails,
            or the export is invalid.
    """
    module = import_route_module(route_file.file_path, base_path=base_path)
    return resolve_handler(module, route_file.file_path)
