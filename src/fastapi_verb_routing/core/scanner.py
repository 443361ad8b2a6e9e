"""Directory scanner for verb-file routing.

Walks the directory tree to discover verb files (get.py, post.py, ...)
and returns them in the order they must be registered.
"""

import logging
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

import inflect

from fastapi_verb_routing.exceptions import RouteDiscoveryError

logger = logging.getLogger(__name__)

_inflect = inflect.engine()

# File stems that define a route, one HTTP method each
VALID_VERBS: tuple[str, ...] = ("get", "post", "put", "patch", "delete")

# Reserved file stem that never defines a route
RESERVED_NAME = "index"


@dataclass(frozen=True)
class RouteFile:
    """A discovered verb file.

    Attributes:
        relative_dirs: Directory names from the base path to the file.
        verb: Lowercase HTTP method taken from the file stem.
        file_path: Absolute path to the file.
    """

    relative_dirs: tuple[str, ...]
    verb: str
    file_path: Path

    @property
    def relative_path(self) -> str:
        """Posix path relative to the base path, e.g. ``users/[id]/get.py``."""
        return PurePosixPath(*self.relative_dirs, self.file_path.name).as_posix()


def discover_routes(base_path: Path | str) -> list[RouteFile]:
    """Scan a directory tree for verb files.

    Files named ``index.py``, private modules (``_helpers.py``,
    ``__init__.py``), hidden entries and ``__pycache__`` are skipped
    silently. Any other module whose stem is not a verb is skipped with
    a warning.

    The result is sorted in reverse lexicographic order of the relative
    path, so ``resource/list/get.py`` comes before ``resource/[id]/get.py``
    and the literal route is matched first by the host router.

    Args:
        base_path: Root directory to scan.

    Returns:
        RouteFile entries in registration order.

    Raises:
        RouteDiscoveryError: If base_path doesn't exist or isn't a directory.
    """
    base = Path(base_path).resolve()

    if not base.exists():
        raise RouteDiscoveryError(f"Base path does not exist: {base}")
    if not base.is_dir():
        raise RouteDiscoveryError(f"Base path is not a directory: {base}")

    route_files: list[RouteFile] = []

    for py_file in base.rglob("*.py"):
        relative = py_file.relative_to(base)

        # Skip __pycache__ and hidden directories (starting with .)
        if any(part == "__pycache__" or part.startswith(".") for part in relative.parts):
            continue

        # Private helpers and package markers
        if py_file.name.startswith("_"):
            continue

        # Security: Resolve symlinks and verify file is within base path
        if not _is_path_within(py_file.resolve(), base):
            continue

        verb = py_file.stem
        if verb == RESERVED_NAME:
            continue

        if verb not in VALID_VERBS:
            logger.warning(
                "Skipping invalid file %s; name must be one of %s",
                relative.as_posix(),
                _inflect.join([f"{v}.py" for v in VALID_VERBS], conj="or"),
                extra={"file": str(py_file)},
            )
            continue

        route_files.append(
            RouteFile(
                relative_dirs=relative.parent.parts,
                verb=verb,
                file_path=py_file,
            )
        )

    return sorted(route_files, key=lambda rf: rf.relative_path, reverse=True)


def _is_path_within(path: Path, base: Path) -> bool:
    """Check if a resolved path is within a base directory."""
    try:
        path.relative_to(base)
        return True
    except ValueError:
        return False

