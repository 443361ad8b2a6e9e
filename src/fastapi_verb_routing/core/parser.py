"""Path segment parser and pattern compiler for verb-file routing.

Converts the directory part of a verb file path into a route pattern:
- users -> /users (literal)
- [id] -> :id (parameter)
- departments/[id]/employees/[id] -> /departments/:departmentId/employees/:id

Parsing and disambiguation are separate passes. ``parse_path`` only
classifies segments; ``disambiguate`` renames every ancestor parameter to
``<singular owner><Name>`` so nested resources can reuse ``[id]`` without
their keys colliding. The innermost parameter keeps its bare name.
"""

import re
from dataclasses import dataclass, replace
from enum import Enum

import inflect

from fastapi_verb_routing.exceptions import PathParseError

_inflect = inflect.engine()


class SegmentType(Enum):
    """Type of a URL path segment."""

    LITERAL = "literal"
    PARAMETER = "parameter"


@dataclass(frozen=True)
class PathSegment:
    """A parsed URL path segment.

    For parameters, ``name`` is the runtime key. It equals the bracket name
    straight out of ``parse_path_segment`` and becomes the disambiguated key
    after ``disambiguate``.
    """

    name: str
    segment_type: SegmentType
    original: str

    @property
    def is_parameter(self) -> bool:
        """Check if this segment represents a path parameter."""
        return self.segment_type == SegmentType.PARAMETER

    def to_pattern_segment(self) -> str:
        """Render in canonical pattern syntax: ``users`` or ``:id``."""
        if self.is_parameter:
            return f":{self.name}"
        return self.name

    def to_fastapi_segment(self) -> str:
        """Render in FastAPI path syntax: ``users`` or ``{id}``."""
        if self.is_parameter:
            return f"{{{self.name}}}"
        return self.name


@dataclass(frozen=True)
class ParameterBinding:
    """One named path parameter of a compiled route.

    Attributes:
        token: Raw directory name, e.g. ``[id]``.
        owner: Literal segment immediately before it, or None.
        key: Disambiguated name the handler reads from ``params``.
    """

    token: str
    owner: str | None
    key: str


@dataclass(frozen=True)
class RoutePattern:
    """A compiled route pattern: disambiguated segments and their bindings."""

    segments: tuple[PathSegment, ...]
    parameters: tuple[ParameterBinding, ...]

    @property
    def pattern(self) -> str:
        """Canonical pattern string, e.g. ``/departments/:departmentId``."""
        return _join(s.to_pattern_segment() for s in self.segments)

    @property
    def fastapi_path(self) -> str:
        """FastAPI path string, e.g. ``/departments/{departmentId}``."""
        return _join(s.to_fastapi_segment() for s in self.segments)

    @property
    def shape(self) -> str:
        """Pattern with every parameter collapsed, for conflict detection.

        ``/users/:id`` and ``/users/:slug`` share the shape ``/users/:``
        and would shadow each other in the host router.
        """
        return _join(":" if s.is_parameter else s.name for s in self.segments)


_PARAMETER_PATTERN = re.compile(r"^\[([A-Za-z_][A-Za-z0-9_]*)\]$")
_LITERAL_PATTERN = re.compile(r"^[A-Za-z0-9_~-][A-Za-z0-9_.~-]*$")
_WORD_SEPARATOR = re.compile(r"[^A-Za-z0-9]+")
_VALID_KEY = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def parse_path_segment(segment: str) -> PathSegment:
    """Parse a single directory name into a PathSegment.

    Args:
        segment: Directory name to parse.

    Returns:
        PathSegment with detected type and extracted name.

    Raises:
        PathParseError: If segment has invalid syntax.

    Examples:
        "users" -> PathSegment(name="users", segment_type=LITERAL, ...)
        "[id]" -> PathSegment(name="id", segment_type=PARAMETER, ...)
    """
    if not segment:
        raise PathParseError("Empty segment")

    if match := _PARAMETER_PATTERN.match(segment):
        return PathSegment(
            name=match.group(1),
            segment_type=SegmentType.PARAMETER,
            original=segment,
        )

    if _LITERAL_PATTERN.match(segment):
        return PathSegment(
            name=segment,
            segment_type=SegmentType.LITERAL,
            original=segment,
        )

    raise PathParseError(
        f"Invalid path segment '{segment}'. "
        f"Use [param] with an identifier name, or letters, digits, '-', '_', '.', '~'."
    )


def parse_path(path_parts: list[str] | tuple[str, ...]) -> list[PathSegment]:
    """Parse a list of directory names into PathSegments.

    Raises:
        PathParseError: If any segment has invalid syntax.
    """
    return [parse_path_segment(part) for part in path_parts]


def singularize(word: str) -> str:
    """Singularize a resource name into a camelCase key prefix.

    Only the last word is singularized; word separators are dropped.

    Examples:
        "departments" -> "department"
        "categories" -> "category"
        "line-items" -> "lineItem"
    """
    words = [w for w in _WORD_SEPARATOR.split(word) if w]
    if not words:
        raise PathParseError(f"Cannot derive a parameter prefix from '{word}'")

    words[-1] = _inflect.singular_noun(words[-1]) or words[-1]
    return words[0] + "".join(w[:1].upper() + w[1:] for w in words[1:])


def disambiguate(
    segments: list[PathSegment],
) -> tuple[list[PathSegment], list[ParameterBinding]]:
    """Assign a unique runtime key to every parameter segment.

    The last segment of the path is the leaf resource and keeps its bare
    name. Every other parameter is renamed to its owner's singular form
    joined with its capitalized name, so ``a/[id]/b/[id]`` becomes
    ``/a/:aId/b/:id``.

    Raises:
        PathParseError: If an ancestor parameter has no literal owner, is
            directly followed by another parameter, or two parameters end
            up with the same key.
    """
    last_index = len(segments) - 1
    resolved: list[PathSegment] = []
    bindings: list[ParameterBinding] = []
    path = "/".join(s.original for s in segments)

    for index, segment in enumerate(segments):
        if not segment.is_parameter:
            resolved.append(segment)
            continue

        previous = segments[index - 1] if index > 0 else None
        owner = previous.name if previous is not None and not previous.is_parameter else None

        if index == last_index:
            key = segment.name
        else:
            if segments[index + 1].is_parameter:
                raise PathParseError(
                    f"Unsupported path '{path}': parameter '{segment.original}' is directly "
                    f"followed by '{segments[index + 1].original}'. "
                    f"Separate nested parameters with a literal segment."
                )
            if owner is None:
                raise PathParseError(
                    f"Unsupported path '{path}': parameter '{segment.original}' has no "
                    f"literal segment before it to name it after."
                )
            key = singularize(owner) + segment.name[:1].upper() + segment.name[1:]

        if not _VALID_KEY.match(key):
            raise PathParseError(
                f"Unsupported path '{path}': parameter key '{key}' is not a valid identifier"
            )
        if any(b.key == key for b in bindings):
            raise PathParseError(
                f"Unsupported path '{path}': more than one parameter resolves to '{key}'"
            )

        resolved.append(replace(segment, name=key))
        bindings.append(ParameterBinding(token=segment.original, owner=owner, key=key))

    return resolved, bindings


def compile_route_pattern(path_parts: list[str] | tuple[str, ...]) -> RoutePattern:
    """Compile the directory parts of a verb file path into a RoutePattern.

    Examples:
        [] -> "/"
        ["users"] -> "/users"
        ["departments", "[id]", "employees", "[id]"]
            -> "/departments/:departmentId/employees/:id"
    """
    segments, bindings = disambiguate(parse_path(path_parts))
    return RoutePattern(segments=tuple(segments), parameters=tuple(bindings))


def _join(parts) -> str:
    joined = "/".join(parts)
    return f"/{joined}" if joined else "/"
