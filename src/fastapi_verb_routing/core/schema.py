"""Schema composition for request validation.

A route may declare up to three schemas, one for each request member:
path ``params``, ``query`` string and JSON ``body``. Each is either a
pydantic model (used as is) or a plain mapping of field name to type,
which is wrapped into a model. ``compose_schema`` folds the present ones
into a single model validating ``{"params": ..., "query": ..., "body": ...}``
so that every violation is reported in one pass.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, PydanticUserError, ValidationError, create_model

from fastapi_verb_routing.exceptions import RequestValidationFailure, RouteValidationError

SCHEMA_MEMBERS: tuple[str, ...] = ("params", "query", "body")

SchemaDescriptor = type[BaseModel] | Mapping[str, Any]


@dataclass(frozen=True)
class CompositeSchema:
    """One validator for the params, query and body of a request.

    Attributes:
        model: Generated pydantic model with one field per member.
        members: Members that carry a declared schema, in
            ``params, query, body`` order.
        mapping_members: Members declared as plain mappings; their
            validated value is returned as a dict rather than a model.
    """

    model: type[BaseModel]
    members: tuple[str, ...]
    mapping_members: frozenset[str] = frozenset()

    def validate(self, data: Mapping[str, Any]) -> dict[str, Any]:
        """Validate and coerce request data.

        Members without a declared schema are returned unchanged.

        Raises:
            RequestValidationFailure: With every violation found, not
                just the first.
        """
        try:
            validated = self.model.model_validate(dict(data))
        except ValidationError as exc:
            raise validation_failure(exc) from exc

        result: dict[str, Any] = {}
        for member in SCHEMA_MEMBERS:
            value = getattr(validated, member)
            if member in self.mapping_members:
                value = value.model_dump()
            result[member] = value
        return result


def is_model(descriptor: Any) -> bool:
    """Check if a schema descriptor is a pre-built pydantic model."""
    return isinstance(descriptor, type) and issubclass(descriptor, BaseModel)


def build_member_model(
    descriptor: SchemaDescriptor,
    *,
    name: str,
    strict: bool = False,
) -> type[BaseModel]:
    """Normalize a schema descriptor into a pydantic model.

    Mapping values are either a type (required field) or a
    ``(type, default)`` tuple. Unknown keys pass through unless
    ``strict`` is set.

    Raises:
        RouteValidationError: If the descriptor is neither a model nor a
            mapping, or pydantic cannot build a schema from its field rules.
    """
    if is_model(descriptor):
        return descriptor  # type: ignore[return-value]

    if not isinstance(descriptor, Mapping):
        raise RouteValidationError(
            f"{name} must be a pydantic model or a mapping of field rules, "
            f"got {type(descriptor).__name__}"
        )

    fields = {field: _field_definition(rule) for field, rule in descriptor.items()}
    config = ConfigDict(extra="forbid" if strict else "allow")
    return _create_model(name, __config__=config, **fields)


def compose_schema(
    params_schema: SchemaDescriptor | None = None,
    query_schema: SchemaDescriptor | None = None,
    body_schema: SchemaDescriptor | None = None,
    *,
    strict: bool = False,
    name: str = "Request",
) -> CompositeSchema | None:
    """Build one composite schema from the declared request schemas.

    Returns None when no schema is declared. Absent members are typed
    ``Any`` and impose no constraint.

    Raises:
        RouteValidationError: If a descriptor cannot be turned into a model.

    Example:
        schema = compose_schema(params_schema={"id": int})
        schema.validate({"params": {"id": "7"}, "query": {}, "body": {}})
        # {"params": {"id": 7}, "query": {}, "body": {}}
    """
    descriptors = {
        "params": params_schema,
        "query": query_schema,
        "body": body_schema,
    }
    if all(descriptor is None for descriptor in descriptors.values()):
        return None

    fields: dict[str, Any] = {}
    members: list[str] = []
    mapping_members: set[str] = set()

    for member, descriptor in descriptors.items():
        if descriptor is None:
            fields[member] = (Any, None)
            continue

        member_model = build_member_model(
            descriptor,
            name=f"{name}{member.capitalize()}",
            strict=strict,
        )
        fields[member] = (member_model, ...)
        members.append(member)
        if not is_model(descriptor):
            mapping_members.add(member)

    return CompositeSchema(
        model=_create_model(name, **fields),
        members=tuple(members),
        mapping_members=frozenset(mapping_members),
    )


def validation_failure(exc: ValidationError) -> RequestValidationFailure:
    """Convert a pydantic ValidationError into a RequestValidationFailure.

    Each error becomes ``"<location>: <message>"``, e.g.
    ``"params.id: Input should be a valid integer"``.
    """
    errors = [_format_error(error) for error in exc.errors()]
    count = len(errors)
    message = "1 error occurred" if count == 1 else f"{count} errors occurred"
    return RequestValidationFailure(message, errors)


def _create_model(name: str, /, **kwargs: Any) -> type[BaseModel]:
    try:
        return create_model(name, **kwargs)
    except (PydanticUserError, TypeError, NameError) as exc:
        raise RouteValidationError(f"Cannot build schema {name}: {exc}") from exc


def _field_definition(rule: Any) -> tuple[Any, Any]:
    if isinstance(rule, tuple) and len(rule) == 2:
        return rule
    return (rule, ...)


def _format_error(error: Mapping[str, Any]) -> str:
    location = ""
    for part in error.get("loc", ()):
        if isinstance(part, int):
            location += f"[{part}]"
        else:
            location += f".{part}" if location else str(part)

    if not location:
        return error["msg"]
    return f"{location}: {error['msg']}"
