"""Per-route request pipeline.

Runs the steps of one request in strict sequence:

1. the ``before`` hook, with the raw request;
2. extraction of ``params``, ``query`` and ``body``;
3. validation against the composite schema, all errors at once;
4. the handler, with a RequestData;
5. mapping of the handler result to a status and content.

Failures are not handled here. They propagate to whatever wraps the
pipeline, which hands them to the error translator. Zero framework
dependencies: the adapter supplies request extraction and renders the
PipelineResult.
"""

import re
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

from fastapi_verb_routing.core.handlers import ConfiguredHandler, HandlerExport, invoke
from fastapi_verb_routing.core.parser import RoutePattern, compile_route_pattern
from fastapi_verb_routing.core.scanner import RouteFile
from fastapi_verb_routing.core.schema import CompositeSchema, compose_schema

OK = 200

# Status codes for a handler that returns nothing, by verb
EMPTY_STATUS_CODES: dict[str, int] = {
    "post": 201,  # Created
}
EMPTY_STATUS_DEFAULT = 204  # No Content


@dataclass(frozen=True)
class RequestParts:
    """The request members a schema can validate."""

    params: Any
    query: Any
    body: Any


@dataclass(frozen=True)
class RequestData:
    """The single argument every handler receives.

    Attributes:
        params: Path parameters, keyed by their disambiguated names.
        query: Query string values.
        body: Parsed JSON body.
        req: The raw host request.
    """

    params: Any
    query: Any
    body: Any
    req: Any


@dataclass(frozen=True)
class RouteDefinition:
    """A compiled route ready for registration.

    Built once at startup and never modified.
    """

    verb: str
    pattern: RoutePattern
    handler: Callable[..., Any]
    schema: CompositeSchema | None = None
    before: Callable[..., Any] | None = None
    source: RouteFile | None = None

    @property
    def method(self) -> str:
        """Uppercase HTTP method."""
        return self.verb.upper()


@dataclass(frozen=True)
class PipelineResult:
    """Outcome of a successful pipeline run.

    ``content`` is None for empty responses.
    """

    status_code: int
    content: Any = None

    @property
    def is_empty(self) -> bool:
        """True when there is no content to send."""
        return self.content is None


def build_route_definition(route_file: RouteFile, export: HandlerExport) -> RouteDefinition:
    """Compile a discovered verb file and its handler export into a route.

    Raises:
        PathParseError: If the directory layout is unsupported.
        RouteValidationError: If a schema descriptor is invalid.
    """
    pattern = compile_route_pattern(route_file.relative_dirs)

    if not isinstance(export, ConfiguredHandler):
        return RouteDefinition(
            verb=route_file.verb,
            pattern=pattern,
            handler=export.handler,
            source=route_file,
        )

    schema = compose_schema(
        export.params_schema,
        export.query_schema,
        export.body_schema,
        strict=export.strict,
        name=_model_name(route_file),
    )
    return RouteDefinition(
        verb=route_file.verb,
        pattern=pattern,
        handler=export.handler,
        schema=schema,
        before=export.before,
        source=route_file,
    )


def result_for(verb: str, value: Any) -> PipelineResult:
    """Map a handler return value to a PipelineResult.

    None becomes an empty response: 201 for ``post``, 204 otherwise.
    Any other value is sent as JSON with 200.
    """
    if value is None:
        return PipelineResult(status_code=EMPTY_STATUS_CODES.get(verb, EMPTY_STATUS_DEFAULT))
    return PipelineResult(status_code=OK, content=value)


class RequestPipeline:
    """The request-handling procedure bound to one RouteDefinition.

    Args:
        route: The compiled route.
        extract_request: Callable returning RequestParts for a raw
            request; may be async.
    """

    def __init__(
        self,
        route: RouteDefinition,
        extract_request: Callable[[Any], RequestParts | Awaitable[RequestParts]],
    ) -> None:
        self.route = route
        self.extract_request = extract_request

    async def __call__(self, request: Any) -> PipelineResult:
        route = self.route

        if route.before is not None:
            await invoke(route.before, request)

        parts: RequestParts = await invoke(self.extract_request, request)
        data = {"params": parts.params, "query": parts.query, "body": parts.body}

        if route.schema is not None:
            data = route.schema.validate(data)

        value = await invoke(route.handler, RequestData(**data, req=request))
        return result_for(route.verb, value)

    def __repr__(self) -> str:
        return f"RequestPipeline({self.route.method} {self.route.pattern.pattern})"


def _model_name(route_file: RouteFile) -> str:
    words = re.split(r"[^A-Za-z0-9]+", "/".join((route_file.verb, *route_file.relative_dirs)))
    return "".join(w[:1].upper() + w[1:] for w in words if w) + "Request"
