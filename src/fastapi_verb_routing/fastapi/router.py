"""Router factory for verb-file routing.

Composes scanner, importer, parser, schema composer and pipeline to
create a FastAPI router (or a complete application) from a directory
of verb files.
"""

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any

import inflect
from fastapi import APIRouter, FastAPI
from fastapi.encoders import jsonable_encoder
from starlette.datastructures import QueryParams
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from fastapi_verb_routing.config import DEFAULT_ROUTES_DIR, RouterConfig, is_development
from fastapi_verb_routing.core.importer import load_route
from fastapi_verb_routing.core.pipeline import (
    PipelineResult,
    RequestParts,
    RequestPipeline,
    RouteDefinition,
    build_route_definition,
)
from fastapi_verb_routing.core.scanner import discover_routes
from fastapi_verb_routing.exceptions import ApiError, DuplicateRouteError, RouteValidationError
from fastapi_verb_routing.fastapi.errors import ErrorHandler, install_error_handler

logger = logging.getLogger(__name__)

_inflect = inflect.engine()

BAD_REQUEST = 400


def create_app(
    routes_dir: str | Path = DEFAULT_ROUTES_DIR,
    *,
    error_handler: ErrorHandler | None = None,
    prefix: str = "",
    config: RouterConfig | None = None,
    **app_kwargs: Any,
) -> FastAPI:
    """Create a FastAPI application serving every route under routes_dir.

    Registers all discovered verb files and installs the error
    translator as the terminal failure handler.

    Args:
        routes_dir: Root directory of verb files, ``./routes`` by default.
        error_handler: Replacement for default_error_handler, called as
            ``error_handler(request, exc)`` and returning a Response.
        prefix: Optional URL prefix for all discovered routes.
        config: Full configuration; takes precedence over routes_dir
            and prefix.
        **app_kwargs: Passed to the FastAPI constructor.

    Raises:
        RouteDiscoveryError: If routes_dir doesn't exist or isn't a directory.
        PathParseError: If a directory layout is unsupported.
        DuplicateRouteError: If two verb files resolve to the same route.

    Example:
        from fastapi_verb_routing import create_app

        app = create_app("routes")
    """
    config = config or RouterConfig(routes_dir=routes_dir, prefix=prefix)

    app = FastAPI(**app_kwargs)
    app.include_router(create_router_from_path(config.routes_dir, config=config))
    install_error_handler(app, error_handler)
    return app


def create_router_from_path(
    base_path: str | Path,
    *,
    prefix: str = "",
    config: RouterConfig | None = None,
) -> APIRouter:
    """Create a FastAPI APIRouter from a directory of verb files.

    Routes are registered in reverse lexicographic order of their file
    path. Failures raised by the pipelines propagate out of the router;
    call install_error_handler on the application to translate them.

    Args:
        base_path: Root directory containing verb files.
        prefix: Optional URL prefix for all discovered routes.
        config: Optional configuration; its prefix wins over ``prefix``.

    Returns:
        A FastAPI APIRouter with all discovered routes registered.

    Raises:
        RouteDiscoveryError: If base_path doesn't exist or isn't a directory.
        PathParseError: If a directory layout is unsupported.
        DuplicateRouteError: If two verb files resolve to the same route.

    Example:
        app = FastAPI()
        app.include_router(create_router_from_path("routes"))
        install_error_handler(app)
    """
    development = config.development if config is not None else is_development()
    if config is not None:
        prefix = config.prefix

    routes = build_route_table(base_path)

    router = APIRouter(prefix=prefix)
    for route in routes:
        _add_route(router, route)
        if development:
            _log_route(route, prefix)

    logger.info(
        "Route registration complete",
        extra={"route_count": len(routes), "prefix": prefix or "(none)"},
    )

    return router


def build_route_table(base_path: str | Path) -> tuple[RouteDefinition, ...]:
    """Discover, load and compile every verb file under base_path.

    Files that fail to import, or export no usable handler, are skipped
    with a warning.

    Returns:
        Route definitions in registration order.

    Raises:
        RouteDiscoveryError: If base_path doesn't exist or isn't a directory.
        PathParseError: If a directory layout is unsupported.
        DuplicateRouteError: If two verb files resolve to the same route.
    """
    base = Path(base_path).resolve()
    route_files = discover_routes(base)

    logger.info(
        "Discovered route files",
        extra={"count": len(route_files), "base_path": str(base)},
    )

    routes: list[RouteDefinition] = []
    registered: dict[tuple[str, str], RouteDefinition] = {}

    for route_file in route_files:
        try:
            export = load_route(route_file, base_path=base)
            route = build_route_definition(route_file, export)
        except RouteValidationError as exc:
            logger.warning(
                "Skipping invalid file %s; %s",
                route_file.relative_path,
                exc,
                extra={"file": str(route_file.file_path)},
            )
            continue

        route_key = (route.verb, route.pattern.shape)
        if route_key in registered:
            first = registered[route_key]
            first_file = first.source.relative_path if first.source else first.pattern.pattern
            raise DuplicateRouteError(
                f"Duplicate route: {route.method} {route.pattern.pattern}\n"
                f"  First: {first_file}\n"
                f"  Second: {route_file.relative_path}"
            )
        registered[route_key] = route
        routes.append(route)

    return tuple(routes)


async def extract_request(request: Request) -> RequestParts:
    """Read path parameters, query string and JSON body from a request.

    Repeated query keys become lists. A missing or non-JSON body reads
    as ``{}``.

    Raises:
        ApiError: 400 if a JSON body cannot be parsed.
    """
    return RequestParts(
        params=dict(request.path_params),
        query=_query_dict(request.query_params),
        body=await _read_json_body(request),
    )


def render_result(result: PipelineResult) -> Response:
    """Convert a PipelineResult into a Starlette response."""
    if result.is_empty:
        return Response(status_code=result.status_code)
    return JSONResponse(jsonable_encoder(result.content), status_code=result.status_code)


def _add_route(router: APIRouter, route: RouteDefinition) -> None:
    """Register one route's pipeline on the router."""
    endpoint = _make_endpoint(RequestPipeline(route, extract_request))

    router.add_api_route(
        path=route.pattern.fastapi_path,
        endpoint=endpoint,
        methods=[route.method],
        name=f"{route.verb} {route.pattern.pattern}",
        description=route.handler.__doc__,
    )

    logger.debug(
        "Registered route",
        extra={
            "method": route.method,
            "path": route.pattern.fastapi_path,
            "file": str(route.source.file_path) if route.source else None,
        },
    )


def _make_endpoint(pipeline: RequestPipeline) -> Callable[[Request], Any]:
    async def endpoint(request: Request) -> Response:
        return render_result(await pipeline(request))

    handler_name = getattr(pipeline.route.handler, "__name__", "handler")
    endpoint.__name__ = f"{pipeline.route.verb}_{handler_name}"
    endpoint.__qualname__ = endpoint.__name__
    return endpoint


def _log_route(route: RouteDefinition, prefix: str) -> None:
    """Log a human-readable line describing a registered route."""
    details: list[str] = []
    if route.schema is not None:
        details.append(f"validates {_inflect.join(list(route.schema.members))}")
    if route.before is not None:
        details.append("before hook")

    suffix = f" ({'; '.join(details)})" if details else ""
    source = route.source.relative_path if route.source else "?"
    logger.info(
        "[API] %s %s%s -> %s%s",
        route.method,
        prefix,
        route.pattern.pattern,
        source,
        suffix,
    )


def _query_dict(query_params: QueryParams) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key in query_params.keys():
        values = query_params.getlist(key)
        result[key] = values if len(values) > 1 else values[0]
    return result


async def _read_json_body(request: Request) -> Any:
    raw = await request.body()
    if not raw:
        return {}

    media_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    if media_type != "application/json" and not media_type.endswith("+json"):
        return {}

    try:
        return json.loads(raw)
    except ValueError as exc:
        raise ApiError(BAD_REQUEST, "Malformed JSON in request body") from exc
