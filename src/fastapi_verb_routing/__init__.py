"""FastAPI verb-file routing: routes inferred from a directory of get.py, post.py, ... files."""

# Configuration
from fastapi_verb_routing.config import RouterConfig

# Core types: for advanced users and type checking
from fastapi_verb_routing.core.handlers import ConfiguredHandler, DirectHandler, route
from fastapi_verb_routing.core.parser import (
    ParameterBinding,
    PathSegment,
    RoutePattern,
    SegmentType,
    compile_route_pattern,
)
from fastapi_verb_routing.core.pipeline import RequestData, RouteDefinition
from fastapi_verb_routing.core.scanner import RouteFile, discover_routes
from fastapi_verb_routing.core.schema import CompositeSchema, compose_schema

# Exceptions: for error handling
from fastapi_verb_routing.exceptions import (
    ApiError,
    DuplicateRouteError,
    FileBasedRoutingError,
    PathParseError,
    RequestValidationFailure,
    RouteDiscoveryError,
    RouteValidationError,
)
from fastapi_verb_routing.fastapi.errors import default_error_handler, install_error_handler
from fastapi_verb_routing.fastapi.router import create_app, create_router_from_path

__all__ = [
    # Primary API
    "create_app",
    "create_router_from_path",
    "install_error_handler",
    "default_error_handler",
    "RouterConfig",
    # Handler API
    "route",
    "RequestData",
    "ApiError",
    # Core types
    "CompositeSchema",
    "ConfiguredHandler",
    "DirectHandler",
    "ParameterBinding",
    "PathSegment",
    "RouteDefinition",
    "RouteFile",
    "RoutePattern",
    "SegmentType",
    "compile_route_pattern",
    "compose_schema",
    "discover_routes",
    # Exceptions
    "DuplicateRouteError",
    "FileBasedRoutingError",
    "PathParseError",
    "RequestValidationFailure",
    "RouteDiscoveryError",
    "RouteValidationError",
]

__version__ = "0.1.0"
