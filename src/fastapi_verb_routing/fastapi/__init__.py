"""FastAPI adapter for verb-file routing."""

from fastapi_verb_routing.fastapi.errors import (
    ErrorTranslationMiddleware,
    default_error_handler,
    install_error_handler,
)
from fastapi_verb_routing.fastapi.router import create_app, create_router_from_path

__all__ = [
    "ErrorTranslationMiddleware",
    "create_app",
    "create_router_from_path",
    "default_error_handler",
    "install_error_handler",
]
