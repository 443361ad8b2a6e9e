"""Error translation for FastAPI applications.

ErrorTranslationMiddleware is the terminal failure handler for every
route pipeline: it catches what the pipeline raises and lets the
configured error handler build the response. If the response has
already started, the failure is re-raised to Starlette's
ServerErrorMiddleware instead of writing a second response.
"""

from collections.abc import Awaitable, Callable

from fastapi import FastAPI
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from fastapi_verb_routing.core.errors import translate_error
from fastapi_verb_routing.core.handlers import invoke

ErrorHandler = Callable[[Request, Exception], Response | Awaitable[Response]]


def default_error_handler(request: Request, exc: Exception) -> Response:
    """Translate a pipeline failure into a JSON error response."""
    error = translate_error(
        exc,
        context={"method": request.method, "path": request.url.path},
    )
    return JSONResponse(error.content, status_code=error.status_code)


class ErrorTranslationMiddleware:
    """Pure ASGI middleware routing request failures to an error handler.

    Args:
        app: The wrapped ASGI application.
        error_handler: Callable ``(request, exc) -> Response``, sync or
            async. Defaults to default_error_handler.
    """

    def __init__(self, app: ASGIApp, error_handler: ErrorHandler | None = None) -> None:
        self.app = app
        self.error_handler = error_handler or default_error_handler

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def sender(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await self.app(scope, receive, sender)
        except Exception as exc:
            if response_started:
                raise
            response = await invoke(self.error_handler, Request(scope), exc)
            await response(scope, receive, send)


def install_error_handler(app: FastAPI, error_handler: ErrorHandler | None = None) -> None:
    """Install the error translator on an application.

    Must be called before the application starts serving.

    Example:
        app = FastAPI()
        app.include_router(create_router_from_path("routes"))
        install_error_handler(app)
    """
    app.add_middleware(ErrorTranslationMiddleware, error_handler=error_handler)
