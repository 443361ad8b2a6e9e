"""Exception hierarchy for verb-file routing.

Two families live here. ``FileBasedRoutingError`` and its subclasses are
raised while the route table is built at startup. ``ApiError`` and
``RequestValidationFailure`` are raised while a request is handled and are
turned into HTTP responses by the error translator.
"""

from collections.abc import Sequence


class FileBasedRoutingError(Exception):
    """Base exception for all startup routing errors.

    Catching this exception will catch every error raised while
    discovering, parsing, or registering routes.

    Example:
        try:
            app = create_app("routes")
        except FileBasedRoutingError as e:
            logger.error(f"Failed to build routes: {e}")
    """


class PathParseError(FileBasedRoutingError):
    """Raised when a directory layout cannot be compiled into a route pattern.

    Examples of unsupported layouts:
        - Invalid segment syntax: [param, [not-valid]
        - Consecutive parameters: users/[id]/[slug]/get.py
        - Ancestor parameter without an owner: [org]/users/get.py
        - Two parameters resolving to the same key

    Example:
        PathParseError("Invalid path segment '[param'")
    """


class RouteDiscoveryError(FileBasedRoutingError):
    """Raised when the routes directory doesn't exist or can't be scanned.

    Example:
        RouteDiscoveryError("Base path does not exist: /app/routes")
    """


class RouteValidationError(FileBasedRoutingError):
    """Raised when a verb file cannot be turned into a route.

    This exception is raised when a verb file:
        - Has import errors or syntax errors
        - Does not export a callable ``handler``
        - Exports a non-callable ``before`` hook
        - Lives outside the routes directory

    Registration catches it, logs a warning and skips the file.

    Example:
        RouteValidationError("No request handler found in /app/users/get.py")
    """


class DuplicateRouteError(FileBasedRoutingError):
    """Raised when two verb files resolve to the same verb and pattern.

    Example:
        DuplicateRouteError(
            "Duplicate route GET /users/:id: "
            "users/[slug]/get.py conflicts with users/[id]/get.py"
        )
    """


class ApiError(Exception):
    """A client-facing failure with an explicit HTTP status.

    Raise it from a handler or a ``before`` hook; the response will carry
    ``status_code`` and a body of exactly ``{"message": message}``.

    Example:
        raise ApiError(404, f"Department {params['id']} not found")
    """

    def __init__(self, status_code: int, message: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    def __repr__(self) -> str:
        return f"ApiError(status_code={self.status_code!r}, message={self.message!r})"


class RequestValidationFailure(Exception):
    """Request data violated the route's declared schemas.

    Attributes:
        message: Summary such as ``"2 errors occurred"``.
        errors: One message per violation, in validation order.
    """

    def __init__(self, message: str, errors: Sequence[str]) -> None:
        super().__init__(message)
        self.message = message
        self.errors = tuple(errors)
