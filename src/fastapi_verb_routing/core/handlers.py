"""Handler export shapes for verb files.

A verb file exports ``handler`` in one of two shapes:

- a bare callable, resolved to ``DirectHandler``;
- a configured handler carrying schemas and a ``before`` hook, resolved
  to ``ConfiguredHandler``. It can be declared with module-level
  attributes next to the ``handler`` function, or as a class body::

      class handler(route):
          params_schema = {"id": int}

          async def before(req): ...

          async def handler(data): ...

Zero framework dependencies.
"""

import inspect
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from fastapi_verb_routing.exceptions import RouteValidationError


@dataclass(frozen=True)
class DirectHandler:
    """A bare handler callable with no validation and no hook."""

    handler: Callable[..., Any]

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        """Delegate to the wrapped handler."""
        return self.handler(*args, **kwargs)


@dataclass(frozen=True)
class ConfiguredHandler:
    """A handler with optional request schemas and a pre-handler hook.

    Created by the _RouteMeta metaclass when a class inherits from route,
    or by the importer from module-level attributes.

    Attributes:
        handler: The request handler (async def or def).
        params_schema: Path parameter schema (model or field mapping).
        query_schema: Query string schema (model or field mapping).
        body_schema: JSON body schema (model or field mapping).
        before: Hook called with the raw request before validation.
        strict: Reject unknown keys in mapping schemas.
    """

    handler: Callable[..., Any]
    params_schema: Any = None
    query_schema: Any = None
    body_schema: Any = None
    before: Callable[..., Any] | None = None
    strict: bool = False

    def __post_init__(self) -> None:
        """Preserve handler metadata for introspection."""
        object.__setattr__(self, "__wrapped__", self.handler)
        object.__setattr__(self, "__name__", getattr(self.handler, "__name__", "handler"))
        object.__setattr__(self, "__doc__", getattr(self.handler, "__doc__", None))

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        """Delegate to the wrapped handler."""
        return self.handler(*args, **kwargs)

    @property
    def schema_members(self) -> tuple[str, ...]:
        """Request members with a declared schema, in params, query, body order."""
        declared = {
            "params": self.params_schema,
            "query": self.query_schema,
            "body": self.body_schema,
        }
        return tuple(member for member, schema in declared.items() if schema is not None)


HandlerExport = DirectHandler | ConfiguredHandler


def configured_handler(
    handler: Any,
    *,
    params_schema: Any = None,
    query_schema: Any = None,
    body_schema: Any = None,
    before: Any = None,
    strict: Any = False,
    source: str = "",
) -> ConfiguredHandler:
    """Build a ConfiguredHandler after checking its callables.

    Raises:
        RouteValidationError: If handler or before is not callable.
    """
    prefix = f"{source}: " if source else ""
    if not callable(handler):
        raise RouteValidationError(
            f"{prefix}handler must be a callable, got {type(handler).__name__}"
        )
    if before is not None and not callable(before):
        raise RouteValidationError(
            f"{prefix}before must be a callable, got {type(before).__name__}"
        )
    return ConfiguredHandler(
        handler=handler,
        params_schema=params_schema,
        query_schema=query_schema,
        body_schema=body_schema,
        before=before,
        strict=bool(strict),
    )


class _RouteMeta(type):
    """Metaclass that intercepts class body and returns ConfiguredHandler.

    When a class inherits from `route`, this metaclass:
    1. Extracts the `handler` function from the class body
    2. Extracts the optional `before` hook and schemas
    3. Returns a ConfiguredHandler instance instead of a class

    This means `class handler(route): ...` produces a ConfiguredHandler,
    not a class.
    """

    def __new__(
        mcs,
        name: str,
        bases: tuple[type, ...],
        namespace: dict[str, Any],
    ) -> Any:  # Returns ConfiguredHandler, not type
        """Create a new class or return ConfiguredHandler based on inheritance."""
        # The `route` base class itself, create normally
        if not bases:
            return super().__new__(mcs, name, bases, namespace)

        handler = namespace.get("handler")
        if handler is None:
            raise RouteValidationError(
                f"class {name}(route) must define an async def handler(...) function"
            )

        return configured_handler(
            handler,
            params_schema=namespace.get("params_schema"),
            query_schema=namespace.get("query_schema"),
            body_schema=namespace.get("body_schema"),
            before=namespace.get("before"),
            strict=namespace.get("strict", False),
            source=f"class {name}(route)",
        )


class route(metaclass=_RouteMeta):  # noqa: N801
    """Base class for configured handlers.

    Use `class handler(route):` in a verb file to declare schemas and a
    `before` hook alongside the handler. The metaclass intercepts the
    class body and returns a ConfiguredHandler instead of a class.

    Example:
        from fastapi_verb_routing import route

        class handler(route):
            params_schema = {"id": int}
            body_schema = {"name": str}

            async def handler(data):
                return {"id": data.params["id"], "name": data.body["name"]}
    """


async def invoke(fn: Callable[..., Any], *args: Any) -> Any:
    """Call a sync or async callable and await the result if needed."""
    result = fn(*args)
    if inspect.isawaitable(result):
        result = await result
    return result
