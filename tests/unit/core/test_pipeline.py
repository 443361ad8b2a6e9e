"""Tests for the core request pipeline."""

from pathlib import Path

import pytest

from fastapi_verb_routing.core.handlers import ConfiguredHandler, DirectHandler
from fastapi_verb_routing.core.pipeline import (
    PipelineResult,
    RequestData,
    RequestParts,
    RequestPipeline,
    RouteDefinition,
    build_route_definition,
    result_for,
)
from fastapi_verb_routing.core.parser import compile_route_pattern
from fastapi_verb_routing.core.scanner import RouteFile
from fastapi_verb_routing.core.schema import compose_schema
from fastapi_verb_routing.exceptions import ApiError, RequestValidationFailure


def _route(verb="get", handler=None, schema=None, before=None) -> RouteDefinition:
    return RouteDefinition(
        verb=verb,
        pattern=compile_route_pattern(["users", "[id]"]),
        handler=handler or (lambda data: data),
        schema=schema,
        before=before,
    )


def _extractor(params=None, query=None, body=None):
    async def extract(request):
        return RequestParts(params=params or {}, query=query or {}, body=body or {})

    return extract


class TestResultFor:
    def test_value_is_sent_with_200(self):
        assert result_for("get", {"a": 1}) == PipelineResult(status_code=200, content={"a": 1})

    def test_none_under_post_is_201(self):
        result = result_for("post", None)
        assert result.status_code == 201
        assert result.is_empty

    @pytest.mark.parametrize("verb", ["get", "put", "patch", "delete"])
    def test_none_under_other_verbs_is_204(self, verb: str):
        assert result_for(verb, None) == PipelineResult(status_code=204)

    def test_falsy_values_are_not_empty(self):
        assert result_for("get", []) == PipelineResult(status_code=200, content=[])
        assert result_for("get", 0).content == 0


class TestBuildRouteDefinition:
    def test_direct_handler(self):
        route_file = RouteFile(("users", "[id]"), "get", Path("/r/users/[id]/get.py"))

        def handler(data):
            return None

        route = build_route_definition(route_file, DirectHandler(handler))

        assert route.verb == "get"
        assert route.method == "GET"
        assert route.pattern.pattern == "/users/:id"
        assert route.handler is handler
        assert route.schema is None
        assert route.before is None
        assert route.source is route_file

    def test_configured_handler(self):
        route_file = RouteFile(("users", "[id]"), "patch", Path("/r/users/[id]/patch.py"))

        def before(req):
            return None

        export = ConfiguredHandler(
            handler=lambda data: None,
            params_schema={"id": int},
            body_schema={"name": str},
            before=before,
        )

        route = build_route_definition(route_file, export)

        assert route.schema.members == ("params", "body")
        assert route.before is before
        assert route.schema.model.__name__ == "PatchUsersIdRequest"

    def test_configured_handler_without_schemas(self):
        route_file = RouteFile(("users",), "get", Path("/r/users/get.py"))

        route = build_route_definition(
            route_file, ConfiguredHandler(handler=lambda data: None, before=lambda req: None)
        )

        assert route.schema is None
        assert route.before is not None


class TestRequestPipeline:
    async def test_passes_data_through_without_schema(self):
        received = []
        pipeline = RequestPipeline(
            _route(handler=received.append),
            _extractor(params={"id": "7"}, query={"q": "x"}, body={"b": 1}),
        )
        request = object()

        result = await pipeline(request)

        assert result == PipelineResult(status_code=204)
        assert received == [RequestData(params={"id": "7"}, query={"q": "x"}, body={"b": 1}, req=request)]

    async def test_validated_data_reaches_handler(self):
        pipeline = RequestPipeline(
            _route(handler=lambda data: data.params, schema=compose_schema({"id": int})),
            _extractor(params={"id": "7"}),
        )

        result = await pipeline(object())

        assert result.content == {"id": 7}

    async def test_async_handler_is_awaited(self):
        async def handler(data):
            return {"async": True}

        pipeline = RequestPipeline(_route(handler=handler), _extractor())

        assert (await pipeline(object())).content == {"async": True}

    async def test_sync_extractor_is_supported(self):
        pipeline = RequestPipeline(
            _route(handler=lambda data: data.query),
            lambda request: RequestParts(params={}, query={"sync": "yes"}, body={}),
        )

        assert (await pipeline(object())).content == {"sync": "yes"}

    async def test_steps_run_in_order(self):
        calls = []

        async def before(req):
            calls.append("before")

        async def extract(req):
            calls.append("extract")
            return RequestParts(params={"id": "1"}, query={}, body={})

        def handler(data):
            calls.append("handler")
            return "done"

        pipeline = RequestPipeline(
            _route(handler=handler, before=before, schema=compose_schema({"id": int})),
            extract,
        )

        await pipeline(object())

        assert calls == ["before", "extract", "handler"]

    async def test_before_hook_receives_raw_request_and_return_is_ignored(self):
        seen = []

        def before(req):
            seen.append(req)
            return {"ignored": True}

        pipeline = RequestPipeline(_route(handler=lambda data: "ok", before=before), _extractor())
        request = object()

        result = await pipeline(request)

        assert seen == [request]
        assert result.content == "ok"

    async def test_before_hook_can_short_circuit(self):
        handler_calls = []

        def before(req):
            raise ApiError(403, "Forbidden")

        pipeline = RequestPipeline(
            _route(handler=handler_calls.append, before=before), _extractor()
        )

        with pytest.raises(ApiError):
            await pipeline(object())
        assert handler_calls == []

    async def test_validation_failure_propagates(self):
        handler_calls = []
        pipeline = RequestPipeline(
            _route(handler=handler_calls.append, schema=compose_schema({"id": int})),
            _extractor(params={"id": "abc"}),
        )

        with pytest.raises(RequestValidationFailure):
            await pipeline(object())
        assert handler_calls == []

    async def test_handler_errors_propagate_unchanged(self):
        def handler(data):
            raise KeyError("missing")

        pipeline = RequestPipeline(_route(handler=handler), _extractor())

        with pytest.raises(KeyError):
            await pipeline(object())

    def test_repr(self):
        pipeline = RequestPipeline(_route(verb="delete"), _extractor())
        assert repr(pipeline) == "RequestPipeline(DELETE /users/:id)"
