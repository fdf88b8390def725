"""Tests for wren.middleware.host_filter."""

import pytest
from conftest import Trace, TracingHandler, TracingMiddleware

from wren.errors import ConfigurationError
from wren.http.request import Request
from wren.middleware.host_filter import HostFilterConfig, HostFilterMiddleware
from wren.middleware.protocol import rejected_by
from wren.routing.router import Router


def _router(trace: Trace, *hosts: str, config: HostFilterConfig | None = None):
    handler = TracingHandler("H", trace, body="hello")
    router = Router()
    router.use(HostFilterMiddleware(*hosts, config=config))
    router.use(TracingMiddleware("inner", trace))
    router.add("/", handler)
    return router, handler


class TestHostFilter:
    async def test_allowed_host_passes(self, trace: Trace) -> None:
        router, handler = _router(trace, "example.com")
        response = await router.dispatch(Request.build("/", host="example.com"))
        assert (response.status, response.text) == (200, "hello")
        assert handler.calls == 1

    async def test_other_host_rejected_without_inner_layers(self, trace: Trace) -> None:
        router, handler = _router(trace, "example.com")
        request = Request.build("/", host="other.com")

        response = await router.dispatch(request)

        assert (response.status, response.text) == (403, "Forbidden")
        assert handler.calls == 0
        assert trace.events == []
        assert rejected_by(request) == "HostFilterMiddleware"

    @pytest.mark.parametrize("host", ["EXAMPLE.com", "example.com:8080"])
    async def test_case_and_port_ignored(self, trace: Trace, host: str) -> None:
        router, _ = _router(trace, "example.com")
        response = await router.dispatch(Request.build("/", host=host))
        assert response.status == 200

    async def test_host_taken_from_header(self, trace: Trace) -> None:
        router, _ = _router(trace, "example.com")
        response = await router.dispatch(Request.build("/", headers={"Host": "example.com:443"}))
        assert response.status == 200

    async def test_several_hosts(self, trace: Trace) -> None:
        router, _ = _router(trace, "example.com", "www.example.com")
        response = await router.dispatch(Request.build("/", host="www.example.com"))
        assert response.status == 200

    async def test_custom_rejection(self, trace: Trace) -> None:
        config = HostFilterConfig(status=421, body="wrong host")
        router, _ = _router(trace, "example.com", config=config)
        response = await router.dispatch(Request.build("/", host="other.com"))
        assert (response.status, response.text) == (421, "wrong host")

    def test_empty_host_rejected(self) -> None:
        with pytest.raises(ConfigurationError):
            HostFilterMiddleware("")
