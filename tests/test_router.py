"""Tests for wren.routing.router: registration, dispatch, freeze, memoization."""

import pytest
from conftest import Trace, TracingHandler, TracingMiddleware

from wren.config import RouterConfig
from wren.errors import ConfigurationError, Forbidden, HandlerFailure, HTTPError
from wren.middleware.host_filter import HostFilterMiddleware
from wren.http.request import Request
from wren.routing.router import Router


def _get(path: str, host: str = "example.com") -> Request:
    return Request.build(path, host=host)


class TestRegistration:
    def test_add_returns_route(self, trace: Trace) -> None:
        router = Router()
        route = router.add("/a", TracingHandler("Ha", trace), name="a")
        assert route.key == "/a"
        assert route.name == "a"
        assert "/a" in router
        assert len(router) == 1

    def test_route_decorator(self) -> None:
        router = Router()

        @router.route("/")
        def index(request, response):
            response.write("hi")

        assert [r.key for r in router.routes] == ["/"]
        assert router.routes[0].name == "index"

    def test_decorator_returns_function_unchanged(self) -> None:
        router = Router()

        def index(request, response):
            response.write("hi")

        assert router.route("/")(index) is index

    @pytest.mark.parametrize("key", ["", None, 42])
    def test_rejects_bad_keys(self, key) -> None:
        router = Router()
        with pytest.raises(ConfigurationError, match="non-empty string"):
            router.add(key, lambda request, response: None)

    def test_rejects_non_handler(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError, match="not a handler"):
            router.add("/", "not callable")

    def test_rejects_non_middleware(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError, match="not a middleware"):
            router.use(object())

    def test_rejects_middleware_class(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError, match="is a class"):
            router.use(HostFilterMiddleware)
        assert router.middleware == ()

    def test_rejects_handler_class(self) -> None:
        router = Router()
        with pytest.raises(ConfigurationError, match="is a class"):
            router.add("/", TracingHandler)

    def test_use_keeps_order(self, trace: Trace) -> None:
        router = Router()
        m1, m2 = TracingMiddleware("M1", trace), TracingMiddleware("M2", trace)
        router.use(m1)
        router.use(m2)
        assert router.middleware == (m1, m2)

    def test_use_accepts_several(self, trace: Trace) -> None:
        router = Router()
        m1, m2 = TracingMiddleware("M1", trace), TracingMiddleware("M2", trace)
        router.use(m1, m2)
        assert router.middleware == (m1, m2)


class TestDispatch:
    async def test_middleware_wrap_every_route(self, trace: Trace) -> None:
        router = Router()
        router.use(TracingMiddleware("M1", trace))
        router.use(TracingMiddleware("M2", trace))
        router.add("/", TracingHandler("H", trace, body="hello"))

        response = await router.dispatch(_get("/"))

        assert response.status == 200
        assert response.text == "hello"
        assert trace.events == ["enter M1", "enter M2", "handle H", "exit M2", "exit M1"]

    async def test_route_isolation(self, trace: Trace) -> None:
        router = Router()
        ha = TracingHandler("Ha", trace, body="a")
        hb = TracingHandler("Hb", trace, body="b")
        router.add("/a", ha)
        router.add("/b", hb)

        response = await router.dispatch(_get("/a"))

        assert response.text == "a"
        assert ha.calls == 1
        assert hb.calls == 0
        assert trace.events == ["handle Ha"]

    async def test_overwrite_last_registration_wins(self, trace: Trace) -> None:
        router = Router()
        ha = TracingHandler("Ha", trace, body="first")
        ha2 = TracingHandler("Ha2", trace, body="second")
        router.add("/a", ha)
        router.add("/a", ha2)

        response = await router.dispatch(_get("/a"))

        assert response.text == "second"
        assert ha.calls == 0
        assert ha2.calls == 1
        assert len(router) == 1

    async def test_plain_function_handlers(self) -> None:
        router = Router()

        @router.route("/sync")
        def sync_handler(request, response):
            response.write("sync")

        @router.route("/async")
        async def async_handler(request, response):
            response.write("async", status=201)

        sync_resp = await router.dispatch(_get("/sync"))
        async_resp = await router.dispatch(_get("/async"))

        assert (sync_resp.status, sync_resp.text) == (200, "sync")
        assert (async_resp.status, async_resp.text) == (201, "async")

    async def test_route_key_is_exact_path(self, trace: Trace) -> None:
        router = Router()
        router.add("/users", TracingHandler("H", trace))

        response = await router.dispatch(_get("/users/42"))

        assert response.status == 404


class TestUnknownRoute:
    """Unknown routes still pass through middleware; the not-found outcome
    surfaces as an exception out of next, so no post-processing runs."""

    async def test_returns_not_found(self) -> None:
        router = Router()
        response = await router.dispatch(_get("/missing"))
        assert response.status == 404
        assert response.text == "Not Found"

    async def test_middleware_see_request_but_skip_post_processing(self, trace: Trace) -> None:
        router = Router()
        router.use(TracingMiddleware("M1", trace))
        router.use(TracingMiddleware("M2", trace))
        router.add("/", TracingHandler("H", trace))

        response = await router.dispatch(_get("/missing"))

        assert response.status == 404
        assert trace.events == ["enter M1", "enter M2"]

    async def test_custom_not_found_detail(self) -> None:
        router = Router(RouterConfig(not_found_detail="nothing here"))
        response = await router.dispatch(_get("/missing"))
        assert response.text == "nothing here"


class TestFreeze:
    async def test_dispatch_freezes(self, trace: Trace) -> None:
        router = Router()
        router.add("/", TracingHandler("H", trace))
        assert not router.frozen
        await router.dispatch(_get("/"))
        assert router.frozen

    async def test_no_registration_after_freeze(self, trace: Trace) -> None:
        router = Router()
        router.add("/", TracingHandler("H", trace))
        await router.dispatch(_get("/"))

        with pytest.raises(RuntimeError, match="Cannot modify"):
            router.use(TracingMiddleware("late", trace))
        with pytest.raises(RuntimeError, match="Cannot modify"):
            router.add("/late", TracingHandler("late", trace))

    def test_freeze_is_idempotent(self) -> None:
        router = Router()
        router.freeze()
        router.freeze()
        assert router.frozen


class TestMemoization:
    async def test_chain_reused_per_route(self, trace: Trace) -> None:
        router = Router()
        router.add("/", TracingHandler("H", trace))
        assert router.chain_for("/") is router.chain_for("/")

    async def test_memoization_can_be_disabled(self, trace: Trace) -> None:
        router = Router(RouterConfig(memoize_chains=False))
        router.add("/", TracingHandler("H", trace))
        first = router.chain_for("/")
        second = router.chain_for("/")
        assert first is not second

    async def test_unknown_keys_share_one_chain(self) -> None:
        router = Router()
        assert router.chain_for("/x") is router.chain_for("/y")

    async def test_memoized_and_fresh_chains_behave_the_same(self, trace: Trace) -> None:
        cached = Router()
        fresh = Router(RouterConfig(memoize_chains=False))
        for router in (cached, fresh):
            router.use(TracingMiddleware("M1", trace))
            router.add("/", TracingHandler("H", trace, body="x"))

        r1 = await cached.dispatch(_get("/"))
        r2 = await fresh.dispatch(_get("/"))
        assert (r1.status, r1.text) == (r2.status, r2.text)


class TestErrorHandlers:
    async def test_status_handler(self) -> None:
        router = Router()

        @router.error(404)
        def not_found(request, response, exc):
            response.write(f"no {request.path}", status=404)

        response = await router.dispatch(_get("/nope"))
        assert response.status == 404
        assert response.text == "no /nope"

    async def test_exception_type_handler(self) -> None:
        router = Router()

        @router.route("/")
        def index(request, response):
            raise Forbidden("members only")

        @router.error(Forbidden)
        async def forbidden(request, response, exc):
            response.write(f"custom: {exc.detail}", status=exc.status)

        response = await router.dispatch(_get("/"))
        assert response.status == 403
        assert response.text == "custom: members only"

    async def test_handler_failure_maps_to_500(self) -> None:
        router = Router()

        @router.route("/")
        def index(request, response):
            raise HandlerFailure("database unavailable")

        response = await router.dispatch(_get("/"))
        assert response.status == 500
        assert response.text == "database unavailable"

    async def test_error_handler_not_writing_falls_back_to_default(self) -> None:
        router = Router()

        @router.error(404)
        def silent(request, response, exc):
            return None

        response = await router.dispatch(_get("/nope"))
        assert response.status == 404
        assert response.text == "Not Found"

    async def test_failing_error_handler_falls_back_to_default(self) -> None:
        router = Router()

        @router.error(404)
        def broken(request, response, exc):
            raise ValueError("oops")

        response = await router.dispatch(_get("/nope"))
        assert response.status == 404

    async def test_status_handler_beats_base_class_handler(self) -> None:
        router = Router()

        @router.error(404)
        def not_found(request, response, exc):
            response.write("custom 404", status=404)

        @router.error(HTTPError)
        def generic(request, response, exc):
            response.write("generic", status=exc.status)

        response = await router.dispatch(_get("/missing"))
        assert response.text == "custom 404"

    async def test_base_class_handler_used_without_status_match(self) -> None:
        router = Router()

        @router.route("/")
        def index(request, response):
            raise Forbidden()

        @router.error(HTTPError)
        def generic(request, response, exc):
            response.write(f"generic {exc.status}", status=exc.status)

        response = await router.dispatch(_get("/"))
        assert (response.status, response.text) == (403, "generic 403")

    async def test_exact_type_beats_status(self) -> None:
        router = Router()

        @router.route("/")
        def index(request, response):
            raise Forbidden()

        @router.error(403)
        def by_status(request, response, exc):
            response.write("by status", status=403)

        @router.error(Forbidden)
        def by_type(request, response, exc):
            response.write("by type", status=403)

        response = await router.dispatch(_get("/"))
        assert response.text == "by type"
