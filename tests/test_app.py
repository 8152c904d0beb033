"""Tests for signpost.app — App lifecycle, registration, and ASGI entry."""

from typing import Any

import anyio
import pytest

from signpost.app import App
from signpost.config import AppConfig, ListenerConfig
from signpost.http.request import Request
from signpost.http.response import Redirect, Response
from signpost.policy.defaults import default_policy
from signpost.policy.policy import RoutingPolicy
from signpost.testing import TestClient, assert_security_headers


class TestAppRegistration:
    def test_route_decorator(self) -> None:
        app = App()

        @app.route("/")
        def index():
            return "hello"

        assert len(app._pending_routes) == 1
        assert app._pending_routes[0].path == "/"

    def test_route_with_methods(self) -> None:
        app = App()

        @app.route("/users", methods=["GET", "POST"])
        def users():
            return "users"

        assert app._pending_routes[0].methods == ["GET", "POST"]

    def test_error_decorator(self) -> None:
        app = App()

        @app.error(404)
        def not_found():
            return "Not found"

        assert 404 in app._error_handlers

    def test_middleware_registration(self) -> None:
        app = App()

        async def my_mw(request, next):
            return await next(request)

        app.add_middleware(my_mw)
        assert len(app._middleware_list) == 1

    def test_decorators_return_original_function(self) -> None:
        app = App()

        @app.on_startup
        async def setup():
            pass

        assert setup.__name__ == "setup"


class TestAppPolicy:
    def test_stock_policy_by_default(self) -> None:
        assert App().policy == default_policy()

    def test_injected_policy(self) -> None:
        policy = RoutingPolicy()
        assert App(policy=policy).policy is policy

    def test_request_router_uses_policy(self) -> None:
        app = App()
        assert app.request_router.policy is app.policy
        assert len(app.request_router.redirects.rules) == 2


class TestAppFreeze:
    def test_freeze_compiles_router(self) -> None:
        app = App()

        @app.route("/")
        def index():
            return "hello"

        assert [r.path for r in app.routes] == ["/"]
        assert app._frozen is True

    def test_cannot_add_routes_after_freeze(self) -> None:
        app = App()
        app._ensure_frozen()
        with pytest.raises(RuntimeError, match="Cannot modify"):

            @app.route("/late")
            def late():
                return "late"

    def test_cannot_add_middleware_after_freeze(self) -> None:
        app = App()
        app._ensure_frozen()
        with pytest.raises(RuntimeError):
            app.add_middleware(lambda request, next: next(request))

    def test_cannot_register_hooks_after_freeze(self) -> None:
        app = App()
        app._ensure_frozen()
        with pytest.raises(RuntimeError):
            app.on_shutdown(lambda: None)

    def test_double_freeze_is_safe(self) -> None:
        app = App()
        app._ensure_frozen()
        router = app._router
        app._ensure_frozen()
        assert app._router is router

    def test_can_dispatch(self) -> None:
        app = App()

        @app.route("/emergency-access/emergency")
        def emergency():
            return "ok"

        assert app.can_dispatch("/emergency-access/emergency")
        assert not app.can_dispatch("/emergency")


class TestAppConfig:
    def test_default_config(self) -> None:
        app = App()
        assert app.config.debug is False
        assert app.config.listeners == ListenerConfig()

    def test_custom_config(self) -> None:
        config = AppConfig(debug=True, listeners=ListenerConfig(primary_port=8080))
        app = App(config)
        assert app.config.debug is True
        assert app.config.listeners.primary_port == 8080


class TestAppE2E:
    """End-to-end tests using TestClient."""

    @pytest.mark.anyio
    async def test_hello_world(self) -> None:
        app = App()

        @app.route("/")
        def index():
            return "Hello, World!"

        async with TestClient(app) as client:
            response = await client.get("/")
        assert response.status == 200
        assert response.text == "Hello, World!"
        assert_security_headers(response)

    @pytest.mark.anyio
    async def test_json_response(self) -> None:
        app = App()

        @app.route("/api/data")
        def data():
            return {"message": "hello", "count": 42}

        async with TestClient(app) as client:
            response = await client.get("/api/data")
        assert "application/json" in response.content_type

    @pytest.mark.anyio
    async def test_typed_path_params(self) -> None:
        app = App()

        @app.route("/users/{id:int}")
        def user(id: int):
            return f"{type(id).__name__}:{id}"

        async with TestClient(app) as client:
            response = await client.get("/users/42")
        assert response.text == "int:42"

    @pytest.mark.anyio
    async def test_async_handler(self) -> None:
        app = App()

        @app.route("/")
        async def index():
            return "async"

        async with TestClient(app) as client:
            response = await client.get("/")
        assert response.text == "async"

    @pytest.mark.anyio
    async def test_request_body(self) -> None:
        app = App()

        @app.route("/echo", methods=["POST"])
        async def echo(request: Request):
            return await request.json()

        async with TestClient(app) as client:
            response = await client.post("/echo", json={"a": 1})
        assert response.text == '{"a": 1}'

    @pytest.mark.anyio
    async def test_query_string(self) -> None:
        app = App()

        @app.route("/search")
        def search(request: Request):
            return request.query.get("q", "")

        async with TestClient(app) as client:
            response = await client.get("/search?q=cats")
        assert response.text == "cats"

    @pytest.mark.anyio
    async def test_handler_redirect(self) -> None:
        app = App()

        @app.route("/go")
        def go():
            return Redirect("/about", status=303)

        async with TestClient(app) as client:
            response = await client.get("/go")
        assert response.status == 303
        assert response.location == "/about"
        assert_security_headers(response)

    @pytest.mark.anyio
    async def test_tuple_status_override(self) -> None:
        app = App()

        @app.route("/create", methods=["POST"])
        def create():
            return "Created", 201

        async with TestClient(app) as client:
            response = await client.post("/create")
        assert response.status == 201

    @pytest.mark.anyio
    async def test_error_handler_by_exception_type(self) -> None:
        app = App()

        @app.route("/fail")
        def fail():
            msg = "nope"
            raise ValueError(msg)

        @app.error(ValueError)
        def bad_value(request: Request, exc: Exception):
            return Response(f"bad: {exc}").with_status(422)

        async with TestClient(app) as client:
            response = await client.get("/fail")
        assert response.status == 422
        assert response.text == "bad: nope"

    @pytest.mark.anyio
    async def test_debug_500_shows_exception(self) -> None:
        app = App(AppConfig(debug=True))

        @app.route("/fail")
        def fail():
            msg = "kaput"
            raise RuntimeError(msg)

        async with TestClient(app) as client:
            response = await client.get("/fail")
        assert response.status == 500
        assert "kaput" in response.text

    @pytest.mark.anyio
    async def test_non_http_scope_ignored(self) -> None:
        app = App()
        sent: list[dict[str, Any]] = []

        async def receive() -> dict[str, Any]:
            return {}

        async def send(message: dict[str, Any]) -> None:
            sent.append(message)

        await app({"type": "websocket", "path": "/"}, receive, send)
        assert sent == []


async def _lifespan_exchange(app: App) -> tuple[list[dict[str, Any]], bool]:
    """Drive the lifespan protocol; return (sent_messages, startup_ok)."""
    sent: list[dict[str, Any]] = []
    send_stream, receive_stream = anyio.create_memory_object_stream[dict[str, Any]](2)

    async def receive() -> dict[str, Any]:
        return await receive_stream.receive()

    async def send(message: dict[str, Any]) -> None:
        sent.append(message)

    scope: dict[str, Any] = {"type": "lifespan", "asgi": {"version": "3.0"}}

    async with anyio.create_task_group() as tg:
        tg.start_soon(app, scope, receive, send)
        await send_stream.send({"type": "lifespan.startup"})
        with anyio.fail_after(2):
            while not sent:
                await anyio.sleep(0.001)
        startup_ok = sent[0]["type"] == "lifespan.startup.complete"
        if startup_ok:
            await send_stream.send({"type": "lifespan.shutdown"})

    send_stream.close()
    receive_stream.close()
    return sent, startup_ok


class TestLifespanProtocol:
    @pytest.mark.anyio
    async def test_happy_path(self) -> None:
        app = App()
        events: list[str] = []

        @app.on_startup
        async def setup():
            events.append("startup")

        @app.on_shutdown
        def teardown():
            events.append("shutdown")

        sent, ok = await _lifespan_exchange(app)

        assert ok is True
        assert events == ["startup", "shutdown"]
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]

    @pytest.mark.anyio
    async def test_startup_failure(self) -> None:
        app = App()

        @app.on_startup
        async def bad_setup():
            msg = "upstream unavailable"
            raise ConnectionError(msg)

        sent, ok = await _lifespan_exchange(app)

        assert ok is False
        assert sent[0]["type"] == "lifespan.startup.failed"
        assert "upstream unavailable" in sent[0]["message"]

    @pytest.mark.anyio
    async def test_app_is_frozen_at_startup(self) -> None:
        app = App()
        await _lifespan_exchange(app)
        assert app._frozen is True


class TestLifespanTestClient:
    @pytest.mark.anyio
    async def test_hooks_run_around_requests(self) -> None:
        app = App()
        state: dict[str, str] = {}

        @app.on_startup
        async def seed():
            state["status"] = "ready"

        @app.route("/status")
        def status():
            return state.get("status", "not ready")

        @app.on_shutdown
        async def cleanup():
            state.clear()

        async with TestClient(app) as client:
            response = await client.get("/status")
            assert response.text == "ready"

        assert state == {}
