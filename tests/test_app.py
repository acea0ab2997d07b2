"""Tests for perch.app: registration, lifecycle and the ASGI entry point."""

from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from perch.app import App
from perch.config import AppConfig
from perch.errors import HTTPError, NotFound
from perch.hosting import HostEnvironment
from perch.http.request import Request
from perch.http.response import Response
from perch.server.handler import call_endpoint
from perch.staticfiles.options import StaticFileOptions
from perch.testing import TestClient


def _app() -> App:
    return App(AppConfig(web_root=None))


class TestAppRegistration:
    def test_route_decorator(self) -> None:
        app = _app()

        @app.route("/")
        def index():
            return "hello"

        assert len(app._route_builders) == 1
        assert app._route_builders[0].path == "/"
        assert app._route_builders[0].methods == ("GET",)

    def test_route_with_methods_and_name(self) -> None:
        app = _app()

        @app.route("/users", methods=["GET", "POST"], name="users")
        def users():
            return "users"

        builder = app._route_builders[0]
        assert builder.methods == ("GET", "POST")
        assert builder.name == "users"

    def test_map_returns_builder(self) -> None:
        app = _app()
        check = lambda v: v.isdigit()  # noqa: E731
        builder = app.map("/items/{id}", lambda id: id, constraints={"id": check})

        assert builder is app._route_builders[0]
        assert builder.constraints == {"id": check}

    def test_map_conventions_run_at_freeze(self) -> None:
        app = _app()
        builder = app.map("/", lambda: "ok")
        builder.add(lambda b: setattr(b, "name", "home"))
        builder.with_metadata(public=True)

        (route,) = app.routes
        assert route.name == "home"
        assert route.metadata["public"] is True

    def test_error_decorator(self) -> None:
        app = _app()

        @app.error(404)
        def not_found():
            return "Not found"

        assert 404 in app._error_handlers

    def test_middleware_registration(self) -> None:
        app = _app()

        async def my_mw(request, next):
            return await next(request)

        app.add_middleware(my_mw)
        assert app._registered_middleware == [my_mw]

    def test_hosting_defaults(self) -> None:
        app = _app()
        assert isinstance(app.environment, HostEnvironment)
        assert app.static_file_defaults == StaticFileOptions()

    def test_explicit_environment(self, tmp_path) -> None:
        env = HostEnvironment(content_root=tmp_path)
        assert App(environment=env).environment is env


class TestAppFreeze:
    def test_routes_freeze_the_app(self) -> None:
        app = _app()

        @app.route("/")
        def index():
            return "ok"

        assert [r.path for r in app.routes] == ["/"]
        assert app._compiled is True

    @pytest.mark.parametrize(
        "register",
        [
            lambda app: app.map("/late", lambda: "x"),
            lambda app: app.add_middleware(lambda r, n: n(r)),
            lambda app: app.on_startup(lambda: None),
            lambda app: app.on_shutdown(lambda: None),
            lambda app: app.error(500)(lambda: "x"),
            lambda app: app.map_static_files(),
        ],
    )
    def test_cannot_register_after_freeze(self, register) -> None:
        app = _app()
        app._ensure_compiled()
        with pytest.raises(RuntimeError, match="after it has started"):
            register(app)

    def test_double_freeze_is_safe(self) -> None:
        app = _app()
        app._ensure_compiled()
        router = app._router
        app._ensure_compiled()
        assert app._router is router


class TestAppE2E:
    async def test_hello_world(self) -> None:
        app = _app()

        @app.route("/")
        def index():
            return "Hello, World!"

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.status == 200
            assert response.text == "Hello, World!"

    async def test_path_params_converted_by_annotation(self) -> None:
        app = _app()

        @app.route("/users/{id:int}")
        def user(id: int):
            return {"id": id, "type": type(id).__name__}

        async with TestClient(app) as client:
            response = await client.get("/users/42")
            assert response.text == '{"id": 42, "type": "int"}'

    async def test_request_injection(self) -> None:
        app = _app()

        @app.route("/echo/{**rest}")
        def echo(req: Request, rest: str):
            return f"{req.method} {rest} {req.query.get('q')}"

        async with TestClient(app) as client:
            response = await client.get("/echo/a/b?q=1")
            assert response.text == "GET a/b 1"

    async def test_route_decision_visible_to_handler(self) -> None:
        app = _app()

        @app.route("/x", name="x")
        def handler(request):
            return request.route.route.name

        async with TestClient(app) as client:
            assert (await client.get("/x")).text == "x"

    async def test_async_handler_and_json_body(self) -> None:
        app = _app()

        @app.route("/items", methods=["POST"])
        async def create(request):
            data = await request.json()
            return data, 201

        async with TestClient(app) as client:
            response = await client.post("/items", json={"name": "perch"})
            assert response.status == 201
            assert response.content_type == "application/json"

    async def test_404_default(self) -> None:
        async with TestClient(_app()) as client:
            response = await client.get("/missing")
            assert response.status == 404
            assert response.content_type == "text/plain; charset=utf-8"

    async def test_405_default(self) -> None:
        app = _app()

        @app.route("/only-get")
        def only_get():
            return "ok"

        async with TestClient(app) as client:
            response = await client.post("/only-get")
            assert response.status == 405
            assert response.header("allow") == "GET"

    async def test_middleware_wraps_routing(self) -> None:
        app = _app()
        seen: list[Any] = []

        async def tag(request, next):
            seen.append(request.route)
            response = await next(request)
            return response.with_header("X-Tag", "1")

        app.add_middleware(tag)

        @app.route("/")
        def index():
            return "ok"

        async with TestClient(app) as client:
            response = await client.get("/")
            assert response.header("x-tag") == "1"
        assert seen == [None]

    async def test_middleware_can_short_circuit(self) -> None:
        app = _app()

        async def gate(request, next):
            return Response("blocked", status=403)

        app.add_middleware(gate)

        async with TestClient(app) as client:
            assert (await client.get("/anything")).status == 403


class TestErrorHandlers:
    async def test_status_handler(self) -> None:
        app = _app()

        @app.error(404)
        def not_found(request):
            return f"nothing at {request.path}"

        async with TestClient(app) as client:
            response = await client.get("/nope")
            assert response.status == 404
            assert response.text == "nothing at /nope"

    async def test_exception_type_handler(self) -> None:
        class Teapot(HTTPError):
            pass

        app = _app()

        @app.error(Teapot)
        def teapot(request, exc):
            return f"short and stout ({exc.status})"

        @app.route("/brew")
        def brew():
            raise Teapot(status=418)

        async with TestClient(app) as client:
            response = await client.get("/brew")
            assert response.status == 418
            assert response.text == "short and stout (418)"

    async def test_handler_raising_not_found(self) -> None:
        app = _app()

        @app.route("/item/{id}")
        def item(id: str):
            raise NotFound(f"no item {id}")

        async with TestClient(app) as client:
            response = await client.get("/item/7")
            assert response.status == 404
            assert response.text == "no item 7"

    async def test_unhandled_exception_is_500(self, caplog) -> None:
        app = _app()

        @app.route("/boom")
        def boom():
            raise RuntimeError("kaboom")

        async with TestClient(app) as client:
            response = await client.get("/boom")
            assert response.status == 500
            assert response.text == "Internal Server Error"
        assert "500 GET /boom" in caplog.text

    async def test_debug_500_shows_traceback(self) -> None:
        app = App(AppConfig(debug=True, web_root=None))

        @app.route("/boom")
        def boom():
            raise RuntimeError("kaboom")

        async with TestClient(app) as client:
            response = await client.get("/boom")
            assert "RuntimeError: kaboom" in response.text

    async def test_500_handler(self) -> None:
        app = _app()

        @app.error(500)
        async def oops():
            return ("custom failure", 500)

        @app.route("/boom")
        def boom():
            raise ValueError("x")

        async with TestClient(app) as client:
            response = await client.get("/boom")
            assert response.status == 500
            assert response.text == "custom failure"

    async def test_base_class_handler(self) -> None:
        app = _app()

        @app.error(LookupError)
        def missing_key(request, exc):
            return (f"missing {exc.args[0]}", 400)

        @app.route("/cfg/{key}")
        def cfg(key: str):
            return {}[key]

        async with TestClient(app) as client:
            response = await client.get("/cfg/theme")
            assert response.status == 400
            assert response.text == "missing theme"

    async def test_status_handler_beats_base_class(self) -> None:
        app = _app()

        @app.error(Exception)
        def anything():
            return ("generic", 500)

        @app.error(404)
        def not_found():
            return "custom 404"

        async with TestClient(app) as client:
            response = await client.get("/nope")
            assert response.status == 404
            assert response.text == "custom 404"

    async def test_none_return_is_500(self) -> None:
        app = _app()

        @app.route("/")
        def index():
            return None

        async with TestClient(app) as client:
            assert (await client.get("/")).status == 500


async def _lifespan_exchange(app: App) -> tuple[list[dict[str, Any]], bool]:
    """Feed startup then shutdown to the app; return what it sent and whether startup completed."""
    incoming = iter([{"type": "lifespan.startup"}, {"type": "lifespan.shutdown"}])
    sent: list[dict[str, Any]] = []

    async def receive() -> dict[str, Any]:
        return next(incoming)

    async def send(message: dict[str, Any]) -> None:
        sent.append(message)

    await app({"type": "lifespan", "asgi": {"version": "3.0"}}, receive, send)
    return sent, any(m["type"] == "lifespan.startup.complete" for m in sent)


class TestLifespan:
    async def test_happy_path(self) -> None:
        app = _app()
        events: list[str] = []

        @app.on_startup
        async def setup():
            events.append("startup")

        @app.on_shutdown
        def teardown():
            events.append("shutdown")

        sent, ok = await _lifespan_exchange(app)

        assert ok
        assert events == ["startup", "shutdown"]
        assert [m["type"] for m in sent] == [
            "lifespan.startup.complete",
            "lifespan.shutdown.complete",
        ]
        assert app._compiled

    async def test_startup_hook_failure(self) -> None:
        app = _app()

        @app.on_startup
        def explode():
            raise RuntimeError("db down")

        sent, ok = await _lifespan_exchange(app)
        assert not ok
        assert sent == [{"type": "lifespan.startup.failed", "message": "db down"}]

    async def test_invalid_route_fails_startup(self) -> None:
        app = _app()
        app.map("/users/<id>", lambda id: id)

        sent, ok = await _lifespan_exchange(app)
        assert not ok
        assert sent[0]["type"] == "lifespan.startup.failed"

    async def test_test_client_runs_hooks(self) -> None:
        app = _app()
        state: dict[str, Any] = {}

        @app.on_startup
        def setup():
            state["ready"] = True

        @app.on_shutdown
        async def teardown():
            state["ready"] = False

        @app.route("/ready")
        def ready():
            return {"ready": state["ready"]}

        async with TestClient(app) as client:
            assert (await client.get("/ready")).text == '{"ready": true}'
        assert state == {"ready": False}


class TestRun:
    @patch("perch.server.dev.run_dev_server")
    def test_uses_config(self, mock_server: MagicMock) -> None:
        app = App(AppConfig(host="0.0.0.0", port=3000, debug=True, web_root=None))
        app.run()

        mock_server.assert_called_once_with(
            app, "0.0.0.0", 3000, reload=True, log_level="info"
        )
        assert app._compiled

    @patch("perch.server.dev.run_dev_server")
    def test_overrides(self, mock_server: MagicMock) -> None:
        app = _app()
        app.run(host="localhost", port=9000)

        args = mock_server.call_args[0]
        assert args[1:] == ("localhost", 9000)
        assert mock_server.call_args[1]["reload"] is False


class TestCallEndpoint:
    async def test_request_without_route_is_not_found(self) -> None:
        with pytest.raises(NotFound):
            await call_endpoint(Request(method="GET", path="/orphan"))

    async def test_endpoint_called_before_routing_gives_404(self) -> None:
        app = _app()

        @app.route("/")
        def index():
            return "ok"

        async def skip_routing(request: Request, next):
            return await call_endpoint(request)

        app.add_middleware(skip_routing)

        async with TestClient(app) as client:
            assert (await client.get("/")).status == 404
