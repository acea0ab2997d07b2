"""The perch ``App`` and its compile-once lifecycle.

Everything is registered at import time. The first request, lifespan
startup or ``app.run()`` compiles the routes (running their conventions)
and from then on the app refuses further registration.
"""

import logging
import threading
from collections.abc import Callable, Sequence

from perch._internal.invoke import run_hooks
from perch._internal.types import ErrorHandler, Handler, Hook, Receive, Scope, Send
from perch.config import AppConfig
from perch.hosting import HostEnvironment
from perch.middleware.protocol import Middleware
from perch.routing.builder import RouteBuilder
from perch.routing.route import Route, RouteConstraint
from perch.routing.router import Router
from perch.server.handler import handle_request
from perch.staticfiles.endpoints import StaticFilesConventionBuilder, map_static_files
from perch.staticfiles.options import StaticFileOptions

logger = logging.getLogger("perch.server")


class App:
    """An ASGI application with existence-gated static file routes.

    Usage::

        app = App(AppConfig(web_root="public"))
        app.map_static_files()                  # files in ./public at "/"

        @app.route("/api/health")
        def health():
            return {"ok": True}

    Compilation is guarded by a lock with a second check inside it, so
    concurrent first requests compile the routes exactly once.
    """

    __slots__ = (
        "_compile_lock",
        "_compiled",
        "_environment",
        "_error_handlers",
        "_middleware",
        "_registered_middleware",
        "_route_builders",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "_static_file_defaults",
        "config",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        environment: HostEnvironment | None = None,
        static_file_defaults: StaticFileOptions | None = None,
    ) -> None:
        self.config = config if config is not None else AppConfig()
        self._environment = environment or HostEnvironment.from_config(self.config)
        self._static_file_defaults = static_file_defaults or StaticFileOptions()

        # Registration state, open until the first compile
        self._route_builders: list[RouteBuilder] = []
        self._registered_middleware: list[Middleware] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._startup_hooks: list[Hook] = []
        self._shutdown_hooks: list[Hook] = []

        self._compiled = False
        self._compile_lock = threading.Lock()
        self._router: Router | None = None
        self._middleware: tuple[Middleware, ...] = ()

    @property
    def environment(self) -> HostEnvironment:
        return self._environment

    @property
    def static_file_defaults(self) -> StaticFileOptions:
        """Options used by ``map_static_files`` calls that pass none."""
        return self._static_file_defaults

    def map(
        self,
        path: str,
        handler: Handler,
        *,
        methods: Sequence[str] = ("GET",),
        name: str | None = None,
        constraints: dict[str, RouteConstraint] | None = None,
    ) -> RouteBuilder:
        """Register *handler* for *path* and return its builder.

        The builder accepts conventions (``builder.add(...)``) until the app
        compiles.
        """
        self._check_open()
        builder = RouteBuilder(
            path=path,
            handler=handler,
            methods=tuple(methods),
            name=name,
            constraints=dict(constraints or {}),
        )
        self._route_builders.append(builder)
        return builder

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Decorator form of ``map``.

        ``path`` may hold ``{param}`` segments and a trailing ``{**name}``
        catch-all. ``methods`` defaults to ``GET`` only.
        """

        def register(handler: Handler) -> Handler:
            self.map(path, handler, methods=methods or ("GET",), name=name)
            return handler

        return register

    def map_static_files(
        self,
        request_path: str = "",
        options: StaticFileOptions | None = None,
        *,
        name: str | None = None,
    ) -> StaticFilesConventionBuilder:
        """Serve existing files under *request_path*; see ``perch.map_static_files``."""
        self._check_open()
        return map_static_files(self, request_path, options, name=name)

    def error(
        self,
        code_or_exception: int | type[Exception],
    ) -> Callable[[ErrorHandler], ErrorHandler]:
        """Handle a status code or an exception class (and its subclasses)."""

        def register(handler: ErrorHandler) -> ErrorHandler:
            self._check_open()
            self._error_handlers[code_or_exception] = handler
            return handler

        return register

    def add_middleware(self, middleware: Middleware) -> None:
        """Append *middleware*; the first one added runs outermost, before routing."""
        self._check_open()
        self._registered_middleware.append(middleware)

    def on_startup(self, func: Hook) -> Hook:
        """Decorator: run *func* (sync or async) at lifespan startup, in
        registration order, after the routes compile."""
        self._check_open()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Hook) -> Hook:
        self._check_open()
        self._shutdown_hooks.append(func)
        return func

    @property
    def routes(self) -> list[Route]:
        """Compiled routes. Compiles the app on first access."""
        return self._compiled_router().routes

    def run(self, host: str | None = None, port: int | None = None) -> None:
        """Compile the app and serve it with pounce (``pip install perch[server]``)."""
        self._ensure_compiled()

        from perch.server.dev import run_dev_server

        run_dev_server(
            self,
            host or self.config.host,
            port or self.config.port,
            reload=self.config.debug,
            log_level=self.config.log_level,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._lifespan(receive, send)
            return

        await handle_request(
            scope,
            receive,
            send,
            router=self._compiled_router(),
            middleware=self._middleware,
            error_handlers=self._error_handlers,
            debug=self.config.debug,
        )

    async def _lifespan(self, receive: Receive, send: Send) -> None:
        """Answer ASGI lifespan events until shutdown.

        Startup compiles the app and runs the startup hooks, so a bad route
        or a failing hook is reported to the server before any request is
        accepted.
        """
        while True:
            message = await receive()
            match message["type"]:
                case "lifespan.startup":
                    try:
                        await self._startup()
                    except Exception as exc:
                        logger.exception("Startup failed")
                        await send({"type": "lifespan.startup.failed", "message": str(exc)})
                        return
                    await send({"type": "lifespan.startup.complete"})
                case "lifespan.shutdown":
                    await self._shutdown()
                    await send({"type": "lifespan.shutdown.complete"})
                    return

    async def _startup(self) -> None:
        self._ensure_compiled()
        await run_hooks(self._startup_hooks)

    async def _shutdown(self) -> None:
        await run_hooks(self._shutdown_hooks)

    def _compiled_router(self) -> Router:
        router = self._router
        if router is None:
            with self._compile_lock:
                # Another thread may have compiled while we waited
                router = self._router or self._compile()
        return router

    def _ensure_compiled(self) -> None:
        self._compiled_router()

    def _compile(self) -> Router:
        """Build the router from the registered builders.

        Caller holds ``_compile_lock``. Each builder's conventions run
        here, once, in registration order.
        """
        router = Router()
        for builder in self._route_builders:
            router.add(builder.build())
        router.compile()

        self._middleware = tuple(self._registered_middleware)
        self._compiled = True
        # Published last: a set router means the rest is in place
        self._router = router
        logger.debug(
            "App compiled: %d routes, %d middleware",
            len(self._route_builders),
            len(self._middleware),
        )
        return router

    def _check_open(self) -> None:
        if self._compiled:
            msg = (
                "The app is already compiled and serving; register routes, "
                "middleware and static files before the first request or app.run()."
            )
            raise RuntimeError(msg)
