"""Signpost application class.

Mutable during setup (route registration, middleware, error handlers,
hooks). Frozen at runtime when app.run() or __call__() is first invoked.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from signpost._internal.asgi import Receive, Scope, Send
from signpost._internal.invoke import invoke
from signpost._internal.types import ErrorHandler, Handler, Hook
from signpost.config import AppConfig
from signpost.middleware.protocol import Middleware
from signpost.policy.defaults import default_policy
from signpost.policy.policy import RoutingPolicy
from signpost.policy.router import RequestRouter
from signpost.routing.route import Route
from signpost.routing.router import Router
from signpost.server.handler import handle_request

logger = logging.getLogger("signpost.app")


@dataclass(slots=True)
class _PendingRoute:
    """A route waiting to be compiled."""

    path: str
    handler: Handler
    methods: list[str] | None
    name: str | None


class App:
    """The signpost application.

    The routing policy and configuration are injected at construction
    and never change afterwards::

        app = App(AppConfig.from_env(), policy=RoutingPolicy.from_file("routing.toml"))

        @app.route("/")
        def index():
            return "Hello"

    When *policy* is omitted the stock policy (``default_policy()``) is
    used. Pass ``RoutingPolicy()`` for an empty one.

    Thread safety:
        The setup phase is single-threaded (decorators at import time).
        The freeze transition uses a Lock + double-check so exactly one
        thread compiles the app, even when several workers call
        ``__call__()`` concurrently on the first request.
    """

    __slots__ = (
        "_error_handlers",
        "_freeze_lock",
        "_frozen",
        "_middleware",
        "_middleware_list",
        "_pending_routes",
        "_request_router",
        "_router",
        "_shutdown_hooks",
        "_startup_hooks",
        "config",
        "policy",
    )

    def __init__(
        self,
        config: AppConfig | None = None,
        *,
        policy: RoutingPolicy | None = None,
    ) -> None:
        self.config: AppConfig = config or AppConfig()
        self.policy: RoutingPolicy = policy if policy is not None else default_policy()
        self._pending_routes: list[_PendingRoute] = []
        self._middleware_list: list[Middleware] = []
        self._error_handlers: dict[int | type, ErrorHandler] = {}
        self._startup_hooks: list[Hook] = []
        self._shutdown_hooks: list[Hook] = []
        self._frozen: bool = False
        self._freeze_lock: threading.Lock = threading.Lock()

        # Compiled state, set during _freeze()
        self._router: Router | None = None
        self._request_router: RequestRouter | None = None
        self._middleware: tuple[Callable[..., Any], ...] = ()

    # -- Route registration --

    def route(
        self,
        path: str,
        *,
        methods: list[str] | None = None,
        name: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Register a route handler via decorator.

        Args:
            path: URL path pattern. Use ``{param}`` for path parameters
                and ``{name:path}`` for a catch-all tail.
            methods: HTTP methods. Defaults to ``["GET"]``.
            name: Optional route name.
        """

        def decorator(func: Handler) -> Handler:
            self._check_not_frozen()
            self._pending_routes.append(_PendingRoute(path, func, methods, name))
            return func

        return decorator

    def error(self, code_or_exception: int | type) -> Callable[[ErrorHandler], ErrorHandler]:
        """Register an error handler by status code or exception type.

        The returned response still receives the header policy.
        """

        def decorator(func: ErrorHandler) -> ErrorHandler:
            self._check_not_frozen()
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    def add_middleware(self, middleware: Middleware) -> None:
        """Add a middleware around normal dispatch."""
        self._check_not_frozen()
        self._middleware_list.append(middleware)

    def on_startup(self, func: Hook) -> Hook:
        """Register a hook run once when the server starts (lifespan)."""
        self._check_not_frozen()
        self._startup_hooks.append(func)
        return func

    def on_shutdown(self, func: Hook) -> Hook:
        """Register a hook run once when the server stops (lifespan)."""
        self._check_not_frozen()
        self._shutdown_hooks.append(func)
        return func

    # -- Introspection --

    @property
    def routes(self) -> list[Route]:
        """Compiled routes; freezes the app."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router.routes

    @property
    def request_router(self) -> RequestRouter:
        """The compiled request router; freezes the app."""
        self._ensure_frozen()
        assert self._request_router is not None
        return self._request_router

    def can_dispatch(self, path: str) -> bool:
        """Whether *path* resolves to a registered handler."""
        self._ensure_frozen()
        assert self._router is not None
        return self._router.can_dispatch(path)

    # -- Server --

    def run(self, *, app_path: str | None = None) -> None:
        """Start serving on the primary and secondary listeners.

        Compiles the app, then hands it to the listener runner:

        - **Development mode** (debug=True): single worker, reload on
          the primary listener
        - **Production mode** (debug=False): ``config.workers`` workers
        """
        from signpost.server.runner import serve

        self._ensure_frozen()
        serve(
            self,
            self.config.listeners,
            debug=self.config.debug,
            workers=self.config.workers,
            log_level=self.config.log_level,
            reload_include=self.config.reload_include,
            reload_dirs=self.config.reload_dirs,
            app_path=app_path,
        )

    # -- ASGI interface --

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """ASGI 3.0 entry point.

        Handles lifespan directly, then delegates HTTP scopes to the
        request pipeline. Other scope types are ignored.
        """
        if scope["type"] == "lifespan":
            await self._handle_lifespan(receive, send)
            return

        self._ensure_frozen()

        assert self._router is not None
        assert self._request_router is not None

        await handle_request(
            scope,
            receive,
            send,
            request_router=self._request_router,
            router=self._router,
            middleware=self._middleware,
            error_handlers=self._error_handlers,
            debug=self.config.debug,
        )

    async def _handle_lifespan(self, receive: Receive, send: Send) -> None:
        """Run the ASGI lifespan protocol.

        Freezes the app at startup so configuration errors surface before
        the first request, then runs the startup/shutdown hooks.
        """
        while True:
            message = await receive()
            msg_type = message["type"]

            if msg_type == "lifespan.startup":
                try:
                    self._ensure_frozen()
                    for hook in self._startup_hooks:
                        await invoke(hook)
                except Exception as exc:
                    logger.exception("startup failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif msg_type == "lifespan.shutdown":
                for hook in self._shutdown_hooks:
                    await invoke(hook)
                await send({"type": "lifespan.shutdown.complete"})
                return

    # -- Internal --

    def _ensure_frozen(self) -> None:
        """Thread-safe freeze with double-check locking."""
        if self._frozen:
            return
        with self._freeze_lock:
            if self._frozen:
                return
            self._freeze()

    def _freeze(self) -> None:
        """Compile the app into its frozen runtime state.

        MUST only be called while holding _freeze_lock.
        """
        router = Router()
        for pending in self._pending_routes:
            methods = frozenset(m.upper() for m in (pending.methods or ["GET"]))
            router.add(
                Route(
                    path=pending.path,
                    handler=pending.handler,
                    methods=methods,
                    name=pending.name,
                )
            )
        router.compile()

        self._router = router
        self._request_router = RequestRouter(self.policy)
        self._middleware = tuple(self._middleware_list)
        self._frozen = True

        logger.debug(
            "compiled %d routes, %d routing rules, %d header directives",
            len(router.routes),
            self.policy.rule_count,
            len(self.policy.headers),
        )

    def _check_not_frozen(self) -> None:
        if self._frozen:
            msg = (
                "Cannot modify the app after it has started serving requests. "
                "Register routes, middleware, and hooks before calling app.run()."
            )
            raise RuntimeError(msg)
