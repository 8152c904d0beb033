"""Listener runner — serve one app on the primary and secondary ports.

Each listener is a pounce server running in its own daemon thread. The
runner waits for the first listener to stop. If it stopped with an error
that error is re-raised as is; the surviving listener never keeps the
process alive.

Development mode (``debug=True``) runs a single worker with reload on
the primary listener. Production mode uses ``workers`` (0 = one per
CPU) on both.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Any

import anyio
from anyio import to_thread

from signpost.config import ListenerConfig
from signpost.errors import ConfigurationError

if TYPE_CHECKING:
    from signpost.app import App

logger = logging.getLogger("signpost.server")


def serve(
    app: App,
    listeners: ListenerConfig,
    *,
    debug: bool = False,
    workers: int = 0,
    log_level: str = "info",
    reload_include: tuple[str, ...] = (),
    reload_dirs: tuple[str, ...] = (),
    app_path: str | None = None,
) -> None:
    """Start both listeners and block until they stop.

    Raises ``ConfigurationError`` when pounce is not installed. Listener
    ports are already validated by ``ListenerConfig``.
    """
    servers = [
        build_server(
            app,
            host,
            port,
            debug=debug,
            # Only one listener can own the reloader
            reload=debug and index == 0,
            workers=1 if debug else workers,
            log_level=log_level,
            reload_include=reload_include,
            reload_dirs=reload_dirs,
            app_path=app_path,
        )
        for index, (host, port) in enumerate(listeners.binds())
    ]

    logger.info(
        "listening on %s:%d (primary, external %s) and %s:%d (secondary, external %s)",
        listeners.host,
        listeners.primary_port,
        listeners.external_primary_mapping,
        listeners.host,
        listeners.secondary_port,
        listeners.external_secondary_mapping,
    )
    anyio.run(_serve_all, servers)


def build_server(
    app: object,
    host: str,
    port: int,
    *,
    debug: bool,
    reload: bool,
    workers: int,
    log_level: str,
    reload_include: tuple[str, ...] = (),
    reload_dirs: tuple[str, ...] = (),
    app_path: str | None = None,
) -> Any:
    """Build (but do not start) a pounce server for one listener."""
    try:
        from pounce.config import ServerConfig
        from pounce.server import Server
    except ImportError as exc:
        msg = (
            "Serving requires the pounce ASGI server. "
            "Install it with: pip install signpost[server]"
        )
        raise ConfigurationError(msg) from exc

    if debug:
        config = ServerConfig(
            host=host,
            port=port,
            workers=workers,
            reload=reload,
            reload_include=reload_include,
            reload_dirs=reload_dirs,
        )
        return Server(config, app, app_path=app_path if reload else None)

    config = ServerConfig(
        host=host,
        port=port,
        workers=workers,
        log_level=log_level,
    )
    return Server(config, app)


async def _serve_all(servers: list[Any]) -> None:
    """Run *servers* until the first one stops; re-raise its error, if any."""
    stopped = threading.Event()
    errors: list[BaseException] = []

    def run(server: Any) -> None:
        try:
            server.run()
        except BaseException as exc:
            errors.append(exc)
        finally:
            stopped.set()

    for index, server in enumerate(servers):
        thread = threading.Thread(
            target=run,
            args=(server,),
            name=f"signpost-listener-{index}",
            daemon=True,
        )
        thread.start()

    try:
        await to_thread.run_sync(stopped.wait, abandon_on_cancel=True)
    finally:
        # Release the waiting worker thread when cancelled
        stopped.set()

    if errors:
        logger.error("listener stopped: %s", errors[0])
        raise errors[0]
    logger.info("listener stopped, shutting down")
