"""``signpost run`` — serve an app on the primary and secondary listeners.

Resolves an import string to a signpost App, applies command-line
overrides to its listener configuration, configures logging, and hands
off to the listener runner.
"""

import argparse
import logging
import sys
from dataclasses import replace

from signpost.cli._resolve import resolve_app
from signpost.errors import ConfigurationError


def run_server(args: argparse.Namespace) -> None:
    """Start serving ``args.app``.

    ``--host``, ``--port`` and ``--secondary-port`` override the app's
    listeners; ``--workers`` and ``--log-level`` override its config.
    Development vs production mode follows ``app.config.debug``.
    """
    try:
        app = resolve_app(args.app)
        config = app.config
        overrides = {
            "host": args.host,
            "primary_port": args.port,
            "secondary_port": args.secondary_port,
        }
        listeners = replace(
            config.listeners,
            **{key: value for key, value in overrides.items() if value is not None},
        )
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    log_level = args.log_level or config.log_level

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    from signpost.server.runner import serve

    try:
        app._ensure_frozen()
        serve(
            app,
            listeners,
            debug=config.debug,
            workers=args.workers if args.workers is not None else config.workers,
            log_level=log_level,
            reload_include=config.reload_include,
            reload_dirs=config.reload_dirs,
            app_path=args.app,
        )
    except (ConfigurationError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
