"""Signpost CLI — serve an app and inspect its routing policy.

Entry point registered as ``signpost`` in ``pyproject.toml``::

    [project.scripts]
    signpost = "signpost.cli:main"
"""

import argparse
import sys

from signpost.config import LOG_LEVELS


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ``signpost`` command."""
    parser = argparse.ArgumentParser(
        prog="signpost",
        description="Signpost — declarative request routing for ASGI applications.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # -- signpost run -----------------------------------------------------
    run_parser = subparsers.add_parser("run", help="Serve an app on both listeners")
    run_parser.add_argument("app", help="Import string (e.g. myapp:app)")
    run_parser.add_argument("--host", default=None, help="Bind host address")
    run_parser.add_argument("--port", type=int, default=None, help="Primary port")
    run_parser.add_argument(
        "--secondary-port",
        type=int,
        default=None,
        help="Secondary (backup) port",
    )
    run_parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help="Worker count (0=auto-detect, production only)",
    )
    run_parser.add_argument(
        "--log-level",
        choices=LOG_LEVELS,
        default=None,
        help="Logging level (defaults to the app's config)",
    )

    # -- signpost rules ---------------------------------------------------
    rules_parser = subparsers.add_parser("rules", help="List rewrites, redirects and headers")
    _add_source_arguments(rules_parser)

    # -- signpost resolve -------------------------------------------------
    resolve_parser = subparsers.add_parser(
        "resolve",
        help="Show what happens to a request path",
    )
    _add_source_arguments(resolve_parser)
    resolve_parser.add_argument("path", help="Request path, optionally with a query")
    resolve_parser.add_argument(
        "-X",
        "--method",
        default="GET",
        help="HTTP method (default GET)",
    )
    resolve_parser.add_argument(
        "-H",
        "--header",
        action="append",
        default=[],
        metavar="NAME:VALUE",
        help="Request header; repeatable",
    )

    # -- signpost listeners -----------------------------------------------
    subparsers.add_parser("listeners", help="Print the resolved listener environment")

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(0)

    if args.command == "run":
        from signpost.cli._run import run_server

        run_server(args)
    elif args.command == "rules":
        from signpost.cli._rules import run_rules

        run_rules(args)
    elif args.command == "resolve":
        from signpost.cli._trace import run_resolve

        run_resolve(args)
    elif args.command == "listeners":
        from signpost.cli._listeners import run_listeners

        run_listeners(args)


def _add_source_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "app",
        nargs="?",
        default=None,
        help="Import string (e.g. myapp:app); omit to use --policy or the stock policy",
    )
    parser.add_argument(
        "--policy",
        default=None,
        metavar="FILE",
        help="TOML policy file to use instead of the app's policy",
    )
