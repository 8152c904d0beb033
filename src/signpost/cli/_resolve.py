"""App import resolution — resolves ``"module:attribute"`` strings to App instances.

Shared by every subcommand that works on an app.
"""

import argparse
import importlib
import sys

from signpost.app import App
from signpost.errors import ConfigurationError
from signpost.policy.defaults import default_policy
from signpost.policy.loader import load_policy
from signpost.policy.policy import RoutingPolicy


def resolve_app(import_string: str) -> App:
    """Resolve an import string to a signpost App instance.

    Accepts ``"module:attribute"`` format. When the attribute portion
    is omitted, defaults to ``"app"``. A callable that is not an App is
    treated as a factory and called.

    Raises:
        ModuleNotFoundError: If the module cannot be imported.
        AttributeError: If the attribute does not exist on the module.
        TypeError: If the resolved object is not an ``App`` or factory.
    """
    module_path, _, attr_name = import_string.partition(":")
    if not attr_name:
        attr_name = "app"

    module = importlib.import_module(module_path)
    obj = getattr(module, attr_name)

    if callable(obj) and not isinstance(obj, App):
        try:
            obj = obj()
        except Exception as exc:
            msg = f"Factory function {import_string!r} raised an error: {exc}"
            raise TypeError(msg) from exc

    if not isinstance(obj, App):
        msg = f"{import_string!r} resolved to {type(obj).__name__}, not a signpost.App instance"
        raise TypeError(msg)

    return obj


def app_from_args(args: argparse.Namespace) -> App:
    """Build the App a subcommand works on, exiting 1 on failure.

    ``--policy`` replaces the policy of the resolved app; with no app
    given, an empty App carrying that policy (or the stock one) is used.
    """
    try:
        app = resolve_app(args.app) if args.app else None
        if args.policy is not None:
            app = _with_policy(app, load_policy(args.policy))
        elif app is None:
            app = App(policy=default_policy())
        app._ensure_frozen()
    except (ModuleNotFoundError, AttributeError, TypeError, ConfigurationError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc
    return app


def _with_policy(app: App | None, policy: RoutingPolicy) -> App:
    """A fresh App with *app*'s registrations and *policy*."""
    if app is None:
        return App(policy=policy)
    replacement = App(app.config, policy=policy)
    replacement._pending_routes.extend(app._pending_routes)
    replacement._middleware_list.extend(app._middleware_list)
    replacement._error_handlers.update(app._error_handlers)
    return replacement
