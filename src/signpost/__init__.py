"""Signpost — declarative request routing for ASGI applications.

Rewrites, redirects and security headers declared once at startup and
applied to every request, in front of a small handler tree.

Basic usage::

    from signpost import App

    app = App()

    @app.route("/")
    def index():
        return "Hello, World!"

    app.run()

Custom policy::

    from signpost import App, AppConfig, RoutingPolicy

    app = App(AppConfig.from_env(), policy=RoutingPolicy.from_file("routing.toml"))
"""

__version__ = "0.1.0"
__all__ = [
    "App",
    "AppConfig",
    "ConfigurationError",
    "HTTPError",
    "ListenerConfig",
    "MethodNotAllowed",
    "Middleware",
    "Next",
    "NotFound",
    "Redirect",
    "Request",
    "Response",
    "RoutingPolicy",
    "Rule",
    "SignpostError",
    "default_policy",
]


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import signpost`` fast while providing a clean top-level API.
    """
    if name == "App":
        from signpost.app import App

        return App

    if name in ("AppConfig", "ListenerConfig"):
        from signpost import config

        return getattr(config, name)

    if name == "Request":
        from signpost.http.request import Request

        return Request

    if name in ("Response", "Redirect"):
        from signpost.http import response

        return getattr(response, name)

    if name in ("Middleware", "Next"):
        from signpost.middleware import protocol

        return getattr(protocol, name)

    if name in ("RoutingPolicy", "Rule", "default_policy"):
        from signpost import policy

        return getattr(policy, name)

    if name in (
        "SignpostError",
        "ConfigurationError",
        "HTTPError",
        "NotFound",
        "MethodNotAllowed",
    ):
        from signpost import errors

        return getattr(errors, name)

    msg = f"module 'signpost' has no attribute {name!r}"
    raise AttributeError(msg)
