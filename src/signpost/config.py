"""Application and listener configuration.

Both are frozen dataclasses, immutable after creation and resolved once at
process start, no string-key dict lookups afterwards. The environment is
read here and nowhere else.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from signpost.errors import ConfigurationError

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PRIMARY_PORT = 5000
DEFAULT_SECONDARY_PORT = 3003

# Ports the container platform maps the listeners to. Informational only.
DEFAULT_PRIMARY_MAPPING = "80"
DEFAULT_SECONDARY_MAPPING = "3000"

LOG_LEVELS = ("debug", "info", "warning", "error", "critical")


@dataclass(frozen=True, slots=True)
class ListenerConfig:
    """Where the process listens.

    ``external_primary_mapping`` / ``external_secondary_mapping`` describe
    the externally published ports. They are carried for documentation
    and environment propagation and never affect binding.
    """

    host: str = DEFAULT_HOST
    primary_port: int = DEFAULT_PRIMARY_PORT
    secondary_port: int = DEFAULT_SECONDARY_PORT
    external_primary_mapping: str = DEFAULT_PRIMARY_MAPPING
    external_secondary_mapping: str = DEFAULT_SECONDARY_MAPPING

    def __post_init__(self) -> None:
        for name in ("primary_port", "secondary_port"):
            port = getattr(self, name)
            if isinstance(port, bool) or not isinstance(port, int) or not 0 < port < 65536:
                msg = f"{name}={port!r} is outside the valid port range 1-65535."
                raise ConfigurationError(msg)
        if self.primary_port == self.secondary_port:
            msg = (
                f"Primary and secondary listeners both use port {self.primary_port}; "
                "set SECONDARY_PORT to a different value."
            )
            raise ConfigurationError(msg)

    def binds(self) -> tuple[tuple[str, int], tuple[str, int]]:
        """``(host, port)`` for the primary and the secondary listener."""
        return (self.host, self.primary_port), (self.host, self.secondary_port)

    def as_env(self) -> dict[str, str]:
        """The environment handed to downstream consumers."""
        return {
            "PORT": str(self.primary_port),
            "SECONDARY_PORT": str(self.secondary_port),
            "HOST": self.host,
            "MAIN_PORT_MAPPING": self.external_primary_mapping,
            "SECONDARY_PORT_MAPPING": self.external_secondary_mapping,
        }


def resolve_listeners(environ: Mapping[str, str] | None = None) -> ListenerConfig:
    """Resolve listeners from ``HOST``, ``PORT`` and ``SECONDARY_PORT``.

    Unset or empty variables fall back to ``0.0.0.0``, 5000 and 3003.
    A port that is not an integer in 1-65535 raises ``ConfigurationError``.
    """
    env = os.environ if environ is None else environ
    return ListenerConfig(
        host=env.get("HOST") or DEFAULT_HOST,
        primary_port=_port(env, "PORT", DEFAULT_PRIMARY_PORT),
        secondary_port=_port(env, "SECONDARY_PORT", DEFAULT_SECONDARY_PORT),
    )


def _port(env: Mapping[str, str], name: str, default: int) -> int:
    raw = (env.get(name) or "").strip()
    if not raw:
        return default
    try:
        port = int(raw)
    except ValueError:
        msg = f"{name}={raw!r} is not a port number."
        raise ConfigurationError(msg) from None
    if not 0 < port < 65536:
        msg = f"{name}={port} is outside the valid port range 1-65535."
        raise ConfigurationError(msg)
    return port


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Application configuration. Immutable after creation.

    All fields have sensible defaults. Override what you need::

        config = AppConfig(debug=True, listeners=ListenerConfig(primary_port=8080))

    Or resolve everything from the environment once at startup::

        config = AppConfig.from_env()
    """

    # Server
    listeners: ListenerConfig = field(default_factory=ListenerConfig)
    debug: bool = False
    workers: int = 0  # 0 = auto-detect from CPU count (production only)

    # Reload (development mode only, requires debug=True)
    reload_include: tuple[str, ...] = ()
    reload_dirs: tuple[str, ...] = ()

    # Logging
    log_level: str = "info"

    def __post_init__(self) -> None:
        if self.log_level not in LOG_LEVELS:
            msg = f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}."
            raise ConfigurationError(msg)

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> AppConfig:
        """Resolve listeners, build mode and log level from the environment.

        ``APP_ENV=development`` turns on debug mode (single worker with
        reload); any other value, or none, means production.
        """
        env = os.environ if environ is None else environ
        return cls(
            listeners=resolve_listeners(env),
            debug=env.get("APP_ENV", "production").lower() == "development",
            log_level=(env.get("LOG_LEVEL") or "info").lower(),
        )
