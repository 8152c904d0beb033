"""``signpost listeners`` — print the listener environment.

Resolves ``HOST``, ``PORT`` and ``SECONDARY_PORT`` exactly as the server
would at startup and prints the environment handed to downstream
consumers, one ``NAME=value`` per line.
"""

import argparse
import sys

from signpost.config import resolve_listeners
from signpost.errors import ConfigurationError


def run_listeners(args: argparse.Namespace) -> None:
    try:
        listeners = resolve_listeners()
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        raise SystemExit(1) from exc

    for name, value in listeners.as_env().items():
        print(f"{name}={value}")
