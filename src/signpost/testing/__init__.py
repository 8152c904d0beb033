"""Test utilities for signpost applications.

Provides an in-process test client and assertions for redirects,
served paths and security headers::

    from signpost.testing import TestClient, assert_redirect
"""

from signpost.testing.assertions import (
    SECURITY_HEADERS,
    assert_headers,
    assert_not_redirect,
    assert_redirect,
    assert_security_headers,
    assert_served,
)
from signpost.testing.client import TestClient

__all__ = [
    "SECURITY_HEADERS",
    "TestClient",
    "assert_headers",
    "assert_not_redirect",
    "assert_redirect",
    "assert_security_headers",
    "assert_served",
]
