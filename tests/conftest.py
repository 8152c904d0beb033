"""Shared pytest configuration for signpost tests."""

import pytest

from signpost.app import App


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def site_app() -> App:
    """An app with the stock policy and a handful of pages."""
    app = App()

    @app.route("/")
    def index():
        return "home"

    @app.route("/emergency-access/emergency")
    def emergency():
        return "emergency"

    @app.route("/about")
    def about():
        return "about"

    @app.route("/broken")
    def broken():
        msg = "boom"
        raise RuntimeError(msg)

    @app.route("/submit", methods=["POST"])
    def submit():
        return "submitted"

    return app
