"""Tests for signpost.testing — TestClient and assertion helpers."""

import pytest

from signpost.app import App
from signpost.http.response import Response
from signpost.testing import (
    SECURITY_HEADERS,
    TestClient,
    assert_headers,
    assert_not_redirect,
    assert_redirect,
    assert_security_headers,
    assert_served,
)


def _redirect(location: str, status: int = 307) -> Response:
    return Response("").with_status(status).with_header("Location", location)


class TestAssertRedirect:
    def test_passes(self) -> None:
        assert_redirect(_redirect("/new"), "/new", status=307)

    def test_any_3xx_without_status(self) -> None:
        assert_redirect(_redirect("/new", 301), "/new")

    def test_wrong_status(self) -> None:
        with pytest.raises(AssertionError, match="Expected status 301, got 307"):
            assert_redirect(_redirect("/new"), "/new", status=301)

    def test_wrong_location(self) -> None:
        with pytest.raises(AssertionError, match="Expected Location '/other'"):
            assert_redirect(_redirect("/new"), "/other")

    def test_not_a_redirect(self) -> None:
        with pytest.raises(AssertionError, match="Expected a redirect"):
            assert_redirect(Response("hi"), "/new")


class TestAssertNotRedirect:
    def test_passes(self) -> None:
        assert_not_redirect(Response("hi"))

    def test_fails(self) -> None:
        with pytest.raises(AssertionError, match="Unexpected redirect to '/new'"):
            assert_not_redirect(_redirect("/new"))


class TestAssertHeaders:
    def test_case_insensitive(self) -> None:
        response = Response().with_header("x-frame-options", "DENY")
        assert_headers(response, {"X-Frame-Options": "DENY"})

    def test_wrong_value(self) -> None:
        response = Response().with_header("X-Frame-Options", "SAMEORIGIN")
        with pytest.raises(AssertionError, match="expected 'DENY', got 'SAMEORIGIN'"):
            assert_headers(response, {"X-Frame-Options": "DENY"})

    def test_security_headers(self) -> None:
        response = Response().with_headers(SECURITY_HEADERS)
        assert_security_headers(response)

    def test_missing_security_headers(self) -> None:
        with pytest.raises(AssertionError):
            assert_security_headers(Response())

    def test_five_security_headers(self) -> None:
        assert len(SECURITY_HEADERS) == 5


class TestAssertServed:
    def test_passes(self) -> None:
        assert_served(Response("home"), "home")

    def test_wrong_body(self) -> None:
        with pytest.raises(AssertionError, match="Expected body 'home'"):
            assert_served(Response("about"), "home")


class TestTestClient:
    @pytest.mark.anyio
    async def test_head_has_no_body(self, site_app: App) -> None:
        async with TestClient(site_app) as client:
            response = await client.head("/about")
        assert response.status == 200
        assert response.body_bytes == b""

    @pytest.mark.anyio
    async def test_request_headers_forwarded(self, site_app: App) -> None:
        async with TestClient(site_app) as client:
            response = await client.get("/somewhere", headers={"x-redirected": "true"})
        assert_served(response, "home")

    @pytest.mark.anyio
    async def test_post(self, site_app: App) -> None:
        async with TestClient(site_app) as client:
            response = await client.post("/submit", body=b"x=1")
        assert response.status == 200
