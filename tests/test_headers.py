"""Tests for signpost.http.headers — immutable, case-insensitive Headers."""

import pytest

from signpost.http.headers import Headers


def _h(*pairs: tuple[str, str]) -> Headers:
    """Shorthand: build Headers from string pairs."""
    raw = tuple((k.encode("latin-1"), v.encode("latin-1")) for k, v in pairs)
    return Headers(raw)


class TestHeaders:
    def test_getitem(self) -> None:
        h = _h(("X-Redirected", "true"))
        assert h["X-Redirected"] == "true"

    def test_case_insensitive(self) -> None:
        h = _h(("X-Redirected", "true"))
        assert h["x-redirected"] == "true"
        assert h["X-REDIRECTED"] == "true"

    def test_value_case_preserved(self) -> None:
        assert _h(("X-Redirected", "TRUE"))["x-redirected"] == "TRUE"

    def test_missing_key_raises(self) -> None:
        with pytest.raises(KeyError):
            _h(("Accept", "*/*"))["X-Missing"]

    def test_contains(self) -> None:
        h = _h(("Accept", "*/*"))
        assert "accept" in h
        assert "Accept" in h
        assert "x-missing" not in h

    def test_contains_rejects_non_str(self) -> None:
        assert 42 not in _h(("Accept", "*/*"))  # type: ignore[operator]

    def test_len_deduplicates(self) -> None:
        h = _h(("Vary", "Accept"), ("Vary", "Cookie"))
        assert len(h) == 1

    def test_iter_yields_unique_lowercase_keys(self) -> None:
        h = _h(("Accept", "*/*"), ("Content-Type", "text/html"), ("Accept", "text/xml"))
        assert list(h) == ["accept", "content-type"]

    def test_get_returns_first(self) -> None:
        h = _h(("X-A", "1"), ("x-a", "2"))
        assert h.get("x-a") == "1"
        assert h.get("x-missing") is None
        assert h.get("x-missing", "fallback") == "fallback"

    def test_get_list(self) -> None:
        h = _h(("Vary", "Accept"), ("Vary", "Cookie"), ("Accept", "*/*"))
        assert h.get_list("vary") == ["Accept", "Cookie"]
        assert h.get_list("X-Missing") == []

    def test_raw_property(self) -> None:
        raw = ((b"a", b"1"), (b"b", b"2"))
        assert Headers(raw).raw is raw

    def test_empty_headers(self) -> None:
        h = Headers()
        assert len(h) == 0
        assert list(h) == []

    def test_repr(self) -> None:
        assert "accept" in repr(_h(("Accept", "*/*")))


class TestFromPairs:
    def test_lowercases_names(self) -> None:
        h = Headers.from_pairs([("X-Redirected", "true")])
        assert h.raw == ((b"x-redirected", b"true"),)

    def test_keeps_order(self) -> None:
        h = Headers.from_pairs([("B", "2"), ("A", "1")])
        assert list(h) == ["b", "a"]
