"""Tests for signpost.http.query — immutable QueryParams."""

from signpost.http.query import QueryParams


class TestQueryParams:
    def test_first_value(self) -> None:
        q = QueryParams(b"tag=a&tag=b")
        assert q["tag"] == "a"
        assert q.get_list("tag") == ["a", "b"]

    def test_get_default(self) -> None:
        q = QueryParams(b"")
        assert q.get("missing") is None
        assert q.get("missing", "x") == "x"

    def test_blank_values_kept(self) -> None:
        assert QueryParams(b"flag=")["flag"] == ""

    def test_percent_decoding(self) -> None:
        assert QueryParams(b"q=two%20words")["q"] == "two words"

    def test_mapping_protocol(self) -> None:
        q = QueryParams(b"a=1&b=2")
        assert len(q) == 2
        assert list(q) == ["a", "b"]
        assert "a" in q

    def test_raw_preserved(self) -> None:
        assert QueryParams(b"source=legacy&q=cats").raw == b"source=legacy&q=cats"

    def test_repr(self) -> None:
        assert repr(QueryParams(b"a=1")) == "QueryParams({'a': '1'})"
