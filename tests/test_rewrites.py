"""Tests for signpost.policy.rewrites — the two-phase rewrite engine."""

import pytest

from signpost.http.headers import Headers
from signpost.policy.context import RequestContext
from signpost.policy.defaults import EMERGENCY_PAGE, default_policy
from signpost.policy.rewrites import RewriteEngine
from signpost.policy.rules import BEFORE_FILES, FALLBACK, Condition, Rule, RuleSet


def _ctx(path: str, query: bytes = b"", **headers: str) -> RequestContext:
    return RequestContext(
        path=path,
        original_path=path,
        headers=Headers.from_pairs((k.replace("_", "-"), v) for k, v in headers.items()),
        query_string=query,
    )


def _engine(before: tuple[Rule, ...] = (), fallback: tuple[Rule, ...] = ()) -> RewriteEngine:
    return RewriteEngine(RuleSet(BEFORE_FILES, before), RuleSet(FALLBACK, fallback))


class TestRewriteEngine:
    def test_no_match_leaves_path(self) -> None:
        engine = _engine((Rule.rewrite("/a", "/b"),))
        ctx = _ctx("/c")
        assert engine.rewrite(BEFORE_FILES, ctx) == "/c"
        assert ctx.matched_rule is None
        assert ctx.trace == []

    def test_match_rewrites_path(self) -> None:
        rule = Rule.rewrite("/a", "/b")
        ctx = _ctx("/a")
        assert _engine((rule,)).rewrite(BEFORE_FILES, ctx) == "/b"
        assert ctx.path == "/b"
        assert ctx.original_path == "/a"
        assert ctx.matched_rule is rule

    def test_records_trace(self) -> None:
        ctx = _ctx("/a")
        _engine((Rule.rewrite("/a", "/b"),)).apply(BEFORE_FILES, ctx)
        assert ctx.trace == ["rewrite[beforeFiles] /a -> /b"]

    def test_first_rule_wins(self) -> None:
        first = Rule.rewrite("/:path*", "/one")
        second = Rule.rewrite("/x", "/two")
        ctx = _ctx("/x")
        _engine((first, second)).apply(BEFORE_FILES, ctx)
        assert ctx.path == "/one"
        assert ctx.matched_rule is first

    def test_single_pass_per_phase(self) -> None:
        # /a -> /b must not chain into /b -> /c within one phase
        engine = _engine((Rule.rewrite("/a", "/b"), Rule.rewrite("/b", "/c")))
        ctx = _ctx("/a")
        engine.apply(BEFORE_FILES, ctx)
        assert ctx.path == "/b"

    def test_phases_are_separate(self) -> None:
        engine = _engine(fallback=(Rule.rewrite("/a", "/b"),))
        ctx = _ctx("/a")
        assert engine.apply(BEFORE_FILES, ctx) is None
        assert engine.apply(FALLBACK, ctx) is not None
        assert ctx.path == "/b"

    def test_empty_phase_is_noop(self) -> None:
        ctx = _ctx("/anything")
        assert _engine().apply(FALLBACK, ctx) is None
        assert ctx.path == "/anything"

    def test_unknown_phase(self) -> None:
        with pytest.raises(ValueError, match="no 'redirect' phase"):
            _engine().rules("redirect")

    def test_captures_substituted(self) -> None:
        ctx = _ctx("/blog/2024/hello")
        _engine((Rule.rewrite("/blog/:rest*", "/posts/:rest*"),)).apply(BEFORE_FILES, ctx)
        assert ctx.path == "/posts/2024/hello"

    def test_destination_query_merged(self) -> None:
        ctx = _ctx("/search", query=b"q=cats")
        _engine((Rule.rewrite("/search", "/find?source=legacy"),)).apply(BEFORE_FILES, ctx)
        assert ctx.path == "/find"
        assert ctx.query_string == b"source=legacy&q=cats"


class TestStockRewrites:
    def _engine(self) -> RewriteEngine:
        policy = default_policy()
        return RewriteEngine(policy.before_files, policy.fallback)

    @pytest.mark.parametrize(
        "path", ["/", "/about", "/deep/nested/path", "/emergency", "/a\nb", "/%0A/x\r\ny"]
    )
    def test_x_redirected_always_serves_root(self, path: str) -> None:
        ctx = _ctx(path, x_redirected="true")
        assert self._engine().rewrite(BEFORE_FILES, ctx) == "/"

    def test_x_redirected_other_value_ignored(self) -> None:
        ctx = _ctx("/about", x_redirected="false")
        assert self._engine().rewrite(BEFORE_FILES, ctx) == "/about"

    def test_x_redirected_header_name_any_case(self) -> None:
        ctx = RequestContext(
            path="/about",
            original_path="/about",
            headers=Headers.from_pairs([("X-Redirected", "true")]),
        )
        assert self._engine().rewrite(BEFORE_FILES, ctx) == "/"

    def test_emergency_direct(self) -> None:
        ctx = _ctx("/emergency-direct")
        assert self._engine().rewrite(BEFORE_FILES, ctx) == EMERGENCY_PAGE

    def test_x_redirected_beats_emergency_direct(self) -> None:
        ctx = _ctx("/emergency-direct", x_redirected="true")
        assert self._engine().rewrite(BEFORE_FILES, ctx) == "/"

    def test_stock_fallback_is_empty(self) -> None:
        assert len(self._engine().rules(FALLBACK)) == 0

    def test_root_rewrite_is_gated_on_header(self) -> None:
        gate = Condition(key="x-redirected", value="true")
        assert self._engine().rules(BEFORE_FILES).rules[0].conditions == (gate,)
