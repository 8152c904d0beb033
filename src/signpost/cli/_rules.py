"""``signpost rules`` — list the routing policy in evaluation order."""

import argparse

from signpost.cli._resolve import app_from_args
from signpost.policy.rules import BEFORE_FILES, FALLBACK, REDIRECT


def run_rules(args: argparse.Namespace) -> None:
    """Print rewrites, redirects and header directives as tables.

    Rules are printed in the order the request router evaluates them:
    beforeFiles rewrites, redirects, then fallback rewrites.
    """
    policy = app_from_args(args).policy

    rows: list[tuple[str, str, str]] = []
    for phase, ruleset in (
        (BEFORE_FILES, policy.before_files),
        (REDIRECT, policy.redirects),
        (FALLBACK, policy.fallback),
    ):
        for rule in ruleset:
            rows.append((phase, rule.kind, rule.describe()))

    if rows:
        _print_table(("PHASE", "KIND", "RULE"), rows)
    else:
        print("No rewrite or redirect rules.")

    header_rows = [
        (directive.scope, name, value)
        for directive in policy.headers
        for name, value in directive.headers
    ]
    print()
    if header_rows:
        _print_table(("SCOPE", "HEADER", "VALUE"), header_rows)
    else:
        print("No header directives.")


def _print_table(titles: tuple[str, str, str], rows: list[tuple[str, str, str]]) -> None:
    widths = [max(len(titles[i]), *(len(row[i]) for row in rows)) for i in range(2)]
    fmt = f"{{:<{widths[0]}}}  {{:<{widths[1]}}}  {{}}"
    print(fmt.format(*titles))
    sep_len = widths[0] + widths[1] + 4 + max(len(row[2]) for row in rows)
    print("-" * min(sep_len, 80))
    for row in rows:
        print(fmt.format(*row))
