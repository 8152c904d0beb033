"""Routing — the compiled handler table and the rule path-pattern matcher.

``router`` answers "can this path be dispatched normally"; ``patterns``
compiles rewrite, redirect and header-scope sources.
"""
