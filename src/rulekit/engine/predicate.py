from __future__ import annotations
from typing import Any, Iterable, Set

def _test_statement(stmt: Any, options: Set[str]) -> bool:
    if isinstance(stmt, str):
        return stmt in options
    if isinstance(stmt, dict) and len(stmt) == 1:
        key, inner = next(iter(stmt.items()))
        if key == "not":
            return not _test_statement(inner, options)
        parts = [_test_statement(s, options) for s in (inner or [])]
        if key == "and":
            return all(parts)
        if key == "or":
            return any(parts)
        if key == "nand":
            return not all(parts)
        if key == "nor":
            return not any(parts)
    raise ValueError(f"malformed predicate statement: {stmt!r}")

def predicate_holds(predicate: Iterable[Any] | None, options: Iterable[str]) -> bool:
    """
    Every statement of the predicate must hold against the roll options.
    Atoms are membership tests; and/or/nand/nor/not combine them. An empty predicate passes.
    """
    opts = set(options)
    return all(_test_statement(s, opts) for s in (predicate or []))
