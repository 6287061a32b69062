from __future__ import annotations
from typing import Any, Optional, Dict, List
from functools import lru_cache
import threading
import math
import re

from py_expression_eval import Parser

# Thread-local evaluation context so function implementations can read the actor dynamically
class _EvalTLS(threading.local):
    def __init__(self):
        self.actor: Any = None
        self.extra: Dict[str, Any] = {}

_TLS = _EvalTLS()

# Single global parser with function table bound to dynamic, context-aware implementations
_parser = Parser()

# Allowed math helpers
_parser.functions["min"] = min
_parser.functions["max"] = max
_parser.functions["floor"] = math.floor
_parser.functions["ceil"] = math.ceil
_parser.functions["abs"] = abs

_ABILITY_ALIASES = {"strength": "str", "dexterity": "dex", "constitution": "con",
                    "intelligence": "int", "wisdom": "wis", "charisma": "cha"}

def _ability_mod(name: Any) -> int:
    ent = _TLS.actor
    if ent is None:
        return 0
    ab = _ABILITY_ALIASES.get(str(name).lower(), str(name).lower())
    score = getattr(ent, "abilities", {}).get(ab)
    return int(score.mod) if score is not None else 0

_parser.functions["ability_mod"] = _ability_mod

# bare ability names evaluate to themselves so `ability_mod(str)` reads naturally
_ABILITY_VARS: Dict[str, Any] = {ab: ab for ab in ("str", "dex", "con", "int", "wis", "cha")}

# -------- property access --------

def get_property(obj: Any, path: str) -> Any:
    """
    Walk a dotted path through dicts, attributes and zero-argument methods.
    Returns None when any segment is missing.
    """
    cur = obj
    for part in path.split("."):
        if cur is None:
            return None
        if isinstance(cur, dict):
            cur = cur.get(part)
        elif isinstance(cur, (list, tuple)) and part.isdigit():
            idx = int(part)
            cur = cur[idx] if idx < len(cur) else None
        else:
            cur = getattr(cur, part, None)
        if callable(cur) and not isinstance(cur, type):
            try:
                cur = cur()
            except TypeError:
                return None
    return cur

_INJECT_RE = re.compile(r"\{(actor|item|rule)\|(.*?)\}")

def resolve_injected_properties(text: Any, sources: Dict[str, Any], warnings: Optional[List[str]] = None) -> Any:
    """
    Replace `{actor|path}`, `{item|path}` and `{rule|path}` references inside a string.
    Non-strings pass through untouched; unresolvable references become "" and are reported.
    """
    if not isinstance(text, str) or "{" not in text:
        return text

    def _sub(m: re.Match) -> str:
        owner, path = m.group(1), m.group(2)
        value = get_property(sources.get(owner), path)
        if value is None:
            if warnings is not None:
                warnings.append(f"Failed to resolve {owner} property path \"{path}\"")
            return ""
        return str(value)

    return _INJECT_RE.sub(_sub, text)

_FORMULA_DATA_RE = re.compile(r"@([A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z0-9_]+)*)")

def replace_formula_data(formula: str, data: Dict[str, Any], missing: Optional[List[str]] = None) -> str:
    """Substitute `@path` references with their numeric value from `data` (missing -> 0)."""
    def _sub(m: re.Match) -> str:
        value = get_property(data, m.group(1))
        if isinstance(value, bool):
            return "1" if value else "0"
        if isinstance(value, (int, float)):
            return f"({value})"
        try:
            return f"({float(str(value))})"
        except ValueError:
            if missing is not None:
                missing.append(m.group(1))
            return "0"

    return _FORMULA_DATA_RE.sub(_sub, formula)

# LRU-compiled AST cache
@lru_cache(maxsize=8192)
def _compile_expr(expr: str):
    return _parser.parse(expr)

def eval_expr(expr: str | int | float,
              actor: Any = None,
              extra: Optional[Dict[str, Any]] = None) -> int | float:
    """
    Evaluate an expression string (or numeric literal) using the compiled cache and thread-local context.
    """
    if isinstance(expr, (int, float)):
        return expr
    prev_actor, prev_extra = _TLS.actor, _TLS.extra
    _TLS.actor, _TLS.extra = actor, {**_ABILITY_VARS, **(extra or {})}
    try:
        ast = _compile_expr(expr.strip())
        value = ast.evaluate(_TLS.extra)  # constants/vars available via extra
    finally:
        _TLS.actor, _TLS.extra = prev_actor, prev_extra

    # Normalize ints
    f = float(value)
    return int(f) if f.is_integer() else f
