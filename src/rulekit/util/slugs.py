from __future__ import annotations
import re

_NON_WORD = re.compile(r"[\W_]+", re.UNICODE)

def sluggify(text: str) -> str:
    """'Effect: Inspire Courage' -> 'effect-inspire-courage'"""
    s = str(text or "").lower().replace("'", "").replace("’", "")
    return _NON_WORD.sub("-", s).strip("-")
