from __future__ import annotations
from typing import List

class TraceSession:
    """Collects tagged diagnostic lines ("[RuleElement] ...") for one preparation pass."""

    def __init__(self) -> None:
        self.lines: List[str] = []

    def add(self, line: str) -> None:
        self.lines.append(line)

    def extend(self, many: list[str]) -> None:
        self.lines.extend(many)

    def tagged(self, tag: str) -> list[str]:
        prefix = f"[{tag}]"
        return [ln for ln in self.lines if ln.startswith(prefix)]

    def dump(self) -> list[str]:
        return list(self.lines)
