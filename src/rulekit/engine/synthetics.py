from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

from .modifiers_runtime import DeferredValueParams, Modifier, ModifierAdjustment
from .schema_models import ModifierPhase
from .trace import TraceSession

ZeroPolicy = Literal["keep", "drop_on_evaluation"]

@dataclass
class Synthetics:
    """
    Per-actor registry filled by rule elements during one preparation pass.
    Buckets are append-only; their order is the order rule elements ran in.
    """
    statistics_modifiers: Dict[str, List[Modifier]] = field(default_factory=dict)
    modifier_adjustments: Dict[str, List[ModifierAdjustment]] = field(default_factory=dict)

    def add_modifier(self, selector: str, modifier: Modifier) -> None:
        self.statistics_modifiers.setdefault(selector, []).append(modifier)

    def add_adjustment(self, selector: str, adjustment: ModifierAdjustment) -> None:
        self.modifier_adjustments.setdefault(selector, []).append(adjustment)

def extract_modifiers(synthetics: Synthetics, selectors: List[str], *,
                      phase: ModifierPhase = "afterDerived",
                      params: Optional[DeferredValueParams] = None,
                      zero_policy: ZeroPolicy = "keep",
                      trace: Optional[TraceSession] = None) -> List[Modifier]:
    """
    Collect modifiers for `selectors` (selector order, then append order) with every
    deferred value due by `phase` evaluated. Later-phase modifiers are withheld.
    """
    out: List[Modifier] = []
    for sel in selectors:
        for m in synthetics.statistics_modifiers.get(sel, []):
            if not m.is_deferred:
                out.append(m)
                continue
            if not m.ready_at(phase):
                if trace:
                    trace.add(f"[Modifier] {m.slug} on {sel} waits for {m.phase}")
                continue
            resolved = m.resolve(params)
            if resolved.value == 0 and zero_policy == "drop_on_evaluation":
                if trace:
                    trace.add(f"[Modifier] {m.slug} on {sel} evaluated to 0 at {phase}; dropped")
                continue
            out.append(resolved)
    return out
