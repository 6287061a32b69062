from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Literal, Optional, Set, Tuple, Union

from .predicate import predicate_holds
from .schema_models import ModifierPhase, PHASE_ORDER

Number = Union[int, float]
AdjustmentMode = Literal["add", "upgrade", "downgrade", "override", "multiply"]

def normalize_number(v: Any) -> Number:
    """Coerce to a number (0 on failure); integral floats come back as int."""
    try:
        f = float(v)
    except (TypeError, ValueError):
        return 0
    if f != f:  # NaN
        return 0
    return int(f) if f.is_integer() else f

def clamp(value: Number, lo: Number, hi: Number) -> Number:
    """max-then-min clamp; callers pass the value itself for an undeclared bound."""
    return normalize_number(min(max(value, lo), hi))

# -------- deferred values --------

@dataclass(frozen=True)
class DeferredValueParams:
    resolvables: Dict[str, Any] = field(default_factory=dict)  # extra formula data, e.g. {"target": ...}
    injectables: Dict[str, Any] = field(default_factory=dict)  # extra {owner|path} sources
    test: Optional[Set[str]] = None  # roll options at evaluation time

@dataclass(frozen=True)
class DeferredValue:
    """A modifier value computed at a later phase. Each call recomputes from scratch."""
    phase: ModifierPhase
    compute: Callable[[Optional[DeferredValueParams]], Number]

    def __call__(self, params: Optional[DeferredValueParams] = None) -> Number:
        return normalize_number(self.compute(params))

# -------- adjustments --------

@dataclass(frozen=True)
class ModifierAdjustment:
    slug: Optional[str] = None  # None targets every modifier on the selector
    predicate: Tuple[Any, ...] = ()
    mode: AdjustmentMode = "add"
    value: Number = 0
    suppress: bool = False
    relabel: Optional[str] = None

    def new_value(self, current: Number) -> Number:
        if self.mode == "add":
            return current + self.value
        if self.mode == "upgrade":
            return max(current, self.value)
        if self.mode == "downgrade":
            return min(current, self.value)
        if self.mode == "override":
            return self.value
        if self.mode == "multiply":
            return normalize_number(current * self.value)
        return current

# -------- modifier record --------

@dataclass(frozen=True)
class Modifier:
    slug: str
    label: str
    value: Union[Number, DeferredValue]
    type: str = "untyped"
    ability: Optional[str] = None
    predicate: Tuple[Any, ...] = ()
    adjustments: Tuple[ModifierAdjustment, ...] = ()
    damage_type: Optional[str] = None
    damage_category: Optional[str] = None
    hide_if_disabled: bool = False
    # provenance (debug/explain)
    source_id: Optional[str] = None
    source_name: Optional[str] = None

    @property
    def is_deferred(self) -> bool:
        return isinstance(self.value, DeferredValue)

    @property
    def phase(self) -> ModifierPhase:
        return self.value.phase if isinstance(self.value, DeferredValue) else "beforeDerived"

    def ready_at(self, phase: ModifierPhase) -> bool:
        return PHASE_ORDER[self.phase] <= PHASE_ORDER[phase]

    def resolve(self, params: Optional[DeferredValueParams] = None) -> "Modifier":
        """Return a copy carrying a fixed number; the record itself is never changed."""
        if not isinstance(self.value, DeferredValue):
            return self
        return replace(self, value=self.value(params))

@dataclass
class EvaluatedMod:
    modifier: Modifier
    value: Number
    label: str
    enabled: bool = True
    ignored: bool = False  # predicate failed or suppressed by an adjustment
    notes: List[str] = field(default_factory=list)

# -------- stacking --------

class StatisticModifier:
    """
    Applies adjustments, predicates and stacking to the modifiers of one statistic.
    Untyped modifiers always stack; every other type contributes only its highest
    bonus and its lowest penalty. Ties keep the earlier modifier.
    """

    def __init__(self, slug: str, modifiers: List[Modifier], options: Optional[Set[str]] = None):
        self.slug = slug
        self.options: Set[str] = set(options or ())
        self.modifiers: List[EvaluatedMod] = [self._evaluate(m) for m in modifiers]
        self._apply_stacking()
        self.total_modifier: Number = normalize_number(sum(em.value for em in self.modifiers if em.enabled))

    def _evaluate(self, m: Modifier) -> EvaluatedMod:
        if isinstance(m.value, DeferredValue):
            raise ValueError(f"modifier '{m.slug}' still carries a deferred value; resolve it before stacking")
        em = EvaluatedMod(modifier=m, value=normalize_number(m.value), label=m.label)
        for adj in m.adjustments:
            if not predicate_holds(adj.predicate, self.options):
                continue
            if adj.suppress:
                em.ignored = True
                em.notes.append("suppressed")
                continue
            before = em.value
            em.value = normalize_number(adj.new_value(em.value))
            if adj.relabel:
                em.label = adj.relabel
            if em.value != before:
                em.notes.append(f"{adj.mode} {before}->{em.value}")
        if not predicate_holds(m.predicate, self.options):
            em.ignored = True
            em.notes.append("predicate not met")
        return em

    def _apply_stacking(self) -> None:
        best_bonus: Dict[str, EvaluatedMod] = {}
        best_penalty: Dict[str, EvaluatedMod] = {}
        for em in self.modifiers:
            em.enabled = not em.ignored
            if not em.enabled or em.modifier.type == "untyped" or em.value == 0:
                continue
            table = best_bonus if em.value > 0 else best_penalty
            current = table.get(em.modifier.type)
            if current is None:
                table[em.modifier.type] = em
                continue
            better = em.value > current.value if em.value > 0 else em.value < current.value
            if better:
                current.enabled = False
                current.notes.append(f"superseded by {em.label}")
                table[em.modifier.type] = em
            else:
                em.enabled = False
                em.notes.append(f"does not stack with {current.label}")

    def breakdown(self) -> List[str]:
        lines: List[str] = []
        for em in self.modifiers:
            if not em.enabled and em.modifier.hide_if_disabled:
                continue
            sign = "+" if em.value >= 0 else ""
            state = "" if em.enabled else " (disabled)"
            extra = f" [{'; '.join(em.notes)}]" if em.notes else ""
            lines.append(f"  {em.modifier.type} {sign}{em.value} {em.label}{state}{extra}")
        return lines
