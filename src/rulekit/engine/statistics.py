from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from .models import Actor
from .modifiers_runtime import DeferredValueParams, Number, StatisticModifier, normalize_number
from .settings import Settings
from .synthetics import extract_modifiers
from .trace import TraceSession

@dataclass
class CheckResult:
    slug: str
    base: Number
    total: Number
    breakdown: List[str] = field(default_factory=list)

class Statistic:
    """
    Consumer of the synthetics registry: sums one statistic's modifiers.
    `value` covers modifiers due by afterDerived; `check()` also pulls beforeRoll ones.
    """

    def __init__(self, actor: Actor, slug: str, *, selectors: Optional[List[str]] = None,
                 base: Number = 0, settings: Optional[Settings] = None,
                 trace: Optional[TraceSession] = None):
        self.actor = actor
        self.slug = slug
        self.selectors = selectors or [slug]
        self.base = base
        self.settings = settings or Settings()
        self.trace = trace or TraceSession()
        options = actor.get_roll_options()
        mods = extract_modifiers(
            actor.synthetics, self.selectors, phase="afterDerived",
            params=DeferredValueParams(test=options),
            zero_policy=self.settings.deferred_zero_policy, trace=self.trace,
        )
        self.modifier = StatisticModifier(slug, mods, options)

    @property
    def value(self) -> Number:
        return normalize_number(self.base + self.modifier.total_modifier)

    def check(self, options: Iterable[str] = (), resolvables: Optional[Dict[str, Any]] = None) -> CheckResult:
        roll_options = self.actor.get_roll_options() | set(options)
        mods = extract_modifiers(
            self.actor.synthetics, self.selectors, phase="beforeRoll",
            params=DeferredValueParams(resolvables=dict(resolvables or {}), test=roll_options),
            zero_policy=self.settings.deferred_zero_policy, trace=self.trace,
        )
        sm = StatisticModifier(self.slug, mods, roll_options)
        total = normalize_number(self.base + sm.total_modifier)
        lines = [f"{self.slug}: base {self.base} -> {total}"] + sm.breakdown()
        return CheckResult(slug=self.slug, base=self.base, total=total, breakdown=lines)
