from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional

from .models import Actor
from .rules import RuleElement, RuleElementOptions, instantiate_rule_element
from .settings import Settings
from .trace import TraceSession

@dataclass
class PreparationResult:
    actor: Actor
    rules: List[RuleElement] = field(default_factory=list)
    trace: TraceSession = field(default_factory=TraceSession)

    @property
    def logs(self) -> List[str]:
        return self.trace.dump()

    @property
    def active_rules(self) -> List[RuleElement]:
        return [r for r in self.rules if not r.ignored]

def build_rule_elements(actor: Actor, options: RuleElementOptions) -> List[RuleElement]:
    """Instantiate every item's rule elements in document order."""
    rules: List[RuleElement] = []
    for item in actor.items:
        for source in item.rules:
            rule = instantiate_rule_element(source, item, actor, options)
            if rule is not None:
                rules.append(rule)
    return rules

def prepare_actor(actor: Actor, settings: Optional[Settings] = None,
                  trace: Optional[TraceSession] = None) -> PreparationResult:
    """
    Run one data-preparation pass: fresh synthetics, fresh rule elements, then each
    element's before_prepare_data hook in order. Element failures never abort the pass.
    """
    options = RuleElementOptions(settings=settings or Settings(), trace=trace or TraceSession())
    actor.reset_synthetics()
    rules = build_rule_elements(actor, options)
    for rule in rules:
        if rule.ignored:
            continue
        rule.before_prepare_data()
    return PreparationResult(actor=actor, rules=rules, trace=options.trace)
