from __future__ import annotations
from typing import Any, Dict, Optional, Type, TYPE_CHECKING

from .base import RuleElement, RuleElementOptions
from .flat_modifier import FlatModifierRuleElement

if TYPE_CHECKING:
    from rulekit.engine.models import Actor, Item

RULE_ELEMENTS: Dict[str, Type[RuleElement]] = {
    FlatModifierRuleElement.key: FlatModifierRuleElement,
}

def instantiate_rule_element(source: Dict[str, Any], item: "Item", actor: "Actor",
                             options: RuleElementOptions) -> Optional[RuleElement]:
    key = source.get("key") if isinstance(source, dict) else None
    cls = RULE_ELEMENTS.get(str(key)) if key else None
    if cls is None:
        options.trace.add(f"[RuleElement] {item.name}: unrecognized rule element key {key!r}; skipped")
        return None
    return cls(source, item, actor, options)

__all__ = [
    "RULE_ELEMENTS",
    "RuleElement",
    "RuleElementOptions",
    "FlatModifierRuleElement",
    "instantiate_rule_element",
]
