from __future__ import annotations
import re
from typing import Any, ClassVar, Dict, Optional, Tuple, Union, TYPE_CHECKING

from rulekit.engine.modifiers_runtime import (
    DeferredValue, DeferredValueParams, Modifier, Number, clamp, normalize_number,
)
from rulekit.engine.schema_models import FlatAbilityModifierData, FlatOtherModifierData, validate_flat_modifier
from rulekit.util.slugs import sluggify
from .base import RuleElement, RuleElementOptions

if TYPE_CHECKING:
    from rulekit.engine.models import Actor, Item

# "Effect: Inspire Courage (Bard)" -> "Inspire Courage"
_LABEL_STRIP_RE = re.compile(r"^[^:]+:\s*|\s*\([^)]+\)$")

class FlatModifierRuleElement(RuleElement):
    """
    Apply a constant modifier (or penalty/bonus) to a statistic or usage thereof.
    """
    key: ClassVar[str] = "FlatModifier"
    valid_actor_types: ClassVar[Tuple[str, ...]] = ("character", "familiar", "npc")

    data: Optional[Union[FlatAbilityModifierData, FlatOtherModifierData]]

    def __init__(self, source: Dict[str, Any], item: "Item", actor: "Actor",
                 options: Optional[RuleElementOptions] = None):
        super().__init__(source, item, actor, options)
        if self.ignored:
            return

        data, errors = validate_flat_modifier(source)
        if data is None:
            self.fail_validation(errors[0] if errors else "invalid flat modifier")
            return

        if isinstance(data, FlatAbilityModifierData):
            update: Dict[str, Any] = {}
            if data.label is None:
                update["label"] = self.settings.ability_label(data.ability)
            if data.value is None:
                update["value"] = f"@actor.abilities.{data.ability}.mod"
            if update:
                data = data.model_copy(update=update)
        self.data = data

    def compute_value(self, params: Optional[DeferredValueParams] = None) -> Number:
        data = self.data
        if data is None:
            return 0
        resolved = normalize_number(self.resolve_value(data.value, 0, params))
        # an undeclared bound collapses to the value itself, so a lone min never raises it
        return clamp(
            resolved,
            data.min if data.min is not None else resolved,
            data.max if data.max is not None else resolved,
        )

    def before_prepare_data(self) -> Optional[Modifier]:
        if self.ignored or self.data is None:
            return None
        data = self.data

        selector = self.resolve_injected_properties(data.selector)
        defer = bool(selector) and data.phase != "beforeDerived"
        value: Union[Number, DeferredValue] = (
            DeferredValue(phase=data.phase, compute=self.compute_value) if defer else self.compute_value()
        )

        if selector and value:
            # Strip out the title ("Effect:", etc.) of the effect name
            label = _LABEL_STRIP_RE.sub("", self.label)
            slug = data.slug if data.slug is not None else sluggify(self.label)
            modifier = Modifier(
                slug=slug,
                label=label,
                value=value,
                type=data.type,
                ability=data.ability if data.type == "ability" else None,
                predicate=tuple(data.predicate),
                adjustments=tuple(self.actor.get_modifier_adjustments([selector], slug)),
                damage_type=self.resolve_injected_properties(data.damageType) or None,
                damage_category=data.damageCategory or None,
                hide_if_disabled=data.hideIfDisabled,
                source_id=self.item.id,
                source_name=self.item.name,
            )
            self.actor.synthetics.add_modifier(selector, modifier)
            return modifier
        elif value == 0:
            # omit modifiers with a value of zero
            return None
        elif self.settings.debug_rule_elements:
            self.fail_validation("Flat modifier requires selector and value properties")
        return None
