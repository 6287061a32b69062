from __future__ import annotations
from typing import Any, Dict, List, Optional, Set
from pydantic import BaseModel, Field, PrivateAttr, computed_field, field_validator

from .schema_models import ABILITY_ABBREVIATIONS, ActorType
from .synthetics import Synthetics
from .modifiers_runtime import ModifierAdjustment

class AbilityScore(BaseModel):
    base: int = 10
    temp: int = 0
    damage: int = 0
    drain: int = 0
    def score(self) -> int: return max(0, self.base + self.temp - self.damage - self.drain)

    @computed_field
    @property
    def mod(self) -> int:
        return (self.score() - 10) // 2

def _default_abilities() -> Dict[str, AbilityScore]:
    return {ab: AbilityScore() for ab in ABILITY_ABBREVIATIONS}

class Item(BaseModel):
    id: str
    name: str
    slug: Optional[str] = None
    type: str = "effect"
    level: int = 0
    rules: List[Dict[str, Any]] = Field(default_factory=list)  # raw rule element sources, document order
    flags: Dict[str, Any] = Field(default_factory=dict)

class Actor(BaseModel):
    id: str
    name: str
    type: ActorType = "character"
    level: int = 1
    abilities: Dict[str, AbilityScore] = Field(default_factory=_default_abilities)
    items: List[Item] = Field(default_factory=list)
    flags: Dict[str, Any] = Field(default_factory=dict)
    roll_options: Set[str] = Field(default_factory=set)

    # rebuilt on every preparation pass; never serialized
    _synthetics: Synthetics = PrivateAttr(default_factory=Synthetics)

    @field_validator("abilities")
    @classmethod
    def _fill_abilities(cls, v: Dict[str, AbilityScore]) -> Dict[str, AbilityScore]:
        unknown = set(v) - set(ABILITY_ABBREVIATIONS)
        if unknown:
            raise ValueError(f"unknown abilities: {sorted(unknown)}")
        return {ab: v.get(ab) or AbilityScore() for ab in ABILITY_ABBREVIATIONS}

    @property
    def synthetics(self) -> Synthetics:
        return self._synthetics

    def reset_synthetics(self) -> Synthetics:
        self._synthetics = Synthetics()
        return self._synthetics

    def get_modifier_adjustments(self, selectors: List[str], slug: str) -> List[ModifierAdjustment]:
        """Adjustments registered for any of `selectors` that target `slug` (or every slug)."""
        out: List[ModifierAdjustment] = []
        for sel in selectors:
            for adj in self._synthetics.modifier_adjustments.get(sel, []):
                if adj.slug in (None, slug) and not any(a is adj for a in out):
                    out.append(adj)
        return out

    def get_roll_options(self) -> Set[str]:
        opts = set(self.roll_options)
        opts.add(f"self:type:{self.type}")
        opts.add(f"self:level:{self.level}")
        for it in self.items:
            opts.add(f"self:{it.type}:{it.slug or it.id}")
        return opts
