from __future__ import annotations
from pathlib import Path
from typing import Dict, Literal, Optional
from pydantic import BaseModel, Field

SETTINGS_PATH = Path.home() / ".rulekit" / "settings.json"

DEFAULT_ABILITY_LABELS: Dict[str, str] = {
    "str": "Strength",
    "dex": "Dexterity",
    "con": "Constitution",
    "int": "Intelligence",
    "wis": "Wisdom",
    "cha": "Charisma",
}

class Settings(BaseModel):
    # report rule elements that register nothing because selector or value is missing
    debug_rule_elements: bool = False
    # keep: a deferred modifier stays registered even if it later evaluates to 0
    # drop_on_evaluation: extraction drops deferred modifiers whose clamped value is 0
    deferred_zero_policy: Literal["keep", "drop_on_evaluation"] = "keep"
    ability_labels: Dict[str, str] = Field(default_factory=lambda: dict(DEFAULT_ABILITY_LABELS))

    def ability_label(self, ability: str) -> str:
        return self.ability_labels.get(ability) or DEFAULT_ABILITY_LABELS.get(ability, ability)

def load_settings(path: Optional[Path] = None) -> Settings:
    path = path or SETTINGS_PATH
    if path.exists():
        return Settings.model_validate_json(path.read_text(encoding="utf-8"))
    path.parent.mkdir(parents=True, exist_ok=True)
    s = Settings()
    path.write_text(s.model_dump_json(indent=2), encoding="utf-8")
    return s

def save_settings(s: Settings, path: Optional[Path] = None) -> None:
    path = path or SETTINGS_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(s.model_dump_json(indent=2), encoding="utf-8")
