from __future__ import annotations
from typing import Any, Dict, List, Literal, Optional, Tuple, Union, get_args
from typing_extensions import Annotated
from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, model_validator

# Common aliases
Expr = Union[str, int, float]  # formulas or numeric literals

# Enums
ModifierType = Literal["ability", "proficiency", "circumstance", "status", "item", "potency", "untyped"]
AbilityString = Literal["str", "dex", "con", "int", "wis", "cha"]
ModifierPhase = Literal["beforeDerived", "afterDerived", "beforeRoll"]
ActorType = Literal["character", "familiar", "npc", "hazard", "loot", "vehicle"]

MODIFIER_TYPES: Tuple[str, ...] = get_args(ModifierType)
ABILITY_ABBREVIATIONS: Tuple[str, ...] = get_args(AbilityString)
PHASE_ORDER: Dict[str, int] = {p: i for i, p in enumerate(get_args(ModifierPhase))}

# -----------------------------
# Predicates
# -----------------------------

_COMPOUND_KEYS = {"and", "or", "nand", "nor", "not"}

def validate_predicate_statement(stmt: Any, path: str = "predicate") -> List[str]:
    errs: List[str] = []
    if isinstance(stmt, str):
        if not stmt.strip():
            errs.append(f"{path}: empty atom")
        return errs
    if isinstance(stmt, dict) and len(stmt) == 1:
        key, inner = next(iter(stmt.items()))
        if key not in _COMPOUND_KEYS:
            errs.append(f"{path}: unknown operator '{key}'")
        elif key == "not":
            errs += validate_predicate_statement(inner, f"{path}.not")
        elif not isinstance(inner, list):
            errs.append(f"{path}.{key}: must be a list of statements")
        else:
            for i, s in enumerate(inner):
                errs += validate_predicate_statement(s, f"{path}.{key}[{i}]")
        return errs
    errs.append(f"{path}: statement must be a string or a single-key object")
    return errs

# -----------------------------
# Bracketed values
# -----------------------------

class BracketSpec(BaseModel):
    start: Optional[int] = None
    end: Optional[int] = None
    value: Expr = 0

class BracketedValue(BaseModel):
    field: str = "actor|level"
    brackets: List[BracketSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _validate(self):
        owner = self.field.split("|", 1)[0]
        if owner not in {"actor", "item", "rule"} or "|" not in self.field:
            raise ValueError(f"bracket field '{self.field}' must look like 'actor|path', 'item|path' or 'rule|path'")
        if not self.brackets:
            raise ValueError("bracketed value requires at least one bracket")
        return self

RuleValue = Union[Expr, BracketedValue]

# -----------------------------
# Rule element declarations
# -----------------------------

class RuleElementSource(BaseModel):
    """
    Raw, untrusted rule element declaration as it appears in item data.
    Only `key` is required; everything else is checked by the element that consumes it.
    """
    model_config = ConfigDict(extra="allow")

    key: str
    selector: Any = None
    value: Any = None
    label: Any = None
    slug: Any = None
    predicate: Any = None

class _FlatModifierBase(BaseModel):
    model_config = ConfigDict(extra="ignore")

    key: Literal["FlatModifier"] = "FlatModifier"
    selector: Optional[str] = None
    value: Optional[RuleValue] = None
    label: Optional[str] = None
    slug: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    damageType: Optional[str] = None
    damageCategory: Optional[str] = None
    hideIfDisabled: bool = False
    phase: ModifierPhase = "beforeDerived"
    predicate: List[Any] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalize(cls, data: Any):
        if isinstance(data, dict):
            data = dict(data)
            # hideIfDisabled is a display hint; any truthy value counts
            data["hideIfDisabled"] = bool(data.get("hideIfDisabled") or False)
            if data.get("phase") is None:
                data.pop("phase", None)
            if data.get("predicate") is None:
                data["predicate"] = []
        return data

    @model_validator(mode="after")
    def _validate(self):
        errs: List[str] = []
        for i, stmt in enumerate(self.predicate):
            errs += validate_predicate_statement(stmt, f"predicate[{i}]")
        if self.min is not None and self.max is not None and self.min > self.max:
            errs.append(f"min ({self.min}) must not exceed max ({self.max})")
        if errs:
            raise ValueError("; ".join(errs))
        return self

class FlatAbilityModifierData(_FlatModifierBase):
    type: Literal["ability"]
    ability: AbilityString

class FlatOtherModifierData(_FlatModifierBase):
    type: Literal["proficiency", "circumstance", "status", "item", "potency", "untyped"]
    ability: None = None

    @model_validator(mode="before")
    @classmethod
    def _drop_ability(cls, data: Any):
        # ability is only meaningful for type "ability"
        if isinstance(data, dict) and "ability" in data:
            data = {k: v for k, v in data.items() if k != "ability"}
        return data

FlatModifierData = Annotated[Union[FlatAbilityModifierData, FlatOtherModifierData], Field(discriminator="type")]
FlatModifierAdapter = TypeAdapter(FlatModifierData)

def _format_errors(err: ValidationError) -> str:
    parts: List[str] = []
    for e in err.errors():
        loc_parts = list(e.get("loc", ()))
        # first element of a discriminated-union location is the tag
        if loc_parts and loc_parts[0] in MODIFIER_TYPES:
            loc_parts = loc_parts[1:]
        loc = ".".join(str(x) for x in loc_parts)
        msg = str(e.get("msg", "invalid"))
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts)

def validate_flat_modifier(source: Dict[str, Any]) -> Tuple[Optional[Union[FlatAbilityModifierData, FlatOtherModifierData]], List[str]]:
    """
    Validate a raw FlatModifier declaration.
    Returns (data, []) when valid or (None, errors) when not; never raises for bad input.
    """
    raw = dict(source)
    if raw.get("type") is None:
        raw["type"] = "untyped"
    if raw["type"] not in MODIFIER_TYPES:
        return None, [f"A flat modifier must have one of the following types: {', '.join(MODIFIER_TYPES)}"]
    if raw["type"] == "ability" and raw.get("ability") not in ABILITY_ABBREVIATIONS:
        return None, ['A flat modifier of type "ability" must also have an "ability" property with an ability abbreviation']
    try:
        return FlatModifierAdapter.validate_python(raw), []
    except ValidationError as e:
        return None, [_format_errors(e)]
