from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Optional, Tuple, TYPE_CHECKING, get_args

from pydantic import BaseModel, ValidationError

from rulekit.engine.expr import eval_expr, get_property, replace_formula_data, resolve_injected_properties
from rulekit.engine.modifiers_runtime import DeferredValueParams, Number, normalize_number
from rulekit.engine.schema_models import ActorType, BracketedValue, RuleElementSource
from rulekit.engine.settings import Settings
from rulekit.engine.trace import TraceSession

if TYPE_CHECKING:
    from rulekit.engine.models import Actor, Item

@dataclass
class RuleElementOptions:
    settings: Settings = field(default_factory=Settings)
    trace: TraceSession = field(default_factory=TraceSession)
    suppress_warnings: bool = False

class RuleElement:
    """
    Base for declarative rule elements attached to an item.
    Construction never raises on bad data: failures mark the element ignored and are logged.
    """
    key: ClassVar[str] = ""
    valid_actor_types: ClassVar[Tuple[str, ...]] = get_args(ActorType)

    def __init__(self, source: Dict[str, Any], item: "Item", actor: "Actor",
                 options: Optional[RuleElementOptions] = None):
        self.item = item
        self.actor = actor
        self.options = options or RuleElementOptions()
        self.ignored = False
        self.errors: List[str] = []
        self.data: Optional[BaseModel] = None
        try:
            self.source = RuleElementSource.model_validate(source)
        except ValidationError:
            self.source = RuleElementSource(key=str(source.get("key", "")) if isinstance(source, dict) else "")
            self.fail_validation("rule element source must be an object with a string key")
            return
        if actor.type not in self.valid_actor_types:
            self.fail_validation(f"A {self.key} rule element may not be applied to a {actor.type}")

    @property
    def settings(self) -> Settings:
        return self.options.settings

    @property
    def label(self) -> str:
        raw = getattr(self.data, "label", None) or self.source.label or self.item.name
        return str(self.resolve_injected_properties(raw))

    def fail_validation(self, message: str) -> None:
        self.ignored = True
        self.errors.append(message)
        self.options.trace.add(f"[RuleElement] {self.item.name} ({self.key or self.source.key}): {message}")

    def warn(self, message: str) -> None:
        if not self.options.suppress_warnings:
            self.options.trace.add(f"[RuleElement] warning: {self.item.name}: {message}")

    # -------- resolution helpers --------

    def _injection_sources(self, params: Optional[DeferredValueParams] = None) -> Dict[str, Any]:
        sources: Dict[str, Any] = {"actor": self.actor, "item": self.item, "rule": self.data or self.source}
        if params:
            sources.update(params.injectables)
        return sources

    def resolve_injected_properties(self, text: Any, params: Optional[DeferredValueParams] = None) -> Any:
        warnings: List[str] = []
        out = resolve_injected_properties(text, self._injection_sources(params), warnings)
        for w in warnings:
            self.warn(w)
        return out

    def resolve_value(self, value: Any, default: Number = 0,
                      params: Optional[DeferredValueParams] = None) -> Number:
        """Numbers pass through; formula strings are injected, data-substituted and evaluated."""
        if value is None:
            return default
        if isinstance(value, BracketedValue):
            return self._resolve_bracket(value, default, params)
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (int, float)):
            return normalize_number(value)
        if not isinstance(value, str):
            return default

        formula = self.resolve_injected_properties(value, params)
        data: Dict[str, Any] = {"actor": self.actor, "item": self.item, "rule": self.data or self.source}
        if params:
            data.update(params.resolvables)
        missing: List[str] = []
        formula = replace_formula_data(formula, data, missing)
        for ref in missing:
            self.warn(f"formula reference @{ref} did not resolve to a number")
        if not formula.strip():
            return default
        try:
            return normalize_number(eval_expr(formula, actor=self.actor))
        except Exception as e:
            self.warn(f"could not evaluate \"{value}\": {e}")
            return default

    def _resolve_bracket(self, value: BracketedValue, default: Number,
                         params: Optional[DeferredValueParams]) -> Number:
        owner, path = value.field.split("|", 1)
        raw = get_property(self._injection_sources(params).get(owner), path)
        try:
            key = float(raw)
        except (TypeError, ValueError):
            self.warn(f"bracket field {value.field} is not numeric")
            return default
        for b in value.brackets:
            lo = b.start if b.start is not None else float("-inf")
            hi = b.end if b.end is not None else float("inf")
            if lo <= key <= hi:
                return self.resolve_value(b.value, default, params)
        return default

    # -------- pipeline hooks --------

    def before_prepare_data(self) -> None:
        """Called once per preparation pass, in document order, on every non-ignored element."""
