import dataclasses
import pytest
from rulekit.engine.modifiers_runtime import (
    DeferredValue, DeferredValueParams, Modifier, ModifierAdjustment, StatisticModifier, clamp,
)
from rulekit.engine.predicate import predicate_holds
from rulekit.engine.synthetics import Synthetics, extract_modifiers
from rulekit.engine.trace import TraceSession

def _mod(slug, value, type="untyped", **kw):
    return Modifier(slug=slug, label=slug.title(), value=value, type=type, **kw)

def _deferred(phase, fn):
    return DeferredValue(phase=phase, compute=fn)

# --- record ---

def test_modifier_is_immutable():
    m = _mod("a", 1)
    with pytest.raises(dataclasses.FrozenInstanceError):
        m.value = 2  # type: ignore[misc]

def test_resolve_returns_copy():
    calls = []
    def compute(params):
        calls.append(params)
        return params.resolvables["n"] * 2
    m = _mod("a", _deferred("beforeRoll", compute))
    first = m.resolve(DeferredValueParams(resolvables={"n": 1}))
    second = m.resolve(DeferredValueParams(resolvables={"n": 4}))
    assert (first.value, second.value) == (2, 8)
    assert m.is_deferred
    assert len(calls) == 2

def test_clamp_applies_max_then_min():
    assert clamp(5, 0, 3) == 3
    assert clamp(-1, 0, 3) == 0
    # bound equal to the value on one side leaves that side unconstrained
    assert clamp(-5, -2, -5) == -5
    assert clamp(9, 9, 4) == 4
    assert clamp(2.0, 2.0, 2.0) == 2 and isinstance(clamp(2.0, 2.0, 2.0), int)

# --- stacking ---

def test_typed_bonuses_take_highest():
    sm = StatisticModifier("ac", [_mod("a", 1, "status"), _mod("b", 2, "status"), _mod("c", 1, "circumstance")])
    assert sm.total_modifier == 3
    enabled = {em.modifier.slug: em.enabled for em in sm.modifiers}
    assert enabled == {"a": False, "b": True, "c": True}

def test_typed_penalties_take_lowest():
    sm = StatisticModifier("ac", [_mod("a", -1, "status"), _mod("b", -3, "status"), _mod("c", 2, "status")])
    assert sm.total_modifier == -1

def test_untyped_always_stacks():
    sm = StatisticModifier("damage", [_mod("a", 2), _mod("b", 2), _mod("c", -1)])
    assert sm.total_modifier == 3

def test_tie_keeps_first():
    sm = StatisticModifier("ac", [_mod("first", 2, "item"), _mod("second", 2, "item")])
    assert [em.enabled for em in sm.modifiers] == [True, False]

def test_predicate_gates_modifier():
    m = _mod("flanking", 2, "circumstance", predicate=("target:off-guard",))
    assert StatisticModifier("attack", [m]).total_modifier == 0
    assert StatisticModifier("attack", [m], {"target:off-guard"}).total_modifier == 2

def test_adjustments_apply_when_predicate_holds():
    up = ModifierAdjustment(mode="upgrade", value=3, predicate=("self:rage",))
    m = _mod("bless", 1, "status", adjustments=(up,))
    assert StatisticModifier("attack", [m]).total_modifier == 1
    assert StatisticModifier("attack", [m], {"self:rage"}).total_modifier == 3

@pytest.mark.parametrize("mode,value,expected", [
    ("add", 2, 5), ("upgrade", 1, 3), ("downgrade", 1, 1), ("override", 7, 7), ("multiply", 2, 6),
])
def test_adjustment_modes(mode, value, expected):
    m = _mod("x", 3, adjustments=(ModifierAdjustment(mode=mode, value=value),))
    assert StatisticModifier("s", [m]).total_modifier == expected

def test_suppress_and_relabel():
    m1 = _mod("x", 3, adjustments=(ModifierAdjustment(suppress=True),))
    m2 = _mod("y", 1, adjustments=(ModifierAdjustment(relabel="Renamed"),))
    sm = StatisticModifier("s", [m1, m2])
    assert sm.total_modifier == 1
    assert sm.modifiers[1].label == "Renamed"

def test_deferred_modifier_must_be_resolved_first():
    with pytest.raises(ValueError, match="deferred"):
        StatisticModifier("s", [_mod("x", _deferred("afterDerived", lambda p: 1))])

def test_breakdown_hides_disabled_when_asked():
    sm = StatisticModifier("ac", [_mod("a", 2, "status"), _mod("b", 1, "status", hide_if_disabled=True),
                                  _mod("c", 1, "status")])
    lines = sm.breakdown()
    assert len(lines) == 2
    assert "status +2 A" in lines[0]
    assert "(disabled)" in lines[1]

# --- registry ---

def test_synthetics_append_in_order():
    syn = Synthetics()
    syn.add_modifier("ac", _mod("a", 1))
    syn.add_modifier("ac", _mod("b", 2))
    syn.add_modifier("reflex", _mod("c", 3))
    assert [m.slug for m in syn.statistics_modifiers["ac"]] == ["a", "b"]

def test_extract_respects_phase():
    syn = Synthetics()
    syn.add_modifier("attack", _mod("fixed", 1))
    syn.add_modifier("attack", _mod("derived", _deferred("afterDerived", lambda p: 2)))
    syn.add_modifier("attack", _mod("roll", _deferred("beforeRoll", lambda p: 3)))
    trace = TraceSession()

    derived = extract_modifiers(syn, ["attack"], phase="afterDerived", trace=trace)
    assert [(m.slug, m.value) for m in derived] == [("fixed", 1), ("derived", 2)]
    assert trace.tagged("Modifier") == ["[Modifier] roll on attack waits for beforeRoll"]

    at_roll = extract_modifiers(syn, ["attack"], phase="beforeRoll")
    assert [m.value for m in at_roll] == [1, 2, 3]

def test_extract_selector_order():
    syn = Synthetics()
    syn.add_modifier("all", _mod("a", 1))
    syn.add_modifier("attack", _mod("b", 1))
    assert [m.slug for m in extract_modifiers(syn, ["attack", "all"])] == ["b", "a"]

@pytest.mark.parametrize("policy,expected", [("keep", ["zero"]), ("drop_on_evaluation", [])])
def test_zero_policy_for_deferred(policy, expected):
    syn = Synthetics()
    syn.add_modifier("attack", _mod("zero", _deferred("afterDerived", lambda p: 0)))
    out = extract_modifiers(syn, ["attack"], zero_policy=policy)
    assert [m.slug for m in out] == expected

# --- predicates ---

@pytest.mark.parametrize("predicate,expected", [
    ([], True),
    (["a"], True),
    (["a", "z"], False),
    ([{"or": ["z", "b"]}], True),
    ([{"not": "z"}], True),
    ([{"nand": ["a", "b"]}], False),
    ([{"nor": ["y", "z"]}], True),
    ([{"and": ["a", {"not": "b"}]}], False),
])
def test_predicate_holds(predicate, expected):
    assert predicate_holds(predicate, {"a", "b"}) is expected

def test_malformed_predicate_raises():
    with pytest.raises(ValueError):
        predicate_holds([{"xor": ["a"]}], {"a"})
