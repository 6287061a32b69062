import pytest
from rulekit.engine.expr import eval_expr, get_property, replace_formula_data, resolve_injected_properties
from rulekit.engine.models import Actor, AbilityScore, Item

@pytest.fixture
def actor():
    return Actor(id="pc.a", name="A", level=7, abilities={"wis": AbilityScore(base=16), "cha": AbilityScore(base=8)},
                 flags={"pf": {"selector": "will"}})

def test_get_property_walks_models_dicts_and_lists(actor):
    actor.items = [Item(id="it.1", name="Ring")]
    assert get_property(actor, "abilities.wis.mod") == 3
    assert get_property(actor, "abilities.wis.score") == 16
    assert get_property(actor, "flags.pf.selector") == "will"
    assert get_property(actor, "items.0.name") == "Ring"
    assert get_property(actor, "items.3.name") is None
    assert get_property(actor, "flags.nope.deeper") is None

def test_injected_properties(actor):
    item = Item(id="it.1", name="Ring", level=3)
    text = resolve_injected_properties("{actor|flags.pf.selector}-{item|level}", {"actor": actor, "item": item})
    assert text == "will-3"

def test_injection_reports_missing(actor):
    warnings = []
    out = resolve_injected_properties("x{actor|flags.missing}y", {"actor": actor}, warnings)
    assert out == "xy"
    assert warnings == ['Failed to resolve actor property path "flags.missing"']

def test_injection_passes_non_strings():
    assert resolve_injected_properties(3, {}) == 3
    assert resolve_injected_properties(None, {}) is None

def test_formula_data(actor):
    out = replace_formula_data("@actor.abilities.cha.mod + @actor.level", {"actor": actor})
    assert out == "(-1) + (7)"
    missing = []
    assert replace_formula_data("@target.level", {}, missing) == "0"
    assert missing == ["target.level"]

def test_eval_expr_math_helpers():
    assert eval_expr("floor(7 / 2)") == 3
    assert eval_expr("max(1, 4) + min(2, 3)") == 6
    assert eval_expr("(-1) + (7)") == 6
    assert eval_expr("5 / 2") == 2.5
    assert eval_expr(4) == 4

def test_eval_expr_ability_mod(actor):
    assert eval_expr("ability_mod(wis) + 1", actor=actor) == 4
    assert eval_expr("ability_mod(wis)") == 0

def test_eval_expr_extra_vars():
    assert eval_expr("n * 3", extra={"n": 2}) == 6
