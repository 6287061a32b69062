from __future__ import annotations
from pathlib import Path
from typing import List, Optional

import typer
from typing_extensions import Annotated

from rulekit.engine.loader import load_actor, load_actors
from rulekit.engine.modifiers_runtime import Modifier
from rulekit.engine.preparation import prepare_actor
from rulekit.engine.settings import load_settings
from rulekit.engine.statistics import Statistic

app = typer.Typer()

def _describe(m: Modifier) -> str:
    value = f"deferred({m.phase})" if m.is_deferred else f"{'+' if m.value >= 0 else ''}{m.value}"
    extra = f" ability={m.ability}" if m.ability else ""
    return f"  {m.slug} [{m.type}] {value} \"{m.label}\"{extra}"

@app.command()
def prepare(actor_file: Path,
            selector: Annotated[Optional[str], typer.Option(help="Only show this selector")] = None,
            debug: Annotated[bool, typer.Option(help="Report rule elements missing selector/value")] = False):
    settings = load_settings()
    if debug:
        settings = settings.model_copy(update={"debug_rule_elements": True})
    actor = load_actor(actor_file)
    result = prepare_actor(actor, settings)
    typer.echo(f"[Prepare] {actor.name}: {len(result.rules)} rule elements, {len(result.rules) - len(result.active_rules)} ignored")
    for line in result.logs:
        typer.echo(line)
    for sel, mods in actor.synthetics.statistics_modifiers.items():
        if selector and sel != selector:
            continue
        typer.echo(f"{sel}:")
        for m in mods:
            typer.echo(_describe(m))

@app.command()
def explain(actor_file: Path, selector: str,
            roll: Annotated[bool, typer.Option(help="Include roll-time modifiers")] = False,
            option: Annotated[Optional[List[str]], typer.Option(help="Extra roll option (repeatable)")] = None,
            target_level: Annotated[Optional[int], typer.Option(help="Level of the roll's target")] = None):
    settings = load_settings()
    actor = load_actor(actor_file)
    result = prepare_actor(actor, settings)
    stat = Statistic(actor, selector, settings=settings, trace=result.trace)
    if not roll:
        typer.echo(f"{selector}: {stat.value}")
        for line in stat.modifier.breakdown():
            typer.echo(line)
        return
    resolvables = {"target": {"level": target_level}} if target_level is not None else {}
    check = stat.check(options=option or [], resolvables=resolvables)
    for line in check.breakdown:
        typer.echo(line)

@app.command()
def validate(paths: List[Path]):
    settings = load_settings().model_copy(update={"debug_rule_elements": True})
    failures = 0
    for path in paths:
        for actor in load_actors(path).values():
            result = prepare_actor(actor, settings)
            for rule in result.rules:
                for err in rule.errors:
                    failures += 1
                    typer.echo(f"{path}:{actor.id}:{rule.item.id}: {err}")
    if failures:
        typer.echo(f"{failures} rule element problem(s) found")
        raise typer.Exit(code=1)
    typer.echo("OK")

if __name__ == "__main__":
    app()
