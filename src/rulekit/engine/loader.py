from __future__ import annotations
from pathlib import Path
from typing import Dict, Iterable, Tuple
import json
import yaml
from pydantic import TypeAdapter
from .models import Actor

ActorAdapter = TypeAdapter(Actor)

def _load_file(path: Path) -> dict:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in [".yaml", ".yml"]:
        return yaml.safe_load(text) or {}
    return json.loads(text)

def _iter_files(root: Path, exts: Tuple[str,...]=(".json",".yaml",".yml")) -> Iterable[Path]:
    if root.is_file():
        yield root
        return
    if not root.exists():
        return
    for p in sorted(root.rglob("*")):
        if p.is_file() and p.suffix.lower() in exts:
            yield p

def load_actor(path: Path) -> Actor:
    data = _load_file(path)
    actor = ActorAdapter.validate_python(data)
    seen: set[str] = set()
    for it in actor.items:
        if it.id in seen:
            raise RuntimeError(f"Duplicate item id {it.id} on actor {actor.id} in {path}")
        seen.add(it.id)
    return actor

def load_actors(root: Path) -> Dict[str, Actor]:
    actors: Dict[str, Actor] = {}
    for fp in _iter_files(root):
        actor = load_actor(fp)
        if actor.id in actors:
            raise RuntimeError(f"Duplicate actor id {actor.id} in {fp}")
        actors[actor.id] = actor
    return actors
