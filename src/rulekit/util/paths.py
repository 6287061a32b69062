from __future__ import annotations
from pathlib import Path
import sys

def frozen_base_dir() -> Path:
    # When packaged with PyInstaller --onefile, data is unpacked to sys._MEIPASS
    if hasattr(sys, "_MEIPASS"):
        return Path(sys._MEIPASS)  # type: ignore[attr-defined]
    # dev mode: src/rulekit
    return Path(__file__).resolve().parent.parent

def content_dir() -> Path:
    return frozen_base_dir() / "content"

def example_actor(name: str) -> Path:
    return content_dir() / "actors" / f"{name}.yaml"
