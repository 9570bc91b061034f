"""Artifact writers.

Graphs and layouts are written under workspace/ (or an explicit --out dir);
stdout only carries exports and short summaries.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Sequence

WORKSPACE_DIR = Path("workspace")


def workspace_root() -> Path:
    # created lazily by the writers below
    return WORKSPACE_DIR


def write_text(path: Path, text: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


def write_json(path: Path, obj: Any) -> Path:
    return write_text(path, json.dumps(obj, ensure_ascii=True, indent=2))


def write_lines(path: Path, lines: Sequence[str]) -> Path:
    return write_text(path, "\n".join(lines) + ("\n" if lines else ""))
