from __future__ import annotations

import argparse
from pathlib import Path
from typing import Dict, List, Optional

from layout import LayoutOptions

LAYOUT_ARG_KEYS = (
    "mode",
    "padding",
    "objective",
    "node_objective",
    "steps",
    "repulsion",
    "attraction",
    "damping",
    "seed",
    "connected_only",
    "max_nodes",
    "batch_size",
)


def parse_globs(values: Optional[List[str]]) -> List[str]:
    globs: List[str] = []
    for value in values or []:
        globs.extend(part.strip() for part in value.split(",") if part.strip())
    return globs


def resolve_out_dir(repo: Path, out_arg: Optional[str], *, workspace_root: Path) -> Path:
    if out_arg:
        out_path = Path(out_arg)
        if out_path.is_absolute():
            return out_path
        out_str = out_path.as_posix()
        if out_str.startswith("workspace/"):
            out_path = Path(out_str[len("workspace/") :])
        return (workspace_root / out_path).resolve()
    return (workspace_root / "script-graph" / repo.resolve().name).resolve()


def layout_options(args: argparse.Namespace, config: Dict[str, object]) -> LayoutOptions:
    """Command-line values win over the config's layout section, which wins over defaults."""
    section = config.get("layout") if isinstance(config.get("layout"), dict) else {}
    values: Dict[str, object] = {}
    for key in LAYOUT_ARG_KEYS:
        value = getattr(args, key, None)
        if value is None:
            value = section.get(key)
        if value is not None:
            values[key] = value
    return LayoutOptions(**values).validate()
