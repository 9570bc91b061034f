from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .constants import REPO_CONFIG_FILES

LAYOUT_INT_KEYS = ("steps", "seed", "max_nodes", "batch_size")
LAYOUT_FLOAT_KEYS = ("padding", "repulsion", "attraction", "damping")
LAYOUT_STR_KEYS = ("mode", "objective", "node_objective")


def load_repo_config(repo: Path, warnings: List[str]) -> Tuple[Dict[str, object], Optional[str]]:
    """Read the first repo config file found; bad files warn and yield defaults."""
    for filename in REPO_CONFIG_FILES:
        path = repo / filename
        if not path.exists():
            continue
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as exc:
            warnings.append(f"Failed to parse {filename}: {exc}")
            return {}, filename
        if not isinstance(payload, dict):
            warnings.append(f"Invalid {filename}: expected a JSON object")
            return {}, filename
        layout = payload.get("layout") if isinstance(payload.get("layout"), dict) else {}
        objects = payload.get("objects") if isinstance(payload.get("objects"), dict) else {}
        workers = payload.get("workers")
        config = {
            "include_globs": normalize_globs(payload.get("include_globs")),
            "exclude_globs": normalize_globs(payload.get("exclude_globs")),
            "workers": workers if isinstance(workers, int) and not isinstance(workers, bool) else None,
            "layout": normalize_layout(layout, filename, warnings),
            "objects": {
                "mode": objects.get("mode") if isinstance(objects.get("mode"), str) else None,
                "max_properties": as_int(objects.get("max_properties")),
            },
        }
        return config, filename
    return {}, None


def as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def normalize_globs(value: Any) -> List[str]:
    if isinstance(value, str) and value.strip():
        return [value.strip()]
    if isinstance(value, list):
        return [item.strip() for item in value if isinstance(item, str) and item.strip()]
    return []


def normalize_layout(section: Dict[str, Any], filename: str, warnings: List[str]) -> Dict[str, object]:
    """Keep the layout keys with the right types; anything else is reported and dropped."""
    layout: Dict[str, object] = {}
    for key, value in section.items():
        if key in LAYOUT_INT_KEYS and as_int(value) is not None:
            layout[key] = value
        elif key in LAYOUT_FLOAT_KEYS and isinstance(value, (int, float)) and not isinstance(value, bool):
            layout[key] = float(value)
        elif key in LAYOUT_STR_KEYS and isinstance(value, str) and value.strip():
            layout[key] = value.strip()
        elif key == "connected_only" and isinstance(value, bool):
            layout[key] = value
        else:
            warnings.append(f"Ignoring layout.{key} in {filename}")
    return layout
