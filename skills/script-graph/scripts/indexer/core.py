from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ir import new_ir
from utils import ToolState, progress

from .discovery import discover_units
from .graph import build_reference_graph
from .repo_config import load_repo_config


@dataclass
class IndexOptions:
    workers: Optional[int] = None
    include_globs: List[str] = field(default_factory=list)
    exclude_globs: List[str] = field(default_factory=list)


def merge_config(options: IndexOptions, config: Dict[str, object]) -> IndexOptions:
    """Config globs extend the command-line ones; config workers fill an unset value."""
    include = list(options.include_globs) + list(config.get("include_globs") or [])
    exclude = list(options.exclude_globs) + list(config.get("exclude_globs") or [])
    workers = options.workers
    if workers is None and isinstance(config.get("workers"), int):
        workers = int(config["workers"])
    return IndexOptions(workers=workers, include_globs=include, exclude_globs=exclude)


def index_repo(
    repo: Path,
    options: IndexOptions,
    tools: ToolState,
    warnings: Optional[List[str]] = None,
) -> Dict[str, Any]:
    """Discover the repo's scripts, build their reference graph and wrap it in a document."""
    if warnings is None:
        warnings = []
    config, config_source = load_repo_config(repo, warnings)
    options = merge_config(options, config)
    units = discover_units(
        repo,
        warnings,
        tools,
        include_globs=options.include_globs,
        exclude_globs=options.exclude_globs,
    )
    graph = build_reference_graph(units, workers=options.workers, warnings=warnings)
    progress(f"Built graph: {len(graph)} nodes, {len(graph.edges)} edges", done=True)
    ir = new_ir(
        graph,
        source="scripts",
        repo=repo,
        warnings=warnings,
        config_source=config_source,
    )
    ir["meta"]["config"] = config
    ir["meta"]["tools"] = {"used": sorted(tools.used), "missing": sorted(tools.missing)}
    return ir
