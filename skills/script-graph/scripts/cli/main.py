#!/usr/bin/env python3
"""Script graph CLI: index C# scripts into a reference graph, lay it out, export it."""

from __future__ import annotations

import argparse
import json
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from _fs import workspace_root, write_json, write_lines, write_text
from exporter import EXPORT_FORMATS, export_graph, export_graphml, export_layout_json
from geometry import estimate_node_size
from graph_model import ReferenceGraph
from indexer import (
    IndexOptions,
    build_object_graph,
    index_repo,
    load_repo_config,
    to_object_graph_mode,
)
from indexer.objects import MAX_PROPERTIES, OBJECT_GRAPH_MODES
from ir import graph_from_ir, load_ir, save_ir
from layout import (
    LAYOUT_MODES,
    OBJECTIVE_AREA,
    OBJECTIVE_ASPECT,
    BatchBuilder,
    LayoutOptions,
    LayoutSession,
)
from utils import ToolState, progress, set_quiet
from .config import layout_options, parse_globs, resolve_out_dir

GRAPH_FILE = "graph.json"
LAYOUT_FILE = "layout.json"
WARNINGS_FILE = "warnings.txt"


def index_options(args: argparse.Namespace) -> IndexOptions:
    return IndexOptions(
        workers=args.workers,
        include_globs=parse_globs(args.include),
        exclude_globs=parse_globs(args.exclude),
    )


def out_dir_for(args: argparse.Namespace) -> Path:
    return resolve_out_dir(Path(args.repo), args.out, workspace_root=workspace_root())


def build_summary(ir: Dict[str, Any], out_dir: Path, max_sample: int) -> List[str]:
    meta = ir.get("meta", {})
    graph = ir.get("graph", {})
    warnings = meta.get("warnings", [])
    lines = [
        f"NODES: {meta.get('node_count', 0)}",
        f"EDGES: {meta.get('edge_count', 0)}",
        f"CONFIG: {meta.get('config_source') or '-'}",
        f"WARNINGS: {len(warnings)}",
    ]
    lines.extend(f"  {item}" for item in warnings[:max_sample])
    if len(warnings) > max_sample:
        lines.append(f"  ... {len(warnings) - max_sample} more in {WARNINGS_FILE}")
    out_degree: Dict[str, int] = {}
    for edge in graph.get("edges", []):
        out_degree[edge["source"]] = out_degree.get(edge["source"], 0) + 1
    if out_degree:
        lines.append("TOP_REFERRERS:")
        ranked = sorted(out_degree.items(), key=lambda item: (-item[1], item[0]))
        lines.extend(f"  {name}: {count}" for name, count in ranked[:max_sample])
    lines.append(f"ARTIFACTS: {out_dir}")
    return lines


def run_index(args: argparse.Namespace, *, emit_summary: bool = True) -> Dict[str, Any]:
    repo = Path(args.repo).resolve()
    out_dir = out_dir_for(args)
    tools = ToolState()
    warnings: List[str] = []
    ir = index_repo(repo, index_options(args), tools, warnings)
    save_ir(out_dir / GRAPH_FILE, ir)
    write_lines(out_dir / WARNINGS_FILE, warnings)
    if emit_summary:
        print("\n".join(build_summary(ir, out_dir, args.max_sample)))
    return {"ir": ir, "out_dir": out_dir}


def load_or_index(args: argparse.Namespace) -> Optional[Dict[str, Any]]:
    out_dir = out_dir_for(args)
    ir = load_ir(out_dir / GRAPH_FILE)
    if ir is not None:
        return {"ir": ir, "out_dir": out_dir}
    if not args.auto_index:
        return None
    return run_index(args, emit_summary=False)


def load_objects(path: Path) -> List[Dict[str, Any]]:
    """Owners come either as a bare JSON list or under an "owners" key."""
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict):
        payload = payload.get("owners", [])
    if not isinstance(payload, list):
        raise ValueError(f"{path}: expected a list of owners")
    return [item for item in payload if isinstance(item, dict)]


def object_graph_from_args(
    args: argparse.Namespace, config: Dict[str, object], warnings: List[str]
) -> ReferenceGraph:
    section = config.get("objects") if isinstance(config.get("objects"), dict) else {}
    mode = args.object_mode or section.get("mode") or OBJECT_GRAPH_MODES[0]
    max_properties = args.max_properties
    if max_properties is None:
        max_properties = section.get("max_properties")
    if max_properties is None:
        max_properties = MAX_PROPERTIES
    owners = load_objects(Path(args.objects))
    return build_object_graph(
        owners,
        mode=to_object_graph_mode(str(mode)),
        max_properties=int(max_properties),
        warnings=warnings,
    )


def measure_and_layout(
    graph: ReferenceGraph, options: LayoutOptions, warnings: List[str]
) -> LayoutSession:
    """Report an estimated size for every participating node; the last report runs the layout."""
    session = LayoutSession(graph, options, warnings)
    session.report_sizes(
        {node.id: estimate_node_size(node.label, len(node.properties)) for node in session.nodes}
    )
    warnings.extend(session.coordinator.warnings)
    return session


def run_layout(args: argparse.Namespace) -> int:
    repo = Path(args.repo).resolve()
    warnings: List[str] = []
    config, _ = load_repo_config(repo, warnings)
    try:
        options = layout_options(args, config)
    except (TypeError, ValueError) as exc:
        print(json.dumps({"error": str(exc)}, ensure_ascii=True), file=sys.stderr)
        return 2

    if args.objects:
        try:
            graph = object_graph_from_args(args, config, warnings)
        except (OSError, ValueError) as exc:
            print(json.dumps({"error": f"objects: {exc}"}, ensure_ascii=True), file=sys.stderr)
            return 2
        out_dir = out_dir_for(args)
    else:
        data = load_or_index(args)
        if data is None:
            print(
                json.dumps({"error": "graph not indexed; run index or pass --auto-index"}, ensure_ascii=True),
                file=sys.stderr,
            )
            return 2
        graph = graph_from_ir(data["ir"])
        out_dir = data["out_dir"]

    progress(f"Laying out {len(graph)} nodes ({options.mode})...")
    session = measure_and_layout(graph, options, warnings)
    if session.state is None:
        print(
            json.dumps({"error": "layout did not run", "pending": len(session.coordinator.pending())}),
            file=sys.stderr,
        )
        return 2
    progress(f"Layout {session.state.width:.0f}x{session.state.height:.0f}", done=True)

    layout_doc = session.state.to_dict()
    layout_doc["warnings"] = warnings
    write_json(out_dir / LAYOUT_FILE, {"layout": layout_doc, "graph": graph.to_dict()})
    if args.format == "graphml":
        print(export_graphml(graph.to_dict()))
    else:
        print(export_layout_json(layout_doc))
    return 0


def run_export(args: argparse.Namespace) -> int:
    data = load_or_index(args)
    if data is None:
        print(
            json.dumps({"error": "graph not indexed; run index or pass --auto-index"}, ensure_ascii=True),
            file=sys.stderr,
        )
        return 2
    rendered = export_graph(data["ir"].get("graph", {}), args.format)
    if args.output:
        write_text(Path(args.output), rendered + "\n")
        print(f"Wrote {args.output}", file=sys.stderr)
    else:
        print(rendered)
    return 0


def run_batch(args: argparse.Namespace) -> int:
    try:
        builder = BatchBuilder(max_nodes=args.max_nodes, batch_size=args.batch_size)
    except ValueError as exc:
        print(json.dumps({"error": str(exc)}, ensure_ascii=True), file=sys.stderr)
        return 2
    for index, state in enumerate(builder.run(), start=1):
        progress(f"Batch {index}: {len(state.nodes)} nodes, {state.width:.0f}x{state.height:.0f}")
    summary = builder.summary()
    progress(f"Created {summary['total_nodes']} nodes in {summary['batches']} batches", done=True)
    print(json.dumps(summary, ensure_ascii=True, indent=2))
    return 0


def add_layout_arguments(parser: argparse.ArgumentParser) -> None:
    # defaults stay None so the repo config can fill them in
    parser.add_argument("--mode", choices=list(LAYOUT_MODES), default=None)
    parser.add_argument("--padding", type=float, default=None, help="Grid padding (default: 15)")
    parser.add_argument(
        "--objective",
        choices=[OBJECTIVE_AREA, OBJECTIVE_ASPECT],
        default=None,
        help="Packing objective for groups (default: area)",
    )
    parser.add_argument(
        "--node-objective",
        choices=[OBJECTIVE_AREA, OBJECTIVE_ASPECT],
        default=None,
        help="Packing objective inside each group (default: aspect)",
    )
    parser.add_argument("--steps", type=int, default=None, help="Force simulation steps")
    parser.add_argument("--repulsion", type=float, default=None)
    parser.add_argument("--attraction", type=float, default=None)
    parser.add_argument("--damping", type=float, default=None, help="Velocity damping in (0, 1)")
    parser.add_argument("--seed", type=int, default=None, help="Seed for initial force positions")
    parser.add_argument(
        "--connected-only",
        action="store_const",
        const=True,
        default=None,
        help="Hide nodes without any edge before layout",
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="C# script reference graph and layout")
    parser.add_argument("--repo", default=".", help="Repo root (default: .)")
    parser.add_argument(
        "--out", default=None, help="Output dir (relative to workspace/ or absolute)"
    )
    parser.add_argument(
        "--include", action="append", default=None, help="Glob(s) of scripts to keep (repeatable)"
    )
    parser.add_argument(
        "--exclude", action="append", default=None, help="Glob(s) of scripts to skip (repeatable)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        default=None,
        help=f"Parallel extraction workers (default: CPU count, {os.cpu_count() or 1} here)",
    )
    parser.add_argument("--max-sample", type=int, default=20, help="Summary sample cap")
    parser.add_argument("--quiet", action="store_true", help="Suppress progress output")

    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("index", help="Build the reference graph for a repo")

    export_parser = subparsers.add_parser("export", help="Export the graph")
    export_parser.add_argument("--format", choices=list(EXPORT_FORMATS), default="json")
    export_parser.add_argument("--output", default=None, help="Write to a file instead of stdout")
    export_parser.add_argument(
        "--auto-index", action="store_true", help="Index if the graph is missing"
    )

    layout_parser = subparsers.add_parser(
        "layout", help="Lay out the script graph or a set of domain objects"
    )
    layout_parser.add_argument(
        "--objects", default=None, help="JSON file of owners/components to lay out instead of scripts"
    )
    layout_parser.add_argument(
        "--object-mode",
        default=None,
        help="components (default) or owners; the long forms 'nodes are components' also work",
    )
    layout_parser.add_argument(
        "--max-properties", type=int, default=None, help="Property rows kept per component"
    )
    layout_parser.add_argument("--format", choices=["json", "graphml"], default="json")
    layout_parser.add_argument(
        "--auto-index", action="store_true", help="Index if the graph is missing"
    )
    add_layout_arguments(layout_parser)

    batch_parser = subparsers.add_parser(
        "batch", help="Build a synthetic graph in batches and report timings"
    )
    batch_parser.add_argument("--max-nodes", type=int, default=10000)
    batch_parser.add_argument("--batch-size", type=int, default=2500)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else sys.argv[1:])
    set_quiet(args.quiet)
    if not args.command:
        args.command = "index"

    if args.command == "index":
        run_index(args)
        return 0
    if args.command == "export":
        return run_export(args)
    if args.command == "layout":
        return run_layout(args)
    if args.command == "batch":
        return run_batch(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())
