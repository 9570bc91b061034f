"""On-disk document for a built graph: run metadata plus the serialized graph."""
from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Dict, List, Optional

from graph_model import GraphNode, ReferenceGraph


IR_VERSION = 1


def now_iso() -> str:
    return time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime())


def new_ir(
    graph: ReferenceGraph,
    *,
    source: str,
    repo: Optional[Path] = None,
    warnings: Optional[List[str]] = None,
    config_source: Optional[str] = None,
) -> Dict[str, Any]:
    return {
        "meta": {
            "version": IR_VERSION,
            "generated_at": now_iso(),
            "source": source,
            "repo": repo.as_posix() if repo else None,
            "config_source": config_source,
            "node_count": len(graph),
            "edge_count": len(graph.edges),
            "warnings": list(warnings or []),
        },
        "graph": graph.to_dict(),
    }


def graph_from_ir(ir: Dict[str, Any]) -> ReferenceGraph:
    """Rebuild a mutable graph from a saved document; positions are dropped."""
    data = ir.get("graph", {})
    graph = ReferenceGraph()
    for item in data.get("nodes", []):
        properties = [(str(row[0]), str(row[1])) for row in item.get("properties", []) if len(row) == 2]
        graph.add_node(
            GraphNode(
                id=str(item["id"]),
                label=str(item.get("label") or ""),
                group=item.get("group"),
                properties=properties,
            )
        )
    for group in data.get("groups", []):
        graph.group(str(group["name"]))
    for edge in data.get("edges", []):
        graph.add_edge(str(edge["source"]), str(edge["target"]))
    return graph


def load_ir(path: Path) -> Dict[str, Any] | None:
    if not path.exists():
        return None
    return json.loads(path.read_text(encoding="utf-8"))


def save_ir(path: Path, ir: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(ir, ensure_ascii=True, indent=2), encoding="utf-8")
