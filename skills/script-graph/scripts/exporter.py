from __future__ import annotations

import json
from typing import Dict, List

EXPORT_FORMATS = ("json", "graphml", "adjacency")


def build_adjacency(graph: Dict[str, object]) -> Dict[str, List[str]]:
    """Map every node id to its outgoing targets, in edge order."""
    adjacency: Dict[str, List[str]] = {}
    for node in graph.get("nodes", []):
        adjacency.setdefault(str(node.get("id")), [])
    for edge in graph.get("edges", []):
        src = str(edge.get("source"))
        dst = str(edge.get("target"))
        targets = adjacency.setdefault(src, [])
        if dst not in targets:
            targets.append(dst)
    return adjacency


def export_graph_json(graph: Dict[str, object]) -> str:
    return json.dumps(graph, ensure_ascii=True, indent=2)


def export_adjacency(graph: Dict[str, object]) -> str:
    return json.dumps(build_adjacency(graph), ensure_ascii=True, indent=2)


def export_layout_json(layout: Dict[str, object]) -> str:
    return json.dumps(layout, ensure_ascii=True, indent=2)


def export_graphml(graph: Dict[str, object]) -> str:
    def esc(value: object) -> str:
        text = "" if value is None else str(value)
        return (
            text.replace("&", "&amp;")
            .replace("<", "&lt;")
            .replace(">", "&gt;")
            .replace('"', "&quot;")
            .replace("'", "&apos;")
        )

    keys = [
        ("n_label", "node", "label", "string"),
        ("n_group", "node", "group", "string"),
        ("n_properties", "node", "properties", "string"),
        ("n_x", "node", "x", "double"),
        ("n_y", "node", "y", "double"),
        ("n_width", "node", "width", "double"),
        ("n_height", "node", "height", "double"),
    ]

    lines = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<graphml xmlns="http://graphml.graphdrawing.org/xmlns">',
    ]
    for key_id, scope, name, key_type in keys:
        lines.append(
            f'<key id="{key_id}" for="{scope}" attr.name="{name}" attr.type="{key_type}"/>'
        )
    lines.append('<graph id="G" edgedefault="directed">')

    for node in graph.get("nodes", []):
        lines.append(f'<node id="{esc(node.get("id"))}">')
        lines.append(f'  <data key="n_label">{esc(node.get("label"))}</data>')
        if node.get("group") is not None:
            lines.append(f'  <data key="n_group">{esc(node.get("group"))}</data>')
        properties = node.get("properties") or []
        if properties:
            rendered = "; ".join(f"{label}: {value}" for label, value in properties)
            lines.append(f'  <data key="n_properties">{esc(rendered)}</data>')
        rect = node.get("rect")
        if isinstance(rect, dict):
            for field in ("x", "y", "width", "height"):
                lines.append(f'  <data key="n_{field}">{esc(rect.get(field))}</data>')
        lines.append("</node>")

    for edge in graph.get("edges", []):
        src = esc(edge.get("source"))
        dst = esc(edge.get("target"))
        lines.append(f'<edge source="{src}" target="{dst}"/>')

    lines.append("</graph>")
    lines.append("</graphml>")
    return "\n".join(lines)


def export_graph(graph: Dict[str, object], fmt: str) -> str:
    if fmt == "graphml":
        return export_graphml(graph)
    if fmt == "adjacency":
        return export_adjacency(graph)
    if fmt == "json":
        return export_graph_json(graph)
    raise ValueError(f"Unknown export format: {fmt}")
