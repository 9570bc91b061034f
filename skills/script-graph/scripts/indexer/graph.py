from __future__ import annotations

import os
from concurrent.futures import ThreadPoolExecutor, as_completed
from typing import Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple

from graph_model import GraphNode, ReferenceGraph
from utils import progress

from .discovery import SourceUnit
from .references import extract_references

Extractor = Callable[[str], FrozenSet[str]]


def resolve_workers(workers: Optional[int]) -> int:
    available = os.cpu_count() or 1
    if not workers or workers < 1:
        return available
    return max(1, min(int(workers), available))


def extract_unit(
    unit: SourceUnit,
    extractor: Extractor = extract_references,
) -> Tuple[FrozenSet[str], List[str]]:
    unit_warnings: List[str] = []
    try:
        text = unit.read()
    except (OSError, UnicodeDecodeError) as exc:
        unit_warnings.append(f"Failed to read {unit.name}: {exc}")
        return frozenset(), unit_warnings
    return extractor(text), unit_warnings


def extract_all(
    units: Sequence[SourceUnit],
    *,
    workers: Optional[int] = None,
    warnings: Optional[List[str]] = None,
    extractor: Extractor = extract_references,
) -> Dict[str, FrozenSet[str]]:
    """Run the extractor over every unit and map unit name -> ReferenceSet."""
    if warnings is None:
        warnings = []
    results: Dict[str, FrozenSet[str]] = {}
    if not units:
        return results
    max_workers = resolve_workers(workers)
    if max_workers == 1 or len(units) == 1:
        for unit in units:
            refs, unit_warnings = extract_unit(unit, extractor)
            results[unit.name] = refs
            warnings.extend(unit_warnings)
        return results
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = {executor.submit(extract_unit, unit, extractor): unit for unit in units}
        for future in as_completed(futures):
            unit = futures[future]
            refs, unit_warnings = future.result()
            results[unit.name] = refs
            warnings.extend(unit_warnings)
    return results


def short_name(name: str) -> str:
    return name.rsplit(".", 1)[-1]


def build_reference_graph(
    units: Sequence[SourceUnit],
    *,
    workers: Optional[int] = None,
    warnings: Optional[List[str]] = None,
    extractor: Extractor = extract_references,
) -> ReferenceGraph:
    if warnings is None:
        warnings = []
    graph = ReferenceGraph()
    unique: List[SourceUnit] = []
    for unit in units:
        if unit.name in graph:
            warnings.append(f"Duplicate unit {unit.name} skipped")
            continue
        graph.add_node(GraphNode(id=unit.name))
        unique.append(unit)
    if not unique:
        return graph

    progress(f"Extracting references from {len(unique)} units...")
    references = extract_all(unique, workers=workers, warnings=warnings, extractor=extractor)
    progress(f"Extracted references from {len(references)} units", done=True)

    unresolved: Dict[str, int] = {}
    for unit in unique:
        for name in sorted(references.get(unit.name, frozenset())):
            target = short_name(name)
            if target not in graph:
                unresolved[target] = unresolved.get(target, 0) + 1
                continue
            graph.add_edge(unit.name, target)
    for target in sorted(unresolved):
        warnings.append(f"Could not find target unit: {target}")
    return graph
