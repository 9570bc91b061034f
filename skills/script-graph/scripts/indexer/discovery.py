from __future__ import annotations

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from utils import ToolState, progress, run_cmd

from .constants import EXCLUDE_DIRS, RG_EXCLUDES, SOURCE_EXTS, SOURCE_GLOBS


@dataclass(frozen=True)
class SourceUnit:
    """One script: its unit name and either its text or the file to read it from."""

    name: str
    text: Optional[str] = None
    path: Optional[Path] = None

    def read(self) -> str:
        if self.text is not None:
            return self.text
        if self.path is None:
            raise OSError(f"No text or path for unit {self.name}")
        return self.path.read_text(encoding="utf-8-sig")


def unit_name_for_path(path: str) -> str:
    return Path(path).stem


def match_globs(path: str, globs: Sequence[str]) -> bool:
    name = Path(path).name
    for pattern in globs:
        if fnmatch.fnmatch(path, pattern) or fnmatch.fnmatch(name, pattern):
            return True
        if pattern.startswith("**/") and fnmatch.fnmatch(path, pattern[3:]):
            return True
    return False


def list_source_files(repo: Path, warnings: List[str], tools: ToolState) -> List[str]:
    progress("Discovering scripts...")
    cmd = ["rg", "--files"]
    for glob in SOURCE_GLOBS:
        cmd.extend(["-g", glob])
    for glob in RG_EXCLUDES:
        cmd.extend(["-g", glob])
    result = run_cmd(cmd, cwd=repo, warnings=warnings, tools=tools, capture=True)
    if result and result.returncode == 0:
        files = [
            line.strip().replace(os.sep, "/")
            for line in result.stdout.splitlines()
            if line.strip().endswith(SOURCE_EXTS)
        ]
        progress(f"Found {len(files)} scripts", done=True)
        return sorted(set(files))
    if result is not None and result.returncode not in (0, 1):
        warnings.append("rg failed; falling back to Python file walk")
    return list_source_files_fallback(repo)


def list_source_files_fallback(repo: Path) -> List[str]:
    files: List[str] = []
    skipped_symlinks = 0
    for root, dirs, filenames in os.walk(repo):
        dirs[:] = [d for d in dirs if d not in EXCLUDE_DIRS]
        for filename in filenames:
            if not filename.endswith(SOURCE_EXTS):
                continue
            full = Path(root) / filename
            if full.is_symlink():
                skipped_symlinks += 1
                continue
            try:
                files.append(full.relative_to(repo).as_posix())
            except ValueError:
                continue
    if skipped_symlinks > 0:
        progress(
            f"Found {len(files)} scripts (fallback, skipped {skipped_symlinks} symlinks)",
            done=True,
        )
    else:
        progress(f"Found {len(files)} scripts (fallback)", done=True)
    return sorted(set(files))


def filter_paths(
    files: Iterable[str],
    *,
    include_globs: Optional[Sequence[str]] = None,
    exclude_globs: Optional[Sequence[str]] = None,
) -> List[str]:
    results: List[str] = []
    for path in files:
        if include_globs and not match_globs(path, include_globs):
            continue
        if exclude_globs and match_globs(path, exclude_globs):
            continue
        results.append(path)
    return results


def discover_units(
    repo: Path,
    warnings: List[str],
    tools: ToolState,
    *,
    include_globs: Optional[Sequence[str]] = None,
    exclude_globs: Optional[Sequence[str]] = None,
) -> List[SourceUnit]:
    """List the scripts under `repo` as lazily-read source units.

    Unit names are file stems; when two files share a stem the first path in
    sorted order wins and the rest are reported.
    """
    files = filter_paths(
        list_source_files(repo, warnings, tools),
        include_globs=include_globs,
        exclude_globs=exclude_globs,
    )
    units: List[SourceUnit] = []
    seen = {}
    for rel in files:
        name = unit_name_for_path(rel)
        if name in seen:
            warnings.append(f"Duplicate unit name {name}: {rel} (keeping {seen[name]})")
            continue
        seen[name] = rel
        units.append(SourceUnit(name=name, path=repo / rel))
    return units
