from __future__ import annotations

from .constants import (
    COMMON_TYPES,
    CSHARP_KEYWORDS,
    EXCLUDE_DIRS,
    REPO_CONFIG_FILES,
    RG_EXCLUDES,
)
from .core import IndexOptions, index_repo, merge_config
from .discovery import (
    SourceUnit,
    discover_units,
    filter_paths,
    list_source_files,
    list_source_files_fallback,
    match_globs,
    unit_name_for_path,
)
from .graph import build_reference_graph, extract_all, extract_unit, resolve_workers
from .objects import (
    NODES_ARE_COMPONENTS,
    NODES_ARE_OWNERS,
    build_object_graph,
    to_object_graph_mode,
)
from .references import (
    AliasTable,
    collect_aliases,
    extract_references,
    is_common_type,
    is_keyword,
    normalize_type_token,
)
from .repo_config import load_repo_config
