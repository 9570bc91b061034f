"""Regex based reference extraction for C# source text.

Every rule runs independently over the raw text and contributes raw type
tokens; the tokens are normalized and filtered before they reach the
resulting set. Matching is approximate: unusual formatting can produce
false positives or misses, which is acceptable for visualization.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, List, Optional, Set

from .constants import (
    ACCESS_MODIFIERS,
    COMMON_TYPES,
    CSHARP_KEYWORDS,
    MEMBER_MODIFIERS,
    PARAM_MODIFIERS,
    TYPE_KEYWORDS,
)

_MODIFIERS = "|".join(MEMBER_MODIFIERS)
_ACCESS = "public|private|protected|internal"
_TYPE = r"(?:global::)?[A-Za-z_][\w\.]*(?:\s*<[^;=(){}]*?>)?(?:\s*\[[\s,]*\])*\??"

FIELD_RE = re.compile(
    rf"\b(?:{_ACCESS})\s+(?:(?:{_MODIFIERS})\s+)*({_TYPE})\s+([A-Za-z_]\w*)\s*(?:;|=|\{{)"
)
METHOD_RE = re.compile(
    rf"^[ \t]*(?:(?:{_MODIFIERS})\s+)*({_TYPE})\s+([A-Za-z_]\w*)\s*(?:<([^>()]*)>)?\s*\(([^)]*)\)",
    re.MULTILINE,
)
TYPE_PARAMS_RE = re.compile(r"\b(?:class|struct|interface|record|delegate)\s+[\w\s]*?\b[A-Za-z_]\w*\s*<([^<>{};]+)>")
INHERITANCE_RE = re.compile(
    r"\b(?:class|struct|interface|record)\s+[A-Za-z_]\w*\s*(?:<[^>{]*>)?\s*:\s*([^{;]+?)\s*(?=\bwhere\b|\{|;)"
)
LOCAL_NEW_RE = re.compile(rf"\b[A-Za-z_]\w*\s*=\s*new\s+({_TYPE})\s*[\(\{{\[]")
ATTRIBUTE_RE = re.compile(r"^[ \t]*\[\s*(?:\w+\s*:\s*)?([^\[\]]+?)\s*\]", re.MULTILINE)
USING_RE = re.compile(
    r"^[ \t]*(?:global\s+)?using\s+(?:static\s+)?(?:([A-Za-z_]\w*)\s*=\s*)?((?:global::)?[A-Za-z_][\w\.]*)\s*;",
    re.MULTILINE,
)

_IDENT_RE = re.compile(r"^[A-Za-z_][\w]*(?:\.[A-Za-z_][\w]*)*$")
_ARRAY_RE = re.compile(r"\[[\s,]*\]")


@dataclass
class AliasTable:
    """Using directives of one unit: alias keys and imported qualified names."""

    aliases: Dict[str, str] = field(default_factory=dict)
    qualified: List[str] = field(default_factory=list)

    def add(self, qualified_name: str, alias: Optional[str] = None) -> None:
        if alias:
            self.aliases[alias] = qualified_name
        if qualified_name not in self.qualified:
            self.qualified.append(qualified_name)

    def expand(self, name: str) -> List[str]:
        results: List[str] = []
        target = self.aliases.get(name)
        if target:
            results.append(target)
        suffix = "." + name
        for entry in self.qualified:
            if entry.endswith(suffix) and entry not in results:
                results.append(entry)
        return results


def split_top_level(text: str, sep: str = ",") -> List[str]:
    parts: List[str] = []
    depth = 0
    current: List[str] = []
    for ch in text:
        if ch in "<([":
            depth += 1
        elif ch in ">)]":
            depth = max(0, depth - 1)
        if ch == sep and depth == 0:
            parts.append("".join(current))
            current = []
            continue
        current.append(ch)
    if current:
        parts.append("".join(current))
    return [part.strip() for part in parts if part.strip()]


def is_keyword(token: str) -> bool:
    return token.lower() in CSHARP_KEYWORDS


def is_common_type(token: str) -> bool:
    if token in COMMON_TYPES:
        return True
    return token.rsplit(".", 1)[-1] in COMMON_TYPES


def is_filtered(token: str) -> bool:
    return is_keyword(token) or is_keyword(token.rsplit(".", 1)[-1]) or is_common_type(token)


def normalize_type_token(raw: str) -> List[str]:
    """Return the surviving names of one raw type token.

    `Dictionary<string, List<Enemy>>[]` yields `["Enemy"]`: the base name is
    filtered as a common type, `string` as a keyword, and the inner generic
    list recurses down to `Enemy`.
    """
    token = raw.strip()
    if not token:
        return []
    if token.startswith("global::"):
        token = token[len("global::") :]
    token = _ARRAY_RE.sub("", token).strip().rstrip("?").strip()
    if not token:
        return []
    if token.startswith("(") and token.endswith(")"):
        names: List[str] = []
        for element in split_top_level(token[1:-1]):
            # tuple elements may carry a name: (Enemy target, int count)
            element_type = split_top_level(element, " ")[0] if " " in element else element
            names.extend(normalize_type_token(element_type))
        return names
    names = []
    if "<" in token:
        base, _, rest = token.partition("<")
        inner = rest[: rest.rfind(">")] if ">" in rest else rest
        for arg in split_top_level(inner):
            names.extend(normalize_type_token(arg))
        token = base.strip()
    token = token.rstrip("?").strip()
    if not _IDENT_RE.match(token):
        return names
    if is_filtered(token):
        return names
    return [token] + names


def field_type_tokens(text: str) -> List[str]:
    return [match.group(1) for match in FIELD_RE.finditer(text)]


def leading_param_type(param: str) -> Optional[str]:
    param = re.sub(r"^\s*(?:\[[^\]]*\]\s*)+", "", param).strip()
    words = param.split()
    while words and words[0] in PARAM_MODIFIERS:
        words.pop(0)
    if not words:
        return None
    rest = " ".join(words)
    match = re.match(rf"({_TYPE})", rest)
    if not match:
        return None
    return match.group(1)


def method_type_tokens(text: str) -> List[str]:
    tokens: List[str] = []
    for match in METHOD_RE.finditer(text):
        return_type = match.group(1)
        name = match.group(2)
        head = return_type.split("<", 1)[0].strip().lower()
        if is_keyword(name):
            continue
        if head in ACCESS_MODIFIERS or head == "static":
            # constructor: `public Spawner(Pool pool)`
            pass
        elif head in CSHARP_KEYWORDS and head not in TYPE_KEYWORDS:
            # `return Foo(...)`, `else if (...)` and friends are not signatures
            continue
        else:
            tokens.append(return_type)
        for param in split_top_level(match.group(4)):
            param_type = leading_param_type(param)
            if param_type:
                tokens.append(param_type)
    return tokens


def inheritance_tokens(text: str) -> List[str]:
    tokens: List[str] = []
    for match in INHERITANCE_RE.finditer(text):
        tokens.extend(split_top_level(match.group(1)))
    return tokens


def instantiation_tokens(text: str) -> List[str]:
    return [match.group(1) for match in LOCAL_NEW_RE.finditer(text)]


def attribute_name(raw: str) -> str:
    name = raw.strip()
    if not name.endswith("Attribute"):
        name = f"{name}Attribute"
    return name


def attribute_tokens(text: str) -> List[str]:
    tokens: List[str] = []
    for match in ATTRIBUTE_RE.finditer(text):
        for usage in split_top_level(match.group(1)):
            name = usage.split("(", 1)[0].strip()
            if _IDENT_RE.match(name):
                tokens.append(attribute_name(name))
    return tokens


def collect_aliases(text: str) -> AliasTable:
    table = AliasTable()
    for match in USING_RE.finditer(text):
        qualified_name = match.group(2)
        if qualified_name.startswith("global::"):
            qualified_name = qualified_name[len("global::") :]
        table.add(qualified_name, alias=match.group(1))
    return table


def type_parameters(text: str) -> Set[str]:
    declared: List[str] = []
    for match in TYPE_PARAMS_RE.finditer(text):
        declared.extend(split_top_level(match.group(1)))
    for match in METHOD_RE.finditer(text):
        if match.group(3):
            declared.extend(split_top_level(match.group(3)))
    names: Set[str] = set()
    for item in declared:
        words = item.split()
        if words and _IDENT_RE.match(words[-1]):
            names.add(words[-1])
    return names


RULES = (
    field_type_tokens,
    method_type_tokens,
    inheritance_tokens,
    instantiation_tokens,
    attribute_tokens,
)


def extract_references(text: str) -> FrozenSet[str]:
    """Return the ReferenceSet of one unit's text."""
    aliases = collect_aliases(text)
    generic_params = type_parameters(text)
    refs: Set[str] = set()
    for rule in RULES:
        for raw in rule(text):
            for name in normalize_type_token(raw):
                if name in generic_params:
                    continue
                refs.add(name)
                refs.update(
                    expanded for expanded in aliases.expand(name) if not is_filtered(expanded)
                )
    return frozenset(refs)

