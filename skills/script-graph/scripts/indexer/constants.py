from __future__ import annotations

from typing import List

SOURCE_EXTS = (".cs",)
SOURCE_GLOBS: List[str] = ["**/*.cs"]

EXCLUDE_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".vs",
    ".idea",
    ".vscode",
    "node_modules",
    "bin",
    "obj",
    "Library",
    "Temp",
    "Logs",
    "Build",
    "Builds",
    "UserSettings",
    "__pycache__",
}

RG_EXCLUDES = [f"!**/{name}/**" for name in sorted(EXCLUDE_DIRS)]

REPO_CONFIG_FILES = [".scriptgraph.json", "scriptgraph.json"]

ACCESS_MODIFIERS = ("public", "private", "protected", "internal")

MEMBER_MODIFIERS = (
    "public",
    "private",
    "protected",
    "internal",
    "static",
    "readonly",
    "const",
    "volatile",
    "virtual",
    "override",
    "abstract",
    "sealed",
    "async",
    "extern",
    "unsafe",
    "partial",
    "new",
    "required",
    "event",
)

PARAM_MODIFIERS = {"this", "ref", "out", "in", "params", "scoped", "readonly"}

# C# reserved and contextual keywords, compared lower-case.
CSHARP_KEYWORDS = {
    "abstract", "add", "alias", "and", "as", "ascending", "async", "await",
    "base", "bool", "break", "by", "byte", "case", "catch", "char", "checked",
    "class", "const", "continue", "decimal", "default", "delegate",
    "descending", "do", "double", "dynamic", "else", "enum", "equals",
    "event", "explicit", "extern", "false", "file", "finally", "fixed",
    "float", "for", "foreach", "from", "get", "global", "goto", "group", "if",
    "implicit", "in", "init", "int", "interface", "internal", "into", "is",
    "join", "let", "lock", "long", "managed", "nameof", "namespace", "new",
    "nint", "not", "notnull", "nuint", "null", "object", "on", "operator",
    "or", "orderby", "out", "override", "params", "partial", "private",
    "protected", "public", "readonly", "record", "ref", "remove", "required",
    "return", "sbyte", "scoped", "sealed", "select", "set", "short", "sizeof",
    "stackalloc", "static", "string", "struct", "switch", "this", "throw",
    "true", "try", "typeof", "uint", "ulong", "unchecked", "unmanaged",
    "unsafe", "ushort", "using", "value", "var", "virtual", "void",
    "volatile", "when", "where", "while", "with", "yield",
}

# Value types, collections and framework aliases that never become edges.
COMMON_TYPES = {
    # primitives and their framework names
    "Boolean", "Byte", "SByte", "Char", "Decimal", "Double", "Single",
    "Int16", "Int32", "Int64", "UInt16", "UInt32", "UInt64", "IntPtr",
    "UIntPtr", "Object", "String", "Void", "DateTime", "DateTimeOffset",
    "TimeSpan", "Guid", "Type", "Exception", "Nullable", "Span",
    "ReadOnlySpan", "Memory", "ReadOnlyMemory", "ValueTuple", "Tuple",
    # collections
    "Array", "List", "IList", "IReadOnlyList", "Dictionary", "IDictionary",
    "IReadOnlyDictionary", "HashSet", "ISet", "SortedSet", "SortedDictionary",
    "SortedList", "Queue", "Stack", "LinkedList", "IEnumerable",
    "IEnumerator", "ICollection", "IReadOnlyCollection", "KeyValuePair",
    "ConcurrentDictionary", "ConcurrentQueue", "ConcurrentBag",
    # delegates and async
    "Action", "Func", "Predicate", "EventHandler", "Task", "ValueTask",
    "CancellationToken",
    # engine value types
    "Vector2", "Vector3", "Vector4", "Vector2Int", "Vector3Int",
    "Quaternion", "Matrix4x4", "Color", "Color32", "Rect", "RectInt",
    "Bounds", "BoundsInt", "Ray", "Ray2D", "LayerMask", "Mathf",
}

# Keywords that name types; a signature may start with them.
TYPE_KEYWORDS = {
    "bool", "byte", "sbyte", "char", "decimal", "double", "float", "int",
    "uint", "nint", "nuint", "long", "ulong", "short", "ushort", "object",
    "string", "void", "dynamic",
}
