from __future__ import annotations

import fnmatch
from typing import Iterable

CODE_EXTENSIONS = frozenset(
    {
        ".rs",
        ".go",
        ".c",
        ".h",
        ".cc",
        ".cpp",
        ".cxx",
        ".hpp",
        ".hh",
        ".py",
        ".js",
        ".jsx",
        ".mjs",
        ".ts",
        ".tsx",
        ".java",
        ".kt",
        ".scala",
        ".swift",
        ".rb",
        ".php",
        ".cs",
        ".sh",
        ".bash",
        ".mo",  # Motoko canisters
        ".did",  # Candid interfaces
        ".sol",
        ".zig",
        ".bzl",
    }
)


def is_code_file(file_name: str, extensions: Iterable[str] | None = None) -> bool:
    allowed = CODE_EXTENSIONS if extensions is None else {e.lower() for e in extensions}
    lowered = file_name.lower()
    return any(lowered.endswith(ext) for ext in allowed)


def is_excluded(filename: str, patterns: Iterable[str]) -> bool:
    """Return True if filename matches any exclude pattern.

    Supports:
    - fnmatch globs on the full path: "src/generated/*.rs"
    - fnmatch globs on the basename: "*_pb2.py", "*.min.js"
    - Directory names/prefixes: "third_party/", "vendor" (matches any file within that tree)
    """
    for pattern in patterns:
        if fnmatch.fnmatch(filename, pattern):
            return True
        if fnmatch.fnmatch(filename.rsplit("/", 1)[-1], pattern):
            return True
        prefix = pattern.rstrip("/") + "/"
        if filename.startswith(prefix) or ("/" + prefix) in filename:
            return True
    return False
