"""Resolve raw import expressions to the nodes they refer to.

Paths are compared by their trailing segments rather than as absolute paths:
the index may have been built from a different base directory than the one
the analysis runs in, so only the tail of a path is trustworthy.
"""

from __future__ import annotations

import posixpath
from typing import List, Optional, Sequence

from ..artifact import RelationNode
from .file_parsing import normalize_path
from .patterns import JS_PROFILE, SOURCE_EXTENSIONS

# Probed in order after joining a relative import with the importer's directory.
JS_PROBE_SUFFIXES = ("", ".ts", ".js", ".tsx", ".jsx", ".py", ".java", "/index.ts", "/index.js")

# Number of trailing segments compared when matching JS/TS paths.
PATH_SUFFIX_DEPTH = 4

PYTHON_EXTERNAL_PACKAGES = frozenset(
    {
        "os", "sys", "json", "typing", "abc", "enum", "dataclasses", "datetime", "pathlib",
        "logging", "asyncio", "collections", "re", "functools", "itertools", "math", "time",
        "uuid", "hashlib", "subprocess", "shutil", "tempfile", "unittest", "contextlib",
        "copy", "inspect", "threading", "concurrent", "io", "random", "string", "traceback",
        "warnings", "argparse", "pydantic", "pydantic_settings", "fastapi", "starlette",
        "flask", "django", "sqlalchemy", "openai", "anthropic", "langchain", "langgraph",
        "numpy", "pandas", "requests", "httpx", "aiohttp", "pytest", "yaml", "loguru",
        "typer", "rich", "click",
    }
)

JAVA_EXTERNAL_ROOTS = frozenset({"java", "javax", "jakarta", "sun", "jdk"})


def path_segments(file_path: str) -> List[str]:
    """Lower-cased path segments without empty, ``.`` or ``..`` entries."""

    return [part for part in normalize_path(file_path).lower().split("/") if part not in ("", ".", "..")]


def _strip_extension(name: str) -> str:
    for extension in SOURCE_EXTENSIONS:
        if name.endswith(extension):
            return name[: -len(extension)]
    return name


def _tail_matches(candidate: Sequence[str], existing: Sequence[str], depth: int = PATH_SUFFIX_DEPTH) -> bool:
    size = min(depth, len(candidate), len(existing))
    return size > 0 and list(candidate[-size:]) == list(existing[-size:])


def _ends_with(segments: Sequence[str], tail: Sequence[str]) -> bool:
    return 0 < len(tail) <= len(segments) and list(segments[-len(tail):]) == list(tail)


class _IndexedNode:
    __slots__ = ("node", "segments", "module_segments", "basename")

    def __init__(self, node: RelationNode) -> None:
        self.node = node
        self.segments = path_segments(node.file_path)
        self.module_segments = self.segments[:-1] + [_strip_extension(self.segments[-1])] if self.segments else []
        self.basename = self.module_segments[-1] if self.module_segments else ""


class ImportResolver:
    """Maps ``(import, importing file, language)`` to a node, or ``None`` when external."""

    def __init__(self, nodes: Sequence[RelationNode]) -> None:
        self._entries = [_IndexedNode(node) for node in nodes]

    def resolve(self, import_path: str, source_path: str, language: str) -> Optional[RelationNode]:
        if not import_path:
            return None
        if language == "python":
            return self._resolve_python(import_path, source_path)
        if language == "java":
            return self._resolve_java(import_path)
        if language in JS_PROFILE.languages:
            return self._resolve_js(import_path, source_path)
        return None

    # ------------------------------------------------------------------
    # JavaScript / TypeScript
    # ------------------------------------------------------------------

    def _resolve_js(self, import_path: str, source_path: str) -> Optional[RelationNode]:
        if not import_path.startswith((".", "/")):
            return self._resolve_bare(import_path)

        source_dir = posixpath.dirname(normalize_path(source_path))
        joined = posixpath.normpath(posixpath.join(source_dir, import_path))
        for suffix in JS_PROBE_SUFFIXES:
            candidate = path_segments(joined + suffix)
            for entry in self._entries:
                if _tail_matches(candidate, entry.segments):
                    return entry.node
        return None

    def _resolve_bare(self, import_path: str) -> Optional[RelationNode]:
        name = _strip_extension(import_path.rstrip("/").rsplit("/", 1)[-1])
        if not name:
            return None
        for entry in self._entries:
            if entry.node.name == name:
                return entry.node
        return None

    # ------------------------------------------------------------------
    # Python
    # ------------------------------------------------------------------

    def _resolve_python(self, import_path: str, source_path: str) -> Optional[RelationNode]:
        module = import_path.lstrip(".")
        dots = len(import_path) - len(module)
        parts = [part.lower() for part in module.split(".") if part]
        if not parts:
            return None
        if dots == 0 and parts[0] in PYTHON_EXTERNAL_PACKAGES:
            return None

        if dots:
            base = path_segments(posixpath.dirname(normalize_path(source_path)))
            levels_up = dots - 1
            if levels_up:
                base = base[:-levels_up] if levels_up < len(base) else []
            pattern = base + parts
        else:
            pattern = parts

        for entry in self._entries:
            if _ends_with(entry.module_segments, pattern):
                return entry.node

        last = parts[-1]
        for entry in self._entries:
            if entry.basename == last:
                return entry.node
        for entry in self._entries:
            if entry.node.name.lower() == last:
                return entry.node
        return None

    # ------------------------------------------------------------------
    # Java
    # ------------------------------------------------------------------

    def _resolve_java(self, import_path: str) -> Optional[RelationNode]:
        parts = [part for part in import_path.split(".") if part]
        if not parts or parts[0] in JAVA_EXTERNAL_ROOTS:
            return None

        pattern = [part.lower() for part in parts]
        for entry in self._entries:
            if _ends_with(entry.module_segments, pattern):
                return entry.node
        for entry in self._entries:
            if entry.node.name == parts[-1]:
                return entry.node
        return None
