"""Utilities for reading source files and extracting structural information.

Extraction is purely textual: each language family contributes a handful of
regular expressions (see ``patterns``). This trades precision for speed and
robustness against files that do not parse.
"""

from __future__ import annotations

import fnmatch
from pathlib import Path, PurePosixPath
from typing import List, Optional, Protocol, Tuple

from ..artifact import RelationNode, node_id_for
from .patterns import (
    EXTENSION_LANGUAGES,
    FILENAME_SUFFIX_TYPES,
    FOLDER_TYPE_PATTERNS,
    LANGUAGE_PROFILES,
    SKIP_DIRECTORIES,
    SKIP_FILE_GLOBS,
    SKIP_FILE_NAMES,
    LanguageProfile,
)


def normalize_path(file_path: str) -> str:
    """Use forward slashes regardless of the platform the index was built on."""

    return file_path.replace("\\", "/")


def detect_language(file_path: str) -> Optional[str]:
    """Infer the language id from a file path, ``None`` when unsupported."""

    suffix = PurePosixPath(normalize_path(file_path)).suffix.lower()
    return EXTENSION_LANGUAGES.get(suffix)


def profile_for(language: str) -> Optional[LanguageProfile]:
    for profile in LANGUAGE_PROFILES:
        if language in profile.languages:
            return profile
    return None


def read_source(path: Path) -> Optional[str]:
    """Load a file as UTF-8 text, ignoring decoding errors; ``None`` if it is not a file."""

    if not path.is_file():
        return None
    return path.read_text(encoding="utf-8", errors="ignore")


def should_skip_file(file_path: str) -> bool:
    """Package markers, test-runner configs and bytecode caches never become nodes."""

    parts = PurePosixPath(normalize_path(file_path)).parts
    if not parts:
        return True
    filename = parts[-1]
    if filename in SKIP_FILE_NAMES:
        return True
    if any(fnmatch.fnmatch(filename, pattern) for pattern in SKIP_FILE_GLOBS):
        return True
    return any(part in SKIP_DIRECTORIES for part in parts[:-1])


def _unique(values: List[str]) -> List[str]:
    return list(dict.fromkeys(values))


def extract_names(content: str, language: str) -> Tuple[List[str], List[str]]:
    """Return the declared class names and function/method names, in source order."""

    profile = profile_for(language)
    if profile is None:
        return [], []

    classes: List[str] = []
    functions: List[str] = []
    for symbol in profile.symbols:
        target = classes if symbol.kind == "class" else functions
        for match in symbol.pattern.finditer(content):
            name = symbol.extractor(match)
            if name:
                target.append(name)
    return _unique(classes), _unique(functions)


def parse_imports(content: str, language: str) -> List[str]:
    """Collect the raw import expressions found in a file."""

    profile = profile_for(language)
    if profile is None:
        return []

    results: List[str] = []
    for item in profile.imports:
        for match in item.pattern.finditer(content):
            results.extend(item.extractor(match))
    return _unique(results)


def _matches_folder_pattern(part: str, pattern: str) -> bool:
    if part == pattern:
        return True
    return any(part.endswith(sep + pattern) for sep in ("-", "_", "."))


def detect_node_type(file_path: str) -> str:
    """Classify a file by its folders first, then by its filename suffix."""

    path = PurePosixPath(normalize_path(file_path).lower())
    for part in path.parts[:-1]:
        for pattern, node_type in FOLDER_TYPE_PATTERNS.items():
            if _matches_folder_pattern(part, pattern):
                return node_type

    stem = path.stem
    for suffixes, node_type in FILENAME_SUFFIX_TYPES:
        if stem.endswith(suffixes):
            return node_type

    return "class"


class SourceAnalyzer(Protocol):
    """Turns file text into a node summary and lists its imports."""

    def analyze(self, file_path: str, content: str, language: str) -> Optional[RelationNode]:
        ...

    def imports(self, content: str, language: str) -> List[str]:
        ...


class RegexSourceAnalyzer:
    """``SourceAnalyzer`` backed by the textual pattern registry."""

    def analyze(self, file_path: str, content: str, language: str) -> Optional[RelationNode]:
        if should_skip_file(file_path):
            return None

        classes, functions = extract_names(content, language)
        if not classes and not functions:
            return None

        stem = PurePosixPath(normalize_path(file_path)).stem
        return RelationNode(
            id=node_id_for(file_path),
            type=detect_node_type(file_path),
            name=classes[0] if classes else stem,
            file_path=file_path,
            language=language,
            functions=functions,
        )

    def imports(self, content: str, language: str) -> List[str]:
        return parse_imports(content, language)
