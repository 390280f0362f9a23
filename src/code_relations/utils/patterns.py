"""Per-language pattern registry used by the textual source analyzer.

Each supported language family is one ``LanguageProfile`` carrying the
patterns that find declarations and import statements. Nothing here touches
the filesystem; the extraction functions in ``file_parsing`` are pure
functions over this registry.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Tuple

SymbolExtractor = Callable[["re.Match[str]"], Optional[str]]
ImportExtractor = Callable[["re.Match[str]"], List[str]]


@dataclass(frozen=True)
class SymbolPattern:
    """A declaration pattern; ``kind`` is ``"class"`` or ``"function"``."""

    pattern: "re.Pattern[str]"
    kind: str
    extractor: SymbolExtractor


@dataclass(frozen=True)
class ImportPattern:
    pattern: "re.Pattern[str]"
    extractor: ImportExtractor


@dataclass(frozen=True)
class LanguageProfile:
    family: str
    languages: frozenset
    extensions: Dict[str, str]
    symbols: Tuple[SymbolPattern, ...]
    imports: Tuple[ImportPattern, ...]


def _first_group(match: "re.Match[str]") -> Optional[str]:
    for value in match.groups():
        if value:
            return value
    return None


def _excluding(names: Sequence[str]) -> SymbolExtractor:
    blocked = frozenset(names)

    def _extract(match: "re.Match[str]") -> Optional[str]:
        name = _first_group(match)
        if not name or name in blocked:
            return None
        return name

    return _extract


def _single_import(match: "re.Match[str]") -> List[str]:
    return [match.group(1)]


# ---------------------------------------------------------------------------
# JavaScript / TypeScript
# ---------------------------------------------------------------------------

_JS_KEYWORDS = ("if", "for", "while", "switch", "catch", "function", "return", "typeof", "with", "super")

_JS_CLASS_PATTERN = re.compile(r"\bclass\s+([A-Za-z_$][\w$]*)")
_JS_FUNCTION_PATTERN = re.compile(
    r"(?:\bfunction\b\s*\*?\s*(\w+)"
    r"|\b(?:const|let|var)\s+(\w+)\s*=\s*(?:async\s*)?\("
    r"|(\w+)\s*:\s*(?:async\s*)?\([^)]*\)\s*(?:=>|\{))"
)
_JS_METHOD_PATTERN = re.compile(r"(?:async\s+)?(\w+)\s*\([^)]*\)\s*(?::\s*[\w<>\[\]]+)?\s*\{")

_JS_IMPORT_PATTERN = re.compile(
    r"^[ \t]*import\s+(?:[\w*{}\s,$]+?\s*from\s*)?['\"]([^'\"]+)['\"]",
    re.MULTILINE,
)
_JS_REEXPORT_PATTERN = re.compile(
    r"^[ \t]*export\s+(?:type\s+)?(?:\*(?:\s+as\s+\w+)?|\{[^}]*\})\s*from\s*['\"]([^'\"]+)['\"]",
    re.MULTILINE,
)
_JS_REQUIRE_PATTERN = re.compile(r"\brequire\s*\(\s*['\"]([^'\"]+)['\"]\s*\)")
_JS_DYNAMIC_IMPORT_PATTERN = re.compile(r"\bimport\s*\(\s*['\"]([^'\"]+)['\"]\s*\)")

JS_PROFILE = LanguageProfile(
    family="javascript",
    languages=frozenset({"javascript", "typescript", "javascriptreact", "typescriptreact"}),
    extensions={
        ".ts": "typescript",
        ".tsx": "typescriptreact",
        ".js": "javascript",
        ".mjs": "javascript",
        ".cjs": "javascript",
        ".jsx": "javascriptreact",
    },
    symbols=(
        SymbolPattern(_JS_CLASS_PATTERN, "class", _first_group),
        SymbolPattern(_JS_FUNCTION_PATTERN, "function", _excluding(_JS_KEYWORDS)),
        SymbolPattern(_JS_METHOD_PATTERN, "function", _excluding(_JS_KEYWORDS + ("constructor",))),
    ),
    imports=(
        ImportPattern(_JS_IMPORT_PATTERN, _single_import),
        ImportPattern(_JS_REEXPORT_PATTERN, _single_import),
        ImportPattern(_JS_REQUIRE_PATTERN, _single_import),
        ImportPattern(_JS_DYNAMIC_IMPORT_PATTERN, _single_import),
    ),
)


# ---------------------------------------------------------------------------
# Python
# ---------------------------------------------------------------------------

_PY_CLASS_PATTERN = re.compile(r"^[ \t]*class\s+(\w+)", re.MULTILINE)
_PY_FUNCTION_PATTERN = re.compile(r"^[ \t]*(?:async\s+)?def\s+(\w+)", re.MULTILINE)

_PY_FROM_IMPORT_PATTERN = re.compile(
    r"^[ \t]*from[ \t]+(\.*[\w.]*)[ \t]+import[ \t]+(?:\(([^)]*)\)|([\w, \t*]+))",
    re.MULTILINE,
)
_PY_IMPORT_PATTERN = re.compile(r"^[ \t]*import[ \t]+([\w., \t]+)", re.MULTILINE)
_PY_COMMENT = re.compile(r"#[^\n]*")


def _split_python_names(raw: str) -> List[str]:
    names = []
    for item in _PY_COMMENT.sub("", raw).split(","):
        name = item.strip().split(" as ")[0].strip()
        if name and name != "*":
            names.append(name)
    return names


def _python_from_import(match: "re.Match[str]") -> List[str]:
    module = match.group(1)
    names = _split_python_names(match.group(2) or match.group(3) or "")
    results: List[str] = []
    only_dots = module.strip(".") == ""
    if not only_dots:
        results.append(module)
    for name in names:
        if only_dots:
            results.append(f"{module}{name}")
        else:
            results.append(f"{module}.{name}")
    return results


def _python_import(match: "re.Match[str]") -> List[str]:
    return _split_python_names(match.group(1))


PYTHON_PROFILE = LanguageProfile(
    family="python",
    languages=frozenset({"python"}),
    extensions={".py": "python"},
    symbols=(
        SymbolPattern(_PY_CLASS_PATTERN, "class", _first_group),
        SymbolPattern(_PY_FUNCTION_PATTERN, "function", _first_group),
    ),
    imports=(
        ImportPattern(_PY_FROM_IMPORT_PATTERN, _python_from_import),
        ImportPattern(_PY_IMPORT_PATTERN, _python_import),
    ),
)


# ---------------------------------------------------------------------------
# Java
# ---------------------------------------------------------------------------

_JAVA_CLASS_PATTERN = re.compile(r"\b(?:class|interface|enum)\s+(\w+)")
_JAVA_METHOD_PATTERN = re.compile(
    r"(?:public|private|protected)\s+(?:static\s+)?(?:final\s+)?(?:synchronized\s+)?"
    r"(?:\w+(?:<[^>]+>)?(?:\[\])*)\s+(\w+)\s*\("
)
_JAVA_IMPORT_PATTERN = re.compile(
    r"^[ \t]*import[ \t]+(static[ \t]+)?([\w.]+?)(\.\*)?[ \t]*;",
    re.MULTILINE,
)


def _java_import(match: "re.Match[str]") -> List[str]:
    """Static imports name a member; keep its owning class. Package wildcards resolve to nothing."""
    is_static, path, wildcard = match.groups()
    if is_static and not wildcard:
        path = path.rpartition(".")[0]
    elif wildcard and not is_static:
        return []
    return [path] if path else []


JAVA_PROFILE = LanguageProfile(
    family="java",
    languages=frozenset({"java"}),
    extensions={".java": "java"},
    symbols=(
        SymbolPattern(_JAVA_CLASS_PATTERN, "class", _first_group),
        SymbolPattern(_JAVA_METHOD_PATTERN, "function", _excluding(("class", "new", "return"))),
    ),
    imports=(ImportPattern(_JAVA_IMPORT_PATTERN, _java_import),),
)


LANGUAGE_PROFILES: Tuple[LanguageProfile, ...] = (JS_PROFILE, PYTHON_PROFILE, JAVA_PROFILE)

EXTENSION_LANGUAGES: Dict[str, str] = {
    suffix: language for profile in LANGUAGE_PROFILES for suffix, language in profile.extensions.items()
}

# Extensions stripped when comparing module basenames.
SOURCE_EXTENSIONS: Tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".py", ".java")


# ---------------------------------------------------------------------------
# Node type classification
# ---------------------------------------------------------------------------

FOLDER_TYPE_PATTERNS: Dict[str, str] = {
    "controller": "controller",
    "controllers": "controller",
    "service": "service",
    "services": "service",
    "repository": "repository",
    "repositories": "repository",
    "repo": "repository",
    "dao": "dao",
    "daos": "dao",
    "util": "util",
    "utils": "util",
    "helper": "util",
    "helpers": "util",
    "model": "model",
    "models": "model",
    "entity": "model",
    "entities": "model",
    "dto": "model",
    "component": "component",
    "components": "component",
    "config": "config",
    "configuration": "config",
    "middleware": "middleware",
    "middlewares": "middleware",
    "handler": "handler",
    "handlers": "handler",
    "adapter": "adapter",
    "adapters": "adapter",
    "factory": "factory",
    "factories": "factory",
}

FILENAME_SUFFIX_TYPES: Tuple[Tuple[Tuple[str, ...], str], ...] = (
    (("controller",), "controller"),
    (("service",), "service"),
    (("repository", "repo"), "repository"),
    (("dao",), "dao"),
    (("util", "utils", "helper"), "util"),
    (("model", "entity", "dto"), "model"),
    (("component",), "component"),
    (("config", "configuration"), "config"),
    (("middleware",), "middleware"),
    (("handler",), "handler"),
    (("adapter",), "adapter"),
    (("factory",), "factory"),
)


# ---------------------------------------------------------------------------
# Noise files
# ---------------------------------------------------------------------------

SKIP_FILE_NAMES = frozenset({"__init__.py", "__init__.ts", "conftest.py"})
SKIP_FILE_GLOBS: Tuple[str, ...] = ("jest.config.*", "vitest.config.*", "karma.conf.*")
SKIP_DIRECTORIES = frozenset({"__pycache__"})
