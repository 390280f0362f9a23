"""LangGraph node that picks the indexed files belonging to one project."""

from __future__ import annotations

import fnmatch
import re
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..errors import NoProjectFilesError
from ..state import AnalysisState
from ..utils.file_parsing import normalize_path
from ..utils.logger import app_logger

logger = app_logger.bind(component="file_selector")

IndexEntry = Tuple[str, Any]

_EXCLUDED_DIR_NAMES = {
    ".",
    "..",
    ".git",
    "__pycache__",
    "node_modules",
    ".venv",
    "venv",
    "dist",
    "build",
    "target",
    "out",
}


def _haystack(file_path: str) -> str:
    """Lower-cased path that always starts with a separator."""

    return "/" + normalize_path(file_path).lower().lstrip("/")


def extract_keywords(project_id: str) -> List[str]:
    """``MY_PROJECT_API`` -> ``['project', 'api']``; words of two letters or fewer are dropped."""

    return [word for word in re.split(r"[_\-\s]+", project_id.lower()) if len(word) > 2]


def project_id_variants(project_id: str) -> List[str]:
    normalized = project_id.lower()
    variants = [
        normalized,
        normalized.replace("_", "-"),
        normalized.replace("-", "_"),
        re.sub(r"[_-]", "", normalized),
    ]
    return [variant for variant in dict.fromkeys(variants) if variant]


def find_project_folder(paths: Iterable[str], project_id: str) -> Optional[str]:
    """Return the folder name matching the most project keywords; ties keep the first seen."""

    keywords = extract_keywords(project_id)
    if not keywords:
        return None

    folder_scores: Dict[str, int] = {}
    for file_path in paths:
        for part in normalize_path(file_path).lower().split("/")[:-1]:
            if not part or part in _EXCLUDED_DIR_NAMES or "." in part:
                continue
            score = sum(1 for keyword in keywords if keyword in part)
            if score > 0:
                folder_scores[part] = max(folder_scores.get(part, 0), score)

    best_folder: Optional[str] = None
    best_score = 0
    for folder, score in folder_scores.items():
        if score > best_score:
            best_folder, best_score = folder, score

    logger.info(f"Project {project_id!r} keywords: {keywords}")
    if best_folder:
        logger.info(f"Best matching folder: {best_folder!r} (score: {best_score})")
    return best_folder


def filter_by_source_path(files: Sequence[IndexEntry], source_path: str) -> List[IndexEntry]:
    needle = normalize_path(source_path).lower()
    return [entry for entry in files if needle in normalize_path(entry[0]).lower()]


def filter_by_project(files: Sequence[IndexEntry], project_id: str) -> List[IndexEntry]:
    """Exact folder-name variants first, keyword-scored folder detection second."""

    markers = [f"/{variant}/" for variant in project_id_variants(project_id)]
    filtered = [entry for entry in files if any(marker in _haystack(entry[0]) for marker in markers)]
    if filtered:
        return filtered

    logger.info(f"No exact match for {project_id!r}, trying keyword detection...")
    folder = find_project_folder((entry[0] for entry in files), project_id)
    if folder is None:
        return []

    marker = f"/{folder}/"
    filtered = [entry for entry in files if marker in _haystack(entry[0])]
    logger.info(f"Found {len(filtered)} files in folder {folder!r}")
    return filtered


def apply_patterns(
    files: Sequence[IndexEntry],
    include_patterns: Sequence[str] = (),
    exclude_patterns: Sequence[str] = (),
) -> List[IndexEntry]:
    """Keep files matching any include glob and no exclude glob."""

    selected = []
    for entry in files:
        path = normalize_path(entry[0])
        if include_patterns and not any(fnmatch.fnmatch(path, pattern) for pattern in include_patterns):
            continue
        if any(fnmatch.fnmatch(path, pattern) for pattern in exclude_patterns):
            continue
        selected.append(entry)
    return selected


def select_project_files(
    files: Sequence[IndexEntry],
    project_id: str,
    source_path: Optional[str] = None,
) -> List[IndexEntry]:
    if source_path:
        logger.info(f"Using sourcePath {source_path!r}")
        return filter_by_source_path(files, source_path)
    logger.info(f"No sourcePath known, using heuristic detection for {project_id!r}")
    return filter_by_project(files, project_id)


def select_files(state: AnalysisState) -> Dict[str, List[IndexEntry]]:
    """Populate the state with the project's working set of files."""

    context = state["context"]
    options = context.options
    all_files = list(context.index_files.items())

    selected = select_project_files(all_files, context.project_id, context.source_path_hint)
    selected = apply_patterns(selected, options.include_patterns, options.exclude_patterns)
    logger.info(f"Project {context.project_id}: found {len(selected)} files out of {len(all_files)} total")

    if not selected:
        raise NoProjectFilesError(context.project_id)

    if options.max_files is not None:
        selected = selected[: max(options.max_files, 0)]
    return {"files": selected}
