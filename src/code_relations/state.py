"""Canonical state definitions shared across the LangGraph pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, TypedDict

from .artifact import AnalysisOptions, ProjectRelations, RelationEdge, RelationNode


@dataclass(slots=True)
class ParsedFile:
    """Source text kept in memory between the parsing and edge phases."""

    file_path: str
    language: str
    content: str


@dataclass(slots=True)
class SkipCounters:
    unknown_lang: int = 0
    not_exists: int = 0
    no_content: int = 0
    error: int = 0

    def record(self, reason: str) -> None:
        setattr(self, reason, getattr(self, reason) + 1)


@dataclass(slots=True)
class PipelineContext:
    """Collaborators and per-run settings handed to every pipeline node."""

    project_id: str
    options: AnalysisOptions
    workspace_root: Path
    index_files: Dict[str, Any]
    source_path_hint: Optional[str]
    analyzer: Any
    enricher: Any
    store: Any
    progress: Any
    parse_batch_size: int = 20
    started_at: float = 0.0
    skipped: SkipCounters = field(default_factory=SkipCounters)


class AnalysisState(TypedDict, total=False):
    """State container exchanged between LangGraph nodes."""

    context: PipelineContext
    files: List[Tuple[str, Any]]
    nodes: List[RelationNode]
    parsed_files: Dict[str, ParsedFile]
    processed_files: int
    edges: List[RelationEdge]
    relations: Optional[ProjectRelations]


def build_initial_state(context: PipelineContext) -> AnalysisState:
    """Return the initial state for one analysis run."""

    return AnalysisState(
        context=context,
        files=[],
        nodes=[],
        parsed_files={},
        processed_files=0,
        edges=[],
        relations=None,
    )
