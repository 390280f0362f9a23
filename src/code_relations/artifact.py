"""Structured artifacts emitted by the relations analysis graph."""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

RELATIONS_VERSION = "1.0.0"

NODE_TYPES = (
    "controller",
    "service",
    "repository",
    "dao",
    "util",
    "model",
    "component",
    "function",
    "class",
    "module",
    "config",
    "middleware",
    "handler",
    "adapter",
    "factory",
    "unknown",
)


def node_id_for(file_path: str) -> str:
    """Deterministic node id derived from the file path."""

    return hashlib.md5(file_path.encode("utf-8")).hexdigest()[:12]


@dataclass(slots=True)
class RelationNode:
    """A detected code unit: one source file and what it declares."""

    id: str
    type: str
    name: str
    file_path: str
    language: str
    description: str = ""
    functions: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "name": self.name,
            "filePath": self.file_path,
            "description": self.description,
            "functions": list(self.functions),
            "language": self.language,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RelationNode":
        node_type = data.get("type")
        return cls(
            id=data["id"],
            type=node_type if node_type in NODE_TYPES else "unknown",
            name=data.get("name", ""),
            file_path=data.get("filePath", ""),
            language=data.get("language", "unknown"),
            description=data.get("description", ""),
            functions=list(data.get("functions", [])),
        )


@dataclass(slots=True)
class RelationEdge:
    """A directed "imports" relationship between two nodes."""

    id: str
    source: str
    target: str
    type: str = "imports"
    label: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "source": self.source,
            "target": self.target,
            "type": self.type,
        }
        if self.label is not None:
            data["label"] = self.label
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RelationEdge":
        return cls(
            id=data["id"],
            source=data["source"],
            target=data["target"],
            type=data.get("type", "imports"),
            label=data.get("label"),
        )


@dataclass(slots=True)
class RelationsStats:
    total_nodes: int = 0
    total_edges: int = 0
    nodes_by_type: Dict[str, int] = field(default_factory=dict)
    analyzed_files: int = 0
    analysis_time_ms: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalNodes": self.total_nodes,
            "totalEdges": self.total_edges,
            "nodesByType": dict(self.nodes_by_type),
            "analyzedFiles": self.analyzed_files,
            "analysisTimeMs": self.analysis_time_ms,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RelationsStats":
        return cls(
            total_nodes=data.get("totalNodes", 0),
            total_edges=data.get("totalEdges", 0),
            nodes_by_type=dict(data.get("nodesByType", {})),
            analyzed_files=data.get("analyzedFiles", 0),
            analysis_time_ms=data.get("analysisTimeMs", 0),
        )


@dataclass(slots=True)
class ProjectRelations:
    """Top-level artifact: the versioned relationship graph of one project."""

    project_id: str
    source_hash: str
    last_analyzed: int
    nodes: List[RelationNode] = field(default_factory=list)
    edges: List[RelationEdge] = field(default_factory=list)
    stats: RelationsStats = field(default_factory=RelationsStats)
    version: str = RELATIONS_VERSION

    def to_dict(self) -> Dict[str, Any]:
        """Return a JSON-serializable dictionary."""

        return {
            "version": self.version,
            "projectId": self.project_id,
            "lastAnalyzed": self.last_analyzed,
            "sourceHash": self.source_hash,
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
            "stats": self.stats.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ProjectRelations":
        return cls(
            version=data.get("version", RELATIONS_VERSION),
            project_id=data["projectId"],
            last_analyzed=data.get("lastAnalyzed", 0),
            source_hash=data.get("sourceHash", ""),
            nodes=[RelationNode.from_dict(item) for item in data.get("nodes", [])],
            edges=[RelationEdge.from_dict(item) for item in data.get("edges", [])],
            stats=RelationsStats.from_dict(data.get("stats") or {}),
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2, ensure_ascii=False)

    def node_by_id(self, node_id: str) -> Optional[RelationNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None


@dataclass(slots=True)
class OutdatedCheck:
    """Result of comparing a stored graph against the current index."""

    is_outdated: bool
    reason: Optional[str] = None
    current_hash: Optional[str] = None
    stored_hash: Optional[str] = None


@dataclass(slots=True)
class RelationsStatus:
    status: str
    relations: Optional[ProjectRelations] = None
    outdated_info: Optional[OutdatedCheck] = None


@dataclass(slots=True)
class AnalysisOptions:
    """Caller-controlled knobs for one analysis run."""

    use_ai: bool = True
    max_files: Optional[int] = None
    include_patterns: List[str] = field(default_factory=list)
    exclude_patterns: List[str] = field(default_factory=list)
    force: bool = True
    source_path: Optional[str] = None


def write_json_atomic(payload: str, output_path: Path) -> Path:
    """Replace ``output_path`` with ``payload`` in one step."""

    output_path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = output_path.with_name(output_path.name + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(output_path)
    return output_path
