"""LangGraph node that converts import statements into dependency edges."""

from __future__ import annotations

from typing import Dict, List, Mapping, Sequence

from ..artifact import RelationEdge, RelationNode
from ..progress import ProgressEvent
from ..state import AnalysisState, ParsedFile
from ..utils.file_parsing import SourceAnalyzer
from ..utils.import_resolution import ImportResolver
from ..utils.logger import app_logger

logger = app_logger.bind(component="edge_builder")


def build_edges(
    nodes: Sequence[RelationNode],
    parsed_files: Mapping[str, ParsedFile],
    analyzer: SourceAnalyzer,
) -> List[RelationEdge]:
    """One directed edge per (importer, imported) pair; self-imports are dropped."""

    resolver = ImportResolver(nodes)
    edges: Dict[str, RelationEdge] = {}
    total_imports = 0
    resolved_imports = 0

    for node in nodes:
        parsed = parsed_files.get(node.file_path)
        if parsed is None:
            continue

        imports = analyzer.imports(parsed.content, parsed.language)
        total_imports += len(imports)
        for import_path in imports:
            target = resolver.resolve(import_path, node.file_path, parsed.language)
            if target is None or target.id == node.id:
                continue
            resolved_imports += 1
            edge_id = f"{node.id}-{target.id}"
            if edge_id not in edges:
                edges[edge_id] = RelationEdge(
                    id=edge_id,
                    source=node.id,
                    target=target.id,
                    label=f"imports {target.name}",
                )

    logger.info(
        f"Found {total_imports} imports, resolved {resolved_imports}, created {len(edges)} edges"
    )
    return list(edges.values())


def analyze_dependencies(state: AnalysisState) -> Dict[str, object]:
    """Populate the edge list by resolving every held file's imports."""

    context = state["context"]
    nodes = state.get("nodes", [])
    total = len(state.get("files", []))
    context.progress.publish(
        ProgressEvent(
            phase="detecting",
            processed_files=state.get("processed_files", 0),
            total_files=total,
            processed_nodes=len(nodes),
        )
    )

    edges = build_edges(nodes, state.get("parsed_files", {}), context.analyzer)
    return {"edges": edges}
