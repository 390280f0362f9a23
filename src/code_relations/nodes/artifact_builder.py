"""Final LangGraph node that assembles and persists the relations artifact."""

from __future__ import annotations

import time
from collections import Counter
from typing import Dict

from ..artifact import ProjectRelations, RelationsStats
from ..progress import ProgressEvent
from ..staleness import compute_source_hash
from ..state import AnalysisState
from ..utils.logger import app_logger

logger = app_logger.bind(component="artifact_builder")


def build_artifact(state: AnalysisState) -> Dict[str, object]:
    """Construct the final graph, tag it with the index hash and save it."""

    context = state["context"]
    nodes = state.get("nodes", [])
    edges = state.get("edges", [])
    processed = state.get("processed_files", 0)

    stats = RelationsStats(
        total_nodes=len(nodes),
        total_edges=len(edges),
        nodes_by_type=dict(Counter(node.type for node in nodes)),
        analyzed_files=processed,
        analysis_time_ms=int((time.monotonic() - context.started_at) * 1000),
    )

    relations = ProjectRelations(
        project_id=context.project_id,
        source_hash=compute_source_hash(context.index_files),
        last_analyzed=int(time.time() * 1000),
        nodes=list(nodes),
        edges=list(edges),
        stats=stats,
    )

    context.progress.publish(
        ProgressEvent(
            phase="saving",
            processed_files=processed,
            total_files=len(state.get("files", [])),
            processed_nodes=len(nodes),
        )
    )
    path = context.store.save(relations)
    logger.info(f"Saved relations for {context.project_id} to {path}")

    return {"relations": relations}
