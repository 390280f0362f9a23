"""Graph definition for the relations analysis pipeline."""

from __future__ import annotations

from langgraph.graph import END, StateGraph

from .nodes.artifact_builder import build_artifact
from .nodes.dependency_analysis import analyze_dependencies
from .nodes.enrichment import enrich_nodes
from .nodes.file_analysis import parse_files
from .nodes.file_selection import select_files
from .state import AnalysisState


def build_analysis_graph():
    """Return a compiled LangGraph instance representing the pipeline."""

    graph = StateGraph(AnalysisState)
    graph.add_node("select_files", select_files)
    graph.add_node("parse_files", parse_files)
    graph.add_node("dependency_analysis", analyze_dependencies)
    graph.add_node("enrich_nodes", enrich_nodes)
    graph.add_node("artifact_builder", build_artifact)

    graph.set_entry_point("select_files")
    graph.add_edge("select_files", "parse_files")
    graph.add_edge("parse_files", "dependency_analysis")
    graph.add_edge("dependency_analysis", "enrich_nodes")
    graph.add_edge("enrich_nodes", "artifact_builder")
    graph.add_edge("artifact_builder", END)

    return graph.compile()
