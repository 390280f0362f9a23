"""Orchestrates relation analysis runs and answers status queries."""

from __future__ import annotations

import time
from pathlib import Path
from typing import Optional, Set

from .artifact import AnalysisOptions, OutdatedCheck, ProjectRelations, RelationsStatus
from .completion import TextGenerator, build_text_generator
from .config import Settings
from .errors import (
    AnalysisInProgressError,
    EmptyIndexError,
    IndexNotFoundError,
    StorageNotConfiguredError,
)
from .graph import build_analysis_graph
from .memory_bank import MemoryBankReader
from .nodes.enrichment import DescriptionEnricher
from .progress import ProgressChannel, ProgressListener
from .staleness import check_outdated, compute_source_hash
from .state import PipelineContext, build_initial_state
from .store import GraphStore
from .utils.file_parsing import RegexSourceAnalyzer, SourceAnalyzer
from .utils.logger import app_logger


class RelationsAnalyzer:
    """Builds, stores and reports on project relation graphs.

    One instance owns its graph store and its set of running analyses; two
    analyses of the same project cannot overlap on the same instance.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        text_generator: Optional[TextGenerator] = None,
        analyzer: Optional[SourceAnalyzer] = None,
        store: Optional[GraphStore] = None,
    ):
        self.logger = app_logger.bind(component="relations_analyzer")
        self.settings = settings or Settings()
        self.text_generator = text_generator if text_generator is not None else build_text_generator(self.settings)
        self.analyzer = analyzer or RegexSourceAnalyzer()
        self._store = store
        self._running: Set[str] = set()
        self._graph = build_analysis_graph()

    # ------------------------------------------------------------------
    # Collaborators
    # ------------------------------------------------------------------

    def _root(self) -> Path:
        if self.settings.memory_bank_path is None:
            raise StorageNotConfiguredError()
        return Path(self.settings.memory_bank_path)

    @property
    def store(self) -> GraphStore:
        if self._store is None:
            self._store = GraphStore(self._root())
        return self._store

    @property
    def reader(self) -> MemoryBankReader:
        return MemoryBankReader(self._root())

    def _workspace_root(self) -> Path:
        return Path(self.settings.resolved_workspace_root or self._root().parent)

    def _build_enricher(self) -> DescriptionEnricher:
        return DescriptionEnricher(
            generator=self.text_generator,
            batch_size=self.settings.enrich_batch_size,
            timeout=self.settings.description_deadline,
            locale=self.settings.description_locale,
            temperature=self.settings.ai_temperature,
        )

    # ------------------------------------------------------------------
    # Status queries
    # ------------------------------------------------------------------

    def load_relations(self, project_id: str) -> Optional[ProjectRelations]:
        return self.store.load(project_id)

    def current_source_hash(self) -> str:
        return compute_source_hash(self.reader.load_index_files())

    def is_outdated(self, project_id: str) -> OutdatedCheck:
        """Compare the stored graph's hash with a hash of the current index."""
        stored = self.load_relations(project_id)
        if stored is None:
            return check_outdated(None, "")
        return check_outdated(stored, self.current_source_hash())

    def get_relations_status(self, project_id: str) -> RelationsStatus:
        relations = self.load_relations(project_id)
        if relations is None:
            return RelationsStatus(status="none")

        outdated_info = check_outdated(relations, self.current_source_hash())
        return RelationsStatus(
            status="outdated" if outdated_info.is_outdated else "ready",
            relations=relations,
            outdated_info=outdated_info,
        )

    # ------------------------------------------------------------------
    # Analysis
    # ------------------------------------------------------------------

    async def analyze_project(
        self,
        project_id: str,
        options: Optional[AnalysisOptions] = None,
        on_progress: Optional[ProgressListener] = None,
    ) -> ProjectRelations:
        """Run the full pipeline for one project and persist the result."""
        options = options or AnalysisOptions()
        self._root()

        if project_id in self._running:
            raise AnalysisInProgressError(project_id)

        self._running.add(project_id)
        try:
            return await self._analyze(project_id, options, on_progress)
        finally:
            self._running.discard(project_id)

    async def _analyze(
        self,
        project_id: str,
        options: AnalysisOptions,
        on_progress: Optional[ProgressListener],
    ) -> ProjectRelations:
        started_at = time.monotonic()
        self.logger.info(
            f"Starting analysis for project {project_id} "
            f"(use_ai={options.use_ai}, max_files={options.max_files or 'unlimited'})"
        )

        reader = self.reader
        index = reader.load_index()
        if index is None:
            raise IndexNotFoundError(str(reader.index_path))
        index_files = index.get("files") or {}
        if not index_files:
            raise EmptyIndexError()
        self.logger.info(f"Index metadata loaded: {len(index_files)} indexed files")

        if not options.force:
            stored = self.store.load(project_id)
            check = check_outdated(stored, compute_source_hash(index_files))
            if stored is not None and not check.is_outdated:
                self.logger.info(f"Relations for {project_id} are current, skipping analysis")
                return stored

        source_path = options.source_path
        if not source_path:
            config = reader.load_project_config(project_id)
            source_path = config.get("sourcePath") if config else None

        progress = ProgressChannel()
        if on_progress is not None:
            progress.subscribe(on_progress)

        context = PipelineContext(
            project_id=project_id,
            options=options,
            workspace_root=self._workspace_root(),
            index_files=index_files,
            source_path_hint=source_path,
            analyzer=self.analyzer,
            enricher=self._build_enricher(),
            store=self.store,
            progress=progress,
            parse_batch_size=self.settings.parse_batch_size,
            started_at=started_at,
        )

        result = await self._graph.ainvoke(build_initial_state(context))
        relations: ProjectRelations = result["relations"]

        self.logger.info(
            f"Analysis complete for {project_id}: {relations.stats.total_nodes} nodes, "
            f"{relations.stats.total_edges} edges, {relations.stats.analyzed_files} files "
            f"in {time.monotonic() - started_at:.2f}s"
        )
        self.logger.info(f"Node types: {relations.stats.nodes_by_type}")
        return relations
