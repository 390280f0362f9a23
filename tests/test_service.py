"""End-to-end tests for RelationsAnalyzer."""

import asyncio
import json

import pytest

from code_relations.artifact import AnalysisOptions
from code_relations.errors import (
    AnalysisInProgressError,
    EmptyIndexError,
    IndexNotFoundError,
    NoProjectFilesError,
    StorageNotConfiguredError,
)
from code_relations.service import RelationsAnalyzer
from code_relations.staleness import CHANGED_REASON, compute_source_hash

from conftest import MISSING_FILES, SHOP_API_SOURCES, FailingGenerator, write_index


NO_AI = AnalysisOptions(use_ai=False)


def run(analyzer, project_id="shop-api", options=NO_AI, on_progress=None):
    return asyncio.run(analyzer.analyze_project(project_id, options, on_progress))


@pytest.fixture
def analyzer(memory_bank, make_settings):
    return RelationsAnalyzer(settings=make_settings(memory_bank))


class TestAnalyzeProject:

    def test_builds_graph_for_project(self, analyzer, memory_bank):
        relations = run(analyzer)

        names = sorted(node.name for node in relations.nodes)
        assert names == ["App", "BaseService", "User", "UserService", "client"]
        assert relations.stats.total_nodes == 5
        assert relations.stats.total_edges == 3
        assert relations.stats.analyzed_files == 7
        assert relations.stats.nodes_by_type == {"service": 2, "model": 1, "class": 2}

        by_name = {node.name: node for node in relations.nodes}
        pairs = {(edge.source, edge.target) for edge in relations.edges}
        assert pairs == {
            (by_name["UserService"].id, by_name["BaseService"].id),
            (by_name["UserService"].id, by_name["User"].id),
            (by_name["App"].id, by_name["client"].id),
        }

        index = json.loads((memory_bank / "index-metadata.json").read_text(encoding="utf-8"))
        assert relations.source_hash == compute_source_hash(index["files"])

    def test_constants_only_file_is_not_a_node(self, analyzer):
        relations = run(analyzer)
        assert all(not node.file_path.endswith("settings.py") for node in relations.nodes)

    def test_every_node_has_a_description(self, analyzer):
        relations = run(analyzer)
        by_name = {node.name: node for node in relations.nodes}

        assert by_name["UserService"].description == 'Service "UserService" with 1 function(s)'
        assert all(node.description for node in relations.nodes)

    def test_repeated_runs_are_stable(self, analyzer):
        first = run(analyzer)
        second = run(analyzer)

        assert second.source_hash == first.source_hash
        assert len(second.nodes) == len(first.nodes)
        assert len(second.edges) == len(first.edges)
        assert {node.file_path: node.id for node in second.nodes} == {
            node.file_path: node.id for node in first.nodes
        }
        assert len({node.id for node in first.nodes}) == len(first.nodes)

    def test_graph_is_persisted(self, analyzer, memory_bank):
        relations = run(analyzer)
        path = memory_bank / "projects" / "shop-api" / "relations.json"

        assert path.exists()
        assert json.loads(path.read_text(encoding="utf-8")) == relations.to_dict()

    def test_max_files(self, analyzer):
        relations = run(analyzer, options=AnalysisOptions(use_ai=False, max_files=2))

        assert relations.stats.analyzed_files == 2
        assert sorted(node.name for node in relations.nodes) == ["BaseService", "UserService"]
        assert relations.stats.total_edges == 1

    def test_exclude_patterns(self, analyzer):
        relations = run(analyzer, options=AnalysisOptions(use_ai=False, exclude_patterns=["*.ts"]))
        assert sorted(node.name for node in relations.nodes) == ["BaseService", "User", "UserService"]

    def test_source_path_from_project_config(self, analyzer, memory_bank):
        metadata = memory_bank / "projects" / "legacy" / "docs" / "metadata.json"
        metadata.parent.mkdir(parents=True)
        metadata.write_text(json.dumps({"_projectConfig": {"sourcePath": "other-app"}}), encoding="utf-8")

        relations = run(analyzer, project_id="legacy")

        assert [node.name for node in relations.nodes] == ["main"]

    def test_failing_generator_still_completes(self, memory_bank, make_settings):
        generator = FailingGenerator()
        analyzer = RelationsAnalyzer(settings=make_settings(memory_bank), text_generator=generator)

        relations = run(analyzer, options=AnalysisOptions(use_ai=True))

        assert generator.calls == 5
        assert all(node.description for node in relations.nodes)


class TestProgress:

    def test_phases_in_order(self, analyzer):
        events = []
        run(analyzer, on_progress=events.append)

        phases = [event.phase for event in events]
        assert phases[0] == "parsing"
        assert phases[-1] == "saving"
        first_seen = list(dict.fromkeys(phases))
        assert first_seen == ["parsing", "detecting", "enriching", "saving"]

    def test_failing_listener_does_not_abort(self, analyzer):
        def listener(event):
            raise RuntimeError("ui went away")

        relations = run(analyzer, on_progress=listener)
        assert relations.stats.total_nodes == 5


class TestErrors:

    def test_storage_not_configured(self, make_settings):
        analyzer = RelationsAnalyzer(settings=make_settings(None))
        with pytest.raises(StorageNotConfiguredError):
            run(analyzer)

    def test_index_not_found(self, tmp_path, make_settings):
        analyzer = RelationsAnalyzer(settings=make_settings(tmp_path / "empty-bank"))
        with pytest.raises(IndexNotFoundError) as exc_info:
            run(analyzer)
        assert "index-metadata.json" in str(exc_info.value)

    def test_empty_index(self, tmp_path, make_settings):
        bank = tmp_path / "bank"
        write_index(bank, [])
        analyzer = RelationsAnalyzer(settings=make_settings(bank))
        with pytest.raises(EmptyIndexError):
            run(analyzer)

    def test_unknown_project(self, analyzer):
        with pytest.raises(NoProjectFilesError) as exc_info:
            run(analyzer, project_id="payments")
        assert "payments" in str(exc_info.value)

    def test_concurrent_run_for_same_project_is_rejected(self, analyzer):
        async def both():
            return await asyncio.gather(
                analyzer.analyze_project("shop-api", NO_AI),
                analyzer.analyze_project("shop-api", NO_AI),
                return_exceptions=True,
            )

        first, second = asyncio.run(both())

        assert first.stats.total_nodes == 5
        assert isinstance(second, AnalysisInProgressError)

    def test_project_can_run_again_after_failure(self, analyzer):
        with pytest.raises(NoProjectFilesError):
            run(analyzer, options=AnalysisOptions(use_ai=False, include_patterns=["*.rb"]))
        assert run(analyzer).stats.total_nodes == 5


class TestStatus:

    def test_none_before_analysis(self, analyzer):
        status = analyzer.get_relations_status("shop-api")
        assert status.status == "none"
        assert status.relations is None

    def test_ready_after_analysis(self, analyzer):
        run(analyzer)
        status = analyzer.get_relations_status("shop-api")

        assert status.status == "ready"
        assert not status.outdated_info.is_outdated
        assert not analyzer.is_outdated("shop-api").is_outdated

    def test_outdated_when_index_changes(self, analyzer, memory_bank):
        relations = run(analyzer)
        write_index(memory_bank, list(SHOP_API_SOURCES) + MISSING_FILES + ["shop-api/src/new_module.py"])

        status = analyzer.get_relations_status("shop-api")

        assert status.status == "outdated"
        assert status.outdated_info.reason == CHANGED_REASON
        assert status.outdated_info.stored_hash == relations.source_hash
        assert status.outdated_info.current_hash != relations.source_hash

    def test_skip_if_current_reuses_stored_graph(self, analyzer):
        first = run(analyzer)
        events = []

        second = run(analyzer, options=AnalysisOptions(use_ai=False, force=False), on_progress=events.append)

        assert second.last_analyzed == first.last_analyzed
        assert events == []

    def test_skip_if_current_reanalyzes_outdated_graph(self, analyzer, memory_bank):
        first = run(analyzer)
        write_index(memory_bank, list(SHOP_API_SOURCES))
        events = []

        second = run(analyzer, options=AnalysisOptions(use_ai=False, force=False), on_progress=events.append)

        assert second.source_hash != first.source_hash
        assert events
