"""Tests for source hashing, staleness checks and the graph store."""

import json

from code_relations.artifact import ProjectRelations, RelationEdge, RelationNode, RelationsStats
from code_relations.staleness import CHANGED_REASON, NO_ANALYSIS_REASON, check_outdated, compute_source_hash
from code_relations.store import GraphStore


def make_relations(project_id="shop-api", source_hash="h1"):
    nodes = [
        RelationNode(id="aaa", type="service", name="UserService", file_path="shop/user.py", language="python",
                     description="Service", functions=["get"]),
        RelationNode(id="bbb", type="model", name="User", file_path="shop/model.py", language="python"),
    ]
    edges = [RelationEdge(id="aaa-bbb", source="aaa", target="bbb", label="imports User")]
    return ProjectRelations(
        project_id=project_id,
        source_hash=source_hash,
        last_analyzed=1700000000000,
        nodes=nodes,
        edges=edges,
        stats=RelationsStats(total_nodes=2, total_edges=1, nodes_by_type={"service": 1, "model": 1},
                             analyzed_files=2, analysis_time_ms=12),
    )


class TestSourceHash:

    def test_known_value_for_empty_mapping(self):
        # md5 of "{}"
        assert compute_source_hash({}) == "99914b932bd37a50b983c5e7c90ae93b"

    def test_missing_index(self):
        assert compute_source_hash(None) == ""

    def test_deterministic(self):
        files = {"a.py": {"hash": "1"}, "b.py": {"hash": "2"}}
        assert compute_source_hash(files) == compute_source_hash(dict(files))

    def test_changes_with_content(self):
        before = {"a.py": {"hash": "1"}}
        after = {"a.py": {"hash": "2"}}
        assert compute_source_hash(before) != compute_source_hash(after)


class TestCheckOutdated:

    def test_no_stored_graph(self):
        check = check_outdated(None, "h1")
        assert check.is_outdated
        assert check.reason == NO_ANALYSIS_REASON

    def test_changed_hash_reports_both_hashes(self):
        check = check_outdated(make_relations(source_hash="h1"), "h2")
        assert check.is_outdated
        assert check.reason == CHANGED_REASON
        assert check.stored_hash == "h1"
        assert check.current_hash == "h2"

    def test_current(self):
        check = check_outdated(make_relations(source_hash="h1"), "h1")
        assert not check.is_outdated
        assert check.reason is None


class TestGraphStore:

    def setup_method(self):
        self.relations = make_relations()

    def test_path_layout(self, tmp_path):
        store = GraphStore(tmp_path)
        assert store.path_for("shop-api") == tmp_path / "projects" / "shop-api" / "relations.json"

    def test_save_writes_camel_case_document(self, tmp_path):
        path = GraphStore(tmp_path).save(self.relations)
        data = json.loads(path.read_text(encoding="utf-8"))

        assert data["version"] == "1.0.0"
        assert data["projectId"] == "shop-api"
        assert data["sourceHash"] == "h1"
        assert data["nodes"][0]["filePath"] == "shop/user.py"
        assert data["edges"][0] == {
            "id": "aaa-bbb",
            "source": "aaa",
            "target": "bbb",
            "type": "imports",
            "label": "imports User",
        }
        assert data["stats"]["nodesByType"] == {"service": 1, "model": 1}
        assert not path.with_name("relations.json.tmp").exists()

    def test_fresh_store_reads_saved_graph(self, tmp_path):
        GraphStore(tmp_path).save(self.relations)
        loaded = GraphStore(tmp_path).load("shop-api")

        assert loaded is not None
        assert loaded.to_dict() == self.relations.to_dict()
        assert loaded.node_by_id("bbb").name == "User"

    def test_unknown_node_type_loads_as_unknown(self, tmp_path):
        data = self.relations.to_dict()
        data["nodes"][0]["type"] = "widget"
        path = GraphStore(tmp_path).path_for("shop-api")
        path.parent.mkdir(parents=True)
        path.write_text(json.dumps(data), encoding="utf-8")

        loaded = GraphStore(tmp_path).load("shop-api")

        assert loaded.nodes[0].type == "unknown"
        assert loaded.nodes[1].type == "model"

    def test_missing_project(self, tmp_path):
        assert GraphStore(tmp_path).load("nothing") is None

    def test_corrupt_document_loads_as_none(self, tmp_path):
        store = GraphStore(tmp_path)
        path = store.path_for("shop-api")
        path.parent.mkdir(parents=True)
        path.write_text("{not json", encoding="utf-8")

        assert store.load("shop-api") is None

    def test_cache_until_invalidated(self, tmp_path):
        store = GraphStore(tmp_path)
        store.save(self.relations)
        other = GraphStore(tmp_path)
        other.save(make_relations(source_hash="h2"))

        assert store.load("shop-api").source_hash == "h1"
        store.invalidate("shop-api")
        assert store.load("shop-api").source_hash == "h2"

    def test_clear(self, tmp_path):
        store = GraphStore(tmp_path)
        store.save(self.relations)
        store.path_for("shop-api").unlink()

        assert store.load("shop-api") is not None
        store.clear()
        assert store.load("shop-api") is None
